"""
Self-Evaluating Email Processing Pipeline

Runs one message at a time through classify -> summarize -> evaluate and,
only when the evaluator asks for it, a single improve pass. Every stage is
guarded on its own; anything that escapes the stage guards still produces a
fully synthesized error record so one message never aborts the batch.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from inbox_insights.config.analyzer_config import ANALYZER_CONFIG
from inbox_insights.email_processing.analyzers import (
    ClassificationRequest,
    EvaluationRequest,
    ImprovementRequest,
    SummaryRequest,
)
from inbox_insights.email_processing.base import StageName, StageRegistry
from inbox_insights.email_processing.handlers.date_service import EmailDateService
from inbox_insights.email_processing.models import (
    EmailMessage,
    ProcessedEmail,
    TimeOfDay,
    error_classification,
    error_summary,
)
from inbox_insights.storage.results import ResultStore
from inbox_insights.utils.console import ConsoleReporter
from inbox_insights.utils.logging_setup import mask_email

logger = logging.getLogger(__name__)

PIPELINE_FAILURE_CONFIDENCE = 0.0


class EmailProcessor:
    """
    Coordinates the per-message stage sequence and batch persistence.

    Stages are resolved from an explicit StageRegistry. Messages are
    processed strictly sequentially in the order given, and results are
    appended to the result store in that same order.

    Attributes:
        stages: Registry holding the four email stages
        result_store: Optional store rewritten after every processed message
        confidence_threshold: Configured but not consulted; improvement is
            gated solely by the evaluator's improvement_needed flag
    """

    def __init__(
        self,
        stages: StageRegistry,
        result_store: Optional[ResultStore] = None,
        reporter: Optional[ConsoleReporter] = None,
        date_service: type = EmailDateService,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the processor with its stages and collaborators.

        Args:
            stages: Registry with CLASSIFY, SUMMARIZE, EVALUATE, IMPROVE bound
            result_store: Store receiving each ProcessedEmail
            reporter: Console reporter for per-message status lines
            date_service: Provides time-of-day bucketing
            logger: Logger for pipeline progress
        """
        self.stages = stages
        self.result_store = result_store
        self.reporter = reporter
        self.date_service = date_service
        self.logger = logger or logging.getLogger(__name__)
        self.confidence_threshold = ANALYZER_CONFIG["email_pipeline"]["confidence_threshold"]

    def register_stage(self, name: StageName, stage) -> None:
        """Bind or replace the stage used for a pipeline step."""
        self.stages.register(name, stage)

    async def process_email(self, message: EmailMessage) -> ProcessedEmail:
        """
        Analyze a single message through the staged pipeline.

        Args:
            message: Normalized mailbox message

        Returns:
            The final ProcessedEmail. On a failure outside the stage guards
            a synthesized error record (confidence 0) is returned instead.
        """
        try:
            self.logger.info(f"Starting email analysis for {message.id}")
            self.logger.debug(
                f"Email details: subject={message.subject!r}, "
                f"from={mask_email(message.sender)}, "
                f"snippet={message.snippet[:100]!r}"
            )

            classification = await self.stages.get(StageName.CLASSIFY).run(
                ClassificationRequest.from_message(message)
            )
            summary = await self.stages.get(StageName.SUMMARIZE).run(
                SummaryRequest.from_message(message)
            )

            time_of_day = self.date_service.time_of_day_for_timestamp(message.timestamp)
            initial_analysis = ProcessedEmail.from_message(message, time_of_day, classification, summary)
            self.logger.debug(f"Initial analysis created for {message.id}: {initial_analysis.to_record()}")

            evaluation = await self.stages.get(StageName.EVALUATE).run(
                EvaluationRequest(
                    subject=message.subject,
                    content=message.snippet,
                    classification=classification,
                    summary=summary,
                )
            )
            self.logger.debug(
                f"Evaluation for {message.id}: accurate={evaluation.is_accurate}, "
                f"improvement_needed={evaluation.improvement_needed}"
            )

            if not evaluation.improvement_needed:
                self.logger.info(f"Returning initial analysis for {message.id} as final result")
                return initial_analysis

            self.logger.info(f"Running improvement for {message.id}: {evaluation.reason_for_improvement}")
            improved = await self.stages.get(StageName.IMPROVE).run(
                ImprovementRequest(
                    subject=message.subject,
                    content=message.snippet,
                    previous_analysis=initial_analysis.to_record(),
                    improvements=evaluation.suggested_improvements,
                )
            )
            return initial_analysis.with_analysis(improved.classification, improved.summary)

        except Exception as e:
            self.logger.error(f"Error in email processing for {message.id}: {e}", exc_info=True)
            return self._error_result(message)

    def _error_result(self, message: EmailMessage) -> ProcessedEmail:
        return ProcessedEmail.from_message(
            message,
            self._safe_time_of_day(message),
            error_classification(PIPELINE_FAILURE_CONFIDENCE),
            error_summary(PIPELINE_FAILURE_CONFIDENCE),
        )

    def _safe_time_of_day(self, message: EmailMessage) -> TimeOfDay:
        try:
            return self.date_service.time_of_day_for_timestamp(message.timestamp)
        except (ValueError, OverflowError, OSError):
            return self.date_service.time_of_day(datetime.now().hour)

    async def process_batch(self, messages: Sequence[EmailMessage]) -> List[ProcessedEmail]:
        """
        Process messages one at a time, persisting after each.

        Args:
            messages: Messages in mailbox listing order

        Returns:
            ProcessedEmail records in the same order
        """
        results: List[ProcessedEmail] = []

        for message in messages:
            try:
                result = await self.process_email(message)
                results.append(result)

                if self.result_store is not None:
                    self.result_store.append_result(result)
                if self.reporter is not None:
                    self.reporter.email_processed(message.subject, result.classification.priority.value)

            except Exception as e:
                self.logger.error(f"Error processing email {message.id}: {e}", exc_info=True)
                if self.reporter is not None:
                    self.reporter.email_failed(message.subject, e)

        self.logger.info(f"Completed batch processing: {len(results)} of {len(messages)} emails analyzed")
        return results
