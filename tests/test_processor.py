"""
Tests for the single-email processing pipeline.

Testing strategy:
1. End-to-end runs with mocked stages, with and without the improve pass
2. Stage-local failures (real stages, failing client) yield confidence 0.5
3. Failures outside the stage guards yield confidence 0
4. Batch processing keeps order and persists after every message
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from inbox_insights.email_processing.analyzers import build_email_stage_registry
from inbox_insights.email_processing.base import StageName, StageRegistry
from inbox_insights.email_processing.handlers.date_service import EmailDateService
from inbox_insights.email_processing.models import (
    ERROR_TEXT,
    ClassificationResult,
    EvaluationResult,
    ImprovedAnalysis,
    Priority,
    SummaryResult,
)
from inbox_insights.email_processing.processor import EmailProcessor

INITIAL_CLASSIFICATION = ClassificationResult(
    priority=Priority.URGENT, reasoning="payment deadline", confidence=0.9
)
INITIAL_SUMMARY = SummaryResult(
    key_points=["invoice due"], action_items=["pay by Friday"], confidence=0.9
)


def stage_returning(value):
    return MagicMock(run=AsyncMock(return_value=value))


def mocked_registry(evaluation, improved=None):
    registry = StageRegistry()
    registry.register(StageName.CLASSIFY, stage_returning(INITIAL_CLASSIFICATION))
    registry.register(StageName.SUMMARIZE, stage_returning(INITIAL_SUMMARY))
    registry.register(StageName.EVALUATE, stage_returning(evaluation))
    registry.register(StageName.IMPROVE, stage_returning(improved))
    return registry


class TestProcessEmail:
    @pytest.mark.asyncio
    async def test_accurate_evaluation_keeps_initial_analysis(self, sample_message):
        registry = mocked_registry(EvaluationResult(is_accurate=True, improvement_needed=False))
        processor = EmailProcessor(registry)

        result = await processor.process_email(sample_message)

        assert result.classification == INITIAL_CLASSIFICATION
        assert result.summary == INITIAL_SUMMARY
        assert result.time_of_day == EmailDateService.time_of_day_for_timestamp(sample_message.timestamp)
        registry.get(StageName.IMPROVE).run.assert_not_called()

    @pytest.mark.asyncio
    async def test_improvement_replaces_analysis(self, sample_message):
        improved = ImprovedAnalysis(
            classification=ClassificationResult(priority=Priority.IMPORTANT, reasoning="not urgent", confidence=0.95),
            summary=SummaryResult(key_points=["invoice"], action_items=["pay"], confidence=0.95),
        )
        registry = mocked_registry(
            EvaluationResult(
                is_accurate=False,
                improvement_needed=True,
                reason_for_improvement="overstated",
                suggested_improvements=["lower priority"],
            ),
            improved,
        )
        processor = EmailProcessor(registry)

        result = await processor.process_email(sample_message)

        assert result.classification == improved.classification
        assert result.summary == improved.summary
        assert result.id == sample_message.id
        assert result.thread_id == sample_message.thread_id
        assert result.time_of_day == EmailDateService.time_of_day_for_timestamp(sample_message.timestamp)

        request = registry.get(StageName.IMPROVE).run.call_args[0][0]
        assert request.improvements == ["lower priority"]
        assert request.previous_analysis["classification"]["priority"] == "Urgent"
        assert request.previous_analysis["threadId"] == "thread-1"

    @pytest.mark.asyncio
    async def test_stage_local_failure_yields_half_confidence(self, scripted_client, sample_message):
        client = scripted_client(
            ConnectionError("classify failed"),
            {"keyPoints": ["invoice due"], "actionItems": [], "confidence": 0.8},
            {"isAccurate": True, "improvementNeeded": False},
        )
        processor = EmailProcessor(build_email_stage_registry(client, "test-model"))

        result = await processor.process_email(sample_message)

        assert result.classification.priority == Priority.NORMAL
        assert result.classification.reasoning == ERROR_TEXT
        assert result.classification.confidence == 0.5
        assert result.summary.key_points == ["invoice due"]
        assert len(client.calls) == 3

    @pytest.mark.asyncio
    async def test_failure_outside_stage_guards_yields_zero_confidence(self, sample_message):
        registry = mocked_registry(EvaluationResult(is_accurate=True, improvement_needed=False))
        registry.register(StageName.CLASSIFY, MagicMock(run=AsyncMock(side_effect=ConnectionError("socket closed"))))
        processor = EmailProcessor(registry)

        result = await processor.process_email(sample_message)

        assert result.classification.priority == Priority.NORMAL
        assert result.classification.reasoning == ERROR_TEXT
        assert result.classification.confidence == 0
        assert result.summary.key_points == [ERROR_TEXT]
        assert result.summary.suggested_response == "Unable to process email"
        assert result.summary.confidence == 0
        assert result.id == sample_message.id

    @pytest.mark.asyncio
    async def test_missing_stage_yields_error_record(self, sample_message):
        processor = EmailProcessor(StageRegistry())
        result = await processor.process_email(sample_message)
        assert result.classification.confidence == 0

    @pytest.mark.asyncio
    async def test_register_stage_overrides_binding(self, sample_message):
        registry = mocked_registry(EvaluationResult(is_accurate=True, improvement_needed=False))
        processor = EmailProcessor(registry)
        replacement = ClassificationResult(priority=Priority.NORMAL, reasoning="newsletter", confidence=0.7)

        processor.register_stage(StageName.CLASSIFY, stage_returning(replacement))
        result = await processor.process_email(sample_message)

        assert result.classification == replacement


class TestProcessBatch:
    @pytest.mark.asyncio
    async def test_order_preserved_and_each_result_persisted(self, sample_message):
        registry = mocked_registry(EvaluationResult(is_accurate=True, improvement_needed=False))
        store = MagicMock()
        reporter = MagicMock()
        messages = [
            sample_message.model_copy(update={"id": f"msg-{i}", "subject": f"Subject {i}"})
            for i in range(3)
        ]
        processor = EmailProcessor(registry, result_store=store, reporter=reporter)

        results = await processor.process_batch(messages)

        assert [r.id for r in results] == ["msg-0", "msg-1", "msg-2"]
        assert [c.args[0].id for c in store.append_result.call_args_list] == ["msg-0", "msg-1", "msg-2"]
        reporter.email_processed.assert_any_call("Subject 1", "Urgent")

    @pytest.mark.asyncio
    async def test_one_failing_email_does_not_abort_batch(self, sample_message):
        classify = MagicMock(run=AsyncMock(side_effect=[RuntimeError("boom"), INITIAL_CLASSIFICATION]))
        registry = mocked_registry(EvaluationResult(is_accurate=True, improvement_needed=False))
        registry.register(StageName.CLASSIFY, classify)
        messages = [
            sample_message.model_copy(update={"id": "bad"}),
            sample_message.model_copy(update={"id": "good"}),
        ]

        results = await EmailProcessor(registry).process_batch(messages)

        assert [r.id for r in results] == ["bad", "good"]
        assert results[0].classification.confidence == 0
        assert results[1].classification == INITIAL_CLASSIFICATION

    @pytest.mark.asyncio
    async def test_reporter_failure_reported_and_batch_continues(self, sample_message):
        registry = mocked_registry(EvaluationResult(is_accurate=True, improvement_needed=False))
        reporter = MagicMock()
        reporter.email_processed.side_effect = [OSError("stream closed"), None]
        messages = [sample_message, sample_message.model_copy(update={"id": "second"})]

        results = await EmailProcessor(registry, reporter=reporter).process_batch(messages)

        assert len(results) == 2
        reporter.email_failed.assert_called_once()
