"""
Initial triage stages: priority classification and content summarization.

These are the first two stages of the single-email pipeline. Both run at a
low temperature and fall back to a canned "Error in processing" result with
confidence 0.5 when the provider call or parsing fails.
"""

from dataclasses import dataclass
from typing import Any, Optional

from inbox_insights.email_processing.base import AnalysisStage, StageName
from inbox_insights.email_processing.models import (
    ClassificationResult,
    EmailMessage,
    SummaryResult,
    error_classification,
    error_summary,
)
from inbox_insights.email_processing.prompts import classification_prompt, summary_prompt

STAGE_FAILURE_CONFIDENCE = 0.5


@dataclass(frozen=True)
class ClassificationRequest:
    subject: str
    sender: str
    content: str
    is_read: bool
    timestamp: Optional[int]

    @classmethod
    def from_message(cls, message: EmailMessage) -> "ClassificationRequest":
        return cls(
            subject=message.subject,
            sender=message.sender,
            content=message.snippet,
            is_read=message.is_read,
            timestamp=message.timestamp,
        )


@dataclass(frozen=True)
class SummaryRequest:
    subject: str
    content: str
    is_read: bool
    timestamp: Optional[int]

    @classmethod
    def from_message(cls, message: EmailMessage) -> "SummaryRequest":
        return cls(
            subject=message.subject,
            content=message.snippet,
            is_read=message.is_read,
            timestamp=message.timestamp,
        )


class ClassifyStage(AnalysisStage[ClassificationRequest, ClassificationResult]):
    """Assigns Urgent / Important / Normal priority with reasoning."""

    name = StageName.CLASSIFY

    def build_prompt(self, request: ClassificationRequest) -> str:
        return classification_prompt(
            subject=request.subject,
            sender=request.sender,
            content=request.content,
            is_read=request.is_read,
            timestamp=request.timestamp,
        )

    def parse(self, data: Any) -> ClassificationResult:
        return ClassificationResult.model_validate(data)

    def fallback(self) -> ClassificationResult:
        return error_classification(STAGE_FAILURE_CONFIDENCE)


class SummarizeStage(AnalysisStage[SummaryRequest, SummaryResult]):
    """Extracts key points, action items and an optional reply suggestion."""

    name = StageName.SUMMARIZE

    def build_prompt(self, request: SummaryRequest) -> str:
        return summary_prompt(
            subject=request.subject,
            content=request.content,
            is_read=request.is_read,
            timestamp=request.timestamp,
        )

    def parse(self, data: Any) -> SummaryResult:
        return SummaryResult.model_validate(data)

    def fallback(self) -> SummaryResult:
        return error_summary(STAGE_FAILURE_CONFIDENCE)
