"""
Shared data models for email processing.

All records are immutable pydantic models with snake_case attributes and
camelCase JSON aliases, so LLM output and persisted files use the same
field names as the rest of the toolchain (``threadId``, ``keyPoints``...).
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ERROR_TEXT = "Error in processing"
ERROR_RESPONSE = "Unable to process email"


class Priority(str, Enum):
    """Priority levels assigned by the classification stage."""
    URGENT = "Urgent"
    IMPORTANT = "Important"
    NORMAL = "Normal"


class TimeOfDay(str, Enum):
    """Coarse receive-time bucket derived from the message's local hour."""
    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    EVENING = "Evening"


def normalize_choice(value: Any, enum_cls: type) -> Any:
    """Match a string case-insensitively against an enum's values."""
    if isinstance(value, str):
        cleaned = value.strip().lower()
        for member in enum_cls:
            if member.value.lower() == cleaned:
                return member
    return value


class RecordModel(BaseModel):
    """Base for immutable records serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_record(self) -> Dict[str, Any]:
        """JSON-compatible dictionary using the camelCase field names."""
        return self.model_dump(mode="json", by_alias=True)


class EmailMessage(RecordModel):
    """
    A mailbox message as produced by the Gmail adapter.

    ``id`` and ``thread_id`` are always populated: the adapter substitutes
    placeholders when the provider omits them.
    """
    id: str = Field(..., min_length=1)
    thread_id: str = Field(..., min_length=1)
    subject: str = ""
    sender: str = Field(default="", alias="from")
    date: str = ""
    timestamp: int = Field(..., description="Receive time in epoch milliseconds")
    snippet: str = ""
    is_read: bool = False
    link: str = ""


class ClassificationResult(RecordModel):
    priority: Priority
    reasoning: str = ""
    confidence: float = Field(..., ge=0.0, le=1.0)

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, value: Any) -> Any:
        return normalize_choice(value, Priority)


class SummaryResult(RecordModel):
    key_points: List[str] = Field(default_factory=list)
    action_items: List[str] = Field(default_factory=list)
    suggested_response: Optional[str] = None
    confidence: float = Field(..., ge=0.0, le=1.0)


class EvaluationResult(RecordModel):
    """Critique of an initial analysis. Never persisted on its own."""
    is_accurate: bool
    improvement_needed: bool
    reason_for_improvement: Optional[str] = None
    suggested_improvements: Optional[List[str]] = None


class ImprovedAnalysis(RecordModel):
    classification: ClassificationResult
    summary: SummaryResult


class ProcessedEmail(RecordModel):
    """
    Unit of persistence: the message (minus its snippet) with its analysis.

    Instances are never patched in place; the improvement stage produces a
    new instance through ``with_analysis``.
    """
    id: str
    thread_id: str
    subject: str
    sender: str = Field(alias="from")
    date: str
    timestamp: int
    is_read: bool
    link: str
    time_of_day: TimeOfDay
    classification: ClassificationResult
    summary: SummaryResult

    @classmethod
    def from_message(
        cls,
        message: EmailMessage,
        time_of_day: TimeOfDay,
        classification: ClassificationResult,
        summary: SummaryResult
    ) -> "ProcessedEmail":
        return cls(
            id=message.id,
            thread_id=message.thread_id,
            subject=message.subject,
            sender=message.sender,
            date=message.date,
            timestamp=message.timestamp,
            is_read=message.is_read,
            link=message.link,
            time_of_day=time_of_day,
            classification=classification,
            summary=summary,
        )

    def with_analysis(
        self,
        classification: ClassificationResult,
        summary: SummaryResult
    ) -> "ProcessedEmail":
        """Return a new record with the analysis replaced wholesale."""
        return self.model_copy(update={
            "classification": classification,
            "summary": summary,
        })


def error_classification(confidence: float) -> ClassificationResult:
    """Canned classification substituted when analysis fails."""
    return ClassificationResult(
        priority=Priority.NORMAL,
        reasoning=ERROR_TEXT,
        confidence=confidence,
    )


def error_summary(confidence: float) -> SummaryResult:
    """Canned summary substituted when analysis fails."""
    return SummaryResult(
        key_points=[ERROR_TEXT],
        action_items=[],
        suggested_response=ERROR_RESPONSE,
        confidence=confidence,
    )
