"""
Self-review stages: evaluation of an initial analysis and a single
improvement pass.

The evaluator decides whether the improver runs at all. A failed
evaluation accepts the initial analysis as-is; a failed improvement
replaces it with the canned error analysis.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from inbox_insights.email_processing.analyzers.triage import STAGE_FAILURE_CONFIDENCE
from inbox_insights.email_processing.base import AnalysisStage, StageName
from inbox_insights.email_processing.models import (
    ClassificationResult,
    EvaluationResult,
    ImprovedAnalysis,
    SummaryResult,
    error_classification,
    error_summary,
)
from inbox_insights.email_processing.prompts import evaluation_prompt, improvement_prompt


@dataclass(frozen=True)
class EvaluationRequest:
    subject: str
    content: str
    classification: ClassificationResult
    summary: SummaryResult


@dataclass(frozen=True)
class ImprovementRequest:
    """
    Input for the improvement pass.

    Attributes:
        previous_analysis: Serialized initial ProcessedEmail record
        improvements: Evaluator suggestions, possibly absent
    """
    subject: str
    content: str
    previous_analysis: Dict[str, Any]
    improvements: Optional[List[str]] = field(default=None)


class EvaluateStage(AnalysisStage[EvaluationRequest, EvaluationResult]):
    """Critiques the initial classification and summary."""

    name = StageName.EVALUATE

    def build_prompt(self, request: EvaluationRequest) -> str:
        return evaluation_prompt(
            subject=request.subject,
            content=request.content,
            classification=request.classification.to_record(),
            summary=request.summary.to_record(),
        )

    def parse(self, data: Any) -> EvaluationResult:
        return EvaluationResult.model_validate(data)

    def fallback(self) -> EvaluationResult:
        return EvaluationResult(is_accurate=True, improvement_needed=False)


class ImproveStage(AnalysisStage[ImprovementRequest, ImprovedAnalysis]):
    """Produces a replacement classification and summary."""

    name = StageName.IMPROVE

    def build_prompt(self, request: ImprovementRequest) -> str:
        return improvement_prompt(
            subject=request.subject,
            content=request.content,
            previous_analysis=request.previous_analysis,
            improvements=request.improvements,
        )

    def parse(self, data: Any) -> ImprovedAnalysis:
        return ImprovedAnalysis.model_validate(data)

    def fallback(self) -> ImprovedAnalysis:
        return ImprovedAnalysis(
            classification=error_classification(STAGE_FAILURE_CONFIDENCE),
            summary=error_summary(STAGE_FAILURE_CONFIDENCE),
        )
