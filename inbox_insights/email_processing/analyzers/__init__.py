"""
Email pipeline stages and the default registry that binds them.
"""

import logging
from typing import Optional

from inbox_insights.email_processing.base import DebugSink, StageName, StageRegistry
from inbox_insights.integrations.base import CompletionClient

from .review import EvaluateStage, EvaluationRequest, ImproveStage, ImprovementRequest
from .triage import ClassificationRequest, ClassifyStage, SummarizeStage, SummaryRequest


def build_email_stage_registry(
    client: CompletionClient,
    model: str,
    debug_sink: Optional[DebugSink] = None,
    logger: Optional[logging.Logger] = None
) -> StageRegistry:
    """Create a registry holding the classify/summarize/evaluate/improve stages."""
    registry = StageRegistry()
    for stage_cls in (ClassifyStage, SummarizeStage, EvaluateStage, ImproveStage):
        registry.register(
            stage_cls.name,
            stage_cls(client, model, debug_sink=debug_sink, logger=logger)
        )
    return registry


__all__ = [
    'ClassificationRequest',
    'ClassifyStage',
    'EvaluateStage',
    'EvaluationRequest',
    'ImproveStage',
    'ImprovementRequest',
    'StageName',
    'SummarizeStage',
    'SummaryRequest',
    'build_email_stage_registry'
]
