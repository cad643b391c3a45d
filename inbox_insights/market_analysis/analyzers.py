"""
Market analysis stages: skill-demand aggregation and portfolio generation.

Both stages make exactly one call per batch. The raw response text is saved
next to the JSON artifacts before parsing so a malformed answer can still
be inspected after the run.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from inbox_insights.config.analyzer_config import ANALYZER_CONFIG
from inbox_insights.email_processing.base import AnalysisStage, StageName, StageRegistry
from inbox_insights.email_processing.prompts import portfolio_prompt, skill_demand_prompt
from inbox_insights.integrations.base import CompletionClient
from inbox_insights.market_analysis.models import PortfolioProjectSuggestion, SkillDemandAnalysis
from inbox_insights.storage.results import ResultStore

logger = logging.getLogger(__name__)

SKILL_DEMAND_RAW_FILENAME = "skill-demand-analysis.txt"
PORTFOLIO_RAW_FILENAME = "portfolio-project-ideas.txt"

# Object keys some models use to wrap the requested project array
_LIST_WRAPPER_KEYS = ("suggestions", "projects")


@dataclass(frozen=True)
class SkillDemandRequest:
    """Formatted vendor emails, each ``{subject, from, content, date}``."""
    emails: List[Dict[str, str]]


@dataclass(frozen=True)
class PortfolioRequest:
    analysis: SkillDemandAnalysis
    count: int = field(default=ANALYZER_CONFIG["market_analysis"]["target_suggestions"])


class MarketStage(AnalysisStage):
    """Base for stages that also keep a raw-text copy of their response."""

    config_section = "market_analysis"
    raw_filename: str = ""

    def __init__(self, client: CompletionClient, model: str,
                 store: Optional[ResultStore] = None, **kwargs):
        if store is not None:
            kwargs.setdefault("debug_sink", store.save_debug_text)
        super().__init__(client, model, **kwargs)
        self.store = store

    def on_response_text(self, text: str) -> None:
        if self.store is not None:
            self.store.save_debug_text(text, self.raw_filename)


class SkillDemandStage(MarketStage):
    name = StageName.SKILL_DEMAND
    raw_filename = SKILL_DEMAND_RAW_FILENAME

    def build_prompt(self, request: SkillDemandRequest) -> str:
        return skill_demand_prompt(request.emails)

    def parse(self, data: Any) -> SkillDemandAnalysis:
        return SkillDemandAnalysis.model_validate(data)

    def fallback(self) -> SkillDemandAnalysis:
        return SkillDemandAnalysis.empty()


class PortfolioStage(MarketStage):
    """
    Generates portfolio project ideas from a skill-demand analysis.

    Accepts a bare JSON array or one wrapped in ``{"suggestions": [...]}``
    / ``{"projects": [...]}``, and falls back to field-level recovery when
    the array itself is malformed. Individual items that fail validation
    are dropped rather than failing the whole batch.
    """

    name = StageName.PORTFOLIO
    raw_filename = PORTFOLIO_RAW_FILENAME
    allow_array_pattern = True
    recover_projects = True

    def build_prompt(self, request: PortfolioRequest) -> str:
        return portfolio_prompt(request.analysis.to_record(), count=request.count)

    def parse(self, data: Any) -> List[PortfolioProjectSuggestion]:
        if isinstance(data, dict):
            for key in _LIST_WRAPPER_KEYS:
                if isinstance(data.get(key), list):
                    data = data[key]
                    break
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of projects, got {type(data).__name__}")

        suggestions = []
        for index, item in enumerate(data):
            try:
                suggestions.append(PortfolioProjectSuggestion.model_validate(item))
            except ValidationError as e:
                self.logger.warning(f"Skipping invalid project suggestion at index {index}: {e}")

        self.logger.info(f"Parsed {len(suggestions)} portfolio project suggestions")
        return suggestions

    def fallback(self) -> List[PortfolioProjectSuggestion]:
        return []


def build_market_stage_registry(
    client: CompletionClient,
    model: str,
    store: Optional[ResultStore] = None,
    logger: Optional[logging.Logger] = None
) -> StageRegistry:
    """Create a registry holding the skill-demand and portfolio stages."""
    registry = StageRegistry()
    registry.register(StageName.SKILL_DEMAND, SkillDemandStage(client, model, store=store, logger=logger))
    registry.register(StageName.PORTFOLIO, PortfolioStage(client, model, store=store, logger=logger))
    return registry
