from .analyzers import (
    PortfolioRequest,
    PortfolioStage,
    SkillDemandRequest,
    SkillDemandStage,
    build_market_stage_registry,
)
from .filters import filter_by_date_range, filter_vendor_emails, format_for_analysis
from .models import (
    CategoryDemand,
    DifficultyLevel,
    PortfolioProjectSuggestion,
    SkillDemand,
    SkillDemandAnalysis,
    TechnologyDemand,
)
from .pipeline import UpworkPipeline

__all__ = [
    'CategoryDemand',
    'DifficultyLevel',
    'PortfolioProjectSuggestion',
    'PortfolioRequest',
    'PortfolioStage',
    'SkillDemand',
    'SkillDemandAnalysis',
    'SkillDemandRequest',
    'SkillDemandStage',
    'TechnologyDemand',
    'UpworkPipeline',
    'build_market_stage_registry',
    'filter_by_date_range',
    'filter_vendor_emails',
    'format_for_analysis'
]
