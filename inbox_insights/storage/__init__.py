from .results import (
    PORTFOLIO_FILENAME,
    RESULTS_FILENAME,
    SKILL_DEMAND_FILENAME,
    ResultStore,
)

__all__ = [
    'PORTFOLIO_FILENAME',
    'RESULTS_FILENAME',
    'SKILL_DEMAND_FILENAME',
    'ResultStore'
]
