"""
Models for the Upwork skill-demand and portfolio pipeline.
"""

from enum import Enum
from typing import Any, List

from pydantic import Field, field_validator

from inbox_insights.email_processing.models import RecordModel, normalize_choice
from inbox_insights.email_processing.parsing import DEFAULT_RECOVERED_CONFIDENCE


class DifficultyLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


# Demand scores are requested on a 1-10 scale but are not range-checked;
# models occasionally answer with fractional or out-of-scale values.
class TechnologyDemand(RecordModel):
    name: str
    demand_score: float


class CategoryDemand(RecordModel):
    category: str
    demand_score: float


class SkillDemand(RecordModel):
    skill: str
    demand_score: float


class SkillDemandAnalysis(RecordModel):
    """
    Aggregate view of what the filtered job notifications ask for.

    Produced once per batch. Lists are ranked by the model, highest demand
    first, and are kept in the order received.
    """
    top_technologies: List[TechnologyDemand] = Field(default_factory=list)
    top_categories: List[CategoryDemand] = Field(default_factory=list)
    top_skills: List[SkillDemand] = Field(default_factory=list)
    emerging_trends: List[str] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "SkillDemandAnalysis":
        """Zero-value analysis used when the analysis stage fails."""
        return cls()

    def is_empty(self) -> bool:
        return not (
            self.top_technologies or self.top_categories or self.top_skills
            or self.emerging_trends or self.insights
        )


class PortfolioProjectSuggestion(RecordModel):
    project_title: str = Field(..., min_length=1)
    project_description: str = ""
    relevant_skills: List[str] = Field(default_factory=list)
    difficulty_level: DifficultyLevel = DifficultyLevel.INTERMEDIATE
    estimated_time_to_complete: str = ""
    why_relevant: str = ""
    confidence: float = Field(default=DEFAULT_RECOVERED_CONFIDENCE, ge=0.0, le=1.0)

    @field_validator("difficulty_level", mode="before")
    @classmethod
    def normalize_difficulty(cls, value: Any) -> Any:
        return normalize_choice(value, DifficultyLevel)
