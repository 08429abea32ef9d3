from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from drillforge.core.settings import settings
from drillforge.schemas.exercise import Curriculum, Difficulty, ExerciseType, SessionExercise

AgeGroup = Literal["under_7", "7_to_10", "over_10", "under_12", "over_12"]
SessionType = Literal["practice", "assessment", "review"]


class AdaptiveSettings(BaseModel):
    difficulty_multiplier: float = Field(default=1.0, gt=0)
    time_multiplier: float = Field(default=1.0, gt=0)
    focus_areas: list[str] = Field(default_factory=list)
    avoid_areas: list[str] = Field(default_factory=list)


class CategoryPerformance(BaseModel):
    category: str
    accuracy: float = Field(ge=0, le=100)


class PerformancePatterns(BaseModel):
    per_category_accuracy: dict[str, float] = Field(default_factory=dict)
    weak_areas: list[CategoryPerformance] = Field(default_factory=list)

    def weak_categories(self, threshold: float) -> list[str]:
        """Categories below ``threshold`` accuracy, explicit weak areas first."""
        out = [area.category for area in self.weak_areas if area.accuracy < threshold]
        listed = {area.category for area in self.weak_areas}
        out.extend(
            category
            for category, accuracy in self.per_category_accuracy.items()
            if accuracy < threshold and category not in listed
        )
        return out


class AdaptiveProfile(BaseModel):
    """Per-learner summary produced by the assessment subsystem; read-only here."""

    curriculum: Curriculum
    learner_id: str | None = None
    current_settings: AdaptiveSettings = Field(default_factory=AdaptiveSettings)
    performance_patterns: PerformancePatterns | None = None


class GenerationRequest(BaseModel):
    curriculum: Curriculum
    level: str = Field(min_length=1)
    count: int = Field(default_factory=lambda: settings.default_session_count, ge=1, le=100)
    exercise_type: ExerciseType | None = None
    difficulty: Difficulty = Difficulty.MEDIUM
    focus_areas: list[str] = Field(default_factory=list)
    avoid_areas: list[str] = Field(default_factory=list)
    adaptive_profile: AdaptiveProfile | None = None

    learner_id: str | None = None
    age_group: AgeGroup | None = None
    time_budget: int | None = Field(default=None, gt=0, description="Total seconds for the whole session")
    progressive_difficulty: bool = False
    session_type: SessionType = "practice"


class SessionMetadata(BaseModel):
    total_count: int
    estimated_duration: int
    difficulty_distribution: dict[str, int]
    exercise_types: dict[str, int]


class ScoringCriteria(BaseModel):
    passing_accuracy: int = 70
    excellent_accuracy: int = 90
    max_time_per_question: int = 10
    excellent_time_per_question: int = 5


class AssessmentMetadata(BaseModel):
    type: str = "level_assessment"
    coverage_areas: list[str]
    scoring_criteria: ScoringCriteria = Field(default_factory=ScoringCriteria)


class SessionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    created_at: datetime
    exercises: list[SessionExercise]
    request: GenerationRequest
    metadata: SessionMetadata
    adjustments: dict = Field(default_factory=dict)
    assessment: AssessmentMetadata | None = None


class SessionSummary(BaseModel):
    """What the history keeps of a session: enough for recall, not an audit trail."""

    session_id: str
    created_at: datetime
    curriculum: Curriculum
    level: str
    session_type: SessionType
    difficulty: Difficulty
    total_count: int
    estimated_duration: int
    exercise_types: dict[str, int]
