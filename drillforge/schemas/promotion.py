from pydantic import BaseModel, Field


class PerformanceMetrics(BaseModel):
    """Aggregated results over recent sessions at the current level."""

    average_accuracy: float = Field(ge=0, le=100)
    average_time_per_item: float = Field(ge=0, description="Seconds per exercise")
    consecutive_successful_sessions: int = Field(ge=0)


class PromotionRecommendation(BaseModel):
    recommended: bool
    current_level: str
    next_level: str
    reason: str
    confidence: float | None = None
    suggestions: list[str] = Field(default_factory=list)
