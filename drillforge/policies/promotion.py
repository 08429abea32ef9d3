from __future__ import annotations

from drillforge.core.logging import DOMAIN_PROMOTION, get_domain_logger
from drillforge.data.catalog import level_definition, ordered_levels
from drillforge.schemas.exercise import Curriculum
from drillforge.schemas.promotion import PerformanceMetrics, PromotionRecommendation

logger = get_domain_logger(__name__, DOMAIN_PROMOTION)

ACCURACY_THRESHOLD = 85.0
TIME_THRESHOLD = 6.0
STREAK_THRESHOLD = 3
TERM_CAP = 1.2

ACCURACY_SUGGESTION = "Focus on accuracy - practice more slowly and carefully"
SPEED_SUGGESTION = "Work on speed - practice mental calculation techniques"
CONSISTENCY_SUGGESTION = "Maintain consistent practice to build confidence"


class PromotionAdvisor:
    def check_readiness(self, metrics: PerformanceMetrics) -> bool:
        return (
            metrics.average_accuracy >= ACCURACY_THRESHOLD
            and metrics.average_time_per_item <= TIME_THRESHOLD
            and metrics.consecutive_successful_sessions >= STREAK_THRESHOLD
        )

    def confidence(self, metrics: PerformanceMetrics) -> float:
        accuracy = min(metrics.average_accuracy / ACCURACY_THRESHOLD, TERM_CAP)
        if metrics.average_time_per_item > 0:
            speed = min(TIME_THRESHOLD / metrics.average_time_per_item, TERM_CAP)
        else:
            speed = TERM_CAP
        streak = min(metrics.consecutive_successful_sessions / STREAK_THRESHOLD, TERM_CAP)
        return min(0.4 * accuracy + 0.3 * speed + 0.3 * streak, 1.0)

    def suggestions(self, metrics: PerformanceMetrics) -> list[str]:
        out = []
        if metrics.average_accuracy < ACCURACY_THRESHOLD:
            out.append(ACCURACY_SUGGESTION)
        if metrics.average_time_per_item > TIME_THRESHOLD:
            out.append(SPEED_SUGGESTION)
        if metrics.consecutive_successful_sessions < STREAK_THRESHOLD:
            out.append(CONSISTENCY_SUGGESTION)
        return out

    def recommend(
        self,
        curriculum: Curriculum | str,
        current_level: str,
        metrics: PerformanceMetrics | dict,
    ) -> PromotionRecommendation:
        """Advance to the next level in catalog order when every readiness threshold is met."""
        definition = level_definition(curriculum, current_level)
        if isinstance(metrics, dict):
            metrics = PerformanceMetrics.model_validate(metrics)
        levels = ordered_levels(definition.curriculum)
        index = levels.index(definition.code)
        ready = self.check_readiness(metrics)

        if ready and index + 1 < len(levels):
            recommendation = PromotionRecommendation(
                recommended=True,
                current_level=definition.code,
                next_level=levels[index + 1],
                reason="Performance criteria met for advancement",
                confidence=self.confidence(metrics),
            )
        elif ready:
            recommendation = PromotionRecommendation(
                recommended=False,
                current_level=definition.code,
                next_level=definition.code,
                reason="Already at the highest level of this curriculum",
                confidence=self.confidence(metrics),
            )
        else:
            recommendation = PromotionRecommendation(
                recommended=False,
                current_level=definition.code,
                next_level=definition.code,
                reason="Continue practicing current level",
                suggestions=self.suggestions(metrics),
            )
        logger.info(
            "Promotion decision curriculum=%s level=%s recommended=%s next=%s",
            definition.curriculum.value,
            definition.code,
            recommendation.recommended,
            recommendation.next_level,
        )
        return recommendation
