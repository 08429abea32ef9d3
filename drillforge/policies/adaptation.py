from __future__ import annotations

from drillforge.core.logging import DOMAIN_ADAPTATION, get_domain_logger
from drillforge.core.settings import settings
from drillforge.schemas.exercise import shift_tier
from drillforge.schemas.session import AdaptiveProfile, GenerationRequest

logger = get_domain_logger(__name__, DOMAIN_ADAPTATION)

LOWER_MULTIPLIER = 0.8
UPPER_MULTIPLIER = 1.2


def tier_steps(difficulty_multiplier: float) -> int:
    if difficulty_multiplier < LOWER_MULTIPLIER:
        return -1
    if difficulty_multiplier > UPPER_MULTIPLIER:
        return 1
    return 0


def scale_time_limit(seconds: int, time_multiplier: float) -> int:
    return max(1, round(seconds * time_multiplier))


class AdaptiveAdjustmentPolicy:
    """
    Turns a learner's adaptive profile into request adjustments.

    The profile's difficulty multiplier shifts the tier by at most one step,
    its time multiplier rescales the session time budget (and is reported so
    per-exercise allowances can follow), and focus/avoid areas are appended to
    the request's own lists together with the profile's weak categories.
    Lists are concatenated as given; repeated areas weight focus cycling.
    """

    def __init__(self, weak_accuracy_threshold: float | None = None):
        self.weak_accuracy_threshold = (
            weak_accuracy_threshold if weak_accuracy_threshold is not None else settings.adaptive_weak_accuracy_threshold
        )

    def apply(self, request: GenerationRequest, profile: AdaptiveProfile | None) -> tuple[GenerationRequest, dict]:
        if profile is None:
            return request, {}

        current = profile.current_settings
        update: dict = {}
        adjustments: dict = {}

        steps = tier_steps(current.difficulty_multiplier)
        if steps:
            shifted = shift_tier(request.difficulty, steps)
            if shifted != request.difficulty:
                update["difficulty"] = shifted
                adjustments["difficulty"] = {"from": request.difficulty.value, "to": shifted.value}

        if current.time_multiplier != 1.0:
            adjustments["time_multiplier"] = current.time_multiplier
            if request.time_budget is not None:
                budget = scale_time_limit(request.time_budget, current.time_multiplier)
                update["time_budget"] = budget
                adjustments["time_budget"] = {"from": request.time_budget, "to": budget}

        focus = list(request.focus_areas) + list(current.focus_areas)
        if profile.performance_patterns is not None:
            weak = profile.performance_patterns.weak_categories(self.weak_accuracy_threshold)
            if weak:
                focus.extend(weak)
                adjustments["weak_areas"] = weak
        if focus != request.focus_areas:
            update["focus_areas"] = focus
            adjustments["focus_areas"] = focus

        avoid = list(request.avoid_areas) + list(current.avoid_areas)
        if avoid != request.avoid_areas:
            update["avoid_areas"] = avoid
            adjustments["avoid_areas"] = avoid

        if adjustments:
            logger.info(
                "Adaptive adjustments for learner=%s curriculum=%s: %s",
                profile.learner_id or request.learner_id,
                request.curriculum.value,
                adjustments,
            )
        return request.model_copy(update=update), adjustments
