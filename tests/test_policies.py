import pytest

from drillforge.core.errors import ConfigurationError
from drillforge.policies.adaptation import AdaptiveAdjustmentPolicy, tier_steps
from drillforge.policies.promotion import (
    ACCURACY_SUGGESTION,
    CONSISTENCY_SUGGESTION,
    SPEED_SUGGESTION,
    PromotionAdvisor,
)
from drillforge.schemas.exercise import Difficulty
from drillforge.schemas.promotion import PerformanceMetrics
from drillforge.schemas.session import (
    AdaptiveProfile,
    AdaptiveSettings,
    CategoryPerformance,
    GenerationRequest,
    PerformancePatterns,
)


def _profile(**settings_kwargs) -> AdaptiveProfile:
    return AdaptiveProfile(curriculum="soroban", learner_id="kid-1", current_settings=AdaptiveSettings(**settings_kwargs))


def test_tier_steps_boundaries():
    assert tier_steps(0.79) == -1
    assert tier_steps(0.8) == 0
    assert tier_steps(1.2) == 0
    assert tier_steps(1.21) == 1


@pytest.mark.parametrize(
    "start,multiplier,expected",
    [
        (Difficulty.MEDIUM, 0.5, Difficulty.EASY),
        (Difficulty.EASY, 0.5, Difficulty.EASY),
        (Difficulty.MEDIUM, 1.5, Difficulty.HARD),
        (Difficulty.HARD, 1.5, Difficulty.HARD),
        (Difficulty.MEDIUM, 1.0, Difficulty.MEDIUM),
    ],
)
def test_difficulty_shift(start, multiplier, expected):
    request = GenerationRequest(curriculum="soroban", level="A2", difficulty=start)
    adjusted, _ = AdaptiveAdjustmentPolicy().apply(request, _profile(difficulty_multiplier=multiplier))
    assert adjusted.difficulty == expected
    assert request.difficulty == start


def test_time_multiplier_rounds_budget():
    request = GenerationRequest(curriculum="soroban", level="A2", time_budget=101)
    adjusted, adjustments = AdaptiveAdjustmentPolicy().apply(request, _profile(time_multiplier=1.5))
    assert adjusted.time_budget == 152
    assert adjustments["time_multiplier"] == 1.5


def test_focus_lists_are_concatenated_with_weak_areas():
    request = GenerationRequest(curriculum="soroban", level="B1", focus_areas=["addition"], avoid_areas=["mixed"])
    profile = AdaptiveProfile(
        curriculum="soroban",
        current_settings=AdaptiveSettings(focus_areas=["addition", "friends_of_5"], avoid_areas=["subtraction"]),
        performance_patterns=PerformancePatterns(
            weak_areas=[
                CategoryPerformance(category="subtraction", accuracy=55),
                CategoryPerformance(category="friends_of_5", accuracy=90),
            ]
        ),
    )
    adjusted, adjustments = AdaptiveAdjustmentPolicy().apply(request, profile)
    assert adjusted.focus_areas == ["addition", "addition", "friends_of_5", "subtraction"]
    assert adjusted.avoid_areas == ["mixed", "subtraction"]
    assert adjustments["weak_areas"] == ["subtraction"]


def test_no_profile_is_a_no_op():
    request = GenerationRequest(curriculum="vedic", level="V1")
    adjusted, adjustments = AdaptiveAdjustmentPolicy().apply(request, None)
    assert adjusted is request
    assert adjustments == {}


def test_readiness_thresholds():
    advisor = PromotionAdvisor()
    assert advisor.check_readiness(PerformanceMetrics(average_accuracy=85, average_time_per_item=6, consecutive_successful_sessions=3))
    assert not advisor.check_readiness(PerformanceMetrics(average_accuracy=84.9, average_time_per_item=6, consecutive_successful_sessions=3))
    assert not advisor.check_readiness(PerformanceMetrics(average_accuracy=90, average_time_per_item=6.1, consecutive_successful_sessions=3))
    assert not advisor.check_readiness(PerformanceMetrics(average_accuracy=90, average_time_per_item=5, consecutive_successful_sessions=2))


def test_confidence_is_weighted_and_clamped():
    advisor = PromotionAdvisor()
    exact = PerformanceMetrics(average_accuracy=85, average_time_per_item=6, consecutive_successful_sessions=3)
    assert advisor.confidence(exact) == pytest.approx(1.0)
    weak = PerformanceMetrics(average_accuracy=42.5, average_time_per_item=12, consecutive_successful_sessions=0)
    assert advisor.confidence(weak) == pytest.approx(0.4 * 0.5 + 0.3 * 0.5)
    instant = PerformanceMetrics(average_accuracy=100, average_time_per_item=0, consecutive_successful_sessions=10)
    assert advisor.confidence(instant) == 1.0


def test_recommend_promotes_to_next_level():
    advisor = PromotionAdvisor()
    result = advisor.recommend(
        "soroban",
        "A3",
        {"average_accuracy": 90, "average_time_per_item": 5, "consecutive_successful_sessions": 4},
    )
    assert result.recommended
    assert result.next_level == "B1"
    assert 0 < result.confidence <= 1


def test_recommend_suggestions_when_not_ready():
    result = PromotionAdvisor().recommend(
        "logic",
        "L2",
        PerformanceMetrics(average_accuracy=70, average_time_per_item=9, consecutive_successful_sessions=1),
    )
    assert not result.recommended
    assert result.next_level == "L2"
    assert result.suggestions == [ACCURACY_SUGGESTION, SPEED_SUGGESTION, CONSISTENCY_SUGGESTION]
    assert result.confidence is None


def test_recommend_at_highest_level():
    result = PromotionAdvisor().recommend(
        "vedic",
        "V5",
        PerformanceMetrics(average_accuracy=99, average_time_per_item=2, consecutive_successful_sessions=9),
    )
    assert not result.recommended
    assert result.next_level == "V5"
    assert "highest" in result.reason


def test_recommend_unknown_level():
    with pytest.raises(ConfigurationError):
        PromotionAdvisor().recommend("iq_games", "IQ9", PerformanceMetrics(average_accuracy=0, average_time_per_item=0, consecutive_successful_sessions=0))
