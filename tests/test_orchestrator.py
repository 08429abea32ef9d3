import logging
import random

import pytest
from pydantic import ValidationError

from drillforge.core.errors import ConfigurationError, DependencyError, GenerationExhaustionError
from drillforge.core.settings import settings
from drillforge.memory.dedup import exercise_signature
from drillforge.orchestrator.engine import SessionOrchestrator
from drillforge.schemas.exercise import Difficulty, ExerciseType
from drillforge.schemas.session import (
    AdaptiveProfile,
    AdaptiveSettings,
    CategoryPerformance,
    GenerationRequest,
    PerformancePatterns,
)


def test_a1_easy_session_end_to_end(orchestrator):
    result = orchestrator.generate_session({"curriculum": "soroban", "level": "A1", "count": 5, "difficulty": "easy"})
    assert len(result.exercises) == 5
    for exercise in result.exercises:
        assert exercise.type in {ExerciseType.SIMPLE_ADDITION, ExerciseType.SIMPLE_SUBTRACTION}
        assert exercise.difficulty == Difficulty.EASY
        operands = len(exercise.payload.numbers)
        assert exercise.time_allowance == int((10 + 3 + operands * 2) * 1.5)
    assert result.metadata.total_count == 5
    assert result.metadata.estimated_duration == sum(e.time_allowance for e in result.exercises)
    assert result.metadata.difficulty_distribution == {"easy": 5}
    assert sum(result.metadata.exercise_types.values()) == 5


def test_unknown_curriculum_is_configuration_error(orchestrator):
    with pytest.raises(ConfigurationError, match="Invalid curriculum: unknown"):
        orchestrator.generate_session({"curriculum": "unknown"})


def test_unknown_level_and_bad_count(orchestrator):
    with pytest.raises(ConfigurationError):
        orchestrator.generate_session({"curriculum": "vedic", "level": "A1"})
    with pytest.raises(ConfigurationError):
        orchestrator.generate_session({"curriculum": "vedic", "level": "V1", "count": 101})


def test_exercises_are_stamped_in_order(orchestrator):
    result = orchestrator.generate_session(
        GenerationRequest(curriculum="logic", level="L2", count=6, age_group="7_to_10")
    )
    assert result.session_id.startswith("SES-")
    assert [e.order_index for e in result.exercises] == [1, 2, 3, 4, 5, 6]
    ids = [e.exercise_id for e in result.exercises]
    assert len(set(ids)) == 6
    assert all(i.startswith("LOGIC-L2-") and i.endswith(f"-{n}") for n, i in enumerate(ids, start=1))
    assert all(e.curriculum == "logic" and e.age_group == "7_to_10" for e in result.exercises)
    assert all(e.generated_at == result.created_at for e in result.exercises)


def test_session_signatures_are_unique(orchestrator):
    result = orchestrator.generate_session({"curriculum": "iq_games", "level": "IQ4", "count": 30, "difficulty": "hard"})
    signatures = {exercise_signature(e) for e in result.exercises}
    assert len(signatures) == 30


def test_age_group_mismatch_only_warns(orchestrator, caplog):
    with caplog.at_level(logging.WARNING):
        result = orchestrator.generate_session({"curriculum": "soroban", "level": "D3", "count": 2, "age_group": "under_7"})
    assert len(result.exercises) == 2
    assert "age group under_7" in caplog.text


def test_time_budget_clamps_allowances(orchestrator):
    result = orchestrator.generate_session({"curriculum": "iq_games", "level": "IQ2", "count": 4, "time_budget": 40})
    assert all(e.time_allowance <= 10 for e in result.exercises)
    assert result.metadata.estimated_duration <= 40


def test_tiny_time_budget_keeps_allowance_positive(orchestrator):
    result = orchestrator.generate_session({"curriculum": "soroban", "level": "A2", "count": 5, "time_budget": 2})
    assert all(e.time_allowance == 1 for e in result.exercises)


def test_progressive_difficulty_bumps_the_tail(orchestrator):
    result = orchestrator.generate_session(
        {"curriculum": "soroban", "level": "B1", "count": 10, "difficulty": "easy", "progressive_difficulty": True}
    )
    tiers = [e.difficulty for e in result.exercises]
    assert tiers[:7] == [Difficulty.EASY] * 7
    assert tiers[7:] == [Difficulty.MEDIUM] * 3
    assert all(e.original_difficulty == Difficulty.EASY for e in result.exercises)


def test_adaptive_profile_shifts_difficulty_and_time(orchestrator):
    profile = AdaptiveProfile(
        curriculum="vedic",
        learner_id="kid-7",
        current_settings=AdaptiveSettings(difficulty_multiplier=1.5, time_multiplier=2.0),
    )
    result = orchestrator.generate_session(
        {"curriculum": "vedic", "level": "V3", "count": 4, "difficulty": "medium", "adaptive_profile": profile}
    )
    assert result.request.difficulty == Difficulty.HARD
    assert result.adjustments["difficulty"] == {"from": "medium", "to": "hard"}
    # base 35s, hard x0.8 = 28s, doubled by the profile
    assert all(e.time_allowance == 56 for e in result.exercises)
    assert [s.session_id for s in orchestrator.get_session_history("kid-7")] == [result.session_id]


def test_profile_for_another_curriculum_is_rejected(orchestrator):
    profile = AdaptiveProfile(curriculum="logic")
    with pytest.raises(ConfigurationError):
        orchestrator.generate_session({"curriculum": "soroban", "level": "A1", "adaptive_profile": profile})


def test_history_keeps_latest_sessions(orchestrator):
    for _ in range(settings.session_history_capacity + 2):
        orchestrator.generate_session({"curriculum": "logic", "level": "L1", "count": 1, "learner_id": "kid-2"})
    history = orchestrator.get_session_history("kid-2")
    assert len(history) == settings.session_history_capacity
    orchestrator.clear_history()
    assert orchestrator.get_session_history("kid-2") == []


def test_assessment_probes_the_whole_level(orchestrator):
    result = orchestrator.generate_assessment({"curriculum": "soroban", "level": "B2", "focus_areas": ["addition"]})
    assert result.request.session_type == "assessment"
    assert result.request.difficulty == Difficulty.MIXED
    assert result.request.focus_areas == []
    assert len(result.exercises) == settings.assessment_default_count
    assert result.assessment.coverage_areas == [
        "simple_addition",
        "simple_subtraction",
        "friends_of_5_addition",
        "friends_of_5_subtraction",
    ]
    assert set(result.metadata.exercise_types) == set(result.assessment.coverage_areas)
    assert set(result.metadata.difficulty_distribution) == {"easy", "medium", "hard"}
    criteria = result.assessment.scoring_criteria
    assert (criteria.passing_accuracy, criteria.excellent_accuracy) == (70, 90)
    assert (criteria.max_time_per_question, criteria.excellent_time_per_question) == (10, 5)


def test_assessment_ignores_adaptive_profile(orchestrator):
    profile = AdaptiveProfile(curriculum="logic", current_settings=AdaptiveSettings(difficulty_multiplier=0.1))
    result = orchestrator.generate_assessment({"curriculum": "logic", "level": "L3", "count": 6, "adaptive_profile": profile})
    assert result.request.adaptive_profile is None
    assert result.adjustments == {}


def test_review_focuses_on_weak_categories(orchestrator):
    profile = AdaptiveProfile(
        curriculum="soroban",
        learner_id="kid-3",
        current_settings=AdaptiveSettings(difficulty_multiplier=2.0),
        performance_patterns=PerformancePatterns(
            per_category_accuracy={"friends_of_5_subtraction": 60.0, "simple_addition": 95.0},
            weak_areas=[CategoryPerformance(category="simple_subtraction", accuracy=75.0)],
        ),
    )
    result = orchestrator.generate_review({"curriculum": "soroban", "level": "B1", "count": 50, "adaptive_profile": profile})
    assert len(result.exercises) == settings.review_max_count
    assert result.request.difficulty == Difficulty.EASY
    assert result.request.focus_areas == ["simple_subtraction", "friends_of_5_subtraction"]
    assert {e.type for e in result.exercises} == {
        ExerciseType.SIMPLE_SUBTRACTION,
        ExerciseType.FRIENDS_OF_5_SUBTRACTION,
    }
    assert all(e.difficulty == Difficulty.EASY for e in result.exercises)
    assert orchestrator.get_session_history("kid-3")[0].session_type == "review"


def test_review_default_count(orchestrator):
    profile = AdaptiveProfile(curriculum="logic", performance_patterns=PerformancePatterns())
    result = orchestrator.generate_review({"curriculum": "logic", "level": "L1", "adaptive_profile": profile})
    assert len(result.exercises) == settings.review_default_count


def test_review_requires_adaptive_data(orchestrator):
    with pytest.raises(DependencyError):
        orchestrator.generate_review({"curriculum": "soroban", "level": "A1"})
    with pytest.raises(DependencyError) as exc:
        orchestrator.generate_review(
            {"curriculum": "soroban", "level": "A1", "adaptive_profile": AdaptiveProfile(curriculum="soroban")}
        )
    assert exc.value.code == "dependency_error"


def test_exhaustion_aborts_only_that_session():
    orchestrator = SessionOrchestrator(random.Random(5), max_attempts=100, exhaustion_policy="fail")
    with pytest.raises(GenerationExhaustionError):
        orchestrator.generate_session(
            {"curriculum": "vedic", "level": "V1", "count": 6, "difficulty": "easy", "exercise_type": "squares_ending_5"}
        )
    result = orchestrator.generate_session({"curriculum": "vedic", "level": "V1", "count": 3, "exercise_type": "multiplication_11"})
    assert len(result.exercises) == 3
    retry = orchestrator.generate_session(
        {"curriculum": "vedic", "level": "V1", "count": 1, "difficulty": "easy", "exercise_type": "squares_ending_5"}
    )
    assert len(retry.exercises) == 1


def test_truncate_policy_returns_partial_session():
    orchestrator = SessionOrchestrator(random.Random(5), max_attempts=100, exhaustion_policy="truncate")
    result = orchestrator.generate_session(
        {"curriculum": "vedic", "level": "V1", "count": 8, "difficulty": "easy", "exercise_type": "squares_ending_5"}
    )
    assert len(result.exercises) == 5
    assert result.metadata.total_count == 5


def test_next_level_recommendation(orchestrator):
    rec = orchestrator.get_next_level_recommendation(
        "iq_games", "IQ1", {"average_accuracy": 90, "average_time_per_item": 5, "consecutive_successful_sessions": 4}
    )
    assert rec.recommended
    assert rec.next_level == "IQ2"
    with pytest.raises(ConfigurationError):
        orchestrator.get_next_level_recommendation("iq_games", "Z1", {"average_accuracy": 90, "average_time_per_item": 5, "consecutive_successful_sessions": 4})


def test_result_is_immutable(orchestrator):
    result = orchestrator.generate_session({"curriculum": "logic", "level": "L1", "count": 1})
    with pytest.raises(ValidationError):
        result.session_id = "other"


def test_repeated_small_level_sessions_keep_full_count():
    orchestrator = SessionOrchestrator(random.Random(1))
    for _ in range(50):
        result = orchestrator.generate_session({"curriculum": "soroban", "level": "A1", "count": 5, "difficulty": "easy"})
        assert len(result.exercises) == 5
        assert len({exercise_signature(e) for e in result.exercises}) == 5
    for _ in range(20):
        result = orchestrator.generate_session({"curriculum": "soroban", "level": "A2", "count": 5, "difficulty": "easy"})
        assert len(result.exercises) == 5


def test_assessment_ignores_exercise_type_hint(orchestrator):
    result = orchestrator.generate_assessment(
        {"curriculum": "logic", "level": "L2", "count": 12, "exercise_type": "pattern_recognition"}
    )
    assert result.request.exercise_type is None
    assert set(result.metadata.exercise_types) == set(result.assessment.coverage_areas)
