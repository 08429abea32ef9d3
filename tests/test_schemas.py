import pytest
from pydantic import ValidationError

from drillforge.core.errors import ConfigurationError, GenerationExhaustionError
from drillforge.schemas.exercise import (
    Difficulty,
    Exercise,
    ExerciseType,
    Explanation,
    Hint,
    OperandsPayload,
    SequencePayload,
    shift_tier,
)
from drillforge.schemas.session import CategoryPerformance, GenerationRequest, PerformancePatterns


def _addition(**overrides) -> Exercise:
    data = dict(
        type=ExerciseType.SIMPLE_ADDITION,
        prompt="3 + 4 = ?",
        payload=OperandsPayload(numbers=[3, 4], operators=["+"], digits=1, rows=2),
        answer=7,
        difficulty=Difficulty.EASY,
        level="A1",
        time_allowance=25,
        hints=[Hint(tier=1, text="a"), Hint(tier=2, text="b", point_penalty=2)],
        explanation=Explanation(summary="7"),
    )
    data.update(overrides)
    return Exercise(**data)


def test_valid_exercise():
    exercise = _addition()
    assert exercise.payload.kind == "operands"
    assert exercise.answer == 7


def test_exercise_rejects_mixed_tier():
    with pytest.raises(ValidationError):
        _addition(difficulty=Difficulty.MIXED)


def test_exercise_rejects_wrong_payload_kind():
    with pytest.raises(ValidationError):
        _addition(payload=SequencePayload(terms=[1, 2, 3], rule="arithmetic", blank_index=3))


def test_exercise_rejects_non_integer_answer():
    with pytest.raises(ValidationError):
        _addition(answer="seven")


def test_exercise_rejects_unordered_hints():
    with pytest.raises(ValidationError):
        _addition(hints=[Hint(tier=2, text="b"), Hint(tier=1, text="a")])


def test_exercise_requires_positive_time():
    with pytest.raises(ValidationError):
        _addition(time_allowance=0)


def test_operators_must_sit_between_numbers():
    with pytest.raises(ValidationError):
        OperandsPayload(numbers=[1, 2, 3], operators=["+"], digits=1, rows=3)


def test_shift_tier_clamps():
    assert shift_tier(Difficulty.EASY, -1) == Difficulty.EASY
    assert shift_tier(Difficulty.MEDIUM, 1) == Difficulty.HARD
    assert shift_tier(Difficulty.HARD, 1) == Difficulty.HARD
    assert shift_tier(Difficulty.MIXED, 1) == Difficulty.MIXED


def test_request_count_bounds():
    GenerationRequest(curriculum="soroban", level="A1", count=100)
    with pytest.raises(ValidationError):
        GenerationRequest(curriculum="soroban", level="A1", count=0)
    with pytest.raises(ValidationError):
        GenerationRequest(curriculum="soroban", level="A1", count=101)


def test_request_defaults(monkeypatch):
    from drillforge.core.settings import settings

    monkeypatch.setattr(settings, "default_session_count", 7)
    request = GenerationRequest(curriculum="logic", level="L1")
    assert request.count == 7
    assert request.difficulty == Difficulty.MEDIUM
    assert request.session_type == "practice"


def test_weak_categories_orders_explicit_areas_first():
    patterns = PerformancePatterns(
        per_category_accuracy={"friends_of_5": 60.0, "addition": 95.0, "subtraction": 75.0},
        weak_areas=[CategoryPerformance(category="subtraction", accuracy=50.0)],
    )
    assert patterns.weak_categories(80) == ["subtraction", "friends_of_5"]
    assert patterns.weak_categories(55) == ["subtraction"]


def test_error_payload_envelope():
    err = GenerationExhaustionError("no more", details={"attempts": 3})
    assert err.to_payload() == {
        "success": False,
        "error": {"code": "generation_exhausted", "message": "no more", "details": {"attempts": 3}},
    }
    assert ConfigurationError("bad").to_payload()["error"]["code"] == "configuration_error"
