from datetime import datetime, timezone

from drillforge.core.logging import DomainDefaultFilter
from drillforge.memory.dedup import DedupCache, exercise_signature
from drillforge.memory.history import SessionHistory
from drillforge.schemas.exercise import Curriculum, Difficulty, Exercise, ExerciseType, Explanation, OperandsPayload
from drillforge.schemas.session import SessionSummary


def _summary(session_id: str) -> SessionSummary:
    return SessionSummary(
        session_id=session_id,
        created_at=datetime.now(timezone.utc),
        curriculum=Curriculum.SOROBAN,
        level="A1",
        session_type="practice",
        difficulty=Difficulty.EASY,
        total_count=5,
        estimated_duration=100,
        exercise_types={"simple_addition": 5},
    )


def test_signature_uses_type_and_prompt_prefix():
    exercise = Exercise(
        type=ExerciseType.SIMPLE_ADDITION,
        prompt="12 + 30 = ?",
        payload=OperandsPayload(numbers=[12, 30], operators=["+"], digits=2, rows=2),
        answer=42,
        difficulty=Difficulty.EASY,
        level="A3",
        time_allowance=10,
        explanation=Explanation(summary="42"),
    )
    assert exercise_signature(exercise) == "simple_addition_12 + 30 = ?"
    assert exercise_signature(exercise, prompt_chars=2) == "simple_addition_12"


def test_dedup_cache_clears_wholesale_past_capacity():
    cache = DedupCache(capacity=3)
    for sig in ("a", "b", "c"):
        cache.add(sig)
    assert len(cache) == 3
    assert "b" in cache
    cache.add("d")
    assert len(cache) == 0
    assert "a" not in cache


def test_history_is_fifo_per_learner():
    history = SessionHistory(capacity=2)
    for sid in ("s1", "s2", "s3"):
        history.record("learner-1", _summary(sid))
    history.record("learner-2", _summary("other"))
    assert [s.session_id for s in history.get("learner-1")] == ["s2", "s3"]
    assert [s.session_id for s in history.get("learner-2")] == ["other"]
    assert history.get("nobody") == []


def test_history_clear():
    history = SessionHistory()
    history.record("a", _summary("s1"))
    history.record("b", _summary("s2"))
    history.clear("a")
    assert history.get("a") == []
    assert len(history.get("b")) == 1
    history.clear()
    assert history.get("b") == []


def test_domain_filter_fills_missing_domain():
    import logging

    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    assert DomainDefaultFilter().filter(record)
    assert record.domain == "app"


def test_configure_logging_installs_domain_filter(monkeypatch):
    import logging

    from drillforge.core import logging as drill_logging
    from drillforge.core.settings import settings

    monkeypatch.setattr(settings, "log_level", "DEBUG")
    drill_logging.configure_logging()
    root = logging.getLogger()
    assert root.handlers
    assert all(any(isinstance(f, DomainDefaultFilter) for f in h.filters) for h in root.handlers)


def test_configure_logging_is_repeatable():
    import logging

    from drillforge.core import logging as drill_logging

    drill_logging.configure_logging("WARNING")
    drill_logging.configure_logging("debug")
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    for handler in root.handlers:
        assert sum(isinstance(f, DomainDefaultFilter) for f in handler.filters) == 1
