from __future__ import annotations

from collections import deque
from threading import Lock

from drillforge.core.settings import settings
from drillforge.schemas.session import SessionSummary


class SessionHistory:
    """Most recent session summaries per learner; the oldest entry is evicted first."""

    def __init__(self, capacity: int | None = None):
        self.capacity = capacity if capacity is not None else settings.session_history_capacity
        self._by_learner: dict[str, deque[SessionSummary]] = {}
        self._lock = Lock()

    def record(self, learner_id: str, summary: SessionSummary) -> None:
        with self._lock:
            history = self._by_learner.setdefault(learner_id, deque(maxlen=self.capacity))
            history.append(summary)

    def get(self, learner_id: str) -> list[SessionSummary]:
        with self._lock:
            return list(self._by_learner.get(learner_id, ()))

    def clear(self, learner_id: str | None = None) -> None:
        with self._lock:
            if learner_id is None:
                self._by_learner.clear()
            else:
                self._by_learner.pop(learner_id, None)
