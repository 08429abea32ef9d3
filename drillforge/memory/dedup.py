"""Recently-emitted exercise signatures, used only to avoid immediate repetition."""
from __future__ import annotations

from threading import Lock

from drillforge.core.settings import settings
from drillforge.schemas.exercise import Exercise


def exercise_signature(exercise: Exercise, prompt_chars: int | None = None) -> str:
    chars = prompt_chars if prompt_chars is not None else settings.signature_prompt_chars
    return f"{exercise.type.value}_{exercise.prompt[:chars]}"


class DedupCache:
    """
    Bounded set of signatures owned by one synthesizer.

    Capacity is a hard bound: once an insert pushes the size past ``capacity``
    the whole set is cleared (wholesale eviction, not LRU).
    """

    def __init__(self, capacity: int | None = None):
        self.capacity = capacity if capacity is not None else settings.dedup_cache_capacity
        self._signatures: set[str] = set()
        self._lock = Lock()

    def __contains__(self, signature: str) -> bool:
        with self._lock:
            return signature in self._signatures

    def __len__(self) -> int:
        with self._lock:
            return len(self._signatures)

    def add(self, signature: str) -> None:
        with self._lock:
            self._signatures.add(signature)
            if len(self._signatures) > self.capacity:
                self._signatures.clear()

    def update(self, signatures) -> None:
        for signature in signatures:
            self.add(signature)

    def clear(self) -> None:
        with self._lock:
            self._signatures.clear()
