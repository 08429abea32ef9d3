from __future__ import annotations

import math
import random
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Iterable

from drillforge.core.errors import ConfigurationError, GenerationExhaustionError
from drillforge.core.logging import DOMAIN_GENERATION, get_domain_logger
from drillforge.core.settings import settings
from drillforge.data.catalog import LevelDefinition, area_types, exercise_type_catalog, type_skills
from drillforge.memory.dedup import DedupCache, exercise_signature
from drillforge.schemas.exercise import TIERS, Curriculum, Difficulty, Exercise, ExerciseType, Explanation, Hint

logger = get_domain_logger(__name__, DOMAIN_GENERATION)

RANGE_MULTIPLIERS = {Difficulty.EASY: 0.6, Difficulty.MEDIUM: 0.8, Difficulty.HARD: 1.0}
TIME_MULTIPLIERS = {Difficulty.EASY: 1.5, Difficulty.MEDIUM: 1.0, Difficulty.HARD: 0.8}


class ExhaustionPolicy(str, Enum):
    FAIL = "fail"
    ACCEPT_DUPLICATE = "accept_duplicate"
    TRUNCATE = "truncate"


def range_multiplier(difficulty: Difficulty) -> float:
    return RANGE_MULTIPLIERS[difficulty]


def scale_time(base_seconds: int, difficulty: Difficulty) -> int:
    return max(1, math.floor(base_seconds * TIME_MULTIPLIERS[difficulty]))


def tier_for(difficulty: Difficulty, index: int) -> Difficulty:
    """Concrete tier for the exercise at ``index``; ``mixed`` rotates easy, medium, hard."""
    if difficulty == Difficulty.MIXED:
        return TIERS[index % len(TIERS)]
    return difficulty


Builder = Callable[[LevelDefinition, Difficulty], Exercise]


class ExerciseSynthesizer(ABC):
    """
    Produces batches of exercises for one curriculum.

    Subclasses register one builder per exercise type of their curriculum; the
    registry is checked for completeness at construction so every catalog type
    has exactly one implementation. The dedup cache is injected (or created per
    instance) and outlives individual batches; it is cleared when nothing it
    does not already hold can be produced for a position.
    """

    curriculum: Curriculum
    # Relative draw weights when neither a type hint nor focus areas are given.
    weights: dict[ExerciseType, float] = {}

    def __init__(
        self,
        rng: random.Random | None = None,
        dedup: DedupCache | None = None,
        *,
        max_attempts: int | None = None,
        exhaustion_policy: ExhaustionPolicy | str | None = None,
        signature_chars: int | None = None,
    ):
        self.rng = rng if rng is not None else random.Random(settings.random_seed)
        self.dedup = dedup if dedup is not None else DedupCache()
        self.max_attempts = max(1, max_attempts if max_attempts is not None else settings.max_generation_attempts)
        self.exhaustion_policy = ExhaustionPolicy(exhaustion_policy or settings.exhaustion_policy)
        self.signature_chars = signature_chars if signature_chars is not None else settings.signature_prompt_chars
        self._builders = self.builders()
        missing = set(exercise_type_catalog(self.curriculum)) - set(self._builders)
        if missing:
            raise TypeError(f"{type(self).__name__} has no builder for {sorted(t.value for t in missing)}")

    @abstractmethod
    def builders(self) -> dict[ExerciseType, Builder]:
        raise NotImplementedError

    # -- helpers shared by the concrete synthesizers -------------------------

    def randint(self, low: int, high: int) -> int:
        return self.rng.randint(low, max(low, high))

    def number_in_range(self, digits: int, multiplier: float) -> int:
        """Draw from [10^(d-1), floor(10^d * multiplier)], kept within d digits."""
        digits = max(1, digits)
        low = 10 ** (digits - 1)
        high = min(10**digits - 1, math.floor(10**digits * multiplier))
        return self.randint(low, max(low, high))

    def build(
        self,
        exercise_type: ExerciseType,
        level: LevelDefinition,
        difficulty: Difficulty,
        *,
        prompt: str,
        payload,
        answer,
        base_time: int,
        hints: list[Hint],
        explanation: Explanation,
        visual_aid: dict | None = None,
    ) -> Exercise:
        return Exercise(
            type=exercise_type,
            prompt=prompt,
            payload=payload,
            answer=answer,
            difficulty=difficulty,
            level=level.code,
            time_allowance=scale_time(base_time, difficulty),
            hints=hints,
            explanation=explanation,
            skills=type_skills(exercise_type),
            visual_aid=visual_aid,
        )

    # -- generation ------------------------------------------------------------

    def synthesize(self, exercise_type: ExerciseType, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        builder = self._builders.get(exercise_type)
        if builder is None or not level.permits(exercise_type):
            raise ConfigurationError(
                f"Exercise type {exercise_type.value} is not available at {level.curriculum.value} level {level.code}"
            )
        return builder(level, tier_for(difficulty, 0))

    def weight_table(self, level: LevelDefinition, avoid: set[ExerciseType]) -> dict[ExerciseType, float]:
        table = {t: self.weights.get(t, 1.0) for t in level.exercise_types}
        kept = {t: w for t, w in table.items() if t not in avoid}
        return kept or table

    def _draw(self, table: dict[ExerciseType, float]) -> ExerciseType:
        types = list(table)
        return self.rng.choices(types, weights=[table[t] for t in types], k=1)[0]

    def generate_batch(
        self,
        level: LevelDefinition,
        difficulty: Difficulty,
        count: int,
        exercise_type: ExerciseType | None = None,
        focus_areas: Iterable[str] = (),
        avoid_areas: Iterable[str] = (),
    ) -> list[Exercise]:
        if level.curriculum != self.curriculum:
            raise ConfigurationError(f"{type(self).__name__} cannot generate for curriculum {level.curriculum.value}")
        if exercise_type is not None and not level.permits(exercise_type):
            raise ConfigurationError(
                f"Exercise type {exercise_type.value} is not available at {level.curriculum.value} level {level.code}"
            )

        focus = [t for area in focus_areas for t in area_types(level, area)]
        avoid = {t for area in avoid_areas for t in area_types(level, area)}
        table = self.weight_table(level, avoid)

        exercises: list[Exercise] = []
        seen: set[str] = set()
        for index in range(count):
            tier = tier_for(difficulty, index)
            accepted = None
            candidate = None
            signature = ""
            # last candidate that repeats an earlier batch but not this one
            stale: tuple[Exercise, str] | None = None
            for attempt in range(1, self.max_attempts + 1):
                if exercise_type is not None:
                    chosen = exercise_type
                elif focus:
                    chosen = focus[index % len(focus)]
                else:
                    chosen = self._draw(table)
                candidate = self._builders[chosen](level, tier)
                signature = exercise_signature(candidate, self.signature_chars)
                if signature in seen:
                    logger.debug("Repeat within batch %s at position %s (attempt %s)", signature, index + 1, attempt)
                    continue
                if signature in self.dedup:
                    stale = (candidate, signature)
                    logger.debug("Recently emitted %s at position %s (attempt %s)", signature, index + 1, attempt)
                    continue
                accepted = candidate
                break

            if accepted is None and stale is not None:
                logger.info(
                    "Recent exercises for %s %s used up at position %s; clearing dedup cache",
                    self.curriculum.value,
                    level.code,
                    index + 1,
                )
                self.dedup.clear()
                accepted, signature = stale

            if accepted is None:
                logger.warning(
                    "No fresh exercise for %s %s after %s attempts (position %s, policy=%s)",
                    self.curriculum.value,
                    level.code,
                    self.max_attempts,
                    index + 1,
                    self.exhaustion_policy.value,
                )
                if self.exhaustion_policy == ExhaustionPolicy.TRUNCATE:
                    break
                if self.exhaustion_policy == ExhaustionPolicy.FAIL:
                    raise GenerationExhaustionError(
                        f"Could not generate {count} distinct exercises for {self.curriculum.value} level {level.code}",
                        details={
                            "curriculum": self.curriculum.value,
                            "level": level.code,
                            "exercise_type": candidate.type.value if candidate else None,
                            "attempts": self.max_attempts,
                            "accepted": len(exercises),
                            "requested": count,
                        },
                    )
                accepted = candidate

            seen.add(signature)
            exercises.append(accepted)

        # signatures reach the cache only once the batch is complete
        self.dedup.update(seen)
        return exercises
