from __future__ import annotations

import random

from drillforge.core.errors import ConfigurationError
from drillforge.core.settings import settings
from drillforge.memory.dedup import DedupCache
from drillforge.schemas.exercise import Curriculum
from drillforge.synthesizers.base import ExerciseSynthesizer, ExhaustionPolicy
from drillforge.synthesizers.iq import IQGamesSynthesizer
from drillforge.synthesizers.logic import LogicSynthesizer
from drillforge.synthesizers.soroban import SorobanSynthesizer
from drillforge.synthesizers.vedic import VedicSynthesizer

SYNTHESIZERS: dict[Curriculum, type[ExerciseSynthesizer]] = {
    Curriculum.SOROBAN: SorobanSynthesizer,
    Curriculum.VEDIC: VedicSynthesizer,
    Curriculum.LOGIC: LogicSynthesizer,
    Curriculum.IQ_GAMES: IQGamesSynthesizer,
}


def build_synthesizers(
    rng: random.Random | None = None,
    *,
    dedup_capacity: int | None = None,
    max_attempts: int | None = None,
    exhaustion_policy: ExhaustionPolicy | str | None = None,
) -> dict[Curriculum, ExerciseSynthesizer]:
    """One synthesizer per curriculum; they share the random source, each owns its dedup cache."""
    rng = rng if rng is not None else random.Random(settings.random_seed)
    return {
        curriculum: cls(rng, DedupCache(dedup_capacity), max_attempts=max_attempts, exhaustion_policy=exhaustion_policy)
        for curriculum, cls in SYNTHESIZERS.items()
    }


def synthesizer_for(synthesizers: dict[Curriculum, ExerciseSynthesizer], curriculum: Curriculum | str) -> ExerciseSynthesizer:
    try:
        return synthesizers[Curriculum(curriculum)]
    except (ValueError, KeyError):
        raise ConfigurationError(f"Invalid curriculum: {curriculum}") from None
