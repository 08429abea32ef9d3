from __future__ import annotations

import random
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from drillforge.core.errors import ConfigurationError, DependencyError
from drillforge.core.logging import DOMAIN_SESSION, get_domain_logger
from drillforge.core.settings import settings
from drillforge.data.catalog import LevelDefinition, level_definition, levels_for_age_group
from drillforge.memory.history import SessionHistory
from drillforge.policies.adaptation import AdaptiveAdjustmentPolicy, scale_time_limit
from drillforge.policies.promotion import PromotionAdvisor
from drillforge.schemas.exercise import Curriculum, Difficulty, Exercise, SessionExercise, shift_tier
from drillforge.schemas.promotion import PerformanceMetrics, PromotionRecommendation
from drillforge.schemas.session import (
    AssessmentMetadata,
    GenerationRequest,
    SessionMetadata,
    SessionResult,
    SessionSummary,
)
from drillforge.synthesizers.base import ExerciseSynthesizer, ExhaustionPolicy
from drillforge.synthesizers.registry import build_synthesizers, synthesizer_for

logger = get_domain_logger(__name__, DOMAIN_SESSION)


def _request_data(request: GenerationRequest | dict) -> dict[str, Any]:
    if isinstance(request, GenerationRequest):
        return request.model_dump(exclude_unset=True)
    return dict(request)


def _validation_message(data: dict[str, Any], exc: ValidationError) -> str:
    errors = exc.errors(include_url=False)
    if any(tuple(e["loc"][:1]) == ("curriculum",) for e in errors):
        return f"Invalid curriculum: {data.get('curriculum')}"
    return "Invalid generation request: " + "; ".join(
        f"{'.'.join(str(p) for p in e['loc']) or 'request'}: {e['msg']}" for e in errors
    )


class SessionOrchestrator:
    """
    Validates requests, applies adaptive adjustments, dispatches to the
    curriculum's synthesizer and assembles the session.

    The orchestrator owns one synthesizer per curriculum (each with its own
    dedup cache) and the per-learner session history. Both are safe to share
    between threads.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        *,
        synthesizers: dict[Curriculum, ExerciseSynthesizer] | None = None,
        history: SessionHistory | None = None,
        adaptation: AdaptiveAdjustmentPolicy | None = None,
        promotion: PromotionAdvisor | None = None,
        max_attempts: int | None = None,
        exhaustion_policy: ExhaustionPolicy | str | None = None,
    ):
        self.synthesizers = synthesizers or build_synthesizers(
            rng, max_attempts=max_attempts, exhaustion_policy=exhaustion_policy
        )
        self.history = history or SessionHistory()
        self.adaptation = adaptation or AdaptiveAdjustmentPolicy()
        self.promotion = promotion or PromotionAdvisor()

    # -- entry points ----------------------------------------------------------

    def generate_session(self, request: GenerationRequest | dict) -> SessionResult:
        request = self._validate(_request_data(request))
        definition = level_definition(request.curriculum, request.level)
        profile = request.adaptive_profile
        if profile is not None and profile.curriculum != request.curriculum:
            raise ConfigurationError(
                f"Adaptive profile is for {profile.curriculum.value}, request is for {request.curriculum.value}"
            )
        adjusted, adjustments = self.adaptation.apply(request, profile)
        return self._assemble(adjusted, definition, adjustments)

    def generate_assessment(self, partial: GenerationRequest | dict) -> SessionResult:
        """Mixed-difficulty probe over every exercise type of the level; adaptive input is ignored."""
        data = _request_data(partial)
        data.setdefault("count", settings.assessment_default_count)
        data.update(
            difficulty=Difficulty.MIXED,
            exercise_type=None,
            focus_areas=[],
            adaptive_profile=None,
            session_type="assessment",
        )
        request = self._validate(data)
        definition = level_definition(request.curriculum, request.level)
        coverage = [t.value for t in definition.exercise_types]
        assessment = AssessmentMetadata(coverage_areas=coverage)
        return self._assemble(request, definition, {}, coverage=coverage, assessment=assessment)

    def generate_review(self, partial: GenerationRequest | dict) -> SessionResult:
        """Easy session focused on the learner's weak categories; needs an adaptive profile with patterns."""
        data = _request_data(partial)
        data["count"] = min(data.get("count", settings.review_default_count), settings.review_max_count)
        data.update(difficulty=Difficulty.EASY, session_type="review")
        request = self._validate(data)

        profile = request.adaptive_profile
        if profile is None:
            raise DependencyError("A review session needs the learner's adaptive profile")
        if profile.performance_patterns is None:
            raise DependencyError(
                "A review session needs performance patterns in the adaptive profile",
                details={"learner_id": profile.learner_id},
            )
        if profile.curriculum != request.curriculum:
            raise ConfigurationError(
                f"Adaptive profile is for {profile.curriculum.value}, request is for {request.curriculum.value}"
            )
        definition = level_definition(request.curriculum, request.level)

        weak = profile.performance_patterns.weak_categories(settings.review_weak_accuracy_threshold)
        # the profile is detached so the adaptive policy cannot move the tier off easy
        request = request.model_copy(
            update={
                "focus_areas": weak,
                "adaptive_profile": None,
                "learner_id": request.learner_id or profile.learner_id,
            }
        )
        return self._assemble(request, definition, {"review_focus": weak})

    def get_next_level_recommendation(
        self,
        curriculum: Curriculum | str,
        current_level: str,
        metrics: PerformanceMetrics | dict,
    ) -> PromotionRecommendation:
        return self.promotion.recommend(curriculum, current_level, metrics)

    def get_session_history(self, learner_id: str) -> list[SessionSummary]:
        return self.history.get(learner_id)

    def clear_history(self, learner_id: str | None = None) -> None:
        self.history.clear(learner_id)

    # -- pipeline ----------------------------------------------------------------

    def _validate(self, data: dict[str, Any]) -> GenerationRequest:
        try:
            request = GenerationRequest.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(
                _validation_message(data, exc),
                details=[{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors(include_url=False)],
            ) from exc
        if request.age_group is not None:
            suited = levels_for_age_group(request.age_group, request.curriculum)
            if suited is not None and request.level not in suited:
                logger.warning(
                    "Level %s is outside the usual range for age group %s (%s)",
                    request.level,
                    request.age_group,
                    ", ".join(suited),
                )
        return request

    def _assemble(
        self,
        request: GenerationRequest,
        definition: LevelDefinition,
        adjustments: dict,
        *,
        coverage: list[str] | None = None,
        assessment: AssessmentMetadata | None = None,
    ) -> SessionResult:
        synthesizer = synthesizer_for(self.synthesizers, request.curriculum)
        exercises = synthesizer.generate_batch(
            definition,
            request.difficulty,
            request.count,
            exercise_type=request.exercise_type,
            focus_areas=coverage if coverage is not None else request.focus_areas,
            avoid_areas=request.avoid_areas,
        )
        created_at = datetime.now(timezone.utc)
        stamped = self._stamp(exercises, request, adjustments.get("time_multiplier", 1.0), created_at)

        metadata = SessionMetadata(
            total_count=len(stamped),
            estimated_duration=sum(e.time_allowance for e in stamped),
            difficulty_distribution=dict(Counter(e.difficulty.value for e in stamped)),
            exercise_types=dict(Counter(e.type.value for e in stamped)),
        )
        result = SessionResult(
            session_id=f"SES-{uuid.uuid4().hex[:12].upper()}",
            created_at=created_at,
            exercises=stamped,
            request=request,
            metadata=metadata,
            adjustments=adjustments,
            assessment=assessment,
        )
        logger.info(
            "Session %s assembled: %s %s type=%s count=%s duration=%ss",
            result.session_id,
            request.curriculum.value,
            request.level,
            request.session_type,
            metadata.total_count,
            metadata.estimated_duration,
        )

        learner_id = request.learner_id or (request.adaptive_profile.learner_id if request.adaptive_profile else None)
        if learner_id:
            self.history.record(
                learner_id,
                SessionSummary(
                    session_id=result.session_id,
                    created_at=created_at,
                    curriculum=request.curriculum,
                    level=request.level,
                    session_type=request.session_type,
                    difficulty=request.difficulty,
                    total_count=metadata.total_count,
                    estimated_duration=metadata.estimated_duration,
                    exercise_types=metadata.exercise_types,
                ),
            )
        return result

    def _stamp(
        self,
        exercises: list[Exercise],
        request: GenerationRequest,
        time_multiplier: float,
        created_at: datetime,
    ) -> list[SessionExercise]:
        total = len(exercises)
        millis = int(created_at.timestamp() * 1000)
        per_item = max(1, request.time_budget // total) if request.time_budget and total else None
        stamped = []
        for order_index, exercise in enumerate(exercises, start=1):
            difficulty = exercise.difficulty
            if request.progressive_difficulty and order_index / total > settings.progressive_ramp_threshold:
                difficulty = shift_tier(difficulty, 1)
            allowance = exercise.time_allowance
            if time_multiplier != 1.0:
                allowance = scale_time_limit(allowance, time_multiplier)
            if per_item is not None:
                allowance = min(allowance, per_item)
            data = exercise.model_dump()
            data.update(
                difficulty=difficulty,
                time_allowance=allowance,
                exercise_id=f"{request.curriculum.value.upper()}-{request.level}-{millis}-{order_index}",
                order_index=order_index,
                generated_at=created_at,
                curriculum=request.curriculum,
                age_group=request.age_group,
                original_difficulty=exercise.difficulty,
            )
            stamped.append(SessionExercise.model_validate(data))
        return stamped
