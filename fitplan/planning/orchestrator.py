"""Request orchestrator for plan generation.

One request walks a fixed sequence of stages and stops at the first failure:

RECEIVED -> INBOUND_VALIDATED -> PROFILE_RESOLVED -> PROMPT_BUILT -> GENERATED
-> PARSED -> PERSISTED -> RESPONDED, or FAILED(kind) from any stage.

Validation runs before any I/O and profile/active-plan checks run before the
model call, so a bad request never spends generation cost. The service holds
no per-request state; concurrent requests share only the session factory and
the generation client.
"""

from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import Any

from loguru import logger
from sqlalchemy.orm import Session, sessionmaker

from fitplan.config.settings import Settings
from fitplan.db import queries
from fitplan.db.models import Profile
from fitplan.db.session import session_scope
from fitplan.planning.errors import (
    ActivePlanConflictError,
    GenerationTimeoutError,
    NotFoundError,
    PlanningError,
)
from fitplan.planning.generation import GenerationClient
from fitplan.planning.parser import parse_plan
from fitplan.planning.persistence import PlanWriter
from fitplan.planning.prompts import ProfileHints, RestDaySampler, build_prompts
from fitplan.planning.schemas import validate_request
from fitplan.planning.vocabulary import DEFAULT_FITNESS_LEVEL, Difficulty
from fitplan.schemas.plan_responses import ActivePlanResponse, GeneratePlanResponse, PlanSummary


class PipelineStage(StrEnum):
    RECEIVED = "received"
    INBOUND_VALIDATED = "inbound_validated"
    PROFILE_RESOLVED = "profile_resolved"
    PROMPT_BUILT = "prompt_built"
    GENERATED = "generated"
    PARSED = "parsed"
    PERSISTED = "persisted"
    RESPONDED = "responded"
    FAILED = "failed"


def _profile_hints(profile: Profile) -> ProfileHints:
    level = profile.fitness_level
    fitness_level = Difficulty(level) if level in {d.value for d in Difficulty} else DEFAULT_FITNESS_LEVEL
    return ProfileHints(
        fitness_level=fitness_level,
        available_equipment=list(profile.available_equipment or []),
        medical_conditions=list(profile.medical_conditions or []),
    )


class PlanGenerationService:
    def __init__(
        self,
        settings: Settings,
        session_factory: sessionmaker[Session],
        generation_client: GenerationClient,
        rest_day_sampler: RestDaySampler | None = None,
        writer: PlanWriter | None = None,
    ):
        self._settings = settings
        self._session_factory = session_factory
        self._generation_client = generation_client
        self._rest_day_sampler = rest_day_sampler or RestDaySampler()
        self._writer = writer or PlanWriter(session_factory)

    def _resolve_profile(self, user_id: str) -> ProfileHints:
        """Look up the profile and refuse users who already have an active plan.

        Raises:
            NotFoundError: If the user has no profile
            ActivePlanConflictError: If the user has an active plan
        """
        with session_scope(self._session_factory) as session:
            profile = queries.get_profile(session, user_id)
            hints = _profile_hints(profile) if profile is not None else None
            active = hints is not None and queries.has_active_plan(session, user_id)

        if hints is None:
            raise NotFoundError("User profile not found")
        if active:
            raise ActivePlanConflictError(
                "An active workout plan already exists. Complete or deactivate it before generating a new one."
            )
        return hints

    async def generate(self, payload: Any) -> GeneratePlanResponse:
        """Run the full pipeline for one decoded request body.

        Args:
            payload: Decoded JSON request body

        Returns:
            GeneratePlanResponse for the created plan

        Raises:
            PlanningError: Subclass matching the failed stage
        """
        stage = PipelineStage.RECEIVED
        user_id: str | None = None
        try:
            request = validate_request(payload)
            user_id = str(request.user_id)
            stage = PipelineStage.INBOUND_VALIDATED
            logger.info(
                "Plan generation request validated",
                user_id=user_id,
                workout_type=request.workout_type.value,
                days_per_week=request.days_per_week,
                duration_weeks=request.duration_weeks,
            )

            try:
                async with asyncio.timeout(self._settings.request_timeout_s):
                    hints = await asyncio.to_thread(self._resolve_profile, user_id)
                    stage = PipelineStage.PROFILE_RESOLVED

                    rest_days = self._rest_day_sampler.sample(request.days_per_week)
                    prompts = build_prompts(request, rest_days, hints)
                    stage = PipelineStage.PROMPT_BUILT
                    logger.debug("Prompts built", user_id=user_id, rest_days=rest_days)

                    raw_text = await self._generation_client.generate(prompts)
                    stage = PipelineStage.GENERATED

                    plan = parse_plan(raw_text, expected_rest_days=prompts.rest_days)
                    stage = PipelineStage.PARSED
            except TimeoutError as e:
                raise GenerationTimeoutError(
                    f"Request timed out after {self._settings.request_timeout_s:g}s"
                ) from e

            plan_id = await asyncio.to_thread(self._writer.save, request, plan)
            stage = PipelineStage.PERSISTED
        except PlanningError as e:
            logger.warning(
                "Plan generation failed",
                stage=stage.value,
                outcome=f"{PipelineStage.FAILED.value}({e.kind})",
                user_id=user_id,
                error_message=str(e),
            )
            raise

        stage = PipelineStage.RESPONDED
        logger.info("Plan generation completed", stage=stage.value, user_id=user_id, plan_id=plan_id)
        return GeneratePlanResponse(
            success=True,
            message="Plan created",
            plan=PlanSummary(
                id=plan_id,
                description=plan.description,
                difficulty=plan.difficulty.value,
                workouts=len(plan.workouts),
            ),
        )

    def _load_active_plan(self, user_id: str) -> ActivePlanResponse:
        with session_scope(self._session_factory) as session:
            stored_plan = queries.get_active_plan(session, user_id)
            view = ActivePlanResponse.model_validate(stored_plan) if stored_plan is not None else None

        if view is None:
            raise NotFoundError("No active workout plan found")
        return view

    async def get_active_plan(self, user_id: str) -> ActivePlanResponse:
        """Return the user's active plan with workouts and exercises.

        Raises:
            NotFoundError: If the user has no active plan
        """
        return await asyncio.to_thread(self._load_active_plan, user_id)


def build_plan_service(settings: Settings, session_factory: sessionmaker[Session]) -> PlanGenerationService:
    return PlanGenerationService(
        settings=settings,
        session_factory=session_factory,
        generation_client=GenerationClient.from_settings(settings),
    )
