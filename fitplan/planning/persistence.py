"""Persistence writer: maps a validated plan onto goal -> plan -> workouts -> exercises rows.

Writes run in dependency order inside one transaction. Each step flushes
before the next begins, so child rows always reference rows the database has
already accepted; all workouts of a plan go out in one batched flush, and so do
all exercises. A failure at any step rolls back everything written so far.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from fitplan.db.models import FitnessGoal, StoredExercise, StoredPlan, StoredWorkout
from fitplan.db.session import session_scope
from fitplan.planning.errors import ActivePlanConflictError, PersistenceError
from fitplan.planning.schemas import GeneratedPlan, GeneratedWorkout, GenerationRequest


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_goal(request: GenerationRequest, issued_at: datetime) -> FitnessGoal:
    return FitnessGoal(
        user_id=str(request.user_id),
        goal_type=request.goal_type,
        target_date=issued_at + timedelta(days=request.duration_weeks * 7),
        status="active",
        specific_targets={
            "workout_type": request.workout_type.value,
            "focus_muscles": [m.value for m in request.focus_muscles],
            "days_per_week": request.days_per_week,
        },
    )


def build_plan(request: GenerationRequest, plan: GeneratedPlan, goal_id: str) -> StoredPlan:
    return StoredPlan(
        user_id=str(request.user_id),
        goal_id=goal_id,
        name=f"{request.goal_type} - {request.workout_type.value} Plan",
        description=plan.description,
        duration_weeks=request.duration_weeks,
        difficulty=plan.difficulty.value,
        is_active=True,
        focus_muscles=[m.value for m in request.focus_muscles],
        rest_days=list(plan.rest_days),
    )


def build_workout(workout: GeneratedWorkout, plan_id: str) -> StoredWorkout:
    return StoredWorkout(
        plan_id=plan_id,
        name=workout.name,
        description=workout.description,
        day_of_week=workout.day_of_week,
        estimated_duration=workout.estimated_duration,
        workout_type=workout.workout_type.value,
    )


def build_exercises(workout: GeneratedWorkout, workout_id: str) -> list[StoredExercise]:
    return [
        StoredExercise(
            workout_id=workout_id,
            name=exercise.name,
            description=exercise.description,
            sets=exercise.sets,
            reps=exercise.reps,
            rest_duration=exercise.rest_duration,
            order_in_workout=exercise.order_in_workout,
            exercise_type=exercise.exercise_type.value,
            primary_muscles=[m.value for m in exercise.primary_muscles],
            secondary_muscles=[m.value for m in exercise.secondary_muscles],
            equipment_needed=list(exercise.equipment_needed),
        )
        for exercise in workout.exercises
    ]


class PlanWriter:
    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._session_factory = session_factory
        self._clock = clock

    def save(self, request: GenerationRequest, plan: GeneratedPlan) -> str:
        """Write one generated plan and return the new plan id.

        Args:
            request: The validated request the plan was generated for
            plan: The validated, repaired plan

        Returns:
            Id of the created workout_plans row

        Raises:
            ActivePlanConflictError: If another active plan for the user was
                committed concurrently
            PersistenceError: Naming the failed step; nothing is left behind
        """
        user_id = str(request.user_id)
        step = "goal"
        try:
            with session_scope(self._session_factory) as session:
                goal = build_goal(request, self._clock())
                session.add(goal)
                session.flush()

                step = "plan"
                stored_plan = build_plan(request, plan, goal.id)
                session.add(stored_plan)
                session.flush()

                step = "workouts"
                stored_workouts = [build_workout(workout, stored_plan.id) for workout in plan.workouts]
                session.add_all(stored_workouts)
                session.flush()

                step = "exercises"
                for workout, stored_workout in zip(plan.workouts, stored_workouts, strict=True):
                    session.add_all(build_exercises(workout, stored_workout.id))
                session.flush()

                step = "commit"
                plan_id = stored_plan.id
        except IntegrityError as e:
            if step == "plan":
                logger.warning("Active plan already exists at insert time", user_id=user_id)
                raise ActivePlanConflictError("An active workout plan already exists for this user") from e
            logger.error("Plan write failed", step=step, user_id=user_id, error_message=str(e))
            raise PersistenceError(step, e) from e
        except SQLAlchemyError as e:
            logger.error("Plan write failed", step=step, user_id=user_id, error_message=str(e))
            raise PersistenceError(step, e) from e

        logger.info(
            "Plan persisted",
            user_id=user_id,
            plan_id=plan_id,
            workouts=len(plan.workouts),
            exercises=plan.exercise_count,
        )
        return plan_id
