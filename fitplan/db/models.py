from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models."""


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(Base):
    """User profile, keyed by the identity provider's user id.

    Only read by the generation pipeline, which uses the fitness level,
    equipment and medical conditions as prompt hints.
    """

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)
    full_name: Mapped[str | None] = mapped_column(String, nullable=True)
    height: Mapped[float | None] = mapped_column(Float, nullable=True)
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    gender: Mapped[str | None] = mapped_column(String, nullable=True)
    fitness_level: Mapped[str | None] = mapped_column(String, nullable=True, comment="beginner | intermediate | advanced")
    activity_level: Mapped[str | None] = mapped_column(String, nullable=True)
    medical_conditions: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    available_equipment: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    has_completed_onboarding: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class FitnessGoal(Base):
    """Goal a plan is generated for.

    Schema:
    - target_date: creation time + duration_weeks * 7 days
    - status: active | completed | abandoned
    - specific_targets: snapshot of {workout_type, focus_muscles, days_per_week}
    """

    __tablename__ = "fitness_goals"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id, index=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    goal_type: Mapped[str] = mapped_column(String, nullable=False)
    target_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    specific_targets: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)


class StoredPlan(Base):
    """Persisted workout plan.

    At most one active plan per user is enforced by a partial unique index,
    so two concurrent generation requests cannot both leave an active plan.
    """

    __tablename__ = "workout_plans"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id, index=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    goal_id: Mapped[str] = mapped_column(String, ForeignKey("fitness_goals.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_weeks: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    focus_muscles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    rest_days: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    workouts: Mapped[list[StoredWorkout]] = relationship(
        "StoredWorkout",
        back_populates="plan",
        order_by="StoredWorkout.day_of_week",
    )

    __table_args__ = (
        Index(
            "uq_workout_plans_one_active_per_user",
            "user_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )


class StoredWorkout(Base):
    __tablename__ = "workouts"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id, index=True)
    plan_id: Mapped[str] = mapped_column(String, ForeignKey("workout_plans.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False, comment="1-7, no fixed weekday mapping")
    estimated_duration: Mapped[str] = mapped_column(String, nullable=False)
    workout_type: Mapped[str] = mapped_column(String, nullable=False)

    plan: Mapped[StoredPlan] = relationship("StoredPlan", back_populates="workouts")
    exercises: Mapped[list[StoredExercise]] = relationship(
        "StoredExercise",
        back_populates="workout",
        order_by="StoredExercise.order_in_workout",
    )


class StoredExercise(Base):
    __tablename__ = "exercises"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id, index=True)
    workout_id: Mapped[str] = mapped_column(String, ForeignKey("workouts.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sets: Mapped[int] = mapped_column(Integer, nullable=False)
    reps: Mapped[int] = mapped_column(Integer, nullable=False)
    rest_duration: Mapped[str] = mapped_column(String, nullable=False)
    order_in_workout: Mapped[int] = mapped_column(Integer, nullable=False)
    exercise_type: Mapped[str] = mapped_column(String, nullable=False)
    primary_muscles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    secondary_muscles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    equipment_needed: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    workout: Mapped[StoredWorkout] = relationship("StoredWorkout", back_populates="exercises")
