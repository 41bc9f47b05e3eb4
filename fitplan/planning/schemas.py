"""Shapes for the inbound plan request and the model-generated plan.

Validation is pure and collects every violation in one pass: callers get either
a typed model or a ValidationError whose details list each offending field
path with the constraint it broke.
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

import pydantic
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator, model_validator

from fitplan.planning.errors import ValidationError
from fitplan.planning.vocabulary import (
    DAYS_IN_WEEK,
    MAX_EXERCISES_PER_WORKOUT,
    Difficulty,
    MuscleGroup,
    WorkoutCategory,
)

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
DayOfWeek = Annotated[int, Field(ge=1, le=DAYS_IN_WEEK, strict=True)]
CANONICAL_DURATION_PATTERN = r"^[1-9]\d* minutes$"


class GenerationRequest(BaseModel):
    """Inbound body of a plan generation request (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: UUID = Field(alias="userId")
    goal_type: NonEmptyStr = Field(alias="goalType")
    workout_type: WorkoutCategory = Field(alias="workoutType")
    duration_weeks: int = Field(alias="durationWeeks", ge=1, le=52, strict=True)
    days_per_week: int = Field(alias="daysPerWeek", ge=1, le=DAYS_IN_WEEK, strict=True)
    focus_muscles: list[MuscleGroup] = Field(alias="focusMuscles", min_length=1)
    additional_notes: str | None = Field(default=None, alias="additionalNotes")

    @field_validator("focus_muscles")
    @classmethod
    def dedupe_focus_muscles(cls, value: list[MuscleGroup]) -> list[MuscleGroup]:
        return list(dict.fromkeys(value))

    @property
    def rest_day_count(self) -> int:
        return DAYS_IN_WEEK - self.days_per_week


class GeneratedExercise(BaseModel):
    name: NonEmptyStr
    description: str = ""
    sets: int = Field(gt=0, strict=True)
    reps: int = Field(gt=0, strict=True)
    rest_duration: str = Field(pattern=CANONICAL_DURATION_PATTERN)
    order_in_workout: int = Field(ge=0, strict=True)
    primary_muscles: list[MuscleGroup] = Field(min_length=1)
    secondary_muscles: list[MuscleGroup] = Field(default_factory=list)
    equipment_needed: list[str] = Field(default_factory=list)
    exercise_type: WorkoutCategory


class GeneratedWorkout(BaseModel):
    name: NonEmptyStr
    description: str = ""
    day_of_week: DayOfWeek
    estimated_duration: str = Field(pattern=CANONICAL_DURATION_PATTERN)
    workout_type: WorkoutCategory
    exercises: list[GeneratedExercise] = Field(min_length=1, max_length=MAX_EXERCISES_PER_WORKOUT)

    @model_validator(mode="after")
    def order_exercises(self) -> GeneratedWorkout:
        # Stable: exercises sharing a position keep the model's order
        self.exercises.sort(key=lambda exercise: exercise.order_in_workout)
        return self


class GeneratedPlan(BaseModel):
    """A complete plan as produced by the model, after repair."""

    model_config = ConfigDict(populate_by_name=True)

    description: NonEmptyStr
    difficulty: Difficulty
    rest_days: list[DayOfWeek] = Field(alias="restDays", max_length=DAYS_IN_WEEK - 1)
    workouts: list[GeneratedWorkout] = Field(min_length=1)

    @field_validator("rest_days")
    @classmethod
    def validate_rest_days(cls, value: list[int]) -> list[int]:
        if len(set(value)) != len(value):
            raise ValueError("rest days must be distinct")
        return sorted(value)

    @property
    def exercise_count(self) -> int:
        return sum(len(workout.exercises) for workout in self.workouts)


def _format_path(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc)


def collect_error_details(error: pydantic.ValidationError) -> list[dict[str, str]]:
    """Flatten a pydantic error into [{"path", "message"}], one entry per violation."""
    return [{"path": _format_path(item["loc"]), "message": item["msg"]} for item in error.errors()]


def validate_request(payload: Any) -> GenerationRequest:
    """Validate a decoded request body.

    Args:
        payload: Decoded JSON value, typically a dict

    Returns:
        Typed GenerationRequest

    Raises:
        ValidationError: Listing every offending field
    """
    try:
        return GenerationRequest.model_validate(payload)
    except pydantic.ValidationError as e:
        raise ValidationError("Invalid request data", collect_error_details(e)) from e


def validate_plan(data: Any) -> GeneratedPlan:
    """Validate a decoded and repaired plan candidate.

    Raises:
        ValidationError: Listing every offending field
    """
    try:
        return GeneratedPlan.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError("Invalid plan structure", collect_error_details(e)) from e
