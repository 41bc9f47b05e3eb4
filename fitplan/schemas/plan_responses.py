"""Response schemas for the plan endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PlanSummary(BaseModel):
    id: str = Field(..., description="Id of the created workout plan")
    description: str
    difficulty: str = Field(..., description="beginner | intermediate | advanced")
    workouts: int = Field(..., description="Number of workouts in the plan")


class GeneratePlanResponse(BaseModel):
    success: bool = True
    message: str
    plan: PlanSummary


class ErrorDetail(BaseModel):
    path: str
    message: str


class ErrorResponse(BaseModel):
    error: str
    details: list[ErrorDetail] | None = None


class ExerciseView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    sets: int
    reps: int
    rest_duration: str
    order_in_workout: int
    exercise_type: str
    primary_muscles: list[str]
    secondary_muscles: list[str]
    equipment_needed: list[str]


class WorkoutView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    day_of_week: int
    estimated_duration: str
    workout_type: str
    exercises: list[ExerciseView]


class ActivePlanResponse(BaseModel):
    """An active plan with its workouts (by day) and exercises (by position)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    goal_id: str
    name: str
    description: str | None
    duration_weeks: int
    difficulty: str
    is_active: bool
    focus_muscles: list[str]
    rest_days: list[int]
    created_at: datetime
    workouts: list[WorkoutView]
