"""Root conftest for all tests.

Provides an in-memory SQLite store, a seeded user profile, sample model
output, and pydantic-ai FunctionModel stubs standing in for the generation
service.
"""

from __future__ import annotations

import asyncio
import copy
import json
import uuid
from collections.abc import Callable
from types import SimpleNamespace

import pytest
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart
from pydantic_ai.models.function import AgentInfo, FunctionModel
from sqlalchemy import func, select

from fitplan.config.settings import Settings
from fitplan.db.models import Base, FitnessGoal, Profile, StoredExercise, StoredPlan, StoredWorkout
from fitplan.db.session import create_db_engine, create_session_factory, session_scope
from fitplan.planning.generation import GenerationClient
from fitplan.planning.orchestrator import PlanGenerationService
from fitplan.planning.prompts import RestDaySampler


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        OPENAI_API_KEY="sk-test",
        DATABASE_URL="sqlite://",
        GENERATION_TIMEOUT_S=0.5,
        REQUEST_TIMEOUT_S=5,
    )


@pytest.fixture
def engine(settings):
    engine = create_db_engine(settings)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def user_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def profile(session_factory, user_id) -> Profile:
    with session_scope(session_factory) as session:
        profile = Profile(
            id=user_id,
            full_name="Test Athlete",
            fitness_level="beginner",
            available_equipment=["dumbbells", "bench"],
            medical_conditions=[],
        )
        session.add(profile)
    return profile


@pytest.fixture
def count_rows(session_factory) -> Callable[[], dict[str, int]]:
    """Return a callable reporting row counts for every table the writer touches."""

    def _count() -> dict[str, int]:
        with session_scope(session_factory) as session:
            return {
                model.__tablename__: session.execute(select(func.count()).select_from(model)).scalar_one()
                for model in (FitnessGoal, StoredPlan, StoredWorkout, StoredExercise)
            }

    return _count


def make_exercise(order: int, **overrides) -> dict:
    exercise = {
        "name": f"Exercise {order}",
        "description": "Controlled tempo",
        "sets": 3,
        "reps": 10,
        "rest_duration": "2 minutes",
        "order_in_workout": order,
        "primary_muscles": ["chest"],
        "secondary_muscles": ["triceps"],
        "equipment_needed": ["dumbbells"],
        "exercise_type": "strength",
    }
    exercise.update(overrides)
    return exercise


def make_workout(day: int, exercises: int = 3, **overrides) -> dict:
    workout = {
        "name": f"Day {day} session",
        "description": "Upper body focus",
        "day_of_week": day,
        "estimated_duration": "45 minutes",
        "workout_type": "strength",
        "exercises": [make_exercise(order) for order in range(1, exercises + 1)],
    }
    workout.update(overrides)
    return workout


def make_plan(workouts: int = 2, exercises: int = 3, rest_days: list[int] | None = None, **overrides) -> dict:
    plan = {
        "description": "Four week chest and back builder",
        "difficulty": "intermediate",
        "restDays": rest_days if rest_days is not None else [2, 4, 6, 7],
        "workouts": [make_workout(day, exercises) for day in (1, 3, 5)[:workouts]],
    }
    plan.update(overrides)
    return copy.deepcopy(plan)


@pytest.fixture
def plan_dict() -> dict:
    return make_plan()


@pytest.fixture
def request_payload(user_id) -> dict:
    return {
        "userId": user_id,
        "goalType": "muscle_gain",
        "workoutType": "strength",
        "durationWeeks": 4,
        "daysPerWeek": 3,
        "focusMuscles": ["chest", "back"],
    }


class StubModel:
    """Records calls made to a FunctionModel-backed generation client."""

    def __init__(self, respond: Callable):
        self.calls: list[tuple[list[ModelMessage], AgentInfo]] = []
        self._respond = respond

    @property
    def model(self) -> FunctionModel:
        async def generate_plan(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
            self.calls.append((messages, info))
            return await self._respond(messages, info)

        return FunctionModel(generate_plan)


def text_stub(text: str) -> StubModel:
    async def respond(_messages, _info) -> ModelResponse:
        return ModelResponse(parts=[TextPart(content=text)])

    return StubModel(respond)


def hanging_stub(seconds: float = 10.0) -> StubModel:
    async def respond(_messages, _info) -> ModelResponse:
        await asyncio.sleep(seconds)
        return ModelResponse(parts=[TextPart(content="{}")])

    return StubModel(respond)


def failing_stub(error: Exception) -> StubModel:
    async def respond(_messages, _info) -> ModelResponse:
        raise error

    return StubModel(respond)


@pytest.fixture
def plan_text(plan_dict) -> str:
    return "```json\n" + json.dumps(plan_dict, indent=2) + "\n```"


@pytest.fixture
def build_service(settings, session_factory) -> Callable[[StubModel], PlanGenerationService]:
    def _build(stub: StubModel, timeout_s: float = 0.5) -> PlanGenerationService:
        client = GenerationClient(stub.model, max_tokens=4000, temperature=0.2, timeout_s=timeout_s)
        return PlanGenerationService(
            settings=settings,
            session_factory=session_factory,
            generation_client=client,
            rest_day_sampler=RestDaySampler(seed=7),
        )

    return _build


@pytest.fixture
def plan_factory() -> Callable[..., dict]:
    return make_plan


@pytest.fixture
def stubs() -> SimpleNamespace:
    """Factories for generation-model stubs: text, hanging and failing."""
    return SimpleNamespace(text=text_stub, hanging=hanging_stub, failing=failing_stub)
