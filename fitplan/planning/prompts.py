"""Prompt construction for plan generation.

Rest days are chosen here, not by the model: the sampled set is embedded in
both prompts and the model is told to reproduce it verbatim.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from fitplan.planning.schemas import GenerationRequest
from fitplan.planning.vocabulary import (
    DAYS_IN_WEEK,
    DEFAULT_FITNESS_LEVEL,
    MAX_EXERCISES_PER_WORKOUT,
    Difficulty,
    MuscleGroup,
    WorkoutCategory,
)


class RestDaySampler:
    """Draws the rest-day set for a plan.

    Any subset of {1..7} of size 7 - days_per_week is acceptable; the draw is
    uniform over those subsets. Pass a seed (or a seeded Random) for
    reproducible output.
    """

    def __init__(self, seed: int | None = None, rng: random.Random | None = None):
        self._rng = rng if rng is not None else random.Random(seed)

    def sample(self, days_per_week: int) -> list[int]:
        """Return the rest days for a plan, sorted ascending.

        Raises:
            ValueError: If days_per_week is outside [1, 7]
        """
        if not 1 <= days_per_week <= DAYS_IN_WEEK:
            raise ValueError(f"days_per_week must be within [1, {DAYS_IN_WEEK}], got {days_per_week}")
        rest_count = DAYS_IN_WEEK - days_per_week
        return sorted(self._rng.sample(range(1, DAYS_IN_WEEK + 1), rest_count))


@dataclass(frozen=True)
class ProfileHints:
    """Profile fields that enrich the prompt."""

    fitness_level: Difficulty = DEFAULT_FITNESS_LEVEL
    available_equipment: list[str] = field(default_factory=list)
    medical_conditions: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PromptPair:
    system: str
    user: str
    rest_days: list[int]


def _quoted(values) -> str:
    return '" | "'.join(str(v) for v in values)


def _quoted_list(values) -> str:
    return '", "'.join(str(v) for v in values)


def build_system_prompt(rest_days: list[int]) -> str:
    """Build the system prompt with the closed vocabularies and plan template."""
    difficulties = _quoted(d.value for d in Difficulty)
    categories = _quoted(c.value for c in WorkoutCategory)
    muscles = _quoted_list(m.value for m in MuscleGroup)
    rest_days_str = ", ".join(str(d) for d in rest_days)

    return f"""You are a fitness trainer. Generate a valid JSON workout plan. Follow these rules exactly:
1. Use proper JSON syntax with double quotes for all keys and string values
2. No trailing commas
3. Arrays must be properly terminated
4. All strings must be properly quoted
5. Numbers should not be quoted
6. "restDays" must be exactly [{rest_days_str}]; schedule workouts only on the other days (1-{DAYS_IN_WEEK})
7. Each workout has between 1 and {MAX_EXERCISES_PER_WORKOUT} exercises
8. Muscle groups must come from: "{muscles}"
9. Workout and exercise types must come from: "{categories}"
10. Durations are whole minutes, written as "<N> minutes"

The structure must be exactly:
{{
  "description": "string value",
  "difficulty": "{difficulties}",
  "restDays": [{rest_days_str}],
  "workouts": [
    {{
      "name": "string value",
      "description": "string value",
      "day_of_week": 1,
      "estimated_duration": "45 minutes",
      "workout_type": "{categories}",
      "exercises": [
        {{
          "name": "string value",
          "description": "string value",
          "sets": 3,
          "reps": 12,
          "rest_duration": "1 minutes",
          "order_in_workout": 1,
          "primary_muscles": ["{muscles}"],
          "secondary_muscles": ["{muscles}"],
          "equipment_needed": ["string value"],
          "exercise_type": "{categories}"
        }}
      ]
    }}
  ]
}}"""


def build_user_prompt(request: GenerationRequest, rest_days: list[int], hints: ProfileHints) -> str:
    muscles = ",".join(m.value for m in request.focus_muscles)
    rest_days_str = ",".join(str(d) for d in rest_days) or "none"
    equipment = ", ".join(hints.available_equipment) or "any"
    conditions = ", ".join(hints.medical_conditions) or "none"

    return f"""Create workout plan:
- Duration: {request.duration_weeks}w
- Type: {request.workout_type.value}
- Muscles: {muscles}
- Days/week: {request.days_per_week}
- Rest: {rest_days_str}
- Goal: {request.goal_type}
- Fitness level: {hints.fitness_level.value}
- Equipment: {equipment}
- Medical conditions: {conditions}
- Notes: {request.additional_notes or 'None'}
Return ONLY JSON."""


def build_prompts(request: GenerationRequest, rest_days: list[int], hints: ProfileHints | None = None) -> PromptPair:
    """Render the system/user prompt pair for one request.

    Args:
        request: Validated generation request
        rest_days: Rest-day set from RestDaySampler, already sorted
        hints: Profile hints; defaults to an intermediate athlete with no constraints

    Returns:
        PromptPair carrying both prompts and the rest days they embed
    """
    hints = hints or ProfileHints()
    return PromptPair(
        system=build_system_prompt(rest_days),
        user=build_user_prompt(request, rest_days, hints),
        rest_days=list(rest_days),
    )
