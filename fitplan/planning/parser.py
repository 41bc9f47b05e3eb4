"""Plan parser and repairer.

Model output is usually JSON but nothing guarantees it. Parsing proceeds in
stages and prefers correction over rejection wherever the plan's structure
survives:

1. Clean: strip Markdown fences, normalize typographic quotes, drop trailing commas
2. Decode strictly
3. On failure, decode the largest balanced-brace substring
4. Repair: filter muscles to the vocabulary, canonicalize durations
5. Validate against the generated-plan shape
"""

from __future__ import annotations

import copy
import json
import re
from typing import Any

from loguru import logger

from fitplan.planning.errors import PlanParseError, ValidationError
from fitplan.planning.schemas import GeneratedPlan, validate_plan
from fitplan.planning.vocabulary import MUSCLE_GROUPS, WORKOUT_CATEGORIES

DEFAULT_DURATION_MINUTES = 30

_FENCE_OPEN = re.compile(r"^\s*```[a-zA-Z]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```\s*$")
_SMART_QUOTES = re.compile(r"[\u201c\u201d]")
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_FIRST_INTEGER = re.compile(r"\d+")


def clean_text(raw_text: str) -> str:
    """Strip formatting artifacts around (and common syntax slips inside) a JSON answer."""
    text = raw_text.strip()
    text = _FENCE_OPEN.sub("", text)
    text = _FENCE_CLOSE.sub("", text)
    text = _SMART_QUOTES.sub('"', text)
    text = _TRAILING_COMMA.sub(r"\1", text)
    return text.strip()


def _matching_brace(text: str, start: int) -> int | None:
    """Return the end of the balanced {...} span opening at start, ignoring braces inside strings."""
    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1

    return None


def _balanced_spans(text: str) -> list[tuple[int, int]]:
    """Find every outermost balanced {...} span.

    An opening brace that never closes is skipped and the scan resumes just
    after it, so a stray "{" in prose does not hide the object that follows.
    """
    spans: list[tuple[int, int]] = []
    position = 0
    while (start := text.find("{", position)) != -1:
        end = _matching_brace(text, start)
        if end is None:
            position = start + 1
            continue
        spans.append((start, end))
        position = end
    return spans


def extract_json_object(text: str) -> str | None:
    """Return the largest balanced-brace substring of text, or None."""
    spans = _balanced_spans(text)
    if not spans:
        return None
    start, end = max(spans, key=lambda span: span[1] - span[0])
    return text[start:end]


def decode_plan_text(raw_text: str) -> dict[str, Any]:
    """Decode model output into a JSON object.

    Raises:
        PlanParseError: If neither the cleaned text nor its largest
            brace-balanced substring decodes to a JSON object
    """
    text = clean_text(raw_text)
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as first_error:
        candidate = extract_json_object(text)
        if candidate is None:
            logger.warning("Model output has no JSON object", output_length=len(raw_text))
            raise PlanParseError(
                "Failed to parse workout plan: Invalid JSON structure", raw_text, first_error
            ) from first_error
        try:
            decoded = json.loads(candidate)
        except json.JSONDecodeError as e:
            logger.warning("Recovered JSON substring failed to decode", error_message=str(e))
            raise PlanParseError("Failed to parse workout plan: Invalid JSON structure", raw_text, e) from e
        logger.info(
            "Recovered plan JSON from surrounding text",
            output_length=len(raw_text),
            recovered_length=len(candidate),
        )

    if not isinstance(decoded, dict):
        raise PlanParseError(
            f"Failed to parse workout plan: expected a JSON object, got {type(decoded).__name__}",
            raw_text,
        )
    return decoded


def normalize_duration(value: Any) -> str:
    """Canonicalize a duration to "<N> minutes".

    The first embedded integer is taken as the minute count whatever unit
    follows it, so "90 sec" becomes "90 minutes". Values without a positive
    integer become "30 minutes".
    """
    match = _FIRST_INTEGER.search(str(value)) if value is not None else None
    minutes = int(match.group()) if match else 0
    if minutes <= 0:
        minutes = DEFAULT_DURATION_MINUTES
    return f"{minutes} minutes"


def _normalize_token(value: Any) -> str:
    return re.sub(r"[\s\-]+", "_", str(value).strip().lower())


def filter_muscles(values: Any) -> list[str]:
    """Keep only vocabulary muscle groups, matched case- and space-insensitively."""
    if not isinstance(values, list):
        return []
    normalized = (_normalize_token(v) for v in values if isinstance(v, str))
    return [m for m in normalized if m in MUSCLE_GROUPS]


def _normalize_enum_value(value: Any, vocabulary: frozenset[str] | None = None) -> Any:
    if not isinstance(value, str):
        return value
    token = _normalize_token(value)
    if vocabulary is None or token in vocabulary:
        return token
    return value


def _repair_exercise(exercise: dict[str, Any]) -> None:
    primary = filter_muscles(exercise.get("primary_muscles"))
    secondary = filter_muscles(exercise.get("secondary_muscles"))
    if not primary and secondary:
        primary, secondary = secondary[:1], secondary[1:]
    exercise["primary_muscles"] = primary
    exercise["secondary_muscles"] = secondary
    exercise["rest_duration"] = normalize_duration(exercise.get("rest_duration"))
    if "exercise_type" in exercise:
        exercise["exercise_type"] = _normalize_enum_value(exercise["exercise_type"], WORKOUT_CATEGORIES)


def _repair_workout(workout: dict[str, Any]) -> None:
    workout["estimated_duration"] = normalize_duration(workout.get("estimated_duration"))
    if "workout_type" in workout:
        workout["workout_type"] = _normalize_enum_value(workout["workout_type"], WORKOUT_CATEGORIES)
    exercises = workout.get("exercises")
    if isinstance(exercises, list):
        for exercise in exercises:
            if isinstance(exercise, dict):
                _repair_exercise(exercise)


def repair_plan(data: dict[str, Any], expected_rest_days: list[int] | None = None) -> dict[str, Any]:
    """Coerce a decoded plan toward the generated-plan shape.

    Returns a repaired copy; the input is not modified. Applying the repair to
    its own output changes nothing.

    Args:
        data: Decoded plan object
        expected_rest_days: Rest days the prompt required; replaces whatever
            the model returned when given
    """
    repaired = copy.deepcopy(data)

    if "difficulty" in repaired:
        repaired["difficulty"] = _normalize_enum_value(repaired["difficulty"])

    if expected_rest_days is not None:
        if repaired.get("restDays") != expected_rest_days:
            logger.warning(
                "Model changed the rest days; restoring requested set",
                returned=repaired.get("restDays"),
                expected=expected_rest_days,
            )
        repaired["restDays"] = list(expected_rest_days)

    workouts = repaired.get("workouts")
    if isinstance(workouts, list):
        for workout in workouts:
            if isinstance(workout, dict):
                _repair_workout(workout)

    return repaired


def parse_plan(raw_text: str, expected_rest_days: list[int] | None = None) -> GeneratedPlan:
    """Turn raw model output into a validated plan.

    Args:
        raw_text: Untouched model output
        expected_rest_days: Rest days embedded in the prompt

    Returns:
        Validated GeneratedPlan

    Raises:
        PlanParseError: If the output cannot be decoded, or the repaired plan
            still violates the plan shape
    """
    decoded = decode_plan_text(raw_text)
    repaired = repair_plan(decoded, expected_rest_days)

    try:
        plan = validate_plan(repaired)
    except ValidationError as e:
        logger.warning("Repaired plan failed validation", violations=e.details)
        paths = ", ".join(detail["path"] or "<root>" for detail in e.details)
        raise PlanParseError(f"Failed to parse workout plan: invalid fields ({paths})", raw_text, e) from e

    logger.info(
        "Plan parsed",
        workouts=len(plan.workouts),
        exercises=plan.exercise_count,
        difficulty=plan.difficulty.value,
    )
    return plan
