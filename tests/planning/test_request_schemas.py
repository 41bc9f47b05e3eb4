"""Tests for request and generated-plan validation."""

import pytest

from fitplan.planning.errors import ValidationError
from fitplan.planning.schemas import validate_plan, validate_request
from fitplan.planning.vocabulary import MuscleGroup, WorkoutCategory


def test_validate_request_valid(request_payload):
    request = validate_request({**request_payload, "additionalNotes": "bad knee"})

    assert str(request.user_id) == request_payload["userId"]
    assert request.workout_type is WorkoutCategory.STRENGTH
    assert request.focus_muscles == [MuscleGroup.CHEST, MuscleGroup.BACK]
    assert request.rest_day_count == 4
    assert request.additional_notes == "bad knee"


def test_validate_request_reports_every_offending_field(request_payload):
    payload = {
        **request_payload,
        "userId": "not-a-uuid",
        "workoutType": "yoga",
        "durationWeeks": 60,
        "daysPerWeek": 0,
        "focusMuscles": ["chest", "wings"],
    }

    with pytest.raises(ValidationError) as exc_info:
        validate_request(payload)

    paths = {detail["path"] for detail in exc_info.value.details}
    assert paths == {"userId", "workoutType", "durationWeeks", "daysPerWeek", "focusMuscles.1"}
    assert str(exc_info.value) == "Invalid request data"


def test_validate_request_missing_fields(user_id):
    with pytest.raises(ValidationError) as exc_info:
        validate_request({"userId": user_id})

    paths = {detail["path"] for detail in exc_info.value.details}
    assert {"goalType", "workoutType", "durationWeeks", "daysPerWeek", "focusMuscles"} <= paths


def test_validate_request_rejects_empty_focus_muscles(request_payload):
    with pytest.raises(ValidationError) as exc_info:
        validate_request({**request_payload, "focusMuscles": []})

    assert [d["path"] for d in exc_info.value.details] == ["focusMuscles"]


@pytest.mark.parametrize("value", ["4", 4.5, True])
def test_validate_request_integers_are_strict(request_payload, value):
    with pytest.raises(ValidationError) as exc_info:
        validate_request({**request_payload, "durationWeeks": value})

    assert [d["path"] for d in exc_info.value.details] == ["durationWeeks"]


def test_validate_request_rejects_blank_goal(request_payload):
    with pytest.raises(ValidationError):
        validate_request({**request_payload, "goalType": "   "})


def test_validate_request_non_object_payload():
    with pytest.raises(ValidationError) as exc_info:
        validate_request(["not", "an", "object"])

    assert exc_info.value.details[0]["path"] == ""


def test_validate_request_dedupes_focus_muscles(request_payload):
    request = validate_request({**request_payload, "focusMuscles": ["chest", "chest", "back"]})
    assert request.focus_muscles == [MuscleGroup.CHEST, MuscleGroup.BACK]


def test_validate_plan_valid(plan_dict):
    plan = validate_plan(plan_dict)

    assert len(plan.workouts) == 2
    assert plan.exercise_count == 6
    assert plan.rest_days == [2, 4, 6, 7]


def test_validate_plan_rejects_more_than_five_exercises(plan_factory):
    with pytest.raises(ValidationError) as exc_info:
        validate_plan(plan_factory(exercises=6))

    assert any(d["path"] == "workouts.0.exercises" for d in exc_info.value.details)


def test_validate_plan_rejects_zero_workouts(plan_factory):
    with pytest.raises(ValidationError):
        validate_plan(plan_factory(workouts=0))


def test_validate_plan_rejects_empty_exercise_list(plan_factory):
    plan = plan_factory()
    plan["workouts"][0]["exercises"] = []

    with pytest.raises(ValidationError):
        validate_plan(plan)


@pytest.mark.parametrize("field", ["description", "difficulty", "workouts"])
def test_validate_plan_requires_top_level_fields(plan_dict, field):
    del plan_dict[field]

    with pytest.raises(ValidationError) as exc_info:
        validate_plan(plan_dict)

    assert [d["path"] for d in exc_info.value.details] == [field]


@pytest.mark.parametrize("rest_days", [[0], [8], [1, 1], "1,2", [1, 2, 3, 4, 5, 6, 7]])
def test_validate_plan_rejects_bad_rest_days(plan_factory, rest_days):
    with pytest.raises(ValidationError):
        validate_plan(plan_factory(rest_days=rest_days))


def test_validate_plan_accepts_empty_rest_days(plan_factory):
    assert validate_plan(plan_factory(rest_days=[])).rest_days == []


def test_validate_plan_rejects_non_positive_sets_and_negative_order(plan_factory):
    plan = plan_factory()
    plan["workouts"][0]["exercises"][0]["sets"] = 0
    plan["workouts"][0]["exercises"][1]["order_in_workout"] = -1

    with pytest.raises(ValidationError) as exc_info:
        validate_plan(plan)

    paths = {d["path"] for d in exc_info.value.details}
    assert paths == {"workouts.0.exercises.0.sets", "workouts.0.exercises.1.order_in_workout"}


def test_validate_plan_orders_exercises_by_position(plan_factory):
    plan = plan_factory()
    exercises = plan["workouts"][0]["exercises"]
    exercises[0]["order_in_workout"] = 5
    exercises[2]["order_in_workout"] = 0

    validated = validate_plan(plan)

    assert [e.order_in_workout for e in validated.workouts[0].exercises] == [0, 2, 5]


def test_validate_plan_integers_are_strict(plan_factory):
    plan = plan_factory()
    plan["workouts"][0]["exercises"][0]["sets"] = True
    plan["workouts"][0]["exercises"][1]["reps"] = "12"
    plan["workouts"][1]["day_of_week"] = "1"

    with pytest.raises(ValidationError) as exc_info:
        validate_plan(plan)

    paths = {d["path"] for d in exc_info.value.details}
    assert paths == {
        "workouts.0.exercises.0.sets",
        "workouts.0.exercises.1.reps",
        "workouts.1.day_of_week",
    }


def test_validate_plan_rejects_string_rest_days(plan_factory):
    with pytest.raises(ValidationError) as exc_info:
        validate_plan(plan_factory(rest_days=["2", 4]))

    assert [d["path"] for d in exc_info.value.details] == ["restDays.0"]
