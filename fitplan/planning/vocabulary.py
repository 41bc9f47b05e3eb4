from enum import StrEnum


class MuscleGroup(StrEnum):
    CHEST = "chest"
    BACK = "back"
    SHOULDERS = "shoulders"
    BICEPS = "biceps"
    TRICEPS = "triceps"
    FOREARMS = "forearms"
    CORE = "core"
    QUADRICEPS = "quadriceps"
    HAMSTRINGS = "hamstrings"
    CALVES = "calves"
    GLUTES = "glutes"
    TRAPS = "traps"
    LATS = "lats"
    LOWER_BACK = "lower_back"


class WorkoutCategory(StrEnum):
    POWERLIFTING = "powerlifting"
    BODYWEIGHT = "bodyweight"
    HIIT = "hiit"
    STRENGTH = "strength"
    CARDIO = "cardio"
    CROSSFIT = "crossfit"
    ENDURANCE = "endurance"
    CIRCUIT = "circuit"
    ISOLATION = "isolation"


class Difficulty(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


MUSCLE_GROUPS: frozenset[str] = frozenset(m.value for m in MuscleGroup)
WORKOUT_CATEGORIES: frozenset[str] = frozenset(c.value for c in WorkoutCategory)

DAYS_IN_WEEK = 7
MAX_EXERCISES_PER_WORKOUT = 5
DEFAULT_FITNESS_LEVEL = Difficulty.INTERMEDIATE
