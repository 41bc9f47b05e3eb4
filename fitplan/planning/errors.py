"""Error taxonomy for the plan generation pipeline.

Each error carries the HTTP status the API layer answers with, so the router
maps outcomes without inspecting messages:

- ValidationError: malformed or out-of-vocabulary inbound fields (400)
- NotFoundError: referenced user profile or plan is absent (404)
- ActivePlanConflictError: the user already has an active plan (409)
- GenerationTimeoutError: the model call exceeded its deadline (504)
- GenerationProviderError: the model call failed or returned nothing (502)
- PlanParseError: model output not recoverable into a valid plan (500)
- PersistenceError: a data-store write failed at a named step (500)
"""


class PlanningError(Exception):
    """Base exception for all pipeline failures."""

    status_code = 500
    kind = "internal"


class ValidationError(PlanningError):
    """Raised when a payload does not match its shape.

    Attributes:
        details: Every violated field as {"path": ..., "message": ...}
    """

    status_code = 400
    kind = "validation"

    def __init__(self, message: str, details: list[dict[str, str]]):
        self.details = details
        super().__init__(message)


class NotFoundError(PlanningError):
    status_code = 404
    kind = "not_found"


class ActivePlanConflictError(PlanningError):
    """Raised when a user already owns an active plan."""

    status_code = 409
    kind = "conflict"


class GenerationFailure(PlanningError):
    """Base for failures of the external generation call."""

    status_code = 502
    kind = "generation"


class GenerationTimeoutError(GenerationFailure):
    status_code = 504
    kind = "timeout"


class GenerationProviderError(GenerationFailure):
    status_code = 502
    kind = "provider"


class PlanParseError(PlanningError):
    """Raised when model output cannot be decoded or repaired into a plan.

    Attributes:
        raw_text: The untouched model output, kept for diagnostics
        cause: The underlying decode or validation error
    """

    status_code = 500
    kind = "parse"

    def __init__(self, message: str, raw_text: str, cause: Exception | None = None):
        self.raw_text = raw_text
        self.cause = cause
        super().__init__(message)


class PersistenceError(PlanningError):
    """Raised when a write fails.

    The message names the step only; store error text stays in `cause`.

    Attributes:
        step: Pipeline step that failed (goal, plan, workouts, exercises, commit)
    """

    status_code = 500
    kind = "persistence"

    def __init__(self, step: str, cause: Exception):
        self.step = step
        self.cause = cause
        super().__init__(f"Failed to save workout plan at step '{step}'")


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required configuration: {', '.join(missing)}")
