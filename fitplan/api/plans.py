"""Plan generation endpoints.

POST /api/generate-workout runs the generation pipeline; every failure is
answered with a single {"error": ...} object whose status follows the error
kind. Validation failures also list each offending field under "details".
"""

import json
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from fitplan.planning.errors import PlanningError, ValidationError
from fitplan.planning.orchestrator import PlanGenerationService
from fitplan.schemas.plan_responses import ActivePlanResponse, ErrorResponse, GeneratePlanResponse

router = APIRouter(prefix="/api", tags=["plans"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def get_plan_service(request: Request) -> PlanGenerationService:
    return request.app.state.plan_service


def error_response(error: PlanningError) -> JSONResponse:
    body = ErrorResponse(error=str(error))
    if isinstance(error, ValidationError):
        body = ErrorResponse.model_validate({"error": str(error), "details": error.details})
    return JSONResponse(status_code=error.status_code, content=body.model_dump(exclude_none=True))


@router.post("/generate-workout", response_model=GeneratePlanResponse, responses=_ERROR_RESPONSES)
async def generate_workout(
    request: Request,
    service: PlanGenerationService = Depends(get_plan_service),
):
    """Generate, repair and store a workout plan for the requesting user.

    The body is read raw so malformed input gets the same error contract as
    out-of-range fields instead of FastAPI's default 422.
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.info("Rejected non-JSON plan request body")
        return error_response(
            ValidationError(
                "Invalid request data",
                [{"path": "", "message": "Request body must be valid JSON"}],
            )
        )

    try:
        return await service.generate(payload)
    except PlanningError as e:
        return error_response(e)
    except Exception:
        logger.exception("Unexpected failure during plan generation")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Server error"},
        )


@router.get("/plans/active", response_model=ActivePlanResponse, responses={404: {"model": ErrorResponse}})
async def get_active_plan(
    user_id: UUID = Query(..., alias="userId", description="User whose active plan to return"),
    service: PlanGenerationService = Depends(get_plan_service),
):
    try:
        return await service.get_active_plan(str(user_id))
    except PlanningError as e:
        return error_response(e)
