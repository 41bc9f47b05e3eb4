from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from fitplan.api.plans import router as plans_router
from fitplan.config.settings import Settings
from fitplan.core.logger import setup_logger
from fitplan.db.models import Base
from fitplan.db.session import create_db_engine, create_session_factory
from fitplan.planning.orchestrator import PlanGenerationService, build_plan_service


def create_app(
    settings: Settings | None = None,
    plan_service: PlanGenerationService | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Configuration is read and validated once, in the lifespan, before the app
    accepts requests. Passing a ready plan_service skips that wiring (tests).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = None
        if plan_service is not None:
            app.state.plan_service = plan_service
        else:
            config = settings or Settings()
            setup_logger(level=config.log_level, log_file=config.log_file)
            config.ensure_complete()

            engine = create_db_engine(config)
            logger.info("Ensuring database tables exist")
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables verified")

            app.state.plan_service = build_plan_service(config, create_session_factory(engine))

        logger.info("Plan service ready")
        yield

        if engine is not None:
            engine.dispose()
            logger.info("Database engine disposed")

    app = FastAPI(title="fitplan", lifespan=lifespan)
    app.include_router(plans_router)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_request: Request, exc: RequestValidationError):
        details = [
            {"path": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"error": "Invalid request data", "details": details})

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests."""
        logger.debug(f"Request: {request.method} {request.url.path}")
        response = await call_next(request)
        logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
        return response

    @app.get("/health")
    def health():
        return {"status": "ok"}

    logger.info("FastAPI application initialized")
    return app


app = create_app()
