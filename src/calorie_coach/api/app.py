"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from calorie_coach.api.routes import router as user_router
from calorie_coach.app_logging import configure_logging
from calorie_coach.containers import AppContainer
from calorie_coach.services.chat import EmptySubmissionError
from calorie_coach.services.profiles import ProfileNotFoundError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(user_router)

    @app.exception_handler(ProfileNotFoundError)
    async def profile_not_found(
        request: Request, exc: ProfileNotFoundError
    ) -> JSONResponse:
        logger.info("Profile not found", extra={"user_id": str(exc)})
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": "Profile not found"},
        )

    @app.exception_handler(EmptySubmissionError)
    async def empty_submission(
        request: Request, exc: EmptySubmissionError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
