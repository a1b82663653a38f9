"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storedeploy import __version__
from storedeploy.api.middleware import RequestLoggingMiddleware
from storedeploy.api.v1.router import router as v1_router
from storedeploy.config import settings
from storedeploy.core.exceptions import (
    QueueClosedError,
    StoreDeployError,
    TaskNotFoundError,
)
from storedeploy.core.service import DeploymentService
from storedeploy.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

ERROR_STATUS = {
    TaskNotFoundError: status.HTTP_404_NOT_FOUND,
    QueueClosedError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    log_file = configure_logging()
    service = DeploymentService()
    await service.start()
    app.state.deployment_service = service
    logger.info(
        "application.starting",
        version=__version__,
        environment=settings.app_env,
        project_root=str(settings.project_root),
        log_file=str(log_file),
    )

    yield

    # Shutdown
    await service.shutdown()
    logger.info("application.shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Store Deploy API",
        description="Publishes generated storefronts to their live domains",
        version=__version__,
        docs_url="/docs" if settings.app_debug else None,
        redoc_url="/redoc" if settings.app_debug else None,
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers
    @app.exception_handler(StoreDeployError)
    async def store_deploy_error_handler(
        request: Request, exc: StoreDeployError
    ) -> JSONResponse:
        """Handle application-specific errors."""
        return JSONResponse(
            status_code=ERROR_STATUS.get(
                type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR
            ),
            content={
                "error": {
                    "code": type(exc).__name__.upper(),
                    "message": exc.message,
                    "details": exc.details,
                }
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected errors."""
        logger.error(
            "unhandled_exception",
            error=str(exc),
            path=request.url.path,
            exc_info=True,
        )

        if settings.is_development:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": {
                        "code": "INTERNAL_ERROR",
                        "message": str(exc),
                        "type": type(exc).__name__,
                    }
                },
            )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                }
            },
        )

    # Include routers
    app.include_router(v1_router)

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storedeploy.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
