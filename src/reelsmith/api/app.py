"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reelsmith.api.middleware import reelsmith_error_handler
from reelsmith.api.routes import jobs, platforms
from reelsmith.logging_config import configure_logging
from reelsmith.models.errors import ReelsmithError


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()
    app = FastAPI(
        title="Reelsmith",
        description="Multi-platform short-form video generation pipeline",
        version="0.1.0",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handlers
    app.add_exception_handler(ReelsmithError, reelsmith_error_handler)

    # Routes
    app.include_router(jobs.router)
    app.include_router(platforms.router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": "0.1.0"}

    return app


app = create_app()
