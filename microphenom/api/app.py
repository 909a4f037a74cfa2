"""
FastAPI application factory.

``create_app()`` assembles the application with CORS, error handlers,
routers, and the health endpoint. The module-level ``app`` instance
allows ``uvicorn microphenom.api.app:app --reload``.
"""

from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from microphenom import __version__
from microphenom.api.middleware.error_handler import register_error_handlers
from microphenom.api.routes import analysis
from microphenom.core.models import HealthResponse
from microphenom.services.analysis import AnalysisClient


def create_app(analysis_client: AnalysisClient | None = None) -> FastAPI:
    """Build and return a fully configured FastAPI application.

    Args:
        analysis_client: Client to serve requests with. When omitted, one is
            created from settings on the first analysis request.
    """

    app = FastAPI(
        title="MicroPhenom",
        description="Micro-phenomenological interview analysis.",
        version=__version__,
    )
    app.state.analysis_client = analysis_client

    # -- CORS --
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",  # Dev frontend
            "http://localhost:5173",  # Vite dev server
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check (root-level, not under /api/v1) --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(version=__version__, timestamp=datetime.now(UTC))

    # -- REST routes --
    app.include_router(analysis.router, prefix="/api/v1")

    return app


app = create_app()
