import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from servicedesk.routes import periods, reports

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="Service Desk Reports API", version="0.1.0")

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
    logger.debug("CORS origins: %s", origins)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    app.include_router(periods.router, prefix="/api")
    app.include_router(reports.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Service Desk Reports API",
                "docs": "/docs",
                "health": "/api/periods/years",
            }
        )

    return app


app = create_app()
