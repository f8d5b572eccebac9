import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from web.backend.routers import history, objectives

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("api")


def create_app() -> FastAPI:
    app = FastAPI(title="OKR Tracker API", version="2.0")

    raw_origins = os.getenv("OKR_TRACKER_ALLOWED_ORIGINS", "*")
    allow_origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    allow_credentials = "*" not in allow_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "service": "OKR Tracker"}

    app.include_router(objectives.router, prefix="/api/v1/objectives", tags=["objectives"])
    app.include_router(history.router, prefix="/api/v1", tags=["history"])

    logger.info("OKR Tracker API ready")
    return app


app = create_app()
