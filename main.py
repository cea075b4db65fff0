"""FastAPI entry point for the Classroom Insight dashboard service."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dashboard import router as dashboard_router
from api.health import router as health_router
from config.settings import get_settings
from services.middleware import RequestIdMiddleware
from services.sheet_client import get_sheet_client

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the spreadsheet client for the lifetime of the app."""
    client = get_sheet_client()
    await client.start()
    if settings.debug and settings.use_mock_data:
        logger.warning("USE_MOCK_DATA is on — dashboards are served from services/mock_data.py")

    yield

    await client.close()


app = FastAPI(
    title="Classroom Insight",
    description="Teacher and student dashboards computed from the classroom spreadsheet",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware stack (outermost first) ─────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)

# ── Register routers ────────────────────────────────────────
app.include_router(health_router)
app.include_router(dashboard_router)


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    if settings.debug:
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            reload=True,
        )
    else:
        # Production: prefer gunicorn main:app -c deploy/gunicorn.conf.py
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            workers=4,
            timeout_keep_alive=60,
        )
