"""Health check endpoint."""

from fastapi import APIRouter

from config.settings import get_settings
from services.sheet_client import get_sheet_client

router = APIRouter(tags=["health"])


@router.get("/api/health")
async def health():
    """Liveness probe; also reports whether the store circuit is open."""
    settings = get_settings()
    mock = settings.debug and settings.use_mock_data
    return {
        "status": "healthy",
        "mockData": mock,
        "storeCircuitOpen": False if mock else get_sheet_client().circuit_open,
    }
