from datetime import UTC, datetime

from fastapi import APIRouter

from app.config import settings

router = APIRouter(prefix="/api", tags=["Health"])


@router.get("/health")
async def health_check():
    """Liveness probe."""
    return {
        "status": "OK",
        "timestamp": datetime.now(UTC).isoformat(),
        "environment": settings.app_env,
    }
