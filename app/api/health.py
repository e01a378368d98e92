"""Liveness endpoint. No auth, no database call."""

from fastapi import APIRouter

from app.models.common import utcnow

router = APIRouter()


@router.get("/health", response_model=dict, summary="Health check")
async def health() -> dict:
    return {
        "success": True,
        "message": "Server is running",
        "timestamp": utcnow().isoformat(),
    }
