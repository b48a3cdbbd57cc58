"""
Health check endpoints
Used by the hosting platform + ops
"""

from fastapi import APIRouter

from krelay.outbound.factory import get_session_armer

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health_check():
    return {"status": "ok"}


@router.get("/sessions")
def sessions_health_check():
    armer = get_session_armer()
    return {"armed_sessions": len(armer), "window_seconds": armer.window_seconds}
