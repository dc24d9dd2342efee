"""Health check endpoints."""
from fastapi import APIRouter, Request
from typing import Dict, Any
from github_oauth_demo.server.settings import settings

router = APIRouter()


@router.get("/healthz")
async def health_check() -> Dict[str, str]:
    """Basic health check endpoint.

    Returns:
        Simple status response
    """
    return {"status": "ok"}


@router.get("/readyz")
async def readiness_check(request: Request) -> Dict[str, Any]:
    """Readiness check endpoint.

    Checks if the GitHub OAuth app is configured and reports store sizes.

    Returns:
        Status response with readiness info
    """
    checks = {
        "client_id": bool(settings.CLIENT_ID),
        "client_secret": bool(settings.CLIENT_SECRET),
    }

    ready = all(checks.values())

    return {
        "status": "ok" if ready else "not_ready",
        "checks": checks,
        "sessions": len(request.app.state.session_store),
        "cached_repo_lists": len(request.app.state.repo_cache),
    }
