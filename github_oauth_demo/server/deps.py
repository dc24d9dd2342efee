"""Dependency injection for FastAPI routes."""
from __future__ import annotations

from fastapi import Request

from github_oauth_demo.cache.repo_cache import RepoCache
from github_oauth_demo.models.session import SessionData


def get_session_data(request: Request) -> SessionData:
    """SessionMiddleware가 연결한 현재 세션을 SessionData로 반환합니다."""
    return SessionData.from_session(request.state.session.data)


def get_repo_cache(request: Request) -> RepoCache:
    """앱에 주입된 저장소 캐시 서비스를 반환합니다."""
    return request.app.state.repo_cache
