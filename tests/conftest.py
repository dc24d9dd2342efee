"""Pytest configuration and fixtures.

이 모듈은 모든 테스트에서 공유되는 pytest fixture들을 정의합니다.

주요 Fixture:
- clock: 캐시/세션 만료를 제어하는 가짜 시계
- session_store / repo_cache: 테스트마다 새로 주입되는 저장소
- client: FastAPI 테스트 클라이언트 (리다이렉트를 따라가지 않음)
- mock_github_api: GitHub 토큰 교환 / 저장소 조회 mock
- login: OAuth 로그인 흐름을 끝까지 수행하는 헬퍼

외부 GitHub API는 호출하지 않습니다.
"""
import os

os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("CLIENT_ID", "test_client_id")
os.environ.setdefault("CLIENT_SECRET", "test_client_secret")

import asyncio
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from github_oauth_demo.cache.repo_cache import RepoCache
from github_oauth_demo.server.main import app
from github_oauth_demo.server.session import MemorySessionStore
from github_oauth_demo.server.settings import settings

TEST_TOKEN = "gho_test_token"

SAMPLE_REPOS: List[Dict[str, Any]] = [
    {"id": 1, "name": "hello-world", "full_name": "testuser/hello-world", "private": False},
    {"id": 2, "name": "secret-sauce", "full_name": "testuser/secret-sauce", "private": True},
]


class FakeClock:
    """수동으로 진행시키는 시계."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _set_github_oauth_settings():
    """GitHub OAuth 설정이 테스트 환경에 존재하도록 보장합니다."""
    settings.CLIENT_ID = settings.CLIENT_ID or "test_client_id"
    settings.CLIENT_SECRET = settings.CLIENT_SECRET or "test_client_secret"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session_store(clock):
    return MemorySessionStore(secret="test-session-secret", max_age=settings.SESSION_MAX_AGE, clock=clock)


@pytest.fixture
def repo_cache(clock):
    return RepoCache(ttl_seconds=100, max_entries=16, clock=clock)


@pytest.fixture
def client(session_store, repo_cache):
    """FastAPI 테스트 클라이언트를 생성합니다.

    설명:
        - 테스트마다 새 세션 저장소와 캐시를 app.state에 주입
        - 리다이렉트를 따라가지 않으므로 Location 헤더를 직접 검증 가능
        - lifespan(스케줄러)은 실행하지 않음
    """
    original_store = app.state.session_store
    original_cache = app.state.repo_cache
    app.state.session_store = session_store
    app.state.repo_cache = repo_cache
    try:
        yield TestClient(app, follow_redirects=False)
    finally:
        app.state.session_store = original_store
        app.state.repo_cache = original_cache


@pytest.fixture
def mock_github_api():
    """GitHub API 호출을 mocking합니다.

    Yields:
        dict: {"exchange": AsyncMock, "repos": AsyncMock}

    설명:
        - exchange_code_for_token: TEST_TOKEN 반환
        - list_user_repos: SAMPLE_REPOS 반환
    """
    with patch(
        "github_oauth_demo.adapters.github.exchange_code_for_token",
        new=AsyncMock(return_value=TEST_TOKEN),
    ) as exchange, patch(
        "github_oauth_demo.adapters.github.list_user_repos",
        new=AsyncMock(return_value=SAMPLE_REPOS),
    ) as repos:
        yield {"exchange": exchange, "repos": repos}


def start_login(client: TestClient) -> str:
    """/login을 호출하고 GitHub으로 전달된 state 값을 반환합니다."""
    response = client.get("/login")
    assert response.status_code == 302
    query = parse_qs(urlparse(response.headers["location"]).query)
    return query["state"][0]


def current_session_id(client: TestClient, store: MemorySessionStore) -> Optional[str]:
    return store.unsign(client.cookies.get(settings.SESSION_COOKIE_NAME))


def load_session(store: MemorySessionStore, session_id: str):
    return asyncio.run(store.load(session_id))


@pytest.fixture
def login(client, mock_github_api):
    """OAuth 로그인 흐름(/login → /callback)을 수행하는 헬퍼를 반환합니다."""

    def _login(code: str = "test_code_123"):
        state = start_login(client)
        response = client.get("/callback", params={"code": code, "state": state})
        assert response.status_code == 302
        assert response.headers["location"] == "/repos"
        return response

    return _login
