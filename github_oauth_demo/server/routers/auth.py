"""GitHub OAuth login, callback and logout endpoints.

인증 흐름:
1. /login: state 쿠키 발급 후 GitHub authorize 페이지로 리다이렉트
2. /callback: state 검증 → 세션 재생성 → code를 토큰으로 교환 → 세션 저장
3. /logout: 사용자 정보 제거 및 저장 → 세션 재생성

state 불일치는 CSRF 시도로 간주하여 토큰 교환 없이 홈으로 리다이렉트합니다.
"""
import logging
import secrets
import uuid
from typing import Optional

from fastapi import APIRouter, Request, status
from fastapi.responses import RedirectResponse, Response

from github_oauth_demo.adapters import github
from github_oauth_demo.server.session import regenerate_session, save_session
from github_oauth_demo.server.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

CALLBACK_PATH = "/callback"


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


def clear_state_cookie(response: Response) -> None:
    response.delete_cookie(
        settings.STATE_COOKIE_NAME,
        path="/",
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite="lax",
    )


def _state_matches(returned: Optional[str], saved: Optional[str]) -> bool:
    if not returned or not saved:
        return False
    return secrets.compare_digest(returned.encode("utf-8"), saved.encode("utf-8"))


@router.get("/login")
async def login():
    """GitHub OAuth 로그인을 시작합니다.

    Returns:
        GitHub authorize 페이지로의 302 리다이렉트 (state 쿠키 포함)
    """
    state = str(uuid.uuid4())

    response = _redirect(github.build_authorize_url(state))
    response.set_cookie(
        settings.STATE_COOKIE_NAME,
        state,
        max_age=settings.STATE_COOKIE_MAX_AGE,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        path="/",
    )
    return response


@router.get(CALLBACK_PATH)
async def callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
):
    """GitHub OAuth 콜백을 처리합니다.

    Args:
        code: GitHub authorization code
        state: /login에서 발급한 state 값

    Returns:
        성공 시 /repos, 실패 시 / 로의 302 리다이렉트

    Raises:
        SessionStoreError: 세션 재생성/저장 실패 (앱 예외 핸들러가 500 처리)
    """
    saved_state = request.cookies.get(settings.STATE_COOKIE_NAME)

    # state가 다르면 제3자가 만든 요청이므로 중단
    if not _state_matches(state, saved_state):
        logger.warning("OAuth state mismatch, aborting login")
        response = _redirect("/")
        clear_state_cookie(response)
        return response

    session = await regenerate_session(request)

    if not code:
        logger.error(
            "GitHub callback without code: %s (%s)",
            request.query_params.get("error"),
            request.query_params.get("error_description"),
        )
        response = _redirect("/")
        clear_state_cookie(response)
        return response

    access_token = await github.exchange_code_for_token(code)
    if not access_token:
        response = _redirect("/")
        clear_state_cookie(response)
        return response

    session["token"] = access_token
    await save_session(request)

    logger.info("GitHub login completed")
    response = _redirect("/repos")
    clear_state_cookie(response)
    return response


@router.get("/logout")
async def logout(request: Request):
    """로그아웃 처리.

    사용자 정보를 세션에서 제거하고 저장하여 이전 세션 ID가 재사용되어도
    로그인 상태가 아니도록 한 뒤, 세션을 재생성합니다.
    """
    session = request.state.session
    session.pop("user", None)
    session.pop("token", None)

    await save_session(request)
    await regenerate_session(request)

    logger.info("User logged out")
    return _redirect("/")
