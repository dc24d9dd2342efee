"""GitHub adapter for the OAuth web flow and repository listing.

GitHub OAuth 2.0 인증 및 저장소 목록 조회를 처리합니다.
업스트림 실패는 로그로 남기고 None을 반환하며, 재시도하지 않습니다.
"""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from github_oauth_demo.server.settings import settings

logger = logging.getLogger(__name__)


def _api_headers(access_token: str) -> Dict[str, str]:
    return {
        "Accept": "application/vnd.github+json",
        "Authorization": f"Bearer {access_token}",
        "X-GitHub-Api-Version": "2022-11-28",
    }


def build_authorize_url(state: str) -> str:
    """GitHub OAuth 인증 페이지 URL을 생성합니다.

    OAuth 인증 플로우의 첫 번째 단계입니다.

    Args:
        state: CSRF 방지용 1회성 state 값

    Returns:
        client_id, scope, state 쿼리를 포함한 authorize URL
    """
    params = urlencode({
        "client_id": settings.CLIENT_ID,
        "scope": settings.OAUTH_SCOPE,
        "state": state,
    })
    return f"{settings.GITHUB_AUTHORIZE_URL}?{params}"


async def exchange_code_for_token(code: str) -> Optional[str]:
    """GitHub OAuth code를 access token으로 교환합니다.

    OAuth 인증 플로우의 두 번째 단계입니다.
    사용자가 GitHub에서 인증한 후 받은 code를 access token으로 교환합니다.

    Args:
        code: GitHub OAuth authorization code

    Returns:
        Access token 문자열, 실패 시 None
    """
    if not settings.CLIENT_ID or not settings.CLIENT_SECRET:
        logger.error("GitHub OAuth credentials not configured")
        return None

    try:
        async with httpx.AsyncClient(timeout=settings.GITHUB_HTTP_TIMEOUT) as client:
            response = await client.post(
                settings.GITHUB_TOKEN_URL,
                headers={"Accept": "application/json"},
                data={
                    "client_id": settings.CLIENT_ID,
                    "client_secret": settings.CLIENT_SECRET,
                    "code": code,
                },
            )

            response.raise_for_status()
            data = response.json()

            access_token = data.get("access_token")
            if not access_token:
                # GitHub은 실패 시에도 200과 함께 error 필드를 반환함
                logger.error(
                    "No access token in response: %s (%s)",
                    data.get("error"),
                    data.get("error_description"),
                )
                return None

            logger.info("Successfully exchanged code for access token")
            return access_token

    except httpx.HTTPError as e:
        logger.error(f"Failed to exchange code for token: {e}")
        return None
    except ValueError as e:
        logger.error(f"Invalid token response from GitHub: {e}")
        return None


async def list_user_repos(access_token: str) -> Optional[List[Dict[str, Any]]]:
    """인증된 사용자의 저장소 목록을 가져옵니다.

    Args:
        access_token: GitHub OAuth access token

    Returns:
        GitHub API 응답 본문 (저장소 객체 리스트), 실패 시 None
    """
    try:
        async with httpx.AsyncClient(timeout=settings.GITHUB_HTTP_TIMEOUT) as client:
            response = await client.get(
                f"{settings.GITHUB_API_URL}/user/repos",
                headers=_api_headers(access_token),
            )

            response.raise_for_status()
            repos = response.json()

            if not isinstance(repos, list):
                logger.error(f"Unexpected repository listing payload: {type(repos).__name__}")
                return None

            logger.info(f"Fetched {len(repos)} repositories from GitHub")
            return repos

    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch repositories: {e}")
        return None
    except ValueError as e:
        logger.error(f"Invalid repository response from GitHub: {e}")
        return None
