"""Repository listing endpoint backed by the repository cache."""
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from github_oauth_demo.adapters import github
from github_oauth_demo.cache.repo_cache import RepoCache, cache_key_for_token
from github_oauth_demo.models.session import SessionData
from github_oauth_demo.server.deps import get_repo_cache, get_session_data

logger = logging.getLogger(__name__)

router = APIRouter(tags=["repos"])


@router.get("/repos")
async def list_repos(
    session: SessionData = Depends(get_session_data),
    cache: RepoCache = Depends(get_repo_cache),
):
    """인증된 사용자의 GitHub 저장소 목록을 반환합니다.

    - 토큰이 없으면 홈으로 리다이렉트
    - 캐시(TTL) 적중 시 캐시된 목록 반환
    - 미스 시 GitHub API 호출 후 캐시에 저장
    - GitHub 호출 실패 시 홈으로 리다이렉트

    Returns:
        {"repos": [...]}
    """
    if not session.is_authenticated:
        return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)

    key = cache_key_for_token(session.token)
    repos = cache.get(key)
    if repos is not None:
        logger.info("Serving cached data")
        return {"repos": repos}

    repos = await github.list_user_repos(session.token)
    if repos is None:
        return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)

    cache.set(key, repos)
    logger.info("Serving fresh data")
    return {"repos": repos}
