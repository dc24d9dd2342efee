"""Background maintenance tasks for in-memory stores.

백그라운드 작업:
1. cache_sweep_task: 만료된 저장소 목록 캐시 항목 제거
2. session_sweep_task: 만료된 세션 레코드 제거

작업 실패는 로그만 남기고 스케줄러로 전파하지 않습니다.
"""
import logging

from github_oauth_demo.cache.repo_cache import RepoCache
from github_oauth_demo.server.session import MemorySessionStore

logger = logging.getLogger(__name__)


async def cache_sweep_task(repo_cache: RepoCache) -> int:
    """캐시 정리 작업: TTL이 지난 항목 제거"""
    try:
        removed = repo_cache.sweep()
        if removed:
            logger.info(f"Repo cache sweep removed {removed} expired entries ({len(repo_cache)} left)")
        return removed
    except Exception as e:
        logger.error(f"Repo cache sweep failed: {e}", exc_info=True)
        return 0


async def session_sweep_task(session_store: MemorySessionStore) -> int:
    """세션 정리 작업: 만료된 세션 레코드 제거"""
    try:
        removed = session_store.sweep()
        if removed:
            logger.info(f"Session sweep removed {removed} expired sessions ({len(session_store)} left)")
        return removed
    except Exception as e:
        logger.error(f"Session sweep failed: {e}", exc_info=True)
        return 0
