"""Background task scheduler using APScheduler.

스케줄러 관리:
- cache_sweep: REPO_CACHE_CHECK_PERIOD(기본 120초)마다 만료 캐시 정리
- session_sweep: SESSION_SWEEP_INTERVAL(기본 10분)마다 만료 세션 정리
"""
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from github_oauth_demo.background.tasks import cache_sweep_task, session_sweep_task
from github_oauth_demo.cache.repo_cache import RepoCache
from github_oauth_demo.server.session import MemorySessionStore
from github_oauth_demo.server.settings import settings

logger = logging.getLogger(__name__)

# 전역 스케줄러 인스턴스
scheduler: Optional[AsyncIOScheduler] = None

# 작업 대상 (init_scheduler에서 설정)
_repo_cache: Optional[RepoCache] = None
_session_store: Optional[MemorySessionStore] = None


def init_scheduler(repo_cache: RepoCache, session_store: MemorySessionStore):
    """스케줄러 초기화 및 작업 등록"""
    global scheduler, _repo_cache, _session_store

    if scheduler is not None:
        logger.warning("Scheduler already initialized")
        return

    _repo_cache = repo_cache
    _session_store = session_store
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        cache_sweep_task,
        trigger=IntervalTrigger(seconds=settings.REPO_CACHE_CHECK_PERIOD),
        args=[repo_cache],
        id="cache_sweep",
        name="Repo Cache Sweep",
        replace_existing=True,
        max_instances=1,  # 동시 실행 방지
        coalesce=True,    # 누락된 실행 병합
    )

    scheduler.add_job(
        session_sweep_task,
        trigger=IntervalTrigger(seconds=settings.SESSION_SWEEP_INTERVAL),
        args=[session_store],
        id="session_sweep",
        name="Session Sweep",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    logger.info("Scheduler initialized with 2 background tasks")


def start_scheduler(repo_cache: RepoCache, session_store: MemorySessionStore):
    """스케줄러 시작"""
    if scheduler is None:
        init_scheduler(repo_cache, session_store)

    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")

        for job in scheduler.get_jobs():
            logger.info(f"Job '{job.name}' next run: {job.next_run_time}")


def shutdown_scheduler():
    """스케줄러 종료"""
    global scheduler, _repo_cache, _session_store

    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")

    scheduler = None
    _repo_cache = None
    _session_store = None


async def run_task_now(task_name: str) -> int:
    """특정 작업을 즉시 실행 (수동 트리거)

    Args:
        task_name: "cache_sweep", "session_sweep"

    Returns:
        제거된 항목 수 (알 수 없는 작업이거나 미초기화 시 0)
    """
    logger.info(f"Manually triggering task: {task_name}")

    if task_name == "cache_sweep" and _repo_cache is not None:
        return await cache_sweep_task(_repo_cache)
    if task_name == "session_sweep" and _session_store is not None:
        return await session_sweep_task(_session_store)

    logger.error(f"Unknown or uninitialized task: {task_name}")
    return 0
