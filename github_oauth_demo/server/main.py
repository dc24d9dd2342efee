"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from github_oauth_demo.background.scheduler import start_scheduler, shutdown_scheduler
from github_oauth_demo.cache.repo_cache import RepoCache
from github_oauth_demo.models.session import SessionData
from github_oauth_demo.server.deps import get_session_data
from github_oauth_demo.server.routers import auth, health, repos
from github_oauth_demo.server.session import (
    MemorySessionStore,
    SessionMiddleware,
    SessionStoreError,
    session_store_error_response,
)
from github_oauth_demo.server.settings import settings

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


# FastAPI 생명주기 관리
@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 시작/종료 시 실행되는 코드"""
    logger.info("Starting application...")
    if not settings.CLIENT_ID or not settings.CLIENT_SECRET:
        logger.warning("CLIENT_ID / CLIENT_SECRET not set; GitHub login will fail")

    start_scheduler(app.state.repo_cache, app.state.session_store)
    logger.info("Background scheduler started")

    yield

    logger.info("Shutting down application...")
    shutdown_scheduler()
    logger.info("Background scheduler stopped")


# Create FastAPI app
app = FastAPI(
    title="GitHub OAuth Demo",
    description="Log in with GitHub and list your repositories",
    version="1.0.0",
    lifespan=lifespan,
)

# 주입 서비스: 세션 저장소, 저장소 목록 캐시
app.state.session_store = MemorySessionStore(
    secret=settings.SESSION_SECRET,
    max_age=settings.SESSION_MAX_AGE,
)
app.state.repo_cache = RepoCache(
    ttl_seconds=settings.REPO_CACHE_TTL,
    max_entries=settings.REPO_CACHE_MAX_ENTRIES,
)

app.add_middleware(
    SessionMiddleware,
    cookie_name=settings.SESSION_COOKIE_NAME,
    max_age=settings.SESSION_MAX_AGE,
    secure=settings.COOKIE_SECURE,
    exempt_paths=("/healthz", "/readyz"),
)

# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(repos.router)


@app.exception_handler(SessionStoreError)
async def session_store_error_handler(request: Request, exc: SessionStoreError):
    logger.error(f"Session store failure on {request.url.path}: {exc}", exc_info=exc)
    response = session_store_error_response()
    # 실패한 콜백에서도 state 쿠키는 1회용으로 폐기
    if request.url.path == auth.CALLBACK_PATH:
        auth.clear_state_cookie(response)
    return response


INDEX_HTML = """<!doctype html>
<html>
  <head><title>GitHub OAuth Demo</title></head>
  <body>
    <h1>GitHub OAuth Demo</h1>
    <p><a href="/login">Log in with GitHub</a></p>
  </body>
</html>
"""


@app.get("/", response_class=HTMLResponse)
async def index(session: SessionData = Depends(get_session_data)):
    """Home endpoint.

    Returns:
        로그인 상태면 /repos로 리다이렉트, 아니면 로그인 링크 페이지
    """
    if session.is_authenticated:
        return RedirectResponse(url="/repos", status_code=status.HTTP_302_FOUND)
    return HTMLResponse(INDEX_HTML)


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Listening at http://localhost:{settings.PORT} ...")
    uvicorn.run(
        "github_oauth_demo.server.main:app",
        host=settings.HOST,
        port=settings.PORT,
    )
