"""Server-side session store, middleware and lifecycle helpers.

세션 관리:
- 브라우저 쿠키에는 itsdangerous로 서명된 세션 ID만 저장
- 세션 데이터는 서버 메모리(MemorySessionStore)에 보관
- 매 요청마다 만료 시간을 연장 (24h sliding expiry)
- 로그인 완료/로그아웃 시 세션 재생성 (session fixation 방지)

핸들러는 save_session / regenerate_session 코루틴을 순차적으로 await 합니다.
저장소 실패는 SessionStoreError로 전달되어 앱의 예외 핸들러가 처리합니다.
"""
from __future__ import annotations

import copy
import logging
import secrets
import time
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from fastapi import Request, status
from fastapi.responses import JSONResponse
from itsdangerous import BadData, URLSafeTimedSerializer
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

SESSION_SALT = "github-oauth-demo-session-v1"


class SessionStoreError(RuntimeError):
    """Raised when the session store cannot save, load or destroy a session."""


class Session:
    """Mutable view of one server-side session record."""

    def __init__(
        self,
        session_id: str,
        data: Optional[Dict[str, Any]] = None,
        is_new: bool = False,
    ) -> None:
        self.session_id = session_id
        self.data: Dict[str, Any] = data or {}
        self.is_new = is_new
        self.modified = False

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def pop(self, key: str, default: Any = None) -> Any:
        if key in self.data:
            self.modified = True
        return self.data.pop(key, default)

    def clear(self) -> None:
        if self.data:
            self.modified = True
        self.data.clear()

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.data[key] = value
        self.modified = True

    def __delitem__(self, key: str) -> None:
        del self.data[key]
        self.modified = True

    def __contains__(self, key: object) -> bool:
        return key in self.data

    def __repr__(self) -> str:
        return f"Session(session_id={self.session_id[:8]}..., keys={sorted(self.data)})"


class MemorySessionStore:
    """In-process session store with sliding expiry.

    단일 프로세스 데모용 저장소입니다. 여러 워커로 확장할 경우
    동일한 인터페이스(load/save/touch/destroy/sweep)를 가진 외부 저장소로 교체합니다.
    """

    def __init__(
        self,
        secret: str,
        max_age: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("Session secret must not be empty")
        self.max_age = max_age
        self._clock = clock
        self._serializer = URLSafeTimedSerializer(secret_key=secret, salt=SESSION_SALT)
        self._records: Dict[str, Tuple[float, Dict[str, Any]]] = {}

    # --- cookie signing ---

    def sign(self, session_id: str) -> str:
        return self._serializer.dumps(session_id)

    def unsign(self, value: Optional[str]) -> Optional[str]:
        """Return the session ID carried by a cookie value, or None if it is invalid."""
        if not value:
            return None
        try:
            session_id = self._serializer.loads(value, max_age=self.max_age)
        except BadData:
            return None
        return session_id if isinstance(session_id, str) else None

    # --- records ---

    def new_session(self) -> Session:
        return Session(secrets.token_urlsafe(32), is_new=True)

    async def load(self, session_id: str) -> Optional[Session]:
        record = self._records.get(session_id)
        if record is None:
            return None
        expires_at, data = record
        if expires_at <= self._clock():
            del self._records[session_id]
            return None
        return Session(session_id, copy.deepcopy(data))

    async def save(self, session: Session) -> None:
        self._records[session.session_id] = (
            self._clock() + self.max_age,
            copy.deepcopy(session.data),
        )
        session.is_new = False
        session.modified = False

    async def touch(self, session: Session) -> None:
        record = self._records.get(session.session_id)
        if record is None:
            await self.save(session)
            return
        self._records[session.session_id] = (self._clock() + self.max_age, record[1])

    async def destroy(self, session_id: str) -> None:
        self._records.pop(session_id, None)

    def sweep(self) -> int:
        now = self._clock()
        expired = [sid for sid, (expires_at, _) in self._records.items() if expires_at <= now]
        for sid in expired:
            del self._records[sid]
        return len(expired)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._records

    def __len__(self) -> int:
        return len(self._records)


def session_store_error_response() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Session store failure"},
    )


def _mark_failed(request: Request) -> None:
    # 실패한 요청의 세션은 미들웨어가 저장하거나 쿠키로 발급하지 않음
    request.state.session_failed = True


async def save_session(request: Request) -> None:
    """Persist the request's session, raising SessionStoreError on failure."""
    store: MemorySessionStore = request.app.state.session_store
    try:
        await store.save(request.state.session)
    except SessionStoreError:
        _mark_failed(request)
        raise
    except Exception as exc:
        _mark_failed(request)
        raise SessionStoreError(f"Failed to save session: {exc}") from exc


async def regenerate_session(request: Request) -> Session:
    """Destroy the current session record and attach a fresh, empty one.

    Returns:
        새로 발급된 세션 (요청 종료 시 미들웨어가 저장 및 쿠키 설정)
    """
    store: MemorySessionStore = request.app.state.session_store
    old = request.state.session
    try:
        await store.destroy(old.session_id)
    except SessionStoreError:
        _mark_failed(request)
        raise
    except Exception as exc:
        _mark_failed(request)
        raise SessionStoreError(f"Failed to regenerate session: {exc}") from exc

    session = store.new_session()
    request.state.session = session
    logger.info("Session regenerated")
    return session


class SessionMiddleware(BaseHTTPMiddleware):
    """Attach a server-side session to every request.

    - 쿠키가 없거나 서명/만료 검증 실패 시 새 세션 발급
    - 응답 시 새 세션 또는 변경된 세션은 저장, 그 외에는 만료 시간만 연장
    - 세션 쿠키는 매 응답마다 갱신 (sliding expiry)
    - 핸들러에서 세션 저장소가 실패한 요청은 저장/쿠키 발급 생략
    - exempt_paths(헬스 체크 등)는 세션을 만들지 않음
    - 미들웨어 자체의 저장소 실패는 500 {"detail": "Session store failure"}
    """

    def __init__(
        self,
        app,
        cookie_name: str,
        max_age: int,
        secure: bool = False,
        exempt_paths: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.secure = secure
        self.exempt_paths = frozenset(exempt_paths)

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        store: MemorySessionStore = request.app.state.session_store

        session = None
        session_id = store.unsign(request.cookies.get(self.cookie_name))
        try:
            if session_id:
                session = await store.load(session_id)
        except Exception as exc:
            logger.error(f"Session store failure loading session on {request.url.path}: {exc}", exc_info=exc)
            return session_store_error_response()
        if session is None:
            session = store.new_session()
        request.state.session = session

        response = await call_next(request)

        if getattr(request.state, "session_failed", False):
            return response

        # 핸들러가 regenerate 했을 수 있으므로 다시 읽음
        session = request.state.session
        try:
            if session.is_new or session.modified:
                await store.save(session)
            else:
                await store.touch(session)
        except Exception as exc:
            logger.error(f"Session store failure saving session on {request.url.path}: {exc}", exc_info=exc)
            return session_store_error_response()

        response.set_cookie(
            self.cookie_name,
            store.sign(session.session_id),
            max_age=self.max_age,
            httponly=True,
            secure=self.secure,
            samesite="lax",
            path="/",
        )
        return response
