"""Session payload model.

서버 측 세션에 저장되는 데이터를 표현합니다.
브라우저 쿠키에는 서명된 세션 ID만 저장됩니다.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class SessionData(BaseModel):
    """Typed view over the server-side session contents.

    Attributes:
        token: GitHub OAuth access token (로그인 완료 후 설정)
        user: 인증된 사용자 정보 (로그아웃 시 제거)
    """
    token: Optional[str] = Field(None, description="GitHub OAuth access token")
    user: Optional[Dict[str, Any]] = Field(None, description="Authenticated user info")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @classmethod
    def from_session(cls, data: Dict[str, Any]) -> "SessionData":
        return cls(token=data.get("token"), user=data.get("user"))
