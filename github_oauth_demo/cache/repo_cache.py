"""In-memory TTL cache for GitHub repository listings.

사용자별 저장소 목록을 TTL 동안 보관하는 캐시 서비스입니다.
- 키: 액세스 토큰의 SHA-256 digest (사용자 간 데이터 공유 방지)
- 만료된 항목은 조회 시 제거되고, 스케줄러가 주기적으로 sweep 합니다.
- 용량 초과 시 만료가 가장 임박한 항목부터 제거합니다.
"""
from __future__ import annotations

import hashlib
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


def cache_key_for_token(token: str) -> str:
    """Derive a per-user cache key without keeping the raw token as a key."""
    digest = hashlib.sha256(token.encode("utf-8")).hexdigest()
    return f"repos:{digest[:32]}"


class RepoCache:
    """TTL cache with a bounded number of entries."""

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        if key not in self._entries and len(self._entries) >= self.max_entries:
            self.sweep()
            if len(self._entries) >= self.max_entries:
                victim = min(self._entries, key=lambda k: self._entries[k][0])
                del self._entries[victim]
                logger.debug("Repo cache full, evicted %s", victim)
        self._entries[key] = (self._clock() + self.ttl_seconds, value)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        """Remove expired entries.

        Returns:
            제거된 항목 수
        """
        now = self._clock()
        expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None
