"""Credentials 데이터 모델

client 설정, 발급된 토큰, 진행 중인 PKCE 교환 상태를 한 곳에 보관.
"""

import time
from dataclasses import asdict, dataclass, fields
from enum import Enum

DEFAULT_REDIRECT_URI = "http://127.0.0.1:3000/callback"


def now_ms() -> float:
    """현재 시각 (epoch milliseconds)."""
    return time.time() * 1000


class AuthStatus(str, Enum):
    """인증 상태."""

    UNAUTHENTICATED = "unauthenticated"
    PENDING = "pending"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"


@dataclass
class Credentials:
    """인증 자격증명 데이터 클래스

    token_expiry는 epoch milliseconds.
    pending_verifier / pending_state는 진행 중인 단일 PKCE 교환용 슬롯.
    """

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = DEFAULT_REDIRECT_URI
    access_token: str = ""
    refresh_token: str | None = None
    token_expiry: float | None = None
    pending_verifier: str | None = None
    pending_state: str | None = None

    def is_expired(self, now: float | None = None) -> bool:
        """토큰 만료 여부 확인

        만료 시각이 없으면 유효한 것으로 간주.
        """
        if self.token_expiry is None:
            return False
        if now is None:
            now = now_ms()
        return now > self.token_expiry

    @property
    def has_pending_flow(self) -> bool:
        return bool(self.pending_verifier)

    def status(self, now: float | None = None) -> AuthStatus:
        """현재 인증 상태"""
        if self.access_token:
            if self.is_expired(now):
                return AuthStatus.EXPIRED
            return AuthStatus.AUTHENTICATED
        if self.has_pending_flow:
            return AuthStatus.PENDING
        return AuthStatus.UNAUTHENTICATED

    def to_dict(self) -> dict:
        """딕셔너리로 변환 (저장용)"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> "Credentials":
        """딕셔너리에서 생성

        알 수 없는 키는 무시, 누락된 키는 기본값 사용.
        """
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if not values.get("redirect_uri"):
            values["redirect_uri"] = DEFAULT_REDIRECT_URI
        return cls(**values)
