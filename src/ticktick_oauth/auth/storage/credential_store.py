"""Credential Store

자격증명의 유일한 소유자. 모든 변경은 update()를 거쳐 즉시 저장됨.
실제 저장 방식은 호스트가 주입하는 backend (load/save)에 위임.
"""

import json
import logging
import os
import platform
from dataclasses import fields
from pathlib import Path
from typing import Protocol

import keyring
from keyring.errors import KeyringError

from ticktick_oauth.auth.exceptions import CredentialStorageError
from ticktick_oauth.auth.providers.base import Credentials, now_ms

logger = logging.getLogger(__name__)

SERVICE_NAME = "ticktick-oauth"


class CredentialBackend(Protocol):
    """호스트 제공 영속화 인터페이스."""

    def load(self) -> dict | None: ...

    def save(self, data: dict) -> None: ...


class MemoryBackend:
    """메모리 저장소 (테스트, 임베딩 호스트용)"""

    def __init__(self, data: dict | None = None):
        self.data = dict(data) if data else None
        self.save_count = 0

    def load(self) -> dict | None:
        return dict(self.data) if self.data is not None else None

    def save(self, data: dict) -> None:
        self.data = dict(data)
        self.save_count += 1


def _decode(raw: str, source: str) -> dict | None:
    """저장된 JSON 디코딩. 객체가 아니거나 깨졌으면 None."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Ignoring unreadable credentials in %s: %s", source, e)
        return None
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring credentials in %s: expected an object, got %s",
            source,
            type(data).__name__,
        )
        return None
    return data


def default_storage_dir() -> Path:
    """OS별 기본 저장 디렉토리

    TICKTICK_OAUTH_HOME 환경 변수가 있으면 우선 사용.
    """
    override = os.environ.get("TICKTICK_OAUTH_HOME")
    if override:
        return Path(override)

    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home()))
    elif system == "Darwin":  # macOS
        base = Path.home() / "Library" / "Application Support"
    else:  # Linux
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / "ticktick-oauth"


class JsonFileBackend:
    """JSON 파일 저장소 (사용자만 읽기/쓰기)"""

    def __init__(self, path: Path | None = None):
        self.path = path or default_storage_dir() / "credentials.json"

    def load(self) -> dict | None:
        if not self.path.exists():
            return None
        with open(self.path) as f:
            return _decode(f.read(), str(self.path))

    def save(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
        # 보안: 사용자만 읽기/쓰기
        self.path.chmod(0o600)


class KeyringBackend:
    """OS 자격증명 저장소 (keyring)

    - Windows: Credential Locker
    - macOS: Keychain
    - Linux: libsecret
    """

    def __init__(self, service: str = SERVICE_NAME, username: str = "default"):
        self.service = service
        self.username = username

    def load(self) -> dict | None:
        try:
            raw = keyring.get_password(self.service, self.username)
        except KeyringError as e:
            raise CredentialStorageError(f"Keyring read failed: {e}") from e
        if not raw:
            return None
        return _decode(raw, f"keyring:{self.service}")

    def save(self, data: dict) -> None:
        try:
            keyring.set_password(self.service, self.username, json.dumps(data))
        except KeyringError as e:
            raise CredentialStorageError(f"Keyring write failed: {e}") from e


def get_default_backend() -> CredentialBackend:
    """TICKTICK_OAUTH_BACKEND 환경 변수로 backend 선택 (file | keyring)."""
    kind = os.environ.get("TICKTICK_OAUTH_BACKEND", "file").lower()
    if kind == "keyring":
        return KeyringBackend()
    if kind != "file":
        raise CredentialStorageError(
            f"Unknown credential backend: {kind!r} (expected 'file' or 'keyring')"
        )
    return JsonFileBackend()


class CredentialStore:
    """자격증명 저장소

    Credentials 인스턴스를 소유하며, 변경 시마다 backend에 저장.

    Example:
        store = CredentialStore(JsonFileBackend())
        store.update(client_id="abc", client_secret="xyz")
        print(store.credentials.access_token)
    """

    _FIELDS = frozenset(f.name for f in fields(Credentials))

    def __init__(self, backend: CredentialBackend | None = None):
        self.backend = backend if backend is not None else get_default_backend()
        self._credentials = Credentials.from_dict(self.backend.load())

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def reload(self) -> Credentials:
        """backend에서 다시 로드"""
        self._credentials = Credentials.from_dict(self.backend.load())
        return self._credentials

    def save(self) -> None:
        self.backend.save(self._credentials.to_dict())

    def update(self, **changes) -> Credentials:
        """필드 변경 후 저장

        Args:
            **changes: Credentials 필드 이름과 새 값

        Returns:
            Credentials: 변경된 자격증명
        """
        unknown = set(changes) - self._FIELDS
        if unknown:
            raise TypeError(f"Unknown credential fields: {sorted(unknown)}")
        for name, value in changes.items():
            setattr(self._credentials, name, value)
        self.save()
        return self._credentials

    def clear_tokens(self) -> Credentials:
        """토큰과 진행 중인 플로우 삭제 (client 설정은 유지)"""
        return self.update(
            access_token="",
            refresh_token=None,
            token_expiry=None,
            pending_verifier=None,
            pending_state=None,
        )

    def force_expiry(self, now: float | None = None) -> Credentials:
        """토큰을 즉시 만료 처리 (1ms 과거)"""
        if now is None:
            now = now_ms()
        return self.update(token_expiry=now - 1)
