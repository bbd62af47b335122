"""Shared test fixtures."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from rich.console import Console

from ticktick_oauth.auth.providers.ticktick_provider import TickTickProvider
from ticktick_oauth.auth.storage.credential_store import CredentialStore, MemoryBackend


@pytest.fixture(autouse=True)
def credentials_tmp_dir(tmp_path, monkeypatch):
    """Redirect credential files to a tmp directory.

    Prevents tests from touching the real ~/.config/ticktick-oauth.
    """
    monkeypatch.setenv("TICKTICK_OAUTH_HOME", str(tmp_path / "ticktick-oauth"))
    monkeypatch.setenv("TICKTICK_OAUTH_BACKEND", "file")
    return tmp_path / "ticktick-oauth"


@pytest.fixture
def backend():
    """client 설정만 있는 메모리 backend"""
    return MemoryBackend({"client_id": "abc", "client_secret": "secret"})


@pytest.fixture
def store(backend):
    return CredentialStore(backend)


@pytest.fixture
def provider(store):
    """브라우저를 열지 않고 출력도 하지 않는 provider"""
    return TickTickProvider(store, console=Console(quiet=True), open_browser=False)


@pytest.fixture
def make_response():
    """httpx.Response 모의 객체 생성기"""

    def _make(status_code: int = 200, json_data=None, text: str | None = None):
        response = MagicMock()
        response.status_code = status_code
        if isinstance(json_data, Exception):
            response.json.side_effect = json_data
        else:
            response.json.return_value = json_data
        if text is None:
            text = json.dumps(json_data) if not isinstance(json_data, Exception) else ""
        response.text = text
        return response

    return _make


@pytest.fixture
def mock_http():
    """httpx.AsyncClient 패치, 요청을 받는 AsyncMock 인스턴스 반환"""
    with patch(
        "ticktick_oauth.auth.providers.ticktick_provider.httpx.AsyncClient"
    ) as mock_client:
        mock_instance = AsyncMock()
        mock_client.return_value.__aenter__.return_value = mock_instance
        yield mock_instance
