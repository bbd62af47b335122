"""Credentials / CredentialStore 테스트"""

import json
import os
from unittest.mock import patch

import pytest
from keyring.errors import KeyringError

from ticktick_oauth.auth.exceptions import CredentialStorageError
from ticktick_oauth.auth.providers.base import (
    DEFAULT_REDIRECT_URI,
    AuthStatus,
    Credentials,
)
from ticktick_oauth.auth.storage.credential_store import (
    CredentialStore,
    JsonFileBackend,
    KeyringBackend,
    MemoryBackend,
    default_storage_dir,
    get_default_backend,
)


class TestCredentials:
    """Credentials 데이터 클래스 테스트"""

    def test_defaults(self):
        """새 설정의 기본값"""
        creds = Credentials()
        assert creds.access_token == ""
        assert creds.refresh_token is None
        assert creds.token_expiry is None
        assert creds.redirect_uri == DEFAULT_REDIRECT_URI
        assert creds.has_pending_flow is False

    def test_no_expiry_is_fresh(self):
        """만료 시각이 없으면 만료되지 않음"""
        assert Credentials(access_token="at").is_expired(now=10**15) is False

    @pytest.mark.parametrize(
        "expiry,now,expected",
        [
            (2_000.0, 1_000.0, False),
            (2_000.0, 2_000.0, False),
            (2_000.0, 2_000.5, True),
            (2_000.0, 9_000.0, True),
        ],
    )
    def test_is_expired(self, expiry, now, expected):
        """now > token_expiry 일 때만 만료"""
        creds = Credentials(access_token="at", token_expiry=expiry)
        assert creds.is_expired(now=now) is expected

    def test_status(self):
        """상태 전이"""
        creds = Credentials(client_id="abc")
        assert creds.status(now=0) == AuthStatus.UNAUTHENTICATED

        creds.pending_verifier = "v"
        assert creds.status(now=0) == AuthStatus.PENDING

        creds.access_token = "at"
        creds.token_expiry = 100.0
        assert creds.status(now=50) == AuthStatus.AUTHENTICATED
        assert creds.status(now=150) == AuthStatus.EXPIRED

    def test_from_dict_ignores_unknown_keys(self):
        """알 수 없는 키 무시, 누락 키 기본값"""
        creds = Credentials.from_dict(
            {"client_id": "abc", "access_token": "at", "legacy": 1}
        )
        assert creds.client_id == "abc"
        assert creds.access_token == "at"
        assert creds.client_secret == ""

    def test_from_dict_empty(self):
        """빈 데이터는 기본 설정"""
        assert Credentials.from_dict(None) == Credentials()
        assert Credentials.from_dict({"redirect_uri": ""}).redirect_uri == (
            DEFAULT_REDIRECT_URI
        )

    def test_dict_round_trip(self):
        """to_dict / from_dict"""
        creds = Credentials(
            client_id="abc",
            access_token="at",
            refresh_token="rt",
            token_expiry=123.5,
            pending_state="s",
        )
        assert Credentials.from_dict(creds.to_dict()) == creds


class TestCredentialStore:
    """CredentialStore 테스트"""

    def test_loads_from_backend(self):
        """생성 시 backend에서 로드"""
        store = CredentialStore(MemoryBackend({"client_id": "abc"}))
        assert store.credentials.client_id == "abc"

    def test_update_persists(self):
        """변경마다 저장"""
        backend = MemoryBackend()
        store = CredentialStore(backend)

        store.update(access_token="at", token_expiry=42.0)

        assert backend.save_count == 1
        assert backend.data["access_token"] == "at"
        assert backend.data["token_expiry"] == 42.0

    def test_update_rejects_unknown_fields(self):
        """알 수 없는 필드는 거부, 저장하지 않음"""
        backend = MemoryBackend()
        store = CredentialStore(backend)

        with pytest.raises(TypeError):
            store.update(password="x")
        assert backend.save_count == 0

    def test_clear_tokens_keeps_client_settings(self):
        """토큰만 삭제"""
        store = CredentialStore(
            MemoryBackend(
                {
                    "client_id": "abc",
                    "client_secret": "secret",
                    "access_token": "at",
                    "refresh_token": "rt",
                    "token_expiry": 1.0,
                    "pending_verifier": "v",
                }
            )
        )
        creds = store.clear_tokens()

        assert creds.client_id == "abc"
        assert creds.client_secret == "secret"
        assert creds.access_token == ""
        assert creds.refresh_token is None
        assert creds.token_expiry is None
        assert creds.pending_verifier is None

    def test_force_expiry(self):
        """1ms 과거로 만료"""
        store = CredentialStore(MemoryBackend({"access_token": "at"}))
        creds = store.force_expiry(now=5_000.0)
        assert creds.token_expiry == 4_999.0
        assert creds.is_expired(now=5_000.0)

    def test_reload(self):
        """다른 writer의 변경 반영"""
        backend = MemoryBackend()
        store = CredentialStore(backend)
        backend.save({"client_id": "changed"})

        assert store.reload().client_id == "changed"


class TestJsonFileBackend:
    """파일 backend 테스트"""

    def test_save_and_load(self, tmp_path):
        """저장 및 로드"""
        backend = JsonFileBackend(tmp_path / "nested" / "credentials.json")
        backend.save({"client_id": "abc"})

        assert backend.load() == {"client_id": "abc"}

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_file_permissions(self, tmp_path):
        """사용자만 읽기/쓰기"""
        path = tmp_path / "credentials.json"
        JsonFileBackend(path).save({"client_id": "abc"})
        assert path.stat().st_mode & 0o777 == 0o600

    def test_load_nonexistent(self, tmp_path):
        """존재하지 않는 파일"""
        assert JsonFileBackend(tmp_path / "missing.json").load() is None

    def test_load_corrupted(self, tmp_path):
        """깨진 파일은 무시"""
        path = tmp_path / "credentials.json"
        path.write_text("{not json")
        assert JsonFileBackend(path).load() is None

    @pytest.mark.parametrize("content", ["[1, 2]", '"text"', "null", "42"])
    def test_load_non_object(self, tmp_path, content):
        """JSON 객체가 아니면 무시, 기본 설정으로 시작"""
        path = tmp_path / "credentials.json"
        path.write_text(content)

        assert JsonFileBackend(path).load() is None
        assert CredentialStore(JsonFileBackend(path)).credentials == Credentials()

    def test_store_survives_restart(self, tmp_path):
        """프로세스 재시작 후에도 유지"""
        path = tmp_path / "credentials.json"
        CredentialStore(JsonFileBackend(path)).update(refresh_token="rt")

        assert CredentialStore(JsonFileBackend(path)).credentials.refresh_token == "rt"


class TestKeyringBackend:
    """keyring backend 테스트"""

    def test_save(self):
        """JSON 직렬화 후 저장"""
        with patch(
            "ticktick_oauth.auth.storage.credential_store.keyring"
        ) as mock_keyring:
            KeyringBackend().save({"client_id": "abc"})

        mock_keyring.set_password.assert_called_once_with(
            "ticktick-oauth", "default", json.dumps({"client_id": "abc"})
        )

    def test_load(self):
        """저장된 항목 로드"""
        with patch(
            "ticktick_oauth.auth.storage.credential_store.keyring"
        ) as mock_keyring:
            mock_keyring.get_password.return_value = '{"client_id": "abc"}'
            assert KeyringBackend().load() == {"client_id": "abc"}

    def test_keyring_failure(self):
        """키체인 접근 실패는 저장소 예외로 변환"""
        with patch(
            "ticktick_oauth.auth.storage.credential_store.keyring"
        ) as mock_keyring:
            mock_keyring.get_password.side_effect = KeyringError("locked")
            mock_keyring.set_password.side_effect = KeyringError("locked")

            with pytest.raises(CredentialStorageError, match="locked"):
                KeyringBackend().load()
            with pytest.raises(CredentialStorageError, match="locked"):
                KeyringBackend().save({"client_id": "abc"})

    @pytest.mark.parametrize("raw", ["[1, 2]", "{broken"])
    def test_load_unusable_entry(self, raw):
        """깨졌거나 객체가 아닌 항목은 무시"""
        with patch(
            "ticktick_oauth.auth.storage.credential_store.keyring"
        ) as mock_keyring:
            mock_keyring.get_password.return_value = raw
            assert KeyringBackend().load() is None

    def test_load_missing(self):
        """항목 없음"""
        with patch(
            "ticktick_oauth.auth.storage.credential_store.keyring"
        ) as mock_keyring:
            mock_keyring.get_password.return_value = None
            assert KeyringBackend().load() is None


class TestDefaults:
    """환경 변수 기반 기본값 테스트"""

    def test_storage_dir_override(self, credentials_tmp_dir):
        """TICKTICK_OAUTH_HOME 우선"""
        assert default_storage_dir() == credentials_tmp_dir

    def test_default_backend_file(self, credentials_tmp_dir):
        backend = get_default_backend()
        assert isinstance(backend, JsonFileBackend)
        assert backend.path == credentials_tmp_dir / "credentials.json"

    def test_default_backend_keyring(self, monkeypatch):
        monkeypatch.setenv("TICKTICK_OAUTH_BACKEND", "keyring")
        assert isinstance(get_default_backend(), KeyringBackend)

    def test_default_backend_unknown(self, monkeypatch):
        monkeypatch.setenv("TICKTICK_OAUTH_BACKEND", "sqlite")
        with pytest.raises(CredentialStorageError, match="sqlite"):
            get_default_backend()

    def test_store_uses_default_backend(self, credentials_tmp_dir):
        """backend 미지정 시 파일 backend"""
        CredentialStore().update(client_id="abc")
        assert (credentials_tmp_dir / "credentials.json").exists()
