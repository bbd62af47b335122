"""TickTick OAuth Auth Module

Authorization Code + PKCE 인증, 토큰 저장 및 자동 갱신.

Example:
    from ticktick_oauth.auth import CredentialStore, TickTickProvider

    store = CredentialStore()
    provider = TickTickProvider(store)
    provider.start_auth_flow()
    await provider.exchange_auth_code_for_token(code)
"""

from ticktick_oauth.auth.exceptions import (
    AuthenticationError,
    CredentialStorageError,
    MissingConfigurationError,
    NoRefreshTokenError,
    OAuthError,
    ReauthenticationRequiredError,
    StateMismatchError,
    TokenExchangeError,
    TokenNotFoundError,
    TokenRefreshError,
)
from ticktick_oauth.auth.providers.base import AuthStatus, Credentials
from ticktick_oauth.auth.providers.ticktick_provider import TickTickProvider
from ticktick_oauth.auth.storage.credential_store import (
    CredentialBackend,
    CredentialStore,
    JsonFileBackend,
    KeyringBackend,
    MemoryBackend,
)

__all__ = [
    # Core
    "AuthStatus",
    "Credentials",
    "TickTickProvider",
    # Storage
    "CredentialBackend",
    "CredentialStore",
    "JsonFileBackend",
    "KeyringBackend",
    "MemoryBackend",
    # Exceptions
    "AuthenticationError",
    "CredentialStorageError",
    "MissingConfigurationError",
    "OAuthError",
    "TokenExchangeError",
    "StateMismatchError",
    "TokenRefreshError",
    "TokenNotFoundError",
    "NoRefreshTokenError",
    "ReauthenticationRequiredError",
]
