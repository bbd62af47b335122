"""Auth Providers

TickTick Authorization Code + PKCE 인증 Provider.
"""

from ticktick_oauth.auth.providers.base import (
    DEFAULT_REDIRECT_URI,
    AuthStatus,
    Credentials,
)
from ticktick_oauth.auth.providers.ticktick_provider import (
    TickTickProvider,
    TokenResponse,
)

__all__ = [
    "AuthStatus",
    "Credentials",
    "DEFAULT_REDIRECT_URI",
    "TickTickProvider",
    "TokenResponse",
]
