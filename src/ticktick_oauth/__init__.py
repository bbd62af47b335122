"""TickTick OAuth - Authorization Code + PKCE client for the TickTick Open API."""

__version__ = "1.0.0"

from ticktick_oauth.auth import (  # noqa: E402
    AuthenticationError,
    CredentialStore,
    Credentials,
    ReauthenticationRequiredError,
    TickTickProvider,
)
from ticktick_oauth.clients import TaskClient  # noqa: E402

__all__ = [
    "TickTickProvider",
    "CredentialStore",
    "Credentials",
    "TaskClient",
    "AuthenticationError",
    "ReauthenticationRequiredError",
]
