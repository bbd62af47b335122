"""OAuth Flows

Authorization Code + PKCE 플로우 구성 요소.
"""

from ticktick_oauth.auth.flows.authorization import (
    AuthorizationRequest,
    looks_like_url,
    parse_callback_url,
)
from ticktick_oauth.auth.flows.pkce import (
    PKCEChallenge,
    base64url_encode,
    compute_code_challenge,
    generate_pkce_pair,
    generate_state,
    random_string,
    sha256,
)

__all__ = [
    # Authorization request
    "AuthorizationRequest",
    "parse_callback_url",
    "looks_like_url",
    # PKCE
    "PKCEChallenge",
    "generate_pkce_pair",
    "generate_state",
    "compute_code_challenge",
    "random_string",
    "sha256",
    "base64url_encode",
]
