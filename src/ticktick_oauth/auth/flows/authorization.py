"""Authorization request helpers.

브라우저에서 열 인증 URL 생성과, 리디렉션된 콜백 URL에서
code/state 추출. 콜백 수신 자체(로컬 서버, relay 페이지)는 호스트 몫.
"""

import logging
from dataclasses import dataclass
from urllib.parse import parse_qs, urlencode, urlparse

from ticktick_oauth.auth.exceptions import TokenExchangeError
from ticktick_oauth.auth.flows.pkce import PKCEChallenge

logger = logging.getLogger(__name__)


@dataclass
class AuthorizationRequest:
    """인증 요청 파라미터."""

    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    scope: str
    state: str
    pkce: PKCEChallenge

    def to_url(self) -> str:
        """인증 URL 생성.

        Returns:
            str: 인증 URL
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "code_challenge": self.pkce.code_challenge,
            "code_challenge_method": self.pkce.code_challenge_method,
            "state": self.state,
        }

        return f"{self.authorization_endpoint}?{urlencode(params)}"


def parse_callback_url(callback_url: str) -> tuple[str, str | None]:
    """콜백 URL에서 code와 state 추출.

    Args:
        callback_url: 브라우저에서 복사한 콜백 URL

    Returns:
        tuple[str, str | None]: (code, state)

    Raises:
        TokenExchangeError: 에러 응답이거나 code가 없을 때
    """
    parsed = urlparse(callback_url.strip())
    params = parse_qs(parsed.query)

    if "error" in params:
        error = params["error"][0]
        error_desc = params.get("error_description", [error])[0]
        logger.error("OAuth error in callback: %s", error)
        raise TokenExchangeError(
            f"Authorization denied: {error_desc}", error_code=error
        )

    if "code" not in params:
        raise TokenExchangeError("No 'code' parameter found in callback URL")

    code = params["code"][0]
    state = params.get("state", [None])[0]

    return code, state


def looks_like_url(value: str) -> bool:
    """붙여넣은 값이 콜백 URL인지, 코드 자체인지 판별."""
    parsed = urlparse(value.strip())
    return bool(parsed.scheme and (parsed.netloc or parsed.query))
