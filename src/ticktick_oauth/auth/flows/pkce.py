"""PKCE (Proof Key for Code Exchange) primitives.

RFC 7636 S256 방식의 code_verifier / code_challenge 생성과
anti-CSRF state 토큰 생성.
"""

import base64
import hashlib
import secrets
import string
from dataclasses import dataclass

ALPHABET = string.ascii_letters + string.digits

# RFC 7636: verifier는 43-128자
VERIFIER_LENGTH = 64
STATE_LENGTH = 32


@dataclass
class PKCEChallenge:
    """PKCE (Proof Key for Code Exchange) 챌린지."""

    code_verifier: str
    code_challenge: str
    code_challenge_method: str = "S256"


def random_string(length: int) -> str:
    """62자 영숫자 알파벳에서 균등 추출한 랜덤 문자열.

    Args:
        length: 문자열 길이

    Returns:
        str: 랜덤 문자열
    """
    if length <= 0:
        raise ValueError(f"length must be positive, got {length}")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def sha256(value: str) -> bytes:
    """UTF-8 인코딩된 문자열의 SHA-256 digest."""
    return hashlib.sha256(value.encode("utf-8")).digest()


def base64url_encode(data: bytes) -> str:
    """base64url 인코딩 (padding 제거)."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def compute_code_challenge(code_verifier: str) -> str:
    """verifier로부터 S256 code_challenge 계산."""
    return base64url_encode(sha256(code_verifier))


def generate_pkce_pair() -> PKCEChallenge:
    """PKCE 챌린지 생성.

    Returns:
        PKCEChallenge: code_verifier와 code_challenge 포함
    """
    code_verifier = random_string(VERIFIER_LENGTH)

    return PKCEChallenge(
        code_verifier=code_verifier,
        code_challenge=compute_code_challenge(code_verifier),
        code_challenge_method="S256",
    )


def generate_state() -> str:
    """anti-CSRF state 토큰 생성."""
    return random_string(STATE_LENGTH)
