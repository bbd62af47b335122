"""Custom authentication exceptions.

인증 관련 예외 클래스 정의.
설정 오류, 토큰 교환/갱신 실패, 재인증 필요 상태를 구분하는 계층 구조 제공.
"""


class AuthenticationError(Exception):
    """기본 인증 예외.

    모든 인증 관련 예외의 베이스 클래스.

    Attributes:
        provider: 인증 제공자 이름 (예: 'ticktick')
    """

    def __init__(self, message: str, provider: str | None = None):
        self.provider = provider
        super().__init__(message)


class MissingConfigurationError(AuthenticationError):
    """필수 설정 누락.

    client_id, client_secret 또는 진행 중인 PKCE verifier가 없음.
    사용자가 설정을 수정해야 하며 재시도하지 않음.

    Attributes:
        missing: 누락된 필드 이름 목록
    """

    def __init__(
        self,
        message: str,
        missing: list[str] | None = None,
        provider: str | None = None,
    ):
        self.missing = list(missing or [])
        super().__init__(message, provider)


class OAuthError(AuthenticationError):
    """OAuth 플로우 에러.

    OAuth 콜백 또는 토큰 엔드포인트 호출 실패를 나타냄.

    Attributes:
        error_code: OAuth 에러 코드 (예: 'invalid_grant', 'access_denied')
        provider: 인증 제공자 이름
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider: str | None = None
    ):
        self.error_code = error_code
        super().__init__(message, provider)


class TokenExchangeError(OAuthError):
    """인증 코드 → 토큰 교환 실패.

    비-200 응답 또는 전송 오류. 진단을 위해 status/body 보관.

    Attributes:
        status_code: HTTP 상태 코드 (전송 오류 시 None)
        body: 응답 본문 (전송 오류 시 None)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        error_code: str | None = None,
        provider: str | None = None,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message, error_code=error_code, provider=provider)


class StateMismatchError(TokenExchangeError):
    """콜백 state가 저장된 pending state와 불일치.

    이전 플로우의 state이거나 CSRF 시도일 수 있음.
    """
    pass


class TokenRefreshError(OAuthError):
    """Refresh token 갱신 실패.

    호출자에게 전파되어 재인증을 유도해야 함.

    Attributes:
        status_code: HTTP 상태 코드 (전송 오류 시 None)
        body: 응답 본문 (전송 오류 시 None)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        error_code: str | None = None,
        provider: str | None = None,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message, error_code=error_code, provider=provider)


class TokenNotFoundError(AuthenticationError):
    """토큰을 찾을 수 없음.

    저장된 토큰이 없어 새 로그인이 필요함을 나타냄.
    """
    pass


class NoRefreshTokenError(TokenNotFoundError):
    """저장된 refresh token 없음.

    갱신이 불가능하므로 전체 인증 플로우를 다시 수행해야 함.
    """
    pass


class ReauthenticationRequiredError(AuthenticationError):
    """재인증 필요.

    Freshness guard가 토큰 갱신 실패를 감싸서 발생시킴.
    원인 예외는 __cause__로 연결됨.
    """
    pass


class CredentialStorageError(AuthenticationError):
    """자격증명 저장소 사용 불가.

    알 수 없는 backend 설정, OS 키체인 접근 실패 등.
    """
    pass
