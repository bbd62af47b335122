"""TickTick Provider

TickTick Open API용 Authorization Code + PKCE 인증.
인증 URL 생성 → (브라우저에서 사용자 승인) → 코드 교환 → 만료 전 자동 갱신.
"""

import asyncio
import logging
import webbrowser
from dataclasses import dataclass

import httpx
from rich.console import Console
from rich.panel import Panel

from ticktick_oauth.auth.exceptions import (
    AuthenticationError,
    MissingConfigurationError,
    NoRefreshTokenError,
    ReauthenticationRequiredError,
    StateMismatchError,
    TokenExchangeError,
    TokenNotFoundError,
    TokenRefreshError,
)
from ticktick_oauth.auth.flows.authorization import AuthorizationRequest
from ticktick_oauth.auth.flows.pkce import generate_pkce_pair, generate_state
from ticktick_oauth.auth.providers.base import (
    DEFAULT_REDIRECT_URI,
    AuthStatus,
    Credentials,
    now_ms,
)
from ticktick_oauth.auth.storage.credential_store import CredentialStore

logger = logging.getLogger(__name__)


def _preview(value: str | None, length: int = 6) -> str | None:
    """로그용 토큰 미리보기."""
    if not value:
        return None
    return f"{value[:length]}..."


@dataclass
class TokenResponse:
    """토큰 응답."""

    access_token: str
    refresh_token: str | None
    expires_in: float


class TickTickProvider:
    """TickTick OAuth Provider.

    CredentialStore를 통해서만 자격증명을 읽고 쓴다.
    진행 중인 PKCE 교환은 한 번에 하나 (새 플로우가 이전 플로우를 덮어씀).

    Example:
        provider = TickTickProvider(CredentialStore())
        provider.start_auth_flow()
        await provider.exchange_auth_code_for_token(code)
        await provider.ensure_fresh_token()
    """

    AUTHORIZATION_ENDPOINT = "https://ticktick.com/oauth/authorize"
    TOKEN_ENDPOINT = "https://ticktick.com/oauth/token"
    SCOPE = "tasks:read tasks:write"
    # 발급 시점에 expires_in의 85%만 사용 (15% 여유)
    EXPIRY_MARGIN = 0.85

    def __init__(
        self,
        store: CredentialStore,
        http_client: httpx.AsyncClient | None = None,
        console: Console | None = None,
        open_browser: bool = True,
        authorization_endpoint: str | None = None,
        token_endpoint: str | None = None,
    ):
        """초기화.

        Args:
            store: 자격증명 저장소
            http_client: 공유 HTTP 클라이언트 (None이면 요청마다 생성)
            console: 사용자 알림 출력용 콘솔
            open_browser: start_auth_flow에서 브라우저 자동 열기
            authorization_endpoint: 인증 엔드포인트 override
            token_endpoint: 토큰 엔드포인트 override
        """
        self.store = store
        self.console = console or Console()
        self.open_browser = open_browser
        self.authorization_endpoint = (
            authorization_endpoint or self.AUTHORIZATION_ENDPOINT
        )
        self.token_endpoint = token_endpoint or self.TOKEN_ENDPOINT
        self._http_client = http_client
        self._refresh_lock = asyncio.Lock()
        # 서버가 거부한 refresh token (같은 값으로 재시도하지 않음)
        self._rejected_refresh_token: str | None = None

    @property
    def name(self) -> str:
        return "ticktick"

    @property
    def display_name(self) -> str:
        return "TickTick"

    @property
    def credentials(self) -> Credentials:
        return self.store.credentials

    def status(self) -> AuthStatus:
        return self.store.credentials.status(now_ms())

    def compute_expiry(self, expires_in: float, issued_at: float) -> float:
        """발급 시각 기준 만료 시각 (epoch ms)."""
        return issued_at + expires_in * 1000 * self.EXPIRY_MARGIN

    # ------------------------------------------------------------------
    # Authorization Flow
    # ------------------------------------------------------------------

    def start_auth_flow(self) -> str:
        """인증 플로우 시작 (Step 1).

        PKCE 쌍과 state를 생성해 pending 슬롯에 저장하고,
        인증 URL을 브라우저로 연다. 결과를 기다리지 않음.

        Returns:
            str: 브라우저에서 열어야 할 인증 URL

        Raises:
            MissingConfigurationError: client_id 미설정
        """
        creds = self.store.credentials
        if not creds.client_id:
            raise MissingConfigurationError(
                "Please enter your Client ID in the settings.",
                missing=["client_id"],
                provider=self.name,
            )

        pkce = generate_pkce_pair()
        state = generate_state()
        if creds.has_pending_flow:
            logger.info("Discarding unfinished authorization flow")
        self.store.update(pending_verifier=pkce.code_verifier, pending_state=state)

        auth_url = AuthorizationRequest(
            authorization_endpoint=self.authorization_endpoint,
            client_id=creds.client_id,
            redirect_uri=creds.redirect_uri or DEFAULT_REDIRECT_URI,
            scope=self.SCOPE,
            state=state,
            pkce=pkce,
        ).to_url()
        logger.debug("Authorization flow started, state=%s", _preview(state))

        if self.open_browser:
            webbrowser.open(auth_url)
            self.console.print(
                Panel.fit(
                    "[bold cyan]OAuth flow initiated. "
                    "Please complete it in your browser.[/bold cyan]\n\n"
                    "If the browser did not open, visit:\n"
                    f"[link={auth_url}]{auth_url}[/link]",
                    title="[AUTH] TickTick Login",
                    border_style="cyan",
                )
            )
        else:
            self.console.print(
                Panel.fit(
                    "[bold cyan]Open this URL in your browser:[/bold cyan]\n\n"
                    f"[link={auth_url}]{auth_url}[/link]",
                    title="[AUTH] TickTick Login",
                    border_style="cyan",
                )
            )

        return auth_url

    async def exchange_auth_code_for_token(
        self, code: str, state: str | None = None
    ) -> Credentials:
        """인증 코드를 토큰으로 교환 (Step 2).

        Args:
            code: 인증 코드
            state: 콜백으로 돌아온 state (주어지면 pending state와 비교)

        Returns:
            Credentials: 갱신된 자격증명

        Raises:
            MissingConfigurationError: verifier, client_id, client_secret 누락
            StateMismatchError: state 불일치
            TokenExchangeError: 토큰 엔드포인트 실패
        """
        creds = self.store.credentials
        missing = [
            name
            for name, value in (
                ("code", code),
                ("pending_verifier", creds.pending_verifier),
                ("client_id", creds.client_id),
                ("client_secret", creds.client_secret),
            )
            if not value
        ]
        if missing:
            raise MissingConfigurationError(
                "Missing required credentials. Please update your settings.",
                missing=missing,
                provider=self.name,
            )

        if state is not None and state != creds.pending_state:
            logger.warning(
                "State mismatch: got %s, expected %s",
                _preview(state),
                _preview(creds.pending_state),
            )
            raise StateMismatchError(
                "State mismatch. Start the authorization flow again.",
                provider=self.name,
            )

        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": creds.redirect_uri or DEFAULT_REDIRECT_URI,
            "client_id": creds.client_id,
            "client_secret": creds.client_secret,
            "code_verifier": creds.pending_verifier,
        }

        try:
            token = await self._request_token(data, TokenExchangeError)
        except TokenExchangeError:
            # verifier는 일회용
            self.store.update(pending_verifier=None, pending_state=None)
            raise

        changes = {
            "access_token": token.access_token,
            "token_expiry": self.compute_expiry(token.expires_in, now_ms()),
            "pending_verifier": None,
            "pending_state": None,
        }
        if token.refresh_token:
            changes["refresh_token"] = token.refresh_token
        else:
            logger.warning("Token response did not include a refresh token")
        updated = self.store.update(**changes)

        logger.info("Access token obtained: %s", _preview(token.access_token))
        self.console.print(
            "[bold green][OK] TickTick access token obtained successfully![/bold green]"
        )
        return updated

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh_access_token(self) -> Credentials:
        """Refresh token으로 갱신.

        응답에 새 refresh token이 있을 때만 교체한다.

        Returns:
            Credentials: 갱신된 자격증명

        Raises:
            NoRefreshTokenError: 저장된 refresh token 없음
            TokenRefreshError: 토큰 엔드포인트 실패
        """
        creds = self.store.credentials
        if not creds.refresh_token:
            raise NoRefreshTokenError(
                "No refresh token available. Please reconnect.",
                provider=self.name,
            )

        data = {
            "grant_type": "refresh_token",
            "refresh_token": creds.refresh_token,
            "client_id": creds.client_id,
            "client_secret": creds.client_secret,
        }
        token = await self._request_token(data, TokenRefreshError)

        changes = {
            "access_token": token.access_token,
            "token_expiry": self.compute_expiry(token.expires_in, now_ms()),
        }
        if token.refresh_token:
            changes["refresh_token"] = token.refresh_token
        updated = self.store.update(**changes)

        logger.info(
            "Access token refreshed: %s (refresh token rotated: %s)",
            _preview(token.access_token),
            bool(token.refresh_token),
        )
        self.console.print("[bold green][OK] Access token refreshed.[/bold green]")
        return updated

    async def ensure_fresh_token(self) -> None:
        """인증된 API 호출 전 토큰 신선도 보장.

        만료 시각이 없으면 그대로 통과. 만료되었으면 한 번만 갱신 시도.
        동시 호출은 lock으로 직렬화되며, 대기 후 이미 갱신되었으면 건너뜀.

        Raises:
            ReauthenticationRequiredError: 갱신 실패
        """
        if not self.store.credentials.is_expired(now_ms()):
            return

        async with self._refresh_lock:
            creds = self.store.credentials
            if not creds.is_expired(now_ms()):
                logger.debug("Token already refreshed by a concurrent caller")
                return

            if (
                creds.refresh_token
                and creds.refresh_token == self._rejected_refresh_token
            ):
                logger.warning("Refresh token was already rejected; not retrying")
                raise ReauthenticationRequiredError(
                    "Reauthentication required: refresh token was rejected",
                    provider=self.name,
                )

            logger.info("Access token expired at %s, refreshing", creds.token_expiry)
            try:
                await self.refresh_access_token()
            except AuthenticationError as e:
                if isinstance(e, TokenRefreshError) and e.status_code is not None:
                    self._rejected_refresh_token = creds.refresh_token
                logger.error("Token refresh failed: %s", e)
                self.console.print(
                    "[yellow]Reauthentication required. "
                    "Please reconnect to TickTick.[/yellow]"
                )
                raise ReauthenticationRequiredError(
                    f"Reauthentication required: {e}", provider=self.name
                ) from e

    def force_expiry(self) -> Credentials:
        """저장된 토큰을 즉시 만료 처리."""
        updated = self.store.force_expiry(now_ms())
        logger.info("Token expiry forced")
        return updated

    def authorization_header(self) -> dict[str, str]:
        """Bearer 인증 헤더.

        Raises:
            TokenNotFoundError: access token 없음
        """
        access_token = self.store.credentials.access_token
        if not access_token:
            raise TokenNotFoundError(
                "No access token found. Please connect to TickTick.",
                provider=self.name,
            )
        return {"Authorization": f"Bearer {access_token}"}

    # ------------------------------------------------------------------
    # Token endpoint
    # ------------------------------------------------------------------

    async def _post_token_request(self, data: dict[str, str]) -> httpx.Response:
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        if self._http_client is not None:
            return await self._http_client.post(
                self.token_endpoint, data=data, headers=headers
            )

        async with httpx.AsyncClient() as client:
            return await client.post(self.token_endpoint, data=data, headers=headers)

    async def _request_token(
        self,
        data: dict[str, str],
        error_cls: type[TokenExchangeError] | type[TokenRefreshError],
    ) -> TokenResponse:
        """토큰 엔드포인트 호출 (재시도 없음).

        Args:
            data: form body
            error_cls: 실패 시 발생시킬 예외 클래스

        Returns:
            TokenResponse: 파싱된 토큰 응답
        """
        grant_type = data["grant_type"]
        try:
            response = await self._post_token_request(data)
        except httpx.HTTPError as e:
            logger.error("Token request (%s) transport error: %s", grant_type, e)
            raise error_cls(
                f"Token request failed: {e}", provider=self.name
            ) from e

        if response.status_code != 200:
            logger.error(
                "Token request (%s) failed with status %d: %s",
                grant_type,
                response.status_code,
                response.text,
            )
            error_code = None
            try:
                body = response.json()
                if isinstance(body, dict):
                    error_code = body.get("error")
            except ValueError:
                pass  # 에러 본문이 JSON이 아닐 수 있음
            raise error_cls(
                f"Token request failed with status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
                error_code=error_code,
                provider=self.name,
            )

        try:
            result = response.json()
            return TokenResponse(
                access_token=result["access_token"],
                refresh_token=result.get("refresh_token") or None,
                expires_in=float(result.get("expires_in", 3600)),
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Malformed token response (%s): %s", grant_type, e)
            raise error_cls(
                "Malformed token response",
                status_code=response.status_code,
                body=response.text,
                provider=self.name,
            ) from e
