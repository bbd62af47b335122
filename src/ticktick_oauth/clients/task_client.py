"""TickTick Task Client

Open API v1 태스크 생성 클라이언트.
모든 호출 전에 provider.ensure_fresh_token()으로 토큰 신선도를 보장.
"""

import logging

import httpx

from ticktick_oauth.auth.exceptions import TokenNotFoundError
from ticktick_oauth.auth.providers.ticktick_provider import TickTickProvider

logger = logging.getLogger(__name__)

TITLE_LIMIT = 50


def build_task_title(text: str, limit: int = TITLE_LIMIT) -> str:
    """본문에서 태스크 제목 생성 (길면 잘라서 '...' 추가)."""
    text = text.strip()
    if len(text) > limit:
        return text[:limit] + "..."
    return text


class TaskClient:
    """TickTick 태스크 클라이언트

    Example:
        client = TaskClient(provider)
        ok = await client.create_task("Buy milk", "2 liters")
    """

    API_BASE = "https://api.ticktick.com/open/v1"

    def __init__(
        self,
        provider: TickTickProvider,
        http_client: httpx.AsyncClient | None = None,
        api_base: str | None = None,
    ):
        self.provider = provider
        self.api_base = (api_base or self.API_BASE).rstrip("/")
        self._http_client = http_client

    async def create_task(self, title: str, content: str = "") -> bool:
        """태스크 생성

        토큰 갱신 실패(ReauthenticationRequiredError)는 호출자에게 전파.

        Args:
            title: 태스크 제목
            content: 태스크 본문

        Returns:
            bool: 성공 여부
        """
        await self.provider.ensure_fresh_token()

        try:
            headers = self.provider.authorization_header()
        except TokenNotFoundError:
            logger.warning("No access token found; connect to TickTick first")
            return False

        endpoint = f"{self.api_base}/task"
        payload = {"title": title, "content": content}
        logger.info("Creating task: %s", title)

        try:
            response = await self._post(endpoint, payload, headers)
        except httpx.HTTPError as e:
            logger.error("TickTick API error: %s", e)
            return False

        if response.status_code != 200:
            logger.error(
                "TickTick API error (status %d): %s",
                response.status_code,
                response.text,
            )
            return False

        return True

    async def _post(
        self, url: str, payload: dict, headers: dict[str, str]
    ) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(url, json=payload, headers=headers)

        async with httpx.AsyncClient() as client:
            return await client.post(url, json=payload, headers=headers)
