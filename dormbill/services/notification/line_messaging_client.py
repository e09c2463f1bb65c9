"""
LINE Messaging API client (push messages only).
"""

from typing import Any, Dict, Optional

import httpx

from dormbill.config.logging import get_logger
from dormbill.config.settings import Settings, settings
from dormbill.core.exceptions import ConfigurationError, ExternalServiceError

logger = get_logger(__name__)

PUSH_PATH = "/v2/bot/message/push"


class LineMessagingClient:
    """Thin synchronous wrapper over the push endpoint."""

    def __init__(
        self,
        access_token: Optional[str],
        base_url: str = "https://api.line.me",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.access_token = access_token
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(
        cls,
        config: Settings = settings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "LineMessagingClient":
        return cls(
            access_token=config.LINE_CHANNEL_ACCESS_TOKEN,
            base_url=config.LINE_API_BASE_URL,
            timeout=config.LINE_TIMEOUT_SECONDS,
            transport=transport,
        )

    def push_flex(self, to: str, alt_text: str, contents: Dict[str, Any]) -> Optional[str]:
        """
        Push one flex message to a LINE user.

        Returns:
            The id of the sent message when LINE reports one.

        Raises:
            ConfigurationError: no channel access token configured
            ExternalServiceError: transport failure or non-2xx response
        """
        if not self.access_token:
            raise ConfigurationError(
                "LINE channel access token is not configured",
                config_key="LINE_CHANNEL_ACCESS_TOKEN",
            )

        body = {
            "to": to,
            "messages": [{"type": "flex", "altText": alt_text, "contents": contents}],
        }
        try:
            response = self._client.post(
                PUSH_PATH,
                json=body,
                headers={"Authorization": f"Bearer {self.access_token}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"LINE push rejected with {e.response.status_code}: {e.response.text}")
            raise ExternalServiceError(
                "LINE",
                f"LINE push failed with status {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise ExternalServiceError("LINE", f"LINE push request failed: {e}") from e

        if not response.content:
            return None
        sent = response.json().get("sentMessages") or []
        return sent[0].get("id") if sent else None

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "LineMessagingClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
