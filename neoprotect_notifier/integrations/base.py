"""
Integration Base
Contract every notification channel implements.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
import structlog

from neoprotect_notifier.domain.entities.attack import Attack
from neoprotect_notifier.errors import ChannelError

logger = structlog.get_logger(__name__)


class Integration(ABC):
    """
    Base class for notification channels.

    Notify methods return the id of the message they created or replaced,
    or None when the channel has no addressable messages. An update or
    ended call that receives a message id and returns None drops that
    correlation. Delivery failures raise ``ChannelError``.
    """

    name: str = ""

    @abstractmethod
    def initialize(self, config: dict[str, Any]) -> None:
        """
        Apply the channel's configuration mapping.

        Raises:
            ConfigError: If a required option is missing or invalid
        """

    @abstractmethod
    async def notify_new_attack(self, attack: Attack) -> Optional[str]:
        ...

    @abstractmethod
    async def notify_attack_update(
        self,
        attack: Attack,
        previous: Attack,
        message_id: Optional[str],
    ) -> Optional[str]:
        ...

    @abstractmethod
    async def notify_attack_ended(
        self,
        attack: Attack,
        message_id: Optional[str],
    ) -> Optional[str]:
        ...

    async def start(self) -> None:
        """Perform network setup that needs the event loop."""

    async def shutdown(self) -> None:
        """Release resources held by the channel."""


class HttpIntegration(Integration):
    """Integration that talks HTTP through a lazily created httpx client."""

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self._transport = transport
        self._timeout = timeout
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._http_client

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send a request, wrapping transport failures in ``ChannelError``."""
        client = await self._get_http_client()
        try:
            return await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ChannelError(self.name, f"{method} request failed: {e}") from e

    def _raise_for_status(self, response: httpx.Response, action: str) -> None:
        if not response.is_success:
            raise ChannelError(
                self.name,
                f"{action} failed with status code {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

    async def shutdown(self) -> None:
        """Close resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
