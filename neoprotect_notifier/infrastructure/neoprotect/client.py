"""
NeoProtect API Client
Async gateway to the NeoProtect v2 REST API.
"""

from typing import Any, Callable, Optional, TypeVar
from urllib.parse import quote

import httpx
import structlog

from neoprotect_notifier.domain.entities.attack import Attack
from neoprotect_notifier.domain.entities.attack_stats import AttackStats
from neoprotect_notifier.domain.entities.ip_inventory import IPAddressInfo
from neoprotect_notifier.errors import ConfigError, NoActiveAttack, RequestFailed

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.neoprotect.net/v2"
DEFAULT_TIMEOUT_SECONDS = 30.0
MAX_PAGES = 100

T = TypeVar("T")


class NeoProtectClient:
    """
    Client for the NeoProtect API.

    Every request carries the bearer token and ``Accept: application/json``.
    Non-2xx responses raise ``RequestFailed``; the single-active-attack
    endpoint maps 404 to ``NoActiveAttack``. Transport failures and
    undecodable bodies are wrapped in ``RequestFailed`` with no status code.
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ConfigError("NeoProtect API key is required")

        self._api_key = api_key
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Accept": "application/json",
                },
            )
        return self._http_client

    async def close(self) -> None:
        """Close resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "NeoProtectClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _get(self, path: str, params: Optional[dict] = None) -> httpx.Response:
        url = f"{self._base_url}{path}"
        client = await self._get_http_client()
        try:
            return await client.get(url, params=params or None)
        except httpx.HTTPError as e:
            raise RequestFailed(url, reason=f"failed to send request: {e}") from e

    @staticmethod
    def _decode(response: httpx.Response, parse: Callable[[Any], T]) -> T:
        url = str(response.request.url)
        if not response.is_success:
            raise RequestFailed(url, status_code=response.status_code, body=response.text)
        try:
            return parse(response.json())
        except (ValueError, TypeError, AttributeError, KeyError) as e:
            raise RequestFailed(url, reason=f"failed to decode response: {e}") from e

    @staticmethod
    def _parse_attacks(payload: Any) -> list[Attack]:
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise TypeError(f"expected a list of attacks, got {type(payload).__name__}")
        return [Attack.from_dict(item) for item in payload]

    async def _paginate(
        self,
        fetch_page: Callable[[int], Any],
        what: str,
    ) -> list[Attack]:
        """Fetch pages starting at 0 until an empty page or the page cap."""
        collected: list[Attack] = []
        page = 0
        while True:
            attacks = await fetch_page(page)
            if not attacks:
                break
            collected.extend(attacks)
            page += 1
            if page >= MAX_PAGES:
                logger.warning("pagination_limit_reached", what=what, max_pages=MAX_PAGES)
                break
        return collected

    async def fetch_attacks_page(self, active_only: bool = True, page: int = 0) -> list[Attack]:
        """Fetch one page of ``/ips/attacks``."""
        params: dict = {}
        if active_only:
            params["showActive"] = "true"
        if page > 0:
            params["page"] = page
        response = await self._get("/ips/attacks", params)
        return self._decode(response, self._parse_attacks)

    async def fetch_active_attacks(self) -> list[Attack]:
        """Fetch every active attack on the account, across all pages."""
        return await self._paginate(
            lambda page: self.fetch_attacks_page(active_only=True, page=page),
            what="active_attacks",
        )

    async def fetch_active_attack_for_address(self, address: str) -> Attack:
        """
        Fetch the active attack for one address.

        Raises:
            NoActiveAttack: If upstream answers 404
            RequestFailed: For any other failure
        """
        response = await self._get(f"/ips/{quote(address, safe='')}/attack")
        if response.status_code == 404:
            raise NoActiveAttack(address)
        return self._decode(response, Attack.from_dict)

    async def fetch_attack_history(self, address: str, page: int = 0) -> list[Attack]:
        """Fetch one page of past and present attacks for an address."""
        params = {"page": page} if page > 0 else None
        response = await self._get(f"/ips/{quote(address, safe='')}/attacks", params)
        return self._decode(response, self._parse_attacks)

    async def fetch_all_attacks_for_address(self, address: str) -> list[Attack]:
        """Fetch the full attack history for an address, across all pages."""
        return await self._paginate(
            lambda page: self.fetch_attack_history(address, page),
            what=f"history:{address}",
        )

    async def fetch_attack_stats(self, attack_id: str) -> AttackStats:
        """Fetch detailed statistics for an attack."""
        response = await self._get(f"/ips/attacks/{quote(attack_id, safe='')}/stats")
        return self._decode(response, AttackStats.from_dict)

    async def fetch_attack_sample(self, attack_id: str) -> str:
        """Fetch the download URL of a traffic sample for an attack."""

        def parse(payload: Any) -> str:
            if not isinstance(payload, str):
                raise TypeError("expected a JSON string")
            return payload

        response = await self._get(f"/ips/attacks/{quote(attack_id, safe='')}/sample")
        return self._decode(response, parse)

    async def fetch_ip_addresses(self) -> list[IPAddressInfo]:
        """Fetch the addresses assigned to the account."""

        def parse(payload: Any) -> list[IPAddressInfo]:
            return [IPAddressInfo.from_dict(item) for item in payload or []]

        response = await self._get("/ips")
        return self._decode(response, parse)
