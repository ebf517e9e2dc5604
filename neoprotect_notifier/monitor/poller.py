"""
Attack Poller
Periodic driver loop that fetches snapshots and feeds the tracker.
"""

import asyncio
from typing import Optional

import structlog

from neoprotect_notifier.config.settings import MonitorMode, MonitorSettings
from neoprotect_notifier.domain.entities.attack import Attack
from neoprotect_notifier.domain.value_objects.ip_address import canonical_address
from neoprotect_notifier.errors import NoActiveAttack, RequestFailed
from neoprotect_notifier.infrastructure.neoprotect.client import NeoProtectClient
from neoprotect_notifier.monitor.tracker import AttackTracker, CycleReport

logger = structlog.get_logger(__name__)


class AttackPoller:
    """
    Single driver loop for the tracker.

    Polls immediately, then once per interval. The sleep starts after a
    cycle completes, so cycles never overlap.
    """

    def __init__(
        self,
        client: NeoProtectClient,
        tracker: AttackTracker,
        settings: MonitorSettings,
    ):
        self._client = client
        self._tracker = tracker
        self._settings = settings
        self._blacklist = settings.blacklist
        self._stop_event = asyncio.Event()
        self._cycles = 0

    @property
    def cycles(self) -> int:
        return self._cycles

    @property
    def monitored_addresses(self) -> list[str]:
        """Allow-listed addresses in canonical form, minus the blacklist."""
        addresses: list[str] = []
        for entry in self._settings.specific_ips:
            address = canonical_address(entry)
            if address in self._blacklist or address in addresses:
                continue
            addresses.append(address)
        return addresses

    async def _fetch_specific(self) -> tuple[list[Attack], list[str]]:
        attacks: list[Attack] = []
        failed: list[str] = []
        for address in self.monitored_addresses:
            try:
                attacks.append(await self._client.fetch_active_attack_for_address(address))
            except NoActiveAttack:
                continue
            except RequestFailed as e:
                logger.error(
                    "address_fetch_failed",
                    target=address,
                    status_code=e.status_code,
                    error=str(e),
                )
                failed.append(address)
        return attacks, failed

    async def poll_once(self) -> Optional[CycleReport]:
        """
        Fetch one snapshot and process it.

        Returns:
            CycleReport, or None when the bulk fetch failed and the cycle was aborted
        """
        self._cycles += 1

        if self._settings.monitor_mode == MonitorMode.SPECIFIC:
            attacks, failed = await self._fetch_specific()
        else:
            try:
                attacks = await self._client.fetch_active_attacks()
            except RequestFailed as e:
                logger.error("active_attacks_fetch_failed", status_code=e.status_code, error=str(e))
                return None
            failed = []

        logger.debug("snapshot_fetched", attacks=len(attacks), failed_targets=len(failed))
        return await self._tracker.process(attacks, unreachable=failed)

    async def run(self) -> None:
        """Poll until ``stop`` is called."""
        interval = self._settings.poll_interval_seconds
        logger.info(
            "poller_started",
            mode=self._settings.monitor_mode.value,
            interval_seconds=interval,
            addresses=len(self.monitored_addresses) if self._settings.monitor_mode == MonitorMode.SPECIFIC else None,
        )

        while not self._stop_event.is_set():
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception("poll_cycle_failed", error=str(e))

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

        logger.info("poller_stopped", cycles=self._cycles)

    def stop(self) -> None:
        """Ask the loop to exit after the current cycle."""
        self._stop_event.set()
