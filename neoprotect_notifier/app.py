"""
Notifier Application
Wires the gateway, tracker, poller and channels together and runs them.
"""

import asyncio
import signal
from datetime import timedelta
from typing import Optional

import structlog

from neoprotect_notifier import __version__
from neoprotect_notifier.config.settings import Settings
from neoprotect_notifier.infrastructure.neoprotect.client import NeoProtectClient
from neoprotect_notifier.infrastructure.persistence.message_tracker import MessageTracker
from neoprotect_notifier.integrations.manager import IntegrationManager
from neoprotect_notifier.monitor.poller import AttackPoller
from neoprotect_notifier.monitor.tracker import AttackTracker

logger = structlog.get_logger(__name__)


class NotifierApp:
    """
    Runtime container for one monitor process.

    Usage:
        app = NotifierApp(settings)
        await app.run()
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[NeoProtectClient] = None,
        manager: Optional[IntegrationManager] = None,
    ):
        self.settings = settings
        self.client = client or NeoProtectClient(
            api_key=settings.api.api_key,
            base_url=settings.api.api_endpoint,
            timeout=settings.api.request_timeout,
        )
        if manager is None:
            manager = IntegrationManager(
                message_tracker=MessageTracker(),
                channel_timeout=settings.integrations.channel_timeout_seconds,
            )
        self.manager = manager
        self.message_tracker = manager.message_tracker
        self.tracker = AttackTracker(
            manager=self.manager,
            message_tracker=self.message_tracker,
            blacklist=settings.monitor.blacklist,
            retention=timedelta(hours=settings.monitor.retention_hours),
            reappear_policy=settings.monitor.reappear_policy,
        )
        self.poller = AttackPoller(self.client, self.tracker, settings.monitor)

    def setup(self) -> None:
        """
        Load and configure the enabled channels.

        Raises:
            ConfigError: If the channels cannot be set up
        """
        if not self.manager.integrations:
            self.manager.load(self.settings.integrations.enabled_integrations)
        self.manager.initialize(self.settings.integrations.integration_configs)

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError):
                # Signal handlers are unavailable on this platform or thread
                logger.debug("signal_handler_unavailable", signal=sig.name)

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info("termination_signal_received", signal=sig.name)
        self.poller.stop()

    async def run(self) -> None:
        """Run the monitor until a termination signal arrives."""
        logger.info(
            "starting_neoprotect_notifier",
            version=__version__,
            endpoint=self.client.base_url,
            mode=self.settings.monitor.monitor_mode.value,
        )

        self.setup()
        await self.manager.start()
        self._install_signal_handlers()

        try:
            await self.poller.run()
        finally:
            await self.shutdown()

    def stop(self) -> None:
        self.poller.stop()

    async def shutdown(self) -> None:
        """Shut channels down and close the gateway."""
        logger.info("shutting_down", tracked_attacks=len(self.tracker))
        logger.debug("message_correlations", correlations=self.message_tracker.snapshot())
        await self.manager.shutdown()
        await self.client.close()
        logger.info("shutdown_complete")
