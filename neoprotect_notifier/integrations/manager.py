"""
Integration Manager
Loads notification channels and fans lifecycle events out to them.
"""

import asyncio
from importlib.metadata import entry_points
from typing import Any, Awaitable, Callable, Optional

import structlog

from neoprotect_notifier.domain.entities.attack import Attack
from neoprotect_notifier.domain.events.attack_events import AttackEvent, AttackEventType
from neoprotect_notifier.errors import ChannelError, ConfigError
from neoprotect_notifier.infrastructure.persistence.message_tracker import MessageTracker
from neoprotect_notifier.integrations.base import Integration
from neoprotect_notifier.integrations.console import ConsoleIntegration
from neoprotect_notifier.integrations.discord import DiscordIntegration
from neoprotect_notifier.integrations.discord_bot import DiscordBotIntegration
from neoprotect_notifier.integrations.webhook import WebhookIntegration

logger = structlog.get_logger(__name__)

ENTRY_POINT_GROUP = "neoprotect_notifier.integrations"

IntegrationFactory = Callable[[], Integration]
ChannelCall = Callable[[Integration, Optional[str]], Awaitable[Optional[str]]]

_registry: dict[str, IntegrationFactory] = {
    "console": ConsoleIntegration,
    "webhook": WebhookIntegration,
    "discord": DiscordIntegration,
    "discord_bot": DiscordBotIntegration,
}


def register_integration(name: str, factory: IntegrationFactory) -> None:
    """Make a channel available under ``name`` for ``ENABLED_INTEGRATIONS``."""
    if not name:
        raise ValueError("integration name is required")
    _registry[name] = factory
    logger.debug("integration_registered", name=name)


def registered_integrations() -> list[str]:
    return sorted(_registry)


def _load_entry_point(name: str) -> Optional[IntegrationFactory]:
    for ep in entry_points(group=ENTRY_POINT_GROUP):
        if ep.name != name:
            continue
        try:
            return ep.load()
        except Exception as e:
            logger.error("integration_entry_point_failed", name=name, error=str(e))
            return None
    return None


class IntegrationManager:
    """
    Notification fan-out dispatcher.

    Every channel is invoked concurrently and bounded by its own timeout.
    A failing or slow channel never affects the others; its error is
    logged and the last error seen is returned to the caller. Message ids
    returned by channels are recorded in the message tracker under the
    channel name.
    """

    def __init__(
        self,
        message_tracker: Optional[MessageTracker] = None,
        channel_timeout: float = 10.0,
    ):
        self._messages = message_tracker if message_tracker is not None else MessageTracker()
        self._channel_timeout = channel_timeout
        self._integrations: dict[str, Integration] = {}

    @property
    def message_tracker(self) -> MessageTracker:
        return self._messages

    @property
    def integrations(self) -> dict[str, Integration]:
        return dict(self._integrations)

    def add(self, integration: Integration, name: Optional[str] = None) -> None:
        """Attach an already constructed channel."""
        self._integrations[name or integration.name] = integration

    def load(self, enabled: list[str]) -> None:
        """
        Instantiate the enabled channels.

        Raises:
            ConfigError: If no channel could be loaded
        """
        for name in enabled:
            if name in self._integrations:
                continue
            factory = _registry.get(name) or _load_entry_point(name)
            if factory is None:
                logger.warning("unknown_integration", name=name)
                continue
            self._integrations[name] = factory()
            logger.info("integration_loaded", name=name)

        if not self._integrations:
            raise ConfigError("no integrations were loaded")

        logger.info("integrations_loaded", count=len(self._integrations), names=sorted(self._integrations))

    def initialize(self, configs: dict[str, dict[str, Any]]) -> None:
        """
        Hand every loaded channel its configuration mapping.

        Raises:
            ConfigError: If a channel has no configuration or rejects it
        """
        for name, integration in self._integrations.items():
            config = configs.get(name)
            if config is None:
                if name != "console":
                    raise ConfigError(f"no configuration found for {name} integration")
                logger.info("integration_default_config", name=name)
                config = {}

            try:
                integration.initialize(config)
            except ConfigError as e:
                raise ConfigError(f"failed to initialize {name} integration: {e}") from e
            except (TypeError, ValueError, AttributeError) as e:
                raise ConfigError(f"invalid configuration for {name} integration: {e}") from e

    async def start(self) -> None:
        """Run each channel's network setup; failures only disable that setup."""
        names = list(self._integrations)
        results = await asyncio.gather(
            *(self._integrations[name].start() for name in names),
            return_exceptions=True,
        )
        for name, result in zip(names, results):
            if isinstance(result, Exception):
                logger.warning("integration_start_failed", name=name, error=str(result))

    async def _invoke(
        self,
        event: str,
        attack: Attack,
        name: str,
        integration: Integration,
        call: ChannelCall,
        correlated: bool,
    ) -> Optional[Exception]:
        message_id = await self._messages.lookup(attack.id, name) if correlated else None
        try:
            new_id = await asyncio.wait_for(
                call(integration, message_id),
                timeout=self._channel_timeout,
            )
        except asyncio.TimeoutError:
            error = ChannelError(name, f"timed out after {self._channel_timeout}s")
            logger.error("integration_timeout", channel=name, event_type=event, attack_id=attack.id)
            return error
        except Exception as e:
            logger.error(
                "integration_notify_failed",
                channel=name,
                event_type=event,
                attack_id=attack.id,
                error=str(e),
            )
            return e

        if new_id and new_id != message_id:
            await self._messages.record_message(attack.id, name, new_id)
        elif message_id and not new_id:
            # The correlated message is gone and nothing replaced it
            await self._messages.forget_message(attack.id, name)
        return None

    async def _fan_out(
        self,
        event: str,
        attack: Attack,
        call: ChannelCall,
        correlated: bool = True,
    ) -> Optional[Exception]:
        names = list(self._integrations)
        errors = await asyncio.gather(
            *(
                self._invoke(event, attack, name, self._integrations[name], call, correlated)
                for name in names
            )
        )

        last_error = None
        for error in errors:
            if error is not None:
                last_error = error
        return last_error

    async def notify_new_attack(self, attack: Attack) -> Optional[Exception]:
        """Notify every channel about a new attack."""
        return await self._fan_out(
            AttackEventType.NEW.value,
            attack,
            lambda integration, _: integration.notify_new_attack(attack),
            correlated=False,
        )

    async def notify_attack_update(self, attack: Attack, previous: Attack) -> Optional[Exception]:
        """Notify every channel that an attack changed."""
        return await self._fan_out(
            AttackEventType.UPDATED.value,
            attack,
            lambda integration, message_id: integration.notify_attack_update(attack, previous, message_id),
        )

    async def notify_attack_ended(self, attack: Attack) -> Optional[Exception]:
        """Notify every channel that an attack ended."""
        return await self._fan_out(
            AttackEventType.ENDED.value,
            attack,
            lambda integration, message_id: integration.notify_attack_ended(attack, message_id),
        )

    async def dispatch(self, event: AttackEvent) -> Optional[Exception]:
        """Route a lifecycle event to the matching notify call."""
        if event.event_type == AttackEventType.NEW:
            return await self.notify_new_attack(event.attack)
        if event.event_type == AttackEventType.UPDATED:
            return await self.notify_attack_update(event.attack, event.previous)
        return await self.notify_attack_ended(event.attack)

    async def shutdown(self) -> None:
        """Shut down every channel."""
        for name, integration in self._integrations.items():
            try:
                await integration.shutdown()
            except Exception as e:
                logger.error("integration_shutdown_failed", name=name, error=str(e))
            else:
                logger.info("integration_shutdown", name=name)
