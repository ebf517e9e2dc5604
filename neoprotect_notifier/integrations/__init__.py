"""
Notification Integrations
Channel contract, built-in channels and the fan-out dispatcher.
"""

from neoprotect_notifier.integrations.base import HttpIntegration, Integration
from neoprotect_notifier.integrations.console import ConsoleIntegration
from neoprotect_notifier.integrations.discord import DiscordIntegration
from neoprotect_notifier.integrations.discord_bot import DiscordBotIntegration
from neoprotect_notifier.integrations.manager import (
    ENTRY_POINT_GROUP,
    IntegrationManager,
    register_integration,
    registered_integrations,
)
from neoprotect_notifier.integrations.scheduling import DelayedTaskScheduler
from neoprotect_notifier.integrations.webhook import WebhookIntegration

__all__ = [
    "Integration",
    "HttpIntegration",
    "ConsoleIntegration",
    "WebhookIntegration",
    "DiscordIntegration",
    "DiscordBotIntegration",
    "IntegrationManager",
    "DelayedTaskScheduler",
    "ENTRY_POINT_GROUP",
    "register_integration",
    "registered_integrations",
]
