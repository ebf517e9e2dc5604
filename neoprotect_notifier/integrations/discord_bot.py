"""
Discord Bot Integration
Posts attack notifications through the Discord REST API or a webhook.
"""

from typing import Any, Optional

import structlog

from neoprotect_notifier.domain.entities.attack import Attack, format_timestamp, utcnow
from neoprotect_notifier.domain.value_objects.attack_diff import calculate_diff
from neoprotect_notifier.errors import ConfigError
from neoprotect_notifier.integrations.base import HttpIntegration
from neoprotect_notifier.integrations.discord import (
    COLOR_GREEN,
    COLOR_RED,
    COLOR_YELLOW,
    message_id_from,
)
from neoprotect_notifier.integrations.formatting import format_bps, format_pps

logger = structlog.get_logger(__name__)

DISCORD_API = "https://discord.com/api/v10"

# Slash commands registered for the application
COMMANDS = [
    {
        "name": "neo-stats",
        "description": "Get detailed statistics about DDoS attacks",
        "options": [
            {
                "name": "ip",
                "description": "IP address to get stats for (optional)",
                "type": 3,
                "required": False,
            },
        ],
    },
    {
        "name": "neo-history",
        "description": "Get attack history",
        "options": [
            {
                "name": "limit",
                "description": "Number of attacks to show (default: 5)",
                "type": 4,
                "required": False,
            },
        ],
    },
]


class DiscordBotIntegration(HttpIntegration):
    """
    Discord bot channel.

    Messages go through the bot API when ``token`` and ``channelId`` are
    set, otherwise through ``webhookUrl``.

    Config:
        token: Bot token
        channelId: Channel receiving the notifications (with ``token``)
        webhookUrl: Webhook used when no bot channel is configured
        clientId: Application id; enables slash command registration
        guildId: Register commands for one guild instead of globally
        username: Display name (default "NeoProtect Attack Monitor")
        avatarUrl: Avatar image URL
        timeout: Request timeout in seconds (default 10)
    """

    name = "discord_bot"

    def __init__(self, transport=None):
        super().__init__(transport=transport)
        self.token = ""
        self.channel_id = ""
        self.webhook_url = ""
        self.client_id = ""
        self.guild_id = ""
        self.username = "NeoProtect Attack Monitor"
        self.avatar_url = ""

    def initialize(self, config: dict[str, Any]) -> None:
        token = config.get("token") or ""
        channel_id = str(config.get("channelId") or "")
        webhook_url = config.get("webhookUrl") or ""
        if not token and not webhook_url:
            raise ConfigError("discord_bot requires either a bot token or a webhookUrl")
        if webhook_url and not webhook_url.startswith(("http://", "https://")):
            raise ConfigError("invalid discord webhook URL: must be a valid HTTP/HTTPS URL")
        if token and not channel_id and not webhook_url:
            raise ConfigError("discord_bot requires a channelId when no webhookUrl is set")

        timeout = float(config.get("timeout") or 0)

        self.token = token
        self.channel_id = channel_id
        self.webhook_url = webhook_url.rstrip("/")
        self.client_id = str(config.get("clientId") or "")
        self.guild_id = str(config.get("guildId") or "")
        self.username = config.get("username") or "NeoProtect Attack Monitor"
        self.avatar_url = config.get("avatarUrl") or ""
        self._timeout = timeout if timeout > 0 else 10.0

    @property
    def uses_bot_api(self) -> bool:
        return bool(self.token and self.channel_id)

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bot {self.token}"}

    @property
    def commands_url(self) -> str:
        if self.guild_id:
            return f"{DISCORD_API}/applications/{self.client_id}/guilds/{self.guild_id}/commands"
        return f"{DISCORD_API}/applications/{self.client_id}/commands"

    async def start(self) -> None:
        """Register the slash commands when a token and application id are configured."""
        if not self.token or not self.client_id:
            return
        response = await self._request("PUT", self.commands_url, json=COMMANDS, headers=self._headers)
        self._raise_for_status(response, "command registration")
        logger.info(
            "discord_commands_registered",
            commands=[c["name"] for c in COMMANDS],
            guild_id=self.guild_id or None,
        )

    def build_embed(self, attack: Attack, previous: Optional[Attack], color: int, title: str) -> dict:
        """Build the compact embed used for bot messages."""
        description = ""
        if attack.started_at:
            description = f"**Started:** {format_timestamp(attack.started_at)}"
            if attack.ended_at:
                description += (
                    f"\n**Ended:** {format_timestamp(attack.ended_at)}"
                    f"\n**Duration:** {attack.duration()}"
                )

        names = attack.signature_names
        fields = [
            {"name": "Target IP", "value": attack.target_address, "inline": True},
            {"name": "Attack ID", "value": attack.id, "inline": True},
            {
                "name": "Peak Traffic",
                "value": f"{format_bps(attack.peak_bps)} / {format_pps(attack.peak_pps)}",
                "inline": True,
            },
            {
                "name": "Attack Signatures",
                "value": "\n".join(f"• {n}" for n in names) if names else "Unknown",
                "inline": False,
            },
        ]

        diff = calculate_diff(attack, previous)
        if diff:
            lines = [f"{key}: {value}" for key, value in diff.to_dict().items()]
            fields.append({
                "name": "Changes Detected",
                "value": "```\n" + "\n".join(lines) + "\n```",
                "inline": False,
            })

        if self.token:
            fields.append({
                "name": "Commands",
                "value": "Use `/neo-stats` to get detailed stats\nUse `/neo-history` to view attack history",
                "inline": False,
            })

        return {
            "title": title,
            "description": description,
            "color": color,
            "fields": fields,
            "footer": {
                "text": "NeoProtect Attack Monitor",
                "icon_url": "https://neoprotect.net/favicon.ico",
            },
            "timestamp": format_timestamp(attack.started_at or utcnow()),
        }

    def _message(self, content: str, embed: dict) -> dict:
        message: dict[str, Any] = {"content": content, "embeds": [embed]}
        if self.username:
            message["username"] = self.username
        if self.avatar_url:
            message["avatar_url"] = self.avatar_url
        return message

    async def _send(self, message: dict) -> Optional[str]:
        if self.uses_bot_api:
            url = f"{DISCORD_API}/channels/{self.channel_id}/messages"
            response = await self._request("POST", url, json=message, headers=self._headers)
        else:
            response = await self._request("POST", self.webhook_url, params={"wait": "true"}, json=message)
        self._raise_for_status(response, "discord API request")
        return message_id_from(response)

    async def _edit(self, message_id: str, message: dict) -> Optional[str]:
        """Edit a message, posting a new one if the original is gone."""
        if self.uses_bot_api:
            url = f"{DISCORD_API}/channels/{self.channel_id}/messages/{message_id}"
            response = await self._request("PATCH", url, json=message, headers=self._headers)
        else:
            response = await self._request("PATCH", f"{self.webhook_url}/messages/{message_id}", json=message)
        if response.status_code == 404:
            logger.info("discord_bot_message_missing", message_id=message_id)
            return await self._send(message)
        self._raise_for_status(response, "discord API request")
        return message_id

    async def _deliver(self, message: dict, message_id: Optional[str]) -> Optional[str]:
        if message_id:
            return await self._edit(message_id, message)
        return await self._send(message)

    async def notify_new_attack(self, attack: Attack) -> Optional[str]:
        embed = self.build_embed(attack, None, COLOR_RED, "New DDoS Attack Detected")
        return await self._send(
            self._message(":rotating_light: **New DDoS Attack Detected!** :rotating_light:", embed)
        )

    async def notify_attack_update(
        self,
        attack: Attack,
        previous: Attack,
        message_id: Optional[str],
    ) -> Optional[str]:
        embed = self.build_embed(attack, previous, COLOR_YELLOW, "DDoS Attack Updated")
        message = self._message(
            ":chart_with_upwards_trend: **DDoS Attack Update** :chart_with_downwards_trend:",
            embed,
        )
        return await self._deliver(message, message_id)

    async def notify_attack_ended(
        self,
        attack: Attack,
        message_id: Optional[str],
    ) -> Optional[str]:
        embed = self.build_embed(attack, None, COLOR_GREEN, "DDoS Attack Ended")
        message = self._message(":white_check_mark: **DDoS Attack Ended** :shield:", embed)
        return await self._deliver(message, message_id)
