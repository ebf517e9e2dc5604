"""
Discord Webhook Integration
Posts attack notifications as embeds and edits them as the attack evolves.
"""

from typing import Any, Optional

import httpx
import structlog

from neoprotect_notifier.domain.entities.attack import Attack, format_timestamp, utcnow
from neoprotect_notifier.domain.value_objects.attack_diff import calculate_diff
from neoprotect_notifier.errors import ConfigError
from neoprotect_notifier.integrations.base import HttpIntegration
from neoprotect_notifier.integrations.formatting import (
    format_bps,
    format_duration,
    format_pps,
    percentage_change,
)
from neoprotect_notifier.integrations.scheduling import DelayedTaskScheduler

logger = structlog.get_logger(__name__)

# Embed colours
COLOR_GREEN = 0x00FF00
COLOR_YELLOW = 0xFFFF00
COLOR_RED = 0xFF0000

PANEL_URL = "https://panel.neoprotect.net/network/ips/{address}?tab=attacks"
FOOTER_ICON = "https://cms.mscode.pl/uploads/icon_blue_84fa10dde8.png"


def panel_link(address: str) -> str:
    return PANEL_URL.format(address=address or "unknown")


def message_id_from(response: httpx.Response) -> Optional[str]:
    """Extract the message id Discord returns for a created message."""
    if not response.content:
        logger.warning("discord_empty_response", status_code=response.status_code)
        return None
    try:
        data = response.json()
    except ValueError:
        logger.warning("discord_unreadable_response", body=response.text[:200])
        return None
    message_id = data.get("id") if isinstance(data, dict) else None
    if not message_id:
        logger.warning("discord_response_without_id", body=response.text[:200])
        return None
    return str(message_id)


def changes_section(attack: Attack, previous: Optional[Attack]) -> str:
    """Render the differences to ``previous`` as embed text, empty when there are none."""
    diff = calculate_diff(attack, previous)
    if not diff:
        return ""

    lines = []
    if diff.bps_peak_change is not None:
        symbol = "`📈`" if diff.bps_peak_change > 0 else "`📉`"
        lines.append(
            f"{symbol} **Bandwidth:** {format_bps(previous.peak_bps)} → {format_bps(attack.peak_bps)} "
            f"({percentage_change(previous.peak_bps, attack.peak_bps):+d}%)"
        )
    if diff.pps_peak_change is not None:
        symbol = "`📈`" if diff.pps_peak_change > 0 else "`📉`"
        lines.append(
            f"{symbol} **Packet Rate:** {format_pps(previous.peak_pps)} → {format_pps(attack.peak_pps)} "
            f"({percentage_change(previous.peak_pps, attack.peak_pps):+d}%)"
        )
    if diff.new_signatures:
        lines.append("**`⚠️`** New Attack Signatures:")
        lines.extend(f"• `{name}`" for name in diff.new_signatures)

    return "\n".join(lines)


class DiscordIntegration(HttpIntegration):
    """
    Discord webhook channel.

    Config:
        webhookUrl: Discord webhook URL (required, http or https)
        username: Display name (default "NeoProtect Monitor")
        avatarUrl: Avatar image URL
        timeout: Request timeout in seconds (default 10)
        refreshDelay: Seconds after posting a new attack before its embed
            is re-rendered with a fresh duration (default 5, 0 disables)
    """

    name = "discord"

    def __init__(self, transport=None):
        super().__init__(transport=transport)
        self.webhook_url = ""
        self.username = "NeoProtect Monitor"
        self.avatar_url = ""
        self.refresh_delay = 5.0
        self.scheduler = DelayedTaskScheduler(self.name)

    def initialize(self, config: dict[str, Any]) -> None:
        webhook_url = config.get("webhookUrl") or ""
        if not webhook_url.startswith(("http://", "https://")):
            raise ConfigError("invalid discord webhook URL: must be a valid HTTP/HTTPS URL")

        timeout = float(config.get("timeout") or 0)
        refresh_delay = config.get("refreshDelay")

        self.webhook_url = webhook_url.rstrip("/")
        self.username = config.get("username") or "NeoProtect Monitor"
        self.avatar_url = config.get("avatarUrl") or ""
        self.refresh_delay = 5.0 if refresh_delay is None else max(float(refresh_delay), 0.0)
        self._timeout = timeout if timeout > 0 else 10.0

        logger.info("discord_integration_initialized", refresh_delay=self.refresh_delay)

    def build_embed(self, attack: Attack, previous: Optional[Attack], color: int, title: str) -> dict:
        """Build the embed describing one attack state."""
        target = attack.target_address or "unknown"
        link = panel_link(target)

        description = []
        if attack.started_at:
            description.append("### Attack Timeline")
            description.append(f"**`🕒`** Started: {format_timestamp(attack.started_at)}")
            if attack.ended_at:
                description.append(f"**`🛑`** Ended: {format_timestamp(attack.ended_at)}")
            else:
                description.append("**`⚠️`** Status: Active")
            description.append(f"**`⏱️`** Duration: {format_duration(attack.duration())}")

        description.append("### Attack Details")
        description.append(f"**`🎯`** Target IP: `{target}`")
        description.append(f"**`🔍`** Attack ID: `{attack.id or 'unknown'}`")
        description.append(f"**`🔗`** [View in NeoProtect Panel]({link})")

        names = attack.signature_names
        fields = [
            {
                "name": "**`📊`** Traffic Statistics",
                "value": (
                    f"**Peak Bandwidth:** {format_bps(attack.peak_bps)}\n"
                    f"**Peak Packet Rate:** {format_pps(attack.peak_pps)}"
                ),
                "inline": False,
            },
            {
                "name": "**`🔎`** Attack Signatures",
                "value": "\n".join(f"• `{n}`" for n in names) if names else "No signatures detected",
                "inline": False,
            },
        ]

        changes = changes_section(attack, previous)
        if changes:
            fields.append({"name": "**`📝`** Changes Detected", "value": changes, "inline": False})

        return {
            "title": title,
            "description": "\n".join(description),
            "url": link,
            "color": color,
            "fields": fields,
            "footer": {"text": "NeoProtect Monitor Bot", "icon_url": FOOTER_ICON},
            "timestamp": format_timestamp(attack.started_at or utcnow()),
        }

    def _message(self, embed: dict) -> dict:
        message: dict[str, Any] = {"username": self.username, "embeds": [embed]}
        if self.avatar_url:
            message["avatar_url"] = self.avatar_url
        return message

    async def _send(self, message: dict) -> Optional[str]:
        response = await self._request("POST", self.webhook_url, params={"wait": "true"}, json=message)
        self._raise_for_status(response, "discord request")
        message_id = message_id_from(response)
        logger.debug("discord_message_sent", message_id=message_id)
        return message_id

    async def _edit(self, message_id: str, message: dict, fallback: bool = True) -> Optional[str]:
        """Edit a message, posting a new one if the original is gone."""
        url = f"{self.webhook_url}/messages/{message_id}"
        response = await self._request("PATCH", url, json=message)
        if response.status_code == 404 and fallback:
            logger.info("discord_message_missing", message_id=message_id)
            return await self._send(message)
        self._raise_for_status(response, "discord update request")
        return message_id

    async def notify_new_attack(self, attack: Attack) -> Optional[str]:
        embed = self.build_embed(attack, None, COLOR_RED, "`🔥` New DDoS Attack Detected")
        message_id = await self._send(self._message(embed))

        if message_id and self.refresh_delay > 0:
            snapshot = attack.copy()
            self.scheduler.schedule(
                self.refresh_delay,
                lambda: self._refresh(snapshot, message_id),
                key=attack.id,
            )
        return message_id

    async def _refresh(self, attack: Attack, message_id: str) -> None:
        embed = self.build_embed(attack, None, COLOR_RED, "`🔥` New DDoS Attack Detected")
        await self._edit(message_id, self._message(embed), fallback=False)

    async def notify_attack_update(
        self,
        attack: Attack,
        previous: Attack,
        message_id: Optional[str],
    ) -> Optional[str]:
        self.scheduler.cancel(attack.id)
        embed = self.build_embed(attack, previous, COLOR_YELLOW, "`📶` DDoS Attack Updated")
        message = self._message(embed)
        if message_id:
            return await self._edit(message_id, message)
        return await self._send(message)

    async def notify_attack_ended(
        self,
        attack: Attack,
        message_id: Optional[str],
    ) -> Optional[str]:
        self.scheduler.cancel(attack.id)
        embed = self.build_embed(attack, None, COLOR_GREEN, "`🚀` DDoS Attack Ended")
        message = self._message(embed)
        if not message_id:
            logger.info("discord_ended_without_message", attack_id=attack.id)
            return await self._send(message)
        return await self._edit(message_id, message)

    async def shutdown(self) -> None:
        await self.scheduler.cancel_all()
        await super().shutdown()
