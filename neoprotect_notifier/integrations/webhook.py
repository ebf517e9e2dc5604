"""
Webhook Integration
POSTs attack notifications as JSON to an arbitrary HTTP endpoint.
"""

from typing import Any, Optional

import structlog

from neoprotect_notifier.domain.entities.attack import Attack, format_timestamp, utcnow
from neoprotect_notifier.domain.value_objects.attack_diff import calculate_diff
from neoprotect_notifier.errors import ConfigError
from neoprotect_notifier.integrations.base import HttpIntegration

logger = structlog.get_logger(__name__)


class WebhookIntegration(HttpIntegration):
    """
    Generic webhook channel.

    Config:
        url: Endpoint receiving the POST (required)
        headers: Extra request headers
        timeout: Request timeout in seconds (default 10)
    """

    name = "webhook"

    def __init__(self, transport=None):
        super().__init__(transport=transport)
        self.url = ""
        self.headers: dict[str, str] = {}

    def initialize(self, config: dict[str, Any]) -> None:
        url = config.get("url")
        if not url:
            raise ConfigError("webhook URL is required")

        timeout = float(config.get("timeout") or 0)
        self.url = url
        self.headers = {str(k): str(v) for k, v in (config.get("headers") or {}).items()}
        self._timeout = timeout if timeout > 0 else 10.0

    @staticmethod
    def _base_payload(event: str, attack: Attack) -> dict[str, Any]:
        return {
            "event": event,
            "attack_id": attack.id or "unknown",
            "target_ip": attack.target_address or "unknown",
            "started_at": format_timestamp(attack.started_at),
            "peak_bps": attack.peak_bps,
            "peak_pps": attack.peak_pps,
            "notification_ts": format_timestamp(utcnow()),
        }

    async def notify_new_attack(self, attack: Attack) -> Optional[str]:
        payload = self._base_payload("new_attack", attack)
        payload["signatures"] = attack.signature_names
        await self._send(payload)
        return None

    async def notify_attack_update(
        self,
        attack: Attack,
        previous: Attack,
        message_id: Optional[str],
    ) -> Optional[str]:
        payload = self._base_payload("attack_update", attack)
        payload["current_signatures"] = attack.signature_names
        diff = calculate_diff(attack, previous)
        if diff:
            payload["changes"] = diff.to_dict()
        await self._send(payload)
        return None

    async def notify_attack_ended(
        self,
        attack: Attack,
        message_id: Optional[str],
    ) -> Optional[str]:
        payload = self._base_payload("attack_ended", attack)
        payload["ended_at"] = format_timestamp(attack.ended_at)
        payload["duration"] = str(attack.duration())
        payload["signatures"] = attack.signature_names
        await self._send(payload)
        return None

    async def _send(self, payload: dict[str, Any]) -> None:
        headers = {"Content-Type": "application/json"}
        headers.update(self.headers)

        response = await self._request("POST", self.url, json=payload, headers=headers)
        self._raise_for_status(response, "webhook request")
        logger.debug("webhook_delivered", event_type=payload["event"], attack_id=payload["attack_id"])
