"""
Console Integration
Writes attack notifications to the application log.
"""

import json
from typing import Any, Optional

import structlog

from neoprotect_notifier.domain.entities.attack import Attack, format_timestamp, utcnow
from neoprotect_notifier.domain.value_objects.attack_diff import calculate_diff
from neoprotect_notifier.integrations.base import Integration

logger = structlog.get_logger(__name__)

# ANSI colours
COLOR_RESET = "\033[0m"
COLOR_RED = "\033[31m"
COLOR_GREEN = "\033[32m"
COLOR_YELLOW = "\033[33m"
COLOR_BLUE = "\033[34m"

EVENT_COLORS = {
    "NEW ATTACK": COLOR_RED,
    "ATTACK UPDATE": COLOR_YELLOW,
    "ATTACK ENDED": COLOR_GREEN,
}


class ConsoleIntegration(Integration):
    """
    Console channel.

    Config:
        logPrefix: Prefix for every line (default "NEOPROTECT")
        formatJson: Emit indented JSON instead of a one-line summary
        colorEnabled: Wrap output in ANSI colour codes
    """

    name = "console"

    def __init__(self):
        self.log_prefix = "NEOPROTECT"
        self.format_json = False
        self.color_enabled = False

    def initialize(self, config: dict[str, Any]) -> None:
        self.log_prefix = config.get("logPrefix") or "NEOPROTECT"
        self.format_json = bool(config.get("formatJson", False))
        self.color_enabled = bool(config.get("colorEnabled", False))

    async def notify_new_attack(self, attack: Attack) -> Optional[str]:
        self._emit("NEW ATTACK", attack)
        return None

    async def notify_attack_update(
        self,
        attack: Attack,
        previous: Attack,
        message_id: Optional[str],
    ) -> Optional[str]:
        self._emit("ATTACK UPDATE", attack, previous)
        return None

    async def notify_attack_ended(
        self,
        attack: Attack,
        message_id: Optional[str],
    ) -> Optional[str]:
        self._emit("ATTACK ENDED", attack)
        return None

    def _emit(self, event_type: str, attack: Attack, previous: Optional[Attack] = None) -> None:
        logger.info(
            "console_notification",
            event_type=event_type.lower().replace(" ", "_"),
            attack_id=attack.id,
            message=self.format_attack(event_type, attack, previous),
        )

    def format_attack(self, event_type: str, attack: Attack, previous: Optional[Attack] = None) -> str:
        """Render one notification as text or JSON."""
        if self.format_json:
            return self._wrap(event_type, self._format_json(event_type, attack, previous))

        time_info = ""
        if attack.started_at:
            time_info = f"started at {format_timestamp(attack.started_at)}"
            if attack.ended_at:
                time_info += (
                    f", ended at {format_timestamp(attack.ended_at)}"
                    f" (duration: {attack.duration()})"
                )

        diff_info = ""
        if previous is not None:
            diff_info = f" Changes: {json.dumps(calculate_diff(attack, previous).to_dict())}"

        names = ", ".join(attack.signature_names) or "unknown"
        text = (
            f"[{self.log_prefix}] {event_type}: Attack {attack.short_id} on {attack.target_address}, "
            f"{time_info}, {len(attack.signatures)} signatures ({names}), "
            f"peak: {attack.peak_bps} bps, {attack.peak_pps} pps{diff_info}"
        )
        return self._wrap(event_type, text)

    def _format_json(self, event_type: str, attack: Attack, previous: Optional[Attack]) -> str:
        output: dict[str, Any] = {
            "prefix": self.log_prefix,
            "event": event_type,
            "attack_id": attack.id,
            "target_ip": attack.target_address,
            "started_at": format_timestamp(attack.started_at),
            "ended_at": format_timestamp(attack.ended_at),
            "signatures": attack.signature_names,
            "peak_bps": attack.peak_bps,
            "peak_pps": attack.peak_pps,
            "timestamp": format_timestamp(utcnow()),
        }
        if previous is not None:
            output["changes"] = calculate_diff(attack, previous).to_dict()
        if attack.ended_at:
            output["duration"] = str(attack.duration())
        return json.dumps(output, indent=2)

    def _wrap(self, event_type: str, text: str) -> str:
        if not self.color_enabled:
            return text
        return f"{EVENT_COLORS.get(event_type, COLOR_BLUE)}{text}{COLOR_RESET}"
