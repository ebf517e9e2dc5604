"""
Message Tracker
Correlates attacks with the message each channel created for them.
"""

import asyncio
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


class MessageTracker:
    """
    Maps (attack id, channel name) to the channel's message id.

    Lives for the lifetime of the process and is not persisted. Entries
    are written by the dispatcher and removed when an attack is purged.
    """

    def __init__(self):
        self._messages: dict[str, dict[str, str]] = {}
        self._lock = asyncio.Lock()

    async def record_message(self, attack_id: str, channel: str, message_id: str) -> None:
        """Remember the message a channel created for an attack."""
        if not attack_id or not channel or not message_id:
            return
        async with self._lock:
            self._messages.setdefault(attack_id, {})[channel] = message_id
        logger.debug(
            "message_recorded",
            attack_id=attack_id,
            channel=channel,
            message_id=message_id,
        )

    async def lookup(self, attack_id: str, channel: str) -> Optional[str]:
        """Get the message id a channel recorded for an attack."""
        async with self._lock:
            return self._messages.get(attack_id, {}).get(channel)

    async def forget(self, attack_id: str) -> None:
        """Drop every correlation for an attack."""
        async with self._lock:
            removed = self._messages.pop(attack_id, None)
        if removed:
            logger.debug("messages_forgotten", attack_id=attack_id, channels=sorted(removed))

    async def forget_message(self, attack_id: str, channel: str) -> None:
        """Drop the correlation of one channel for an attack."""
        async with self._lock:
            channels = self._messages.get(attack_id)
            if channels is None:
                return
            channels.pop(channel, None)
            if not channels:
                del self._messages[attack_id]

    def snapshot(self) -> dict[str, dict[str, str]]:
        """Copy of the current correlations, for diagnostics."""
        return {attack_id: dict(channels) for attack_id, channels in self._messages.items()}

    def __len__(self) -> int:
        return len(self._messages)
