"""Domain Events - Attack lifecycle transitions."""

from neoprotect_notifier.domain.events.attack_events import AttackEvent, AttackEventType

__all__ = [
    "AttackEvent",
    "AttackEventType",
]
