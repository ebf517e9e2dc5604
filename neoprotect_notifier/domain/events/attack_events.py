"""
Attack Lifecycle Events
Events raised by the tracker when an attack changes state.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from neoprotect_notifier.domain.entities.attack import Attack, utcnow
from neoprotect_notifier.domain.value_objects.attack_diff import AttackDiff, calculate_diff


class AttackEventType(str, Enum):
    """Lifecycle transitions of an attack."""

    NEW = "new_attack"
    UPDATED = "attack_update"
    ENDED = "attack_ended"


@dataclass
class AttackEvent:
    """A single lifecycle transition, ready for dispatch."""

    id: UUID
    event_type: AttackEventType
    attack: Attack
    timestamp: datetime
    previous: Optional[Attack] = None

    @classmethod
    def create(
        cls,
        event_type: AttackEventType,
        attack: Attack,
        previous: Optional[Attack] = None,
        timestamp: Optional[datetime] = None,
    ) -> "AttackEvent":
        """Create a new lifecycle event."""
        return cls(
            id=uuid4(),
            event_type=event_type,
            attack=attack,
            previous=previous,
            timestamp=timestamp or utcnow(),
        )

    @property
    def attack_id(self) -> str:
        return self.attack.id

    @property
    def diff(self) -> AttackDiff:
        """Differences against the previous snapshot (empty when there is none)."""
        return calculate_diff(self.attack, self.previous)
