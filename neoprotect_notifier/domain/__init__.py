"""
Notifier Domain Layer
Attack entities, diffing and lifecycle events.
"""

from neoprotect_notifier.domain.entities import (
    Attack,
    AttackSignature,
    AttackStats,
    IPAddressInfo,
)
from neoprotect_notifier.domain.value_objects import (
    AddressSet,
    AttackDiff,
    IPAddress,
    calculate_diff,
)
from neoprotect_notifier.domain.events import AttackEvent, AttackEventType

__all__ = [
    # Entities
    "Attack",
    "AttackSignature",
    "AttackStats",
    "IPAddressInfo",
    # Value Objects
    "AddressSet",
    "AttackDiff",
    "IPAddress",
    "calculate_diff",
    # Events
    "AttackEvent",
    "AttackEventType",
]
