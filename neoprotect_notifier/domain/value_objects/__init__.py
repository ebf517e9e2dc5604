"""Domain Value Objects - Immutable domain primitives."""

from neoprotect_notifier.domain.value_objects.ip_address import (
    AddressSet,
    IPAddress,
    IPRange,
    IPVersion,
    canonical_address,
)
from neoprotect_notifier.domain.value_objects.attack_diff import AttackDiff, calculate_diff

__all__ = [
    "AddressSet",
    "IPAddress",
    "IPRange",
    "IPVersion",
    "canonical_address",
    "AttackDiff",
    "calculate_diff",
]
