"""Domain Entities - Core business objects."""

from neoprotect_notifier.domain.entities.attack import (
    Attack,
    AttackSignature,
    format_timestamp,
    parse_timestamp,
    utcnow,
)
from neoprotect_notifier.domain.entities.attack_stats import AttackStats
from neoprotect_notifier.domain.entities.ip_inventory import IPAddressInfo

__all__ = [
    "Attack",
    "AttackSignature",
    "AttackStats",
    "IPAddressInfo",
    "format_timestamp",
    "parse_timestamp",
    "utcnow",
]
