"""NeoProtect API gateway."""

from neoprotect_notifier.errors import NoActiveAttack, RequestFailed
from neoprotect_notifier.infrastructure.neoprotect.client import (
    DEFAULT_BASE_URL,
    MAX_PAGES,
    NeoProtectClient,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "MAX_PAGES",
    "NeoProtectClient",
    "NoActiveAttack",
    "RequestFailed",
]
