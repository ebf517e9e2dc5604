"""
IP Inventory Entity
Addresses assigned to the NeoProtect account.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class IPAddressInfo:
    """An address protected by NeoProtect, as returned by ``GET /ips``."""

    ipv4: str
    auto_mitigation: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: dict) -> "IPAddressInfo":
        """Create from the upstream JSON shape."""
        settings = data.get("settings") or {}
        auto_mitigation = settings.get("autoMitigation") if settings else None
        return cls(
            ipv4=data.get("ipv4") or "",
            auto_mitigation=auto_mitigation,
        )

    def to_dict(self) -> dict:
        """Convert to the upstream JSON shape."""
        data: dict = {"ipv4": self.ipv4}
        if self.auto_mitigation is not None:
            data["settings"] = {"autoMitigation": self.auto_mitigation}
        return data
