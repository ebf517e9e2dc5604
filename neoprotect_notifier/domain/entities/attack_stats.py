"""
Attack Statistics Entity
Detailed traffic statistics for one attack (``GET /ips/attacks/{id}/stats``).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from neoprotect_notifier.domain.entities.attack import format_timestamp, parse_timestamp

# JSON key -> attribute for the scalar totals
_TOTALS = {
    "packetsTotal": "packets_total",
    "sourceIpsTotal": "source_ips_total",
    "sourcePortsTotal": "source_ports_total",
    "destinationPortsTotal": "destination_ports_total",
    "sourceCountriesTotal": "source_countries_total",
    "sourceAsnsTotal": "source_asns_total",
    "protocolsTotal": "protocols_total",
    "packetLengthsTotal": "packet_lengths_total",
    "ttlsTotal": "ttls_total",
}

# Breakdown blobs, kept as the base64 strings upstream sends
_BREAKDOWNS = (
    "sourceIps",
    "sourcePorts",
    "destinationPorts",
    "sourceCountries",
    "sourceAsns",
    "protocols",
    "packetLengths",
    "ttls",
    "payloads",
)


@dataclass
class AttackStats:
    """Aggregated statistics for a single attack."""

    id: str
    packets_total: int = 0
    source_ips_total: int = 0
    source_ports_total: int = 0
    destination_ports_total: int = 0
    source_countries_total: int = 0
    source_asns_total: int = 0
    protocols_total: int = 0
    packet_lengths_total: int = 0
    ttls_total: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    breakdowns: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "AttackStats":
        """Create from the upstream JSON shape."""
        totals = {attr: int(data.get(key) or 0) for key, attr in _TOTALS.items()}
        return cls(
            id=data.get("id") or "",
            created_at=parse_timestamp(data.get("createdAt")),
            updated_at=parse_timestamp(data.get("updatedAt")),
            breakdowns={k: data[k] for k in _BREAKDOWNS if data.get(k)},
            **totals,
        )

    def to_dict(self) -> dict:
        """Convert to the upstream JSON shape."""
        data = {"id": self.id}
        data.update({key: getattr(self, attr) for key, attr in _TOTALS.items()})
        data["createdAt"] = format_timestamp(self.created_at)
        data["updatedAt"] = format_timestamp(self.updated_at)
        data.update(self.breakdowns)
        return data
