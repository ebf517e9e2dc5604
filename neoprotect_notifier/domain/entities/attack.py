"""
Attack Entity
Core domain entity representing one DDoS attack against one address.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from neoprotect_notifier.domain.entities.ip_inventory import IPAddressInfo

_FRACTION_RE = re.compile(r"\.(\d+)")
_OFFSET_RE = re.compile(r"([+-]\d{2})(\d{2})$")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an RFC 3339 timestamp into an aware UTC datetime.

    Accepts a trailing ``Z`` and sub-microsecond fractions, which are
    truncated. Naive values are taken to be UTC.

    Raises:
        ValueError: If the value is not a timestamp
    """
    if value is None or value == "":
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    text = _OFFSET_RE.sub(r"\1:\2", text)

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime as RFC 3339 with a ``Z`` suffix."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AttackSignature:
    """
    One detected traffic pattern within an attack.

    Attributes:
        id: Signature identifier, stable across snapshots of the same attack
        name: Human-readable signature name (e.g. "SYN")
        started_at: When this signature was first seen
        ended_at: When this signature stopped
        pps_peak: Peak packets per second
        bps_peak: Peak bits per second
    """

    id: str
    name: str
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    pps_peak: int = 0
    bps_peak: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "AttackSignature":
        """Create from the upstream JSON shape."""
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "",
            started_at=parse_timestamp(data.get("startedAt")),
            ended_at=parse_timestamp(data.get("endedAt")),
            pps_peak=int(data.get("ppsPeak") or 0),
            bps_peak=int(data.get("bpsPeak") or 0),
        )

    def to_dict(self) -> dict:
        """Convert to the upstream JSON shape."""
        return {
            "id": self.id,
            "name": self.name,
            "startedAt": format_timestamp(self.started_at),
            "endedAt": format_timestamp(self.ended_at),
            "ppsPeak": self.pps_peak,
            "bpsPeak": self.bps_peak,
        }


@dataclass(eq=False)
class Attack:
    """
    Entity representing one observed DDoS attack.

    ``id`` is the sole identity key: two instances with the same id are
    snapshots of the same real-world attack at different points in time.
    Equality (``equals`` / ``==``) compares the full snapshot so that the
    tracker can suppress spurious updates.
    """

    id: str
    target_address: str
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    signatures: list[AttackSignature] = field(default_factory=list)
    sample_rate: int = 0
    dst_address: Optional[IPAddressInfo] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Attack":
        """
        Create from the upstream JSON shape.

        Raises:
            ValueError: If a timestamp cannot be parsed
        """
        dst_address = data.get("dstAddress")
        return cls(
            id=data.get("id") or "",
            target_address=data.get("dstAddressString") or "",
            started_at=parse_timestamp(data.get("startedAt")),
            ended_at=parse_timestamp(data.get("endedAt")),
            signatures=[AttackSignature.from_dict(s) for s in data.get("signatures") or []],
            sample_rate=int(data.get("sampleRate") or 0),
            dst_address=IPAddressInfo.from_dict(dst_address) if dst_address else None,
        )

    def to_dict(self) -> dict:
        """Convert to the upstream JSON shape."""
        return {
            "id": self.id,
            "dstAddressString": self.target_address,
            "dstAddress": self.dst_address.to_dict() if self.dst_address else None,
            "signatures": [s.to_dict() for s in self.signatures],
            "startedAt": format_timestamp(self.started_at),
            "endedAt": format_timestamp(self.ended_at),
            "sampleRate": self.sample_rate,
        }

    def copy(self) -> "Attack":
        """Independent copy, used to keep the previous state for diffing."""
        return replace(self, signatures=list(self.signatures))

    def is_valid(self) -> bool:
        """Check the record carries the fields the tracker relies on."""
        return bool(self.id) and bool(self.target_address)

    @property
    def is_active(self) -> bool:
        """Check if the attack is still active as of the last known state."""
        return self.ended_at is None

    def mark_ended(self, at: datetime) -> None:
        """Stamp the end time. An attack never becomes active again."""
        if at is None:
            raise ValueError("Cannot clear ended_at of an attack")
        if self.ended_at is None:
            self.ended_at = at

    def duration(self, now: Optional[datetime] = None) -> timedelta:
        """Attack duration, up to now for attacks that are still active."""
        if self.started_at is None:
            return timedelta(0)
        end_time = self.ended_at or now or utcnow()
        return end_time - self.started_at

    @property
    def peak_bps(self) -> int:
        """Peak bits per second across all signatures."""
        return max((s.bps_peak for s in self.signatures), default=0)

    @property
    def peak_pps(self) -> int:
        """Peak packets per second across all signatures."""
        return max((s.pps_peak for s in self.signatures), default=0)

    @property
    def signature_names(self) -> list[str]:
        """Unique signature names, sorted."""
        return sorted({s.name for s in self.signatures})

    @property
    def short_id(self) -> str:
        return self.id[:8]

    def equals(self, other: Optional["Attack"]) -> bool:
        """
        Check whether two snapshots describe the same attack state.

        Compares id, target, start and end timestamps and the signature
        set keyed by signature id. Signature order is irrelevant.
        """
        if other is None:
            return False
        if self is other:
            return True

        if self.id != other.id or self.target_address != other.target_address:
            return False
        if self.started_at != other.started_at or self.ended_at != other.ended_at:
            return False
        if len(self.signatures) != len(other.signatures):
            return False

        return {s.id: s for s in self.signatures} == {s.id: s for s in other.signatures}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Attack):
            return NotImplemented
        return self.equals(other)

    def __hash__(self) -> int:
        """Hash based on ID."""
        return hash(self.id)
