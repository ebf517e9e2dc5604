"""
IP Address Value Objects
Immutable address primitives used for allow-lists and blacklists.
"""

import ipaddress
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Union


class IPVersion(str, Enum):
    """IP address version."""

    IPV4 = "ipv4"
    IPV6 = "ipv6"


@dataclass(frozen=True)
class IPAddress:
    """
    Value object representing a single monitored address.

    Attributes:
        address: Normalized IP address string
        version: IPv4 or IPv6
    """

    address: str
    version: IPVersion

    def __post_init__(self) -> None:
        """Validate IP address format."""
        try:
            ipaddress.ip_address(self.address)
        except ValueError as e:
            raise ValueError(f"Invalid IP address: {self.address}") from e

    @classmethod
    def from_string(cls, address: str) -> "IPAddress":
        """
        Create IPAddress from string representation.

        Args:
            address: IP address string (IPv4 or IPv6)

        Returns:
            IPAddress instance

        Raises:
            ValueError: If address is invalid
        """
        try:
            ip = ipaddress.ip_address(address.strip())
        except ValueError as e:
            raise ValueError(f"Invalid IP address: {address}") from e

        version = IPVersion.IPV4 if ip.version == 4 else IPVersion.IPV6
        return cls(address=str(ip), version=version)

    def __str__(self) -> str:
        return self.address


def canonical_address(value: str) -> str:
    """
    Normalize an address string for comparison.

    ``2001:DB8:0::1`` and ``2001:db8::1`` map to the same value. Strings that
    are not addresses are returned stripped but otherwise unchanged.
    """
    try:
        return str(IPAddress.from_string(value))
    except ValueError:
        return value.strip()


@dataclass(frozen=True)
class IPRange:
    """Value object representing a network in CIDR notation."""

    network: str
    num_addresses: int

    @classmethod
    def from_cidr(cls, cidr: str) -> "IPRange":
        """Create IPRange from CIDR notation (a bare address is a /32 or /128)."""
        try:
            network = ipaddress.ip_network(cidr.strip(), strict=False)
        except ValueError as e:
            raise ValueError(f"Invalid IP network: {cidr}") from e

        return cls(network=str(network), num_addresses=network.num_addresses)

    def contains(self, ip: Union[str, IPAddress]) -> bool:
        """Check if IP address is in this range."""
        if isinstance(ip, IPAddress):
            ip = ip.address
        try:
            network = ipaddress.ip_network(self.network, strict=False)
            return ipaddress.ip_address(ip) in network
        except ValueError:
            return False


@dataclass(frozen=True)
class AddressSet:
    """
    Set of addresses and networks with membership tests.

    Used for the blacklist: entries may be single addresses or CIDR ranges.
    Strings that are not valid addresses never match.
    """

    ranges: tuple[IPRange, ...] = ()

    @classmethod
    def from_entries(cls, entries: Iterable[str]) -> "AddressSet":
        """
        Build from raw entries.

        Raises:
            ValueError: If an entry is neither an address nor a network
        """
        return cls(ranges=tuple(IPRange.from_cidr(e) for e in entries if e and e.strip()))

    def __contains__(self, address: object) -> bool:
        if isinstance(address, str):
            try:
                address = IPAddress.from_string(address)
            except ValueError:
                return False
        if not isinstance(address, IPAddress):
            return False
        return any(r.contains(address) for r in self.ranges)

    def __len__(self) -> int:
        return len(self.ranges)

    def __bool__(self) -> bool:
        return bool(self.ranges)
