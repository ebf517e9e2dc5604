"""Tests for address value objects."""

import pytest

from neoprotect_notifier.domain.value_objects.ip_address import (
    AddressSet,
    IPAddress,
    IPVersion,
    canonical_address,
)


def test_from_string_normalizes():
    address = IPAddress.from_string(" 2001:DB8:0::1 ")

    assert address.address == "2001:db8::1"
    assert address.version == IPVersion.IPV6
    assert IPAddress.from_string("192.0.2.1").version == IPVersion.IPV4


def test_from_string_rejects_garbage():
    with pytest.raises(ValueError):
        IPAddress.from_string("not-an-ip")


def test_canonical_address():
    assert canonical_address("2001:DB8:0:0::1") == "2001:db8::1"
    assert canonical_address(" 192.0.2.1") == "192.0.2.1"
    assert canonical_address(" example ") == "example"


def test_address_set_membership():
    blacklist = AddressSet.from_entries(["192.0.2.1", "10.0.0.0/8", " "])

    assert len(blacklist) == 2
    assert "192.0.2.1" in blacklist
    assert "10.255.0.1" in blacklist
    assert IPAddress.from_string("10.0.0.1") in blacklist
    assert "192.0.2.2" not in blacklist
    assert "not-an-ip" not in blacklist
    assert 42 not in blacklist


def test_address_set_rejects_invalid_entries():
    with pytest.raises(ValueError):
        AddressSet.from_entries(["300.1.1.1"])
