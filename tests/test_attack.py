"""Tests for the attack entity, timestamps and equality."""

from __future__ import annotations

from datetime import timedelta, timezone

import pytest

from neoprotect_notifier.domain.entities.attack import (
    Attack,
    format_timestamp,
    parse_timestamp,
)
from tests.conftest import T0, attack_json, make_attack, make_signature


class TestTimestamps:
    def test_parses_z_suffix_as_utc(self):
        parsed = parse_timestamp("2025-03-01T12:00:00Z")
        assert parsed == T0
        assert parsed.tzinfo is not None

    def test_truncates_nanosecond_fractions(self):
        parsed = parse_timestamp("2025-03-01T12:00:00.123456789Z")
        assert parsed.microsecond == 123456

    def test_converts_offsets_to_utc(self):
        parsed = parse_timestamp("2025-03-01T14:00:00+02:00")
        assert parsed == T0
        assert parsed.utcoffset() == timedelta(0)

    def test_naive_values_are_utc(self):
        assert parse_timestamp("2025-03-01T12:00:00") == T0

    def test_empty_is_none(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")

    def test_format_uses_z(self):
        assert format_timestamp(T0) == "2025-03-01T12:00:00Z"
        assert format_timestamp(None) is None


class TestAttackParsing:
    def test_from_dict(self):
        attack = Attack.from_dict(attack_json())
        assert attack.id == "A1"
        assert attack.target_address == "1.2.3.4"
        assert attack.started_at == T0
        assert attack.ended_at is None
        assert attack.sample_rate == 1024
        assert attack.dst_address.auto_mitigation is True
        assert attack.signatures[0].bps_peak == 1000

    def test_round_trip_preserves_equality(self):
        attack = Attack.from_dict(attack_json(ended_at="2025-03-01T12:30:00Z"))
        assert Attack.from_dict(attack.to_dict()) == attack

    def test_missing_signatures(self):
        data = attack_json()
        data["signatures"] = None
        attack = Attack.from_dict(data)
        assert attack.signatures == []
        assert attack.peak_bps == 0
        assert attack.peak_pps == 0


class TestDerivedValues:
    def test_peaks_are_max_over_signatures(self):
        attack = make_attack(signatures=[
            make_signature(sig_id="s1", bps_peak=1000, pps_peak=10),
            make_signature(sig_id="s2", name="UDP", bps_peak=5000, pps_peak=5),
        ])
        assert attack.peak_bps == 5000
        assert attack.peak_pps == 10

    def test_signature_names_are_unique_and_sorted(self):
        attack = make_attack(signatures=[
            make_signature(sig_id="s1", name="UDP"),
            make_signature(sig_id="s2", name="SYN"),
            make_signature(sig_id="s3", name="UDP"),
        ])
        assert attack.signature_names == ["SYN", "UDP"]

    def test_duration_of_active_attack_uses_now(self):
        attack = make_attack()
        assert attack.duration(now=T0 + timedelta(minutes=5)) == timedelta(minutes=5)

    def test_duration_of_ended_attack(self):
        attack = make_attack(ended_at=T0 + timedelta(hours=1))
        assert attack.duration(now=T0 + timedelta(days=3)) == timedelta(hours=1)

    def test_duration_without_start_is_zero(self):
        assert make_attack(started_at=None).duration() == timedelta(0)

    def test_is_valid(self):
        assert make_attack().is_valid()
        assert not make_attack(attack_id="").is_valid()
        assert not make_attack(target="").is_valid()


class TestMarkEnded:
    def test_sets_ended_at(self):
        attack = make_attack()
        attack.mark_ended(T0 + timedelta(minutes=3))
        assert not attack.is_active
        assert attack.ended_at == T0 + timedelta(minutes=3)

    def test_does_not_overwrite(self):
        attack = make_attack(ended_at=T0 + timedelta(minutes=1))
        attack.mark_ended(T0 + timedelta(minutes=9))
        assert attack.ended_at == T0 + timedelta(minutes=1)

    def test_refuses_to_clear(self):
        with pytest.raises(ValueError):
            make_attack().mark_ended(None)


class TestEquality:
    def test_reflexive(self):
        attack = make_attack()
        assert attack.equals(attack)
        assert attack == attack.copy()

    def test_symmetric(self):
        a = make_attack()
        b = make_attack(signatures=[make_signature(bps_peak=2000)])
        assert not a.equals(b)
        assert not b.equals(a)
        c = make_attack()
        assert a.equals(c) and c.equals(a)

    def test_signature_order_is_irrelevant(self):
        s1 = make_signature(sig_id="s1")
        s2 = make_signature(sig_id="s2", name="UDP")
        assert make_attack(signatures=[s1, s2]) == make_attack(signatures=[s2, s1])

    def test_detects_signature_timestamp_change(self):
        a = make_attack()
        b = make_attack(signatures=[make_signature(ended_at=T0 + timedelta(minutes=1))])
        assert not a.equals(b)

    def test_detects_ended_at_change(self):
        assert make_attack() != make_attack(ended_at=T0)

    def test_ignores_sample_rate(self):
        a = make_attack()
        b = make_attack()
        b.sample_rate = 4096
        assert a == b

    def test_none_is_never_equal(self):
        assert not make_attack().equals(None)

    def test_hash_uses_id(self):
        assert hash(make_attack()) == hash(make_attack(target="5.6.7.8"))

    def test_timezone_representation_does_not_matter(self):
        local = T0.astimezone(timezone(timedelta(hours=2)))
        assert make_attack(started_at=local) == make_attack()
