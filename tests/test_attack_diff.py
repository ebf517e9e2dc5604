"""Tests for snapshot diffing."""

from __future__ import annotations

from datetime import timedelta

from neoprotect_notifier.domain.value_objects.attack_diff import AttackDiff, calculate_diff
from tests.conftest import T0, make_attack, make_signature


def test_same_object_has_no_changes():
    attack = make_attack()
    diff = calculate_diff(attack, attack)
    assert diff.is_empty
    assert diff.to_dict() == {}


def test_missing_or_mismatched_inputs_give_empty_diff():
    attack = make_attack()
    assert calculate_diff(attack, None) == AttackDiff()
    assert calculate_diff(None, attack) == AttackDiff()
    assert calculate_diff(attack, make_attack(attack_id="A2")) == AttackDiff()


def test_new_signature_and_peak_change():
    previous = make_attack()
    current = make_attack(signatures=[
        make_signature(),
        make_signature(sig_id="s2", name="UDP", bps_peak=5000, pps_peak=50),
    ])

    diff = calculate_diff(current, previous)

    assert diff.new_signatures == ("UDP",)
    assert diff.bps_peak_change == 4000
    assert diff.bps_peak_current == 5000
    assert diff.pps_peak_change == 40
    assert not diff.ended
    assert diff.to_dict()["newSignatures"] == ["UDP"]
    assert diff.to_dict()["bpsPeakChange"] == 4000


def test_peak_decrease_is_negative():
    previous = make_attack(signatures=[make_signature(bps_peak=9000)])
    current = make_attack(signatures=[make_signature(bps_peak=3000)])
    diff = calculate_diff(current, previous)
    assert diff.bps_peak_change == -6000
    assert diff.pps_peak_change is None


def test_renamed_signature_with_same_id_is_not_new():
    previous = make_attack()
    current = make_attack(signatures=[make_signature(name="SYN-ACK")])
    assert calculate_diff(current, previous).new_signatures == ()


def test_ended_transition_reports_duration():
    previous = make_attack()
    current = make_attack(ended_at=T0 + timedelta(minutes=10))
    diff = calculate_diff(current, previous)
    assert diff.ended
    assert diff.duration == timedelta(minutes=10)
    assert diff.to_dict()["durationSeconds"] == 600


def test_timestamp_only_change_is_an_empty_diff():
    previous = make_attack()
    current = make_attack(signatures=[make_signature(ended_at=T0 + timedelta(minutes=1))])
    assert not current.equals(previous)
    assert not calculate_diff(current, previous)
