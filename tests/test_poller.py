"""Tests for the polling driver."""

from __future__ import annotations

import asyncio

import pytest

from neoprotect_notifier.config.settings import MonitorMode, MonitorSettings
from neoprotect_notifier.errors import NoActiveAttack, RequestFailed
from neoprotect_notifier.monitor.poller import AttackPoller
from neoprotect_notifier.monitor.tracker import AttackTracker
from tests.conftest import make_attack

pytestmark = pytest.mark.asyncio


class FakeClient:
    """Gateway double returning canned snapshots."""

    def __init__(self, active=None, per_address=None, fail_bulk=False):
        self.active = active or []
        self.per_address = per_address or {}
        self.fail_bulk = fail_bulk
        self.bulk_calls = 0
        self.address_calls: list[str] = []

    async def fetch_active_attacks(self):
        self.bulk_calls += 1
        if self.fail_bulk:
            raise RequestFailed("https://api.test/v2/ips/attacks", status_code=503)
        return list(self.active)

    async def fetch_active_attack_for_address(self, address):
        self.address_calls.append(address)
        result = self.per_address.get(address)
        if isinstance(result, Exception):
            raise result
        if result is None:
            raise NoActiveAttack(address)
        return result


def monitor_settings(**kwargs) -> MonitorSettings:
    return MonitorSettings(**kwargs)


async def test_all_mode_feeds_snapshot_to_tracker(manager, channel, clock):
    tracker = AttackTracker(manager=manager, clock=clock)
    client = FakeClient(active=[make_attack()])
    poller = AttackPoller(client, tracker, monitor_settings())

    report = await poller.poll_once()

    assert report.new == ["A1"]
    assert poller.cycles == 1


async def test_failed_bulk_fetch_aborts_cycle(manager, channel, clock):
    tracker = AttackTracker(manager=manager, clock=clock)
    client = FakeClient(active=[make_attack()])
    poller = AttackPoller(client, tracker, monitor_settings())
    await poller.poll_once()

    client.fail_bulk = True
    clock.advance(minutes=1)
    report = await poller.poll_once()

    assert report is None
    assert tracker.get("A1").is_active
    assert channel.events("ended") == []


async def test_specific_mode_queries_each_address(manager, channel, clock):
    tracker = AttackTracker(manager=manager, clock=clock)
    client = FakeClient(per_address={"1.2.3.4": make_attack(target="1.2.3.4")})
    settings = monitor_settings(
        MONITOR_MODE="specific",
        SPECIFIC_IPS="1.2.3.4,5.6.7.8,10.0.0.1",
        BLACKLISTED_IPS="10.0.0.0/8",
    )
    poller = AttackPoller(client, tracker, settings)

    report = await poller.poll_once()

    assert settings.monitor_mode == MonitorMode.SPECIFIC
    assert client.address_calls == ["1.2.3.4", "5.6.7.8"]
    assert report.new == ["A1"]


async def test_specific_mode_failure_skips_only_that_address(manager, channel, clock):
    tracker = AttackTracker(manager=manager, clock=clock)
    client = FakeClient(
        per_address={
            "1.2.3.4": make_attack(attack_id="A1", target="1.2.3.4"),
            "5.6.7.8": make_attack(attack_id="A2", target="5.6.7.8"),
        }
    )
    settings = monitor_settings(MONITOR_MODE="specific", SPECIFIC_IPS="1.2.3.4,5.6.7.8")
    poller = AttackPoller(client, tracker, settings)
    await poller.poll_once()

    client.per_address = {"1.2.3.4": RequestFailed("https://api.test/v2/ips/1.2.3.4/attack", status_code=500)}
    clock.advance(minutes=1)
    report = await poller.poll_once()

    assert report.ended == ["A2"]
    assert tracker.get("A1").is_active


async def test_run_polls_until_stopped(manager, channel, clock):
    tracker = AttackTracker(manager=manager, clock=clock)
    client = FakeClient(active=[make_attack()])
    poller = AttackPoller(client, tracker, monitor_settings(POLL_INTERVAL_SECONDS=3600))

    task = asyncio.create_task(poller.run())
    for _ in range(100):
        if poller.cycles:
            break
        await asyncio.sleep(0.01)
    poller.stop()
    await asyncio.wait_for(task, timeout=1.0)

    assert poller.cycles == 1
    assert client.bulk_calls == 1


async def test_run_survives_unexpected_errors(manager, clock):
    class ExplodingClient(FakeClient):
        async def fetch_active_attacks(self):
            self.bulk_calls += 1
            raise RuntimeError("unexpected")

    tracker = AttackTracker(manager=manager, clock=clock)
    client = ExplodingClient()
    poller = AttackPoller(client, tracker, monitor_settings(POLL_INTERVAL_SECONDS=3600))

    task = asyncio.create_task(poller.run())
    for _ in range(100):
        if client.bulk_calls:
            break
        await asyncio.sleep(0.01)
    poller.stop()
    await asyncio.wait_for(task, timeout=1.0)

    assert task.done() and task.exception() is None


async def test_specific_addresses_are_canonicalized(manager, channel, clock):
    tracker = AttackTracker(manager=manager, clock=clock)
    client = FakeClient(per_address={"2001:db8::1": make_attack(target="2001:db8::1")})
    settings = monitor_settings(MONITOR_MODE="specific", SPECIFIC_IPS="2001:DB8:0::1,2001:db8::1")
    poller = AttackPoller(client, tracker, settings)

    report = await poller.poll_once()
    assert poller.monitored_addresses == ["2001:db8::1"]
    assert report.new == ["A1"]

    client.per_address = {"2001:db8::1": RequestFailed("https://api.test/v2/ips/2001:db8::1/attack", status_code=500)}
    clock.advance(minutes=1)
    report = await poller.poll_once()

    assert report.ended == []
    assert tracker.get("A1").is_active
