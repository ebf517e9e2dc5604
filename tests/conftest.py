"""Shared fixtures for NeoProtect notifier tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from neoprotect_notifier.domain.entities.attack import Attack, AttackSignature
from neoprotect_notifier.errors import ChannelError
from neoprotect_notifier.infrastructure.persistence.message_tracker import MessageTracker
from neoprotect_notifier.integrations.base import Integration
from neoprotect_notifier.integrations.manager import IntegrationManager

T0 = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


# ── Helpers: build attacks with sensible defaults ───────────────────────


def make_signature(
    *,
    sig_id: str = "s1",
    name: str = "SYN",
    bps_peak: int = 1000,
    pps_peak: int = 10,
    started_at: Optional[datetime] = T0,
    ended_at: Optional[datetime] = None,
) -> AttackSignature:
    return AttackSignature(
        id=sig_id,
        name=name,
        started_at=started_at,
        ended_at=ended_at,
        pps_peak=pps_peak,
        bps_peak=bps_peak,
    )


def make_attack(
    *,
    attack_id: str = "A1",
    target: str = "1.2.3.4",
    started_at: Optional[datetime] = T0,
    ended_at: Optional[datetime] = None,
    signatures: Optional[list[AttackSignature]] = None,
) -> Attack:
    return Attack(
        id=attack_id,
        target_address=target,
        started_at=started_at,
        ended_at=ended_at,
        signatures=list(signatures) if signatures is not None else [make_signature()],
    )


def attack_json(
    *,
    attack_id: str = "A1",
    target: str = "1.2.3.4",
    started_at: str = "2025-03-01T12:00:00Z",
    ended_at: Optional[str] = None,
) -> dict:
    return {
        "id": attack_id,
        "dstAddressString": target,
        "dstAddress": {"ipv4": target, "settings": {"autoMitigation": True}},
        "startedAt": started_at,
        "endedAt": ended_at,
        "sampleRate": 1024,
        "signatures": [
            {
                "id": "s1",
                "name": "SYN",
                "startedAt": started_at,
                "endedAt": None,
                "ppsPeak": 10,
                "bpsPeak": 1000,
            }
        ],
    }


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeIntegration(Integration):
    """Channel that records every call."""

    def __init__(
        self,
        name: str = "fake",
        fail: bool = False,
        delay: float = 0.0,
        message_id: Optional[str] = "msg-1",
        replacement_id: Optional[str] = None,
    ):
        self.name = name
        self.fail = fail
        self.delay = delay
        self.message_id = message_id
        self.replacement_id = replacement_id
        self.config: Optional[dict] = None
        self.calls: list[tuple] = []
        self.started = False
        self.shut_down = False

    def initialize(self, config):
        self.config = config

    async def _maybe_fail(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ChannelError(self.name, "boom")

    async def notify_new_attack(self, attack):
        self.calls.append(("new", attack.id, None))
        await self._maybe_fail()
        return self.message_id

    async def notify_attack_update(self, attack, previous, message_id):
        self.calls.append(("update", attack.id, message_id))
        await self._maybe_fail()
        return self.replacement_id or message_id

    async def notify_attack_ended(self, attack, message_id):
        self.calls.append(("ended", attack.id, message_id))
        await self._maybe_fail()
        return self.replacement_id or message_id

    async def start(self):
        self.started = True

    async def shutdown(self):
        self.shut_down = True

    def events(self, kind: Optional[str] = None) -> list[tuple]:
        return [c for c in self.calls if kind is None or c[0] == kind]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def message_tracker() -> MessageTracker:
    return MessageTracker()


@pytest.fixture
def channel() -> FakeIntegration:
    return FakeIntegration()


@pytest.fixture
def manager(message_tracker, channel) -> IntegrationManager:
    mgr = IntegrationManager(message_tracker=message_tracker, channel_timeout=1.0)
    mgr.add(channel)
    return mgr
