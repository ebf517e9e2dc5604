"""Tests for attack/channel message correlation."""

import pytest

from neoprotect_notifier.infrastructure.persistence.message_tracker import MessageTracker

pytestmark = pytest.mark.asyncio


async def test_record_and_lookup():
    tracker = MessageTracker()
    await tracker.record_message("A1", "discord", "m1")

    assert await tracker.lookup("A1", "discord") == "m1"
    assert await tracker.lookup("A1", "webhook") is None
    assert await tracker.lookup("A2", "discord") is None


async def test_record_overwrites_same_channel():
    tracker = MessageTracker()
    await tracker.record_message("A1", "discord", "m1")
    await tracker.record_message("A1", "discord", "m2")

    assert await tracker.lookup("A1", "discord") == "m2"
    assert len(tracker) == 1


async def test_empty_values_are_ignored():
    tracker = MessageTracker()
    await tracker.record_message("A1", "discord", "")
    await tracker.record_message("", "discord", "m1")

    assert len(tracker) == 0


async def test_forget_drops_every_channel():
    tracker = MessageTracker()
    await tracker.record_message("A1", "discord", "m1")
    await tracker.record_message("A1", "discord_bot", "m2")
    await tracker.record_message("A2", "discord", "m3")

    await tracker.forget("A1")

    assert tracker.snapshot() == {"A2": {"discord": "m3"}}


async def test_forget_message_removes_empty_entry():
    tracker = MessageTracker()
    await tracker.record_message("A1", "discord", "m1")
    await tracker.record_message("A1", "discord_bot", "m2")

    await tracker.forget_message("A1", "discord")
    assert tracker.snapshot() == {"A1": {"discord_bot": "m2"}}

    await tracker.forget_message("A1", "discord_bot")
    assert len(tracker) == 0

    # Unknown attack is a no-op
    await tracker.forget_message("A9", "discord")
