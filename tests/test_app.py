"""Tests for application wiring."""

import asyncio

import pytest

from neoprotect_notifier.app import NotifierApp
from neoprotect_notifier.config import settings as settings_module
from neoprotect_notifier.config.settings import load_settings
from neoprotect_notifier.integrations.console import ConsoleIntegration
from neoprotect_notifier.integrations.manager import IntegrationManager
from tests.conftest import FakeIntegration, make_attack

pytestmark = pytest.mark.asyncio


class StubClient:
    base_url = "https://api.test/v2"

    def __init__(self):
        self.closed = False

    async def fetch_active_attacks(self):
        return [make_attack()]

    async def close(self):
        self.closed = True


@pytest.fixture
def settings(monkeypatch):
    for alias in settings_module._FILE_KEYS.values():
        monkeypatch.delenv(alias, raising=False)
    monkeypatch.setenv("NEOPROTECT_API_KEY", "key")
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "3600")
    return load_settings()


async def test_setup_loads_enabled_channels(settings):
    app = NotifierApp(settings, client=StubClient())

    app.setup()

    assert isinstance(app.manager.integrations["console"], ConsoleIntegration)


async def test_run_polls_and_shuts_down(settings):
    channel = FakeIntegration()
    manager = IntegrationManager(channel_timeout=1.0)
    manager.add(channel)
    client = StubClient()
    app = NotifierApp(settings, client=client, manager=manager)
    # Only the fake channel is loaded; it needs a mapping
    settings.integrations.integration_configs["fake"] = {}

    task = asyncio.create_task(app.run())
    for _ in range(100):
        if app.poller.cycles:
            break
        await asyncio.sleep(0.01)
    app.stop()
    await asyncio.wait_for(task, timeout=1.0)

    assert channel.started
    assert channel.events("new") == [("new", "A1", None)]
    assert channel.shut_down
    assert client.closed
    assert app.message_tracker is manager.message_tracker


async def test_default_wiring_shares_one_message_store(settings):
    app = NotifierApp(settings, client=StubClient())
    app.manager.add(FakeIntegration())

    await app.tracker.process([make_attack()])

    assert app.message_tracker is app.manager.message_tracker
    assert await app.message_tracker.lookup("A1", "fake") == "msg-1"
