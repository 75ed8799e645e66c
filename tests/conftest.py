"""Global test fixtures for the rolekeeper test suite."""

from __future__ import annotations

import os

import pytest

from rolekeeper.clock import ManualClock
from rolekeeper.config import RoleKeeperSettings, clear_config_cache
from rolekeeper.events import InMemoryEventSink
from rolekeeper.registry import RoleRegistry, set_role_registry
from rolekeeper.roles import RoleId
from rolekeeper.store import InMemoryRegistryStore

T0 = 1_700_000_000


# ============================================================================
# Role tags
# ============================================================================


class Moderator(RoleId, owner="0xA", name="tests.Moderator"):
    pass


class Bridge(RoleId, owner="0xA", name="tests.Bridge"):
    pass


class Auditor(RoleId, owner="0xB", name="tests.Auditor"):
    pass


@pytest.fixture
def moderator():
    return Moderator


@pytest.fixture
def bridge():
    return Bridge


@pytest.fixture
def auditor():
    return Auditor


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove ROLEKEEPER_ environment variables and reset global state."""
    for key in list(os.environ.keys()):
        if key.startswith("ROLEKEEPER_"):
            monkeypatch.delenv(key, raising=False)
    clear_config_cache()
    set_role_registry(None)
    yield
    clear_config_cache()
    set_role_registry(None)


# ============================================================================
# Registry Fixtures
# ============================================================================


@pytest.fixture
def clock():
    """Manual clock starting at a fixed timestamp."""
    return ManualClock(T0)


@pytest.fixture
def store():
    return InMemoryRegistryStore()


@pytest.fixture
def sink():
    return InMemoryEventSink()


@pytest.fixture
def settings():
    return RoleKeeperSettings(_env_file=None)


@pytest.fixture
def registry(store, clock, sink, settings):
    """Registry over in-memory storage with a manual clock and one sink."""
    return RoleRegistry(store=store, clock=clock, sinks=[sink], settings=settings)
