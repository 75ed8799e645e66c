"""Tests for role tags, role keys and clocks."""

from __future__ import annotations

import pytest

from rolekeeper.clock import Clock, ManualClock, SystemClock
from rolekeeper.roles import RoleId, RoleKey, define_role, role_key


class TestRoleId:
    """Tests for RoleId marker classes."""

    def test_owner_and_explicit_name(self, moderator):
        assert moderator.owner == "0xA"
        assert moderator.key() == RoleKey("tests.Moderator", "0xA")

    def test_default_name_is_dotted_path(self):
        class Relayer(RoleId, owner="0xC"):
            pass

        assert Relayer.role_name == f"{__name__}.TestRoleId.test_default_name_is_dotted_path.<locals>.Relayer"

    def test_owner_required(self):
        with pytest.raises(TypeError, match="must declare an owner"):

            class Orphan(RoleId):
                pass

    def test_cannot_instantiate(self, moderator):
        with pytest.raises(TypeError):
            moderator()

    def test_define_role(self):
        role = define_role("app.roles.Bridge", "0xA")

        assert issubclass(role, RoleId)
        assert role.__name__ == "Bridge"
        assert role_key(role) == RoleKey("app.roles.Bridge", "0xA")


class TestRoleKey:
    """Tests for RoleKey helpers."""

    def test_str(self):
        assert str(RoleKey("tests.Moderator", "0xA")) == "tests.Moderator@0xA"

    def test_keys_with_at_signs_stay_distinct(self):
        first = RoleKey("mod@alice", "example.com")
        second = RoleKey("mod", "alice@example.com")

        assert str(first) == str(second)
        assert first != second
        assert len({first, second}) == 2

    def test_role_key_accepts_key(self):
        key = RoleKey("x", "y")
        assert role_key(key) is key

    def test_role_key_rejects_other_values(self):
        for value in ("tests.Moderator", RoleId, 42):
            with pytest.raises(TypeError):
                role_key(value)


class TestClocks:
    """Tests for clock sources."""

    def test_system_clock(self):
        clock = SystemClock()
        assert isinstance(clock, Clock)
        assert isinstance(clock.now(), int)

    def test_manual_clock_advance(self):
        clock = ManualClock(100)
        assert clock.advance(5) == 105
        assert clock.now() == 105

    def test_manual_clock_never_goes_back(self):
        clock = ManualClock(100)
        with pytest.raises(ValueError):
            clock.advance(-1)
        with pytest.raises(ValueError):
            clock.set(99)
        clock.set(100)
        assert clock.now() == 100
