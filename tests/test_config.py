"""Tests for configuration, logging setup and the exception hierarchy."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from rolekeeper import exceptions
from rolekeeper.config import RoleKeeperSettings, clear_config_cache, get_config
from rolekeeper.logging import JSONFormatter, StandardFormatter, configure_logging, get_logger
from rolekeeper.roles import RoleKey


class TestSettings:
    """Tests for RoleKeeperSettings."""

    def test_defaults(self):
        settings = RoleKeeperSettings(_env_file=None)

        assert settings.max_ttl_seconds == 0
        assert settings.token_secret is None
        assert settings.token_algorithm == "HS256"
        assert settings.events_path is None
        assert settings.log_level == "INFO"
        assert settings.resolved_store_path == Path("~/.rolekeeper/registry.json").expanduser()

    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ROLEKEEPER_MAX_TTL_SECONDS", "3600")
        monkeypatch.setenv("ROLEKEEPER_TOKEN_SECRET", "s3cret")
        monkeypatch.setenv("ROLEKEEPER_STORE_PATH", str(tmp_path / "r.json"))

        settings = RoleKeeperSettings(_env_file=None)

        assert settings.max_ttl_seconds == 3600
        assert settings.token_secret == "s3cret"
        assert settings.resolved_store_path == tmp_path / "r.json"

    def test_negative_max_ttl_rejected(self):
        with pytest.raises(ValueError):
            RoleKeeperSettings(_env_file=None, max_ttl_seconds=-1)

    def test_get_config_cached(self, monkeypatch):
        first = get_config()
        assert get_config() is first

        monkeypatch.setenv("ROLEKEEPER_LOG_LEVEL", "DEBUG")
        clear_config_cache()
        assert get_config() is not first
        assert get_config().log_level == "DEBUG"


class TestLogging:
    """Tests for logging configuration."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_formatter_includes_extra(self):
        record = logging.LogRecord("rolekeeper.registry", logging.INFO, __file__, 1, "Granted %s", ("U1",), None)
        record.extra_data = {"account": "U1"}

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "Granted U1"
        assert data["level"] == "INFO"
        assert data["extra"] == {"account": "U1"}
        assert "source" not in data

    def test_json_formatter_adds_source_for_warnings(self):
        record = logging.LogRecord("x", logging.WARNING, __file__, 7, "careful", (), None)
        data = json.loads(JSONFormatter().format(record))
        assert data["source"]["line"] == 7

    def test_standard_formatter(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", (), None)
        output = StandardFormatter(use_colors=False).format(record)
        assert output.endswith("INFO x: hello")

    def test_standard_formatter_appends_context(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "Granted", (), None)
        record.extra_data = {"role": "tests.Moderator@0xA", "account": "U1"}

        output = StandardFormatter(use_colors=False).format(record)

        assert output.endswith("Granted role=tests.Moderator@0xA account=U1")
        assert record.getMessage() == "Granted"

    def test_configure_logging(self, tmp_path):
        log_file = tmp_path / "rolekeeper.log"
        configure_logging(level="DEBUG", json_format=True, log_file=str(log_file))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

        get_logger("rolekeeper.test").info("written")
        for handler in root.handlers:
            handler.flush()
        assert json.loads(log_file.read_text().splitlines()[-1])["message"] == "written"

    def test_configure_logging_from_settings(self, monkeypatch):
        monkeypatch.setenv("ROLEKEEPER_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("ROLEKEEPER_LOG_FORMAT", "text")
        clear_config_cache()

        configure_logging()

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, StandardFormatter)


class TestExceptions:
    """Tests for the exception hierarchy."""

    ROLE = RoleKey("tests.Moderator", "0xA")

    @pytest.mark.parametrize(
        "error",
        [
            exceptions.AccessDenied(ROLE, "U1"),
            exceptions.RoleExpired(ROLE, 10, 11),
            exceptions.AddressMismatch(ROLE, "0xB", "0xA"),
            exceptions.AlreadyRegistered(ROLE),
            exceptions.NotRegistered(ROLE),
            exceptions.InvalidTTL(ROLE, "bad"),
            exceptions.AlreadyGranted(ROLE, "U1"),
            exceptions.NotGranted(ROLE, "U1"),
            exceptions.AlreadyRevoked(ROLE, "U1"),
            exceptions.CapabilityConsumed(ROLE, "manage"),
            exceptions.InvalidCapabilityToken("bad token"),
            exceptions.ConfigException("missing", missing_vars=["X"]),
        ],
    )
    def test_all_share_base(self, error):
        assert isinstance(error, exceptions.RoleKeeperException)
        data = error.to_dict()
        assert data["error"] == type(error).__name__
        assert data["message"] == str(error)

    def test_details_carry_role_and_account(self):
        error = exceptions.AlreadyGranted(self.ROLE, "U1")
        assert error.details == {"role": "tests.Moderator@0xA", "account": "U1"}

    def test_expired_details(self):
        error = exceptions.RoleExpired(self.ROLE, 10, 11)
        assert error.details["expiry"] == 10
        assert error.details["now"] == 11
