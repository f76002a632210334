"""
Tests for config.py environment parsing helpers.
"""

import pytest

import config


class TestIntEnv:

    def test_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("SOME_LIMIT", raising=False)
        assert config._int_env("SOME_LIMIT", 5) == 5

    def test_parses_value(self, monkeypatch):
        monkeypatch.setenv("SOME_LIMIT", "12")
        assert config._int_env("SOME_LIMIT", 5) == 12

    def test_invalid_value_exits(self, monkeypatch):
        monkeypatch.setenv("SOME_LIMIT", "twelve")
        with pytest.raises(SystemExit):
            config._int_env("SOME_LIMIT", 5)

    def test_below_minimum_exits(self, monkeypatch):
        monkeypatch.setenv("SOME_LIMIT", "0")
        with pytest.raises(SystemExit):
            config._int_env("SOME_LIMIT", 5, minimum=1)


class TestBoolEnv:

    @pytest.mark.parametrize("raw, expected", [("true", True), ("1", True), ("yes", True),
                                               ("false", False), ("0", False)])
    def test_values(self, monkeypatch, raw, expected):
        monkeypatch.setenv("SOME_FLAG", raw)
        assert config._bool_env("SOME_FLAG", not expected) is expected

    def test_default(self, monkeypatch):
        monkeypatch.delenv("SOME_FLAG", raising=False)
        assert config._bool_env("SOME_FLAG", True) is True


class TestLoadedSettings:

    def test_lock_policy(self):
        assert config.LOCK_TIMEOUT_SECONDS >= 1
        assert config.LOCK_RETRY_ATTEMPTS >= 0
        assert config.TRANSACTION_ISOLATION_LEVEL in ("READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE")

    def test_payment_settings(self):
        assert 0.0 <= config.CARD_PAYMENT_SUCCESS_RATE <= 1.0
        assert config.DEFAULT_PAYMENT_METHOD == "credit_card"
