"""
Tests for bitsavetx/config.py
"""

import pytest

from bitsavetx.config import (
    CONTRACT_ADDRESS,
    BITSAVE_CONTRACT_NAME,
    MAX_POLL_ATTEMPTS,
    POLL_INTERVAL_SECONDS,
    NetworkConfig,
    TrackerConfig,
)

ENV_VARS = (
    "BITSAVE_NETWORK",
    "BITSAVE_API_URL",
    "BITSAVE_CONTRACT",
    "BITSAVE_REQUEST_TIMEOUT",
    "BITSAVE_POLL_INTERVAL",
    "BITSAVE_MAX_POLL_ATTEMPTS",
    "BITSAVE_MAX_WAIT_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestTrackerConfig:
    """Tests for TrackerConfig."""

    def test_defaults(self):
        config = TrackerConfig()
        assert config.poll_interval == POLL_INTERVAL_SECONDS == 5.0
        assert config.max_attempts == MAX_POLL_ATTEMPTS == 60
        assert config.max_wait_seconds is None

    @pytest.mark.parametrize("kwargs", [
        {"max_attempts": 0},
        {"poll_interval": -1},
        {"max_wait_seconds": 0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            TrackerConfig(**kwargs)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("BITSAVE_POLL_INTERVAL", "2.5")
        monkeypatch.setenv("BITSAVE_MAX_POLL_ATTEMPTS", "10")
        monkeypatch.setenv("BITSAVE_MAX_WAIT_SECONDS", "120")

        config = TrackerConfig.from_env()

        assert config.poll_interval == 2.5
        assert config.max_attempts == 10
        assert config.max_wait_seconds == 120.0

    def test_from_env_invalid_falls_back(self, monkeypatch):
        monkeypatch.setenv("BITSAVE_POLL_INTERVAL", "soon")
        monkeypatch.setenv("BITSAVE_MAX_POLL_ATTEMPTS", "many")

        config = TrackerConfig.from_env()

        assert config.poll_interval == POLL_INTERVAL_SECONDS
        assert config.max_attempts == MAX_POLL_ATTEMPTS

    @pytest.mark.parametrize("name,value", [
        ("BITSAVE_MAX_POLL_ATTEMPTS", "0"),
        ("BITSAVE_MAX_POLL_ATTEMPTS", "-3"),
        ("BITSAVE_MAX_WAIT_SECONDS", "0"),
        ("BITSAVE_MAX_WAIT_SECONDS", "-1"),
        ("BITSAVE_POLL_INTERVAL", "-0.5"),
        ("BITSAVE_POLL_INTERVAL", "nan"),
    ])
    def test_from_env_out_of_range_falls_back(self, monkeypatch, caplog, name, value):
        monkeypatch.setenv(name, value)

        config = TrackerConfig.from_env()

        assert config == TrackerConfig()
        assert name in caplog.text

    def test_from_env_zero_interval_allowed(self, monkeypatch):
        monkeypatch.setenv("BITSAVE_POLL_INTERVAL", "0")
        assert TrackerConfig.from_env().poll_interval == 0.0

    def test_to_dict(self):
        assert TrackerConfig(poll_interval=1, max_attempts=3).to_dict() == {
            "poll_interval": 1,
            "max_attempts": 3,
            "max_wait_seconds": None,
        }


class TestNetworkConfig:
    """Tests for NetworkConfig."""

    def test_defaults(self):
        config = NetworkConfig()
        assert config.network == "testnet"
        assert config.api_url == "https://api.testnet.hiro.so"
        assert config.contract_id == f"{CONTRACT_ADDRESS}.{BITSAVE_CONTRACT_NAME}"

    def test_for_network(self):
        config = NetworkConfig.for_network(" Mainnet ")
        assert config.network == "mainnet"
        assert config.api_url == "https://api.hiro.so"

    def test_for_network_invalid(self):
        with pytest.raises(ValueError, match="Invalid network"):
            NetworkConfig.for_network("regtest")

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("BITSAVE_NETWORK", "mainnet")
        monkeypatch.setenv("BITSAVE_API_URL", "http://localhost:3999/")
        monkeypatch.setenv("BITSAVE_CONTRACT", "SP123.bitsave-v3")
        monkeypatch.setenv("BITSAVE_REQUEST_TIMEOUT", "5")

        config = NetworkConfig.from_env()

        assert config.network == "mainnet"
        assert config.api_url == "http://localhost:3999"
        assert config.contract_address == "SP123"
        assert config.contract_name == "bitsave-v3"
        assert config.request_timeout == 5.0

    def test_from_env_invalid_values_ignored(self, monkeypatch):
        monkeypatch.setenv("BITSAVE_NETWORK", "regtest")
        monkeypatch.setenv("BITSAVE_CONTRACT", "no-dot")

        config = NetworkConfig.from_env()

        assert config == NetworkConfig()

    def test_from_env_zero_timeout_ignored(self, monkeypatch):
        monkeypatch.setenv("BITSAVE_REQUEST_TIMEOUT", "0")
        assert NetworkConfig.from_env().request_timeout == 30.0

    def test_to_dict(self):
        data = NetworkConfig().to_dict()
        assert data["contract_id"] == f"{CONTRACT_ADDRESS}.{BITSAVE_CONTRACT_NAME}"
        assert data["network"] == "testnet"
