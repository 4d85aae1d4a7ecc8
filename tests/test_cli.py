"""
Tests for bitsavetx/cli.py
"""

import json
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from bitsavetx import cli as cli_module
from bitsavetx.cli import cli
from bitsavetx.config import NetworkConfig, TrackerConfig
from bitsavetx.ledger import LedgerTxStatus, StatusReading
from bitsavetx.tracker import TransactionState, TransactionStatus


@pytest.fixture
def runner():
    return CliRunner()


class FakeClient:
    """Stands in for HiroClient in the track command."""

    readings = []

    def __init__(self, config=None):
        self.config = config
        self.calls = []

    async def get_transaction_status(self, tx_id):
        self.calls.append(tx_id)
        return self.readings[min(len(self.calls), len(self.readings)) - 1]

    def explorer_url(self, tx_id):
        return f"https://explorer.example/{tx_id}"

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


# ============================================================================
# PREVIEWS
# ============================================================================

class TestPreviewCommands:
    """Tests for preview-deposit, preview-withdrawal and error-code."""

    def test_preview_deposit(self, runner):
        result = runner.invoke(cli, ["preview-deposit", "5", "4320"])

        assert result.exit_code == 0
        assert "Deposit:     5.000000 STX" in result.output
        assert "Reward:      0.500000 STX" in result.output
        assert "At unlock:   5.500000 STX" in result.output

    def test_preview_deposit_json(self, runner):
        result = runner.invoke(cli, ["--json", "preview-deposit", "1", "4320", "--rate", "20"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["amount"] == 1_000_000
        assert data["reward"] == 200_000

    def test_preview_deposit_bad_amount(self, runner):
        result = runner.invoke(cli, ["preview-deposit", "lots", "4320"])
        assert result.exit_code == 2

    def test_preview_withdrawal(self, runner):
        result = runner.invoke(cli, ["preview-withdrawal", "10", "--penalty-rate", "50"])

        assert result.exit_code == 0
        assert "Penalty:     5.000000 STX" in result.output
        assert "Payout:      5.000000 STX" in result.output

    def test_preview_withdrawal_matured(self, runner):
        result = runner.invoke(cli, ["--json", "preview-withdrawal", "10", "--matured"])

        data = json.loads(result.output)
        assert data["early"] is False
        assert data["payout"] == 10_000_000

    def test_error_code(self, runner):
        result = runner.invoke(cli, ["error-code", "103"])
        assert result.output.strip() == "103: Lock period still active"

    def test_unknown_error_code(self, runner):
        result = runner.invoke(cli, ["error-code", "999"])
        assert result.output.strip() == "999: Unknown error (999)"


# ============================================================================
# TRACK
# ============================================================================

class TestTrackCommand:
    """Tests for the track command."""

    def test_confirmed(self, runner):
        state = TransactionState(TransactionStatus.SUCCESS, tx_id="0xabc")
        with patch.object(cli_module, "_track", AsyncMock(return_value=(state, "https://x/0xabc"))):
            result = runner.invoke(cli, ["track", "0xabc"])

        assert result.exit_code == 0
        assert "Confirmed: https://x/0xabc" in result.output

    def test_failed_exits_nonzero(self, runner):
        state = TransactionState(TransactionStatus.ERROR, tx_id="0xabc", error="Transaction timeout")
        with patch.object(cli_module, "_track", AsyncMock(return_value=(state, "https://x/0xabc"))):
            result = runner.invoke(cli, ["--json", "track", "0xabc"])

        assert result.exit_code == 1
        assert json.loads(result.output) == {
            "status": "error",
            "tx_id": "0xabc",
            "error": "Transaction timeout",
        }

    def test_options_override_config(self, runner):
        state = TransactionState(TransactionStatus.SUCCESS, tx_id="0xabc")
        track = AsyncMock(return_value=(state, "https://x/0xabc"))
        with patch.object(cli_module, "_track", track):
            runner.invoke(cli, ["track", "0xabc", "--interval", "1", "--max-attempts", "3",
                                "--network", "mainnet"])

        tx_id, tracker_config, network_config = track.call_args[0]
        assert tx_id == "0xabc"
        assert tracker_config.poll_interval == 1.0
        assert tracker_config.max_attempts == 3
        assert network_config.network == "mainnet"

    @pytest.mark.asyncio
    @pytest.mark.timeout(10)
    async def test_track_polls_until_confirmed(self):
        FakeClient.readings = [
            StatusReading(LedgerTxStatus.PENDING),
            StatusReading(LedgerTxStatus.SUCCESS),
        ]
        with patch.object(cli_module, "HiroClient", FakeClient):
            state, url = await cli_module._track(
                "0xabc",
                TrackerConfig(poll_interval=0, max_attempts=5),
                NetworkConfig(),
            )

        assert state.status is TransactionStatus.SUCCESS
        assert state.tx_id == "0xabc"
        assert url == "https://explorer.example/0xabc"

    @pytest.mark.asyncio
    @pytest.mark.timeout(10)
    async def test_track_rejected(self):
        FakeClient.readings = [StatusReading(LedgerTxStatus.ABORT_BY_RESPONSE, detail="Contract paused")]
        with patch.object(cli_module, "HiroClient", FakeClient):
            state, _ = await cli_module._track(
                "0xabc",
                TrackerConfig(poll_interval=0, max_attempts=5),
                NetworkConfig(),
            )

        assert state.status is TransactionStatus.ERROR
        assert state.error == "Contract paused"
