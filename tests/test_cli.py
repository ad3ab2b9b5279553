"""Tests for the ledger-split command line."""

import re
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from ledger_split.cli import app, format_money
from ledger_split.exceptions import InternalInvariantViolation
from ledger_split.service import LedgerService

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_database(tmp_path, monkeypatch):
    """Point every command at a fresh database."""
    monkeypatch.setenv("LEDGER_SPLIT_DATABASE_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setenv("LEDGER_SPLIT_BASE_CURRENCY", "CAD")


@pytest.fixture
def home_ledger():
    """Create a 'home' ledger with alice and bob."""
    assert runner.invoke(app, ["ledger-set", "home"]).exit_code == 0
    for name in ("alice", "bob"):
        assert runner.invoke(app, ["member-set", "home", name]).exit_code == 0


def add_dinner(*extra: str):
    """alice pays $30.00 for herself and bob."""
    return runner.invoke(
        app,
        [
            "add", "home", "-n", "Dinner",
            "-m", "alice", "-w", "1", "-p", "30",
            "-m", "bob", "-w", "1", "-p", "0",
            *extra,
        ],
    )


class TestFormatMoney:
    """Tests for format_money."""

    def test_positive(self):
        """Positive amounts are padded to line up with negatives."""
        assert format_money(85.02, use_color=False) == " $85.02 "

    def test_negative(self):
        """Negative amounts use accounting parentheses."""
        assert format_money(-85.02, use_color=False) == "($85.02)"

    def test_thousands(self):
        """Large amounts get thousands separators."""
        assert format_money(1234567.5, use_color=False) == " $1,234,567.50 "


class TestLedgerCommands:
    """Tests for ledger and member commands."""

    def test_create_ledger(self):
        """ledger-set reports whether the ledger was created."""
        first = runner.invoke(app, ["ledger-set", "home"])
        second = runner.invoke(app, ["ledger-set", "home", "--currency", "USD"])

        assert first.exit_code == 0
        assert "Ledger 'home' created" in first.output
        assert "Ledger 'home' updated" in second.output

    def test_unsupported_currency(self):
        """Unsupported currencies are rejected with exit code 1."""
        result = runner.invoke(app, ["ledger-set", "home", "--currency", "JPY"])

        assert result.exit_code == 1
        assert "Currency is not supported" in result.output

    def test_members_of_missing_ledger(self):
        """Unknown ledgers are reported as errors."""
        result = runner.invoke(app, ["members", "missing"])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_delete_ledger(self, home_ledger):
        """ledger-delete --yes removes the ledger."""
        result = runner.invoke(app, ["ledger-delete", "home", "--yes"])

        assert result.exit_code == 0
        assert "'home' deleted" in result.output
        assert runner.invoke(app, ["members", "home"]).exit_code == 1


class TestTransactionCommands:
    """Tests for transaction commands."""

    def test_add_and_settle(self, home_ledger):
        """A recorded dinner shows up in the settlement."""
        added = add_dinner()
        settled = runner.invoke(app, ["settle", "home"])

        assert added.exit_code == 0
        assert "created" in added.output
        assert settled.exit_code == 0
        assert "bob" in settled.output
        assert "alice" in settled.output
        assert "$15.00" in settled.output

    def test_nothing_to_settle(self, home_ledger):
        """An empty ledger is already settled."""
        result = runner.invoke(app, ["settle", "home"])

        assert result.exit_code == 0
        assert "settled up" in result.output

    def test_invalid_transaction(self, home_ledger):
        """Validation failures exit with code 1 and a reason."""
        result = runner.invoke(
            app,
            ["add", "home", "-n", "Nothing", "-m", "alice", "-w", "0", "-p", "10"],
        )

        assert result.exit_code == 1
        assert "All the weights are zero" in result.output

    def test_show_missing_transaction(self, home_ledger):
        """Showing an unknown id exits with code 1."""
        result = runner.invoke(app, ["show", "nope"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_transactions_empty(self, home_ledger):
        """Listing with no transactions says so."""
        result = runner.invoke(app, ["transactions", "home"])

        assert result.exit_code == 0
        assert "No transactions found" in result.output

    def test_bad_date(self, home_ledger):
        """Malformed dates are rejected before anything is stored."""
        result = add_dinner("--date", "03/01/2025")

        assert result.exit_code != 0
        empty = runner.invoke(app, ["transactions", "home"])
        assert "No transactions found" in empty.output


class TestEditCommand:
    """Tests for edit."""

    @patch("ledger_split.service.ExchangeRateClient")
    def test_keeps_type_and_currency(self, mock_client_class, home_ledger):
        """Editing without --type or --currency keeps the stored values."""
        mock_client = MagicMock()
        mock_client.__enter__.return_value = mock_client
        mock_client.get_rate.return_value = 1.25
        mock_client_class.return_value = mock_client

        added = add_dinner("--type", "income", "--currency", "USD")
        transaction_id = re.search(r"Transaction (\w+) created", added.output)[1]

        edited = runner.invoke(
            app,
            [
                "edit", transaction_id, "-l", "home", "-n", "Refund",
                "-m", "alice", "-w", "1", "-p", "20",
                "-m", "bob", "-w", "1", "-p", "0",
            ],
        )
        shown = runner.invoke(app, ["show", transaction_id])

        assert edited.exit_code == 0
        assert "updated" in edited.output
        assert "Type: income" in shown.output
        assert "USD" in shown.output
        mock_client.get_rate.assert_called_once_with("USD", "CAD")

    def test_explicit_type_wins(self, home_ledger):
        """An explicit --type replaces the stored one."""
        added = add_dinner("--type", "income")
        transaction_id = re.search(r"Transaction (\w+) created", added.output)[1]

        runner.invoke(
            app,
            [
                "edit", transaction_id, "-l", "home", "-n", "Dinner",
                "-m", "alice", "-w", "1", "-p", "30",
                "-m", "bob", "-w", "1", "-p", "0",
                "--type", "expense",
            ],
        )
        shown = runner.invoke(app, ["show", transaction_id])

        assert "Type: expense" in shown.output


class TestErrorReporting:
    """Tests for how command errors surface."""

    @pytest.fixture
    def broken_balances(self, monkeypatch):
        """Make balance computation fail with an internal error."""

        def fail(self, ledger, money_format="dollars"):
            raise InternalInvariantViolation("inactive member 'bob' is not settled")

        monkeypatch.setattr(LedgerService, "compute_balances", fail)

    def test_internal_error_exits(self, home_ledger, broken_balances):
        """Internal failures print a message and exit with code 1."""
        result = runner.invoke(app, ["balance", "home"])

        assert result.exit_code == 1
        assert "Internal error" in result.output

    def test_internal_error_reraised_when_verbose(self, home_ledger, broken_balances):
        """--verbose lets internal failures propagate."""
        result = runner.invoke(app, ["balance", "home", "--verbose"])

        assert isinstance(result.exception, InternalInvariantViolation)
