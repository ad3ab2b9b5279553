"""Tests for assembling contribution rows into transaction views."""

from datetime import date
from decimal import Decimal

import pytest

from ledger_split.apportion import split_by_weights
from ledger_split.assembler import (
    assemble_transaction,
    assemble_transactions,
    cents_to_dollars,
    dollars_to_cents,
    group_rows,
    multiply_cents,
)
from ledger_split.models import (
    AssembleOptions,
    ListTransactionView,
    MapTransactionView,
    ObjectTransactionView,
    TransactionRow,
)


# Helper function for tests
def make_rows(
    id: str,
    lines: list[tuple[str, int, float]],
    expense_type: str = "expense",
    exchange_rate: float = 1.0,
    currency: str = "CAD",
    on: date = date(2025, 1, 15),
) -> list[TransactionRow]:
    """Create the joined rows of one transaction from (member, cents, weight)."""
    return [
        TransactionRow(
            id=id,
            name=f"Test transaction {id}",
            category=None,
            currency=currency,
            date=on,
            exchange_rate=exchange_rate,
            expense_type=expense_type,
            ledger="home",
            member=member,
            amount=amount,
            weight=weight,
        )
        for member, amount, weight in lines
    ]


CENTS_LIST = AssembleOptions(money_format="cents", shape="list")


class TestMoneyConversion:
    """Tests for cents/dollars helpers."""

    def test_multiply_by_one(self):
        """A rate of 1 leaves cents unchanged."""
        assert multiply_cents(1234, 1.0) == 1234

    def test_multiply_uses_shortest_repr(self):
        """0.7 multiplies as 0.7, not its binary approximation."""
        assert multiply_cents(1000, 0.7) == 700

    def test_multiply_rounds_half_to_even(self):
        """Exact halves round to the even neighbour."""
        assert multiply_cents(25, 0.5) == 12
        assert multiply_cents(35, 0.5) == 18
        assert multiply_cents(-25, 0.5) == -12

    def test_dollars_to_cents(self):
        """Dollar amounts become integer cents without float drift."""
        assert dollars_to_cents(Decimal("0.29")) == 29
        assert dollars_to_cents(0.29) == 29
        assert dollars_to_cents(Decimal("19.99")) == 1999
        assert dollars_to_cents(12) == 1200

    def test_dollars_to_cents_half_even(self):
        """Sub-cent halves round to the even cent."""
        assert dollars_to_cents(Decimal("0.285")) == 28
        assert dollars_to_cents(Decimal("0.295")) == 30

    def test_cents_to_dollars(self):
        """Cents convert to exact Decimal dollars."""
        assert cents_to_dollars(1999) == Decimal("19.99")
        assert cents_to_dollars(-5) == Decimal("-0.05")


class TestGroupRows:
    """Tests for grouping joined rows per transaction."""

    def test_keeps_first_seen_order(self):
        """Transactions come out in the order their rows first appear."""
        rows = (
            make_rows("b", [("alice", 100, 1)])
            + make_rows("a", [("alice", 100, 1), ("bob", 0, 1)])
        )

        groups = group_rows(rows)

        assert [group[0].id for group in groups] == ["b", "a"]
        assert [row.member for row in groups[1]] == ["alice", "bob"]

    def test_empty(self):
        """No rows, no groups."""
        assert group_rows([]) == []


class TestAssembleTotals:
    """paid and owed both sum to the transaction amount."""

    def test_three_way_dinner(self):
        """One member pays $100.00 for three equal shares."""
        rows = make_rows(
            "dinner", [("alice", 10000, 1), ("bob", 0, 1), ("carol", 0, 1)]
        )

        view = assemble_transaction(rows, CENTS_LIST)

        assert isinstance(view, ListTransactionView)
        assert view.amount == 10000
        assert view.paid == [10000, 0, 0]
        assert sum(view.owed) == 10000
        assert sorted(view.owed) == [3333, 3333, 3334]

    def test_owed_is_seeded_by_transaction_id(self):
        """The owed split is the weighted split seeded with the id."""
        rows = make_rows("aB3dE5fG7h", [("alice", 1001, 1), ("bob", 0, 2)])

        view = assemble_transaction(rows, CENTS_LIST)

        assert view.owed == split_by_weights(1001, [1, 2], seed="aB3dE5fG7h")

    def test_reassembly_is_identical(self):
        """Assembling the same rows twice gives the same view."""
        rows = make_rows(
            "repeat", [("alice", 1000, 1), ("bob", 1, 1), ("carol", 0, 1)]
        )

        assert assemble_transaction(rows, CENTS_LIST) == assemble_transaction(
            rows, CENTS_LIST
        )

    def test_multiple_payers(self):
        """Several members paying still balance."""
        rows = make_rows("multi", [("alice", 2500, 1), ("bob", 1333, 1)])

        view = assemble_transaction(rows, CENTS_LIST)

        assert view.amount == 3833
        assert sum(view.paid) == sum(view.owed) == 3833

    def test_no_rows_rejected(self):
        """A transaction needs at least one contribution."""
        with pytest.raises(ValueError):
            assemble_transaction([], CENTS_LIST)


class TestAssembleExchangeRate:
    """Exchange rate handling."""

    def test_rate_ignored_by_default(self):
        """Without use_exchange_rate the stored amounts are used as-is."""
        rows = make_rows("usd", [("alice", 1000, 1)], exchange_rate=1.35)

        view = assemble_transaction(rows, CENTS_LIST)

        assert view.paid == [1000]
        assert view.exchange_rate == 1.35

    def test_rate_applied_on_request(self):
        """With use_exchange_rate each paid amount is converted and rounded."""
        rows = make_rows(
            "usd", [("alice", 1001, 1), ("bob", 333, 1)], exchange_rate=1.5
        )

        view = assemble_transaction(
            rows, AssembleOptions(use_exchange_rate=True, money_format="cents")
        )

        # 1001 * 1.5 = 1501.5 -> 1502, 333 * 1.5 = 499.5 -> 500
        assert view.paid == [1502, 500]
        assert view.amount == 2002
        assert sum(view.owed) == 2002


class TestAssembleFormats:
    """Money formats and output shapes."""

    def test_dollars_format(self):
        """Dollar format divides every amount by 100 as Decimal."""
        rows = make_rows("d", [("alice", 1000, 1), ("bob", 0, 1)])

        view = assemble_transaction(rows, AssembleOptions(money_format="dollars"))

        assert view.amount == Decimal("10")
        assert view.paid == [Decimal("10"), Decimal("0")]
        assert view.owed == [Decimal("5"), Decimal("5")]
        assert all(isinstance(value, Decimal) for value in view.owed)

    def test_object_shape(self):
        """Object shape gives one record per member, in row order."""
        rows = make_rows("o", [("alice", 900, 2), ("bob", 0, 1)])

        view = assemble_transaction(
            rows, AssembleOptions(money_format="cents", shape="object")
        )

        assert isinstance(view, ObjectTransactionView)
        assert view.shape == "object"
        assert [c.member for c in view.contributions] == ["alice", "bob"]
        assert view.contributions[0].weight == 2
        assert view.contributions[0].paid == 900
        assert view.contributions[0].owed == 600
        assert view.contributions[1].owed == 300

    def test_map_shape(self):
        """Map shape keys contributions by member name."""
        rows = make_rows("m", [("alice", 900, 2), ("bob", 0, 1)])

        view = assemble_transaction(
            rows, AssembleOptions(money_format="cents", shape="map")
        )

        assert isinstance(view, MapTransactionView)
        assert set(view.contributions) == {"alice", "bob"}
        assert view.contributions["bob"].paid == 0
        assert view.contributions["bob"].owed == 300

    def test_header_fields_carried(self):
        """Header fields come from the transaction, not the contribution."""
        rows = make_rows(
            "h", [("alice", 100, 1)], expense_type="income", currency="EUR"
        )

        view = assemble_transaction(rows, CENTS_LIST)

        assert view.id == "h"
        assert view.name == "Test transaction h"
        assert view.currency == "EUR"
        assert view.expense_type == "income"
        assert view.ledger == "home"
        assert view.date == date(2025, 1, 15)


class TestAssembleTransactions:
    """Assembling a whole row set."""

    def test_one_view_per_transaction(self):
        """Every transaction in the rows becomes one view, in order."""
        rows = (
            make_rows("new", [("alice", 100, 1), ("bob", 0, 1)])
            + make_rows("old", [("bob", 300, 1)])
        )

        views = assemble_transactions(rows, CENTS_LIST)

        assert [view.id for view in views] == ["new", "old"]

    def test_default_options(self):
        """Defaults are list shape in dollars without exchange rates."""
        rows = make_rows("x", [("alice", 150, 1)], exchange_rate=2.0)

        [view] = assemble_transactions(rows)

        assert isinstance(view, ListTransactionView)
        assert view.paid == [Decimal("1.5")]
