"""Tests for the balance accumulator."""

import logging
from datetime import date
from decimal import Decimal

import pytest

from group_ledger.accumulator import accumulate, build_balance_sheet
from group_ledger.exceptions import EmptyParticipantsError
from group_ledger.models import (
    EqualSplit,
    FixedSplit,
    Participant,
    PercentageSplit,
    Transaction,
    TransactionKind,
)

ANA = Participant(id="ana", display_name="Ana", position=1)
BETO = Participant(id="beto", display_name="Beto", position=2)
CAIO = Participant(id="caio", display_name="Caio", position=3)


def make_expense(
    amount: str,
    payer_id: str,
    rule=None,
    id: str = "e1",
    kind: TransactionKind = TransactionKind.EXPENSE,
    active: bool = True,
) -> Transaction:
    """Create an expense (or agreement) for testing."""
    return Transaction(
        id=id,
        kind=kind,
        amount=Decimal(amount),
        payer_id=payer_id,
        split_rule=rule or EqualSplit(),
        occurs_on=date(2026, 10, 5),
        active=active,
    )


def make_settlement(
    amount: str, payer_id: str, receiver_id: str | None = None, id: str = "s1"
) -> Transaction:
    """Create a settlement for testing."""
    return Transaction(
        id=id,
        kind=TransactionKind.SETTLEMENT,
        amount=Decimal(amount),
        payer_id=payer_id,
        receiver_id=receiver_id,
        occurs_on=date(2026, 10, 10),
    )


class TestOwedBalances:
    """The asymmetric owed balance."""

    def test_two_party_equal_split(self):
        """Payer is not credited; the other owes half."""
        balances = accumulate([make_expense("100", "ana")], [ANA, BETO])

        assert balances == {"ana": Decimal("0"), "beto": Decimal("50")}

    def test_settlement_zeroes_debt(self):
        """A settlement by the debtor brings their balance to zero."""
        balances = accumulate(
            [make_expense("100", "ana"), make_settlement("50", "beto")],
            [ANA, BETO],
        )

        assert balances["beto"] == Decimal("0")

    def test_settlement_overshoot_is_credit(self):
        """Paying back more than owed leaves a negative balance."""
        balances = accumulate(
            [make_expense("100", "ana"), make_settlement("80", "beto")],
            [ANA, BETO],
        )

        assert balances["beto"] == Decimal("-30")

    def test_percentage_with_missing_entry(self):
        """Missing percentage defaults to an even split."""
        rule = PercentageSplit(percentages={"beto": Decimal("70")})

        balances = accumulate([make_expense("90", "ana", rule)], [ANA, BETO, CAIO])

        assert balances == {
            "ana": Decimal("0"),
            "beto": Decimal("63"),
            "caio": Decimal("30"),
        }

    def test_every_participant_starts_at_zero(self):
        """Participants without transactions are present with zero."""
        balances = accumulate([], [ANA, BETO, CAIO])

        assert balances == {"ana": 0, "beto": 0, "caio": 0}

    def test_inputs_not_mutated(self):
        """The transaction list is left untouched."""
        transactions = [make_expense("100", "ana"), make_settlement("50", "beto")]
        before = list(transactions)

        accumulate(transactions, [ANA, BETO])

        assert transactions == before


class TestAgreements:
    """Recurring agreements."""

    def test_active_agreement_counts(self):
        """An active agreement contributes like an expense."""
        agreement = make_expense("1200", "ana", kind=TransactionKind.AGREEMENT)

        balances = accumulate([agreement], [ANA, BETO])

        assert balances["beto"] == Decimal("600")

    def test_inactive_agreement_ignored(self):
        """Inactive agreements contribute nothing."""
        agreement = make_expense(
            "1200", "ana", kind=TransactionKind.AGREEMENT, active=False
        )

        balances = accumulate([agreement], [ANA, BETO])

        assert balances["beto"] == Decimal("0")


class TestPositions:
    """Signed positions that know who is owed."""

    def test_payer_is_credited_in_positions(self):
        """The payer's position is minus what the others owe."""
        sheet = build_balance_sheet([make_expense("100", "ana")], [ANA, BETO])

        assert sheet.positions == {"ana": Decimal("-50"), "beto": Decimal("50")}

    def test_two_party_settlement_has_implicit_receiver(self):
        """With two people the receiver is the other one."""
        sheet = build_balance_sheet(
            [make_expense("100", "ana"), make_settlement("50", "beto")],
            [ANA, BETO],
        )

        assert sheet.positions == {"ana": Decimal("0"), "beto": Decimal("0")}
        assert sheet.diagnostics == []

    def test_explicit_receiver(self):
        """A settlement with a receiver moves the receiver toward zero."""
        sheet = build_balance_sheet(
            [
                make_expense("90", "ana"),
                make_settlement("30", "caio", receiver_id="ana"),
            ],
            [ANA, BETO, CAIO],
        )

        assert sheet.positions == {
            "ana": Decimal("-30"),
            "beto": Decimal("30"),
            "caio": Decimal("0"),
        }

    def test_positions_conserve_to_zero(self):
        """Positions sum to zero when every settlement is attributed."""
        transactions = [
            make_expense("100", "ana", id="e1"),
            make_expense("45.50", "beto", id="e2"),
            make_expense(
                "30",
                "caio",
                FixedSplit(amounts={"ana": Decimal("10"), "beto": Decimal("20")}),
                id="e3",
            ),
            make_settlement("20", "beto", receiver_id="ana"),
        ]

        sheet = build_balance_sheet(transactions, [ANA, BETO, CAIO])

        assert abs(sum(sheet.positions.values())) < Decimal("0.01")

    def test_unattributed_settlement_in_group(self):
        """Three people and no receiver: only the payer side is applied."""
        sheet = build_balance_sheet(
            [make_expense("90", "ana"), make_settlement("30", "beto")],
            [ANA, BETO, CAIO],
        )

        assert sheet.owed["beto"] == Decimal("0")
        assert sheet.positions["ana"] == Decimal("-60")
        assert [d.code for d in sheet.diagnostics] == ["unattributed_settlement"]


class TestDegradedData:
    """Malformed records degrade gracefully."""

    def test_unknown_payer_dropped(self):
        """An expense by a removed participant is dropped with a diagnostic."""
        sheet = build_balance_sheet(
            [make_expense("100", "ghost", id="old"), make_expense("10", "ana")],
            [ANA, BETO],
        )

        assert sheet.owed == {"ana": Decimal("0"), "beto": Decimal("5")}
        assert sheet.diagnostics[0].code == "unknown_payer"
        assert sheet.diagnostics[0].transaction_id == "old"

    def test_non_positive_amount_dropped(self):
        """A zero amount record does not abort the fold."""
        sheet = build_balance_sheet(
            [make_expense("0", "ana", id="zero"), make_expense("10", "ana")],
            [ANA, BETO],
        )

        assert sheet.owed["beto"] == Decimal("5")
        assert [d.code for d in sheet.diagnostics] == ["non_positive_amount"]

    def test_unknown_receiver(self):
        """An unknown receiver is reported and skipped."""
        sheet = build_balance_sheet(
            [make_settlement("10", "ana", receiver_id="ghost")], [ANA, BETO]
        )

        assert sheet.owed["ana"] == Decimal("-10")
        assert [d.code for d in sheet.diagnostics] == ["unknown_receiver"]

    def test_empty_participants_rejected(self):
        """Accumulating without participants is a caller error."""
        with pytest.raises(EmptyParticipantsError):
            accumulate([make_expense("10", "ana")], [])

    def test_settlement_to_self(self):
        """A settlement paid to its own payer only applies the payer side."""
        sheet = build_balance_sheet(
            [
                make_expense("100", "ana"),
                make_settlement("50", "beto", receiver_id="beto"),
            ],
            [ANA, BETO],
        )

        assert sheet.owed["beto"] == Decimal("0")
        assert sheet.positions == {"ana": Decimal("-50"), "beto": Decimal("0")}
        assert [d.code for d in sheet.diagnostics] == ["unknown_receiver"]

    def test_split_anomalies_logged_as_warnings(self, caplog):
        """Tolerated split problems reach the log at WARNING."""
        rule = PercentageSplit(percentages={"beto": Decimal("70")})

        with caplog.at_level(logging.DEBUG, logger="group_ledger"):
            sheet = build_balance_sheet(
                [make_expense("90", "ana", rule, id="pct")], [ANA, BETO, CAIO]
            )

        assert [d.code for d in sheet.diagnostics] == ["missing_percentage"]
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "pct" in warnings[0].getMessage()
