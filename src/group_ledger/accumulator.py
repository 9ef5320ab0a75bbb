"""Fold transactions into per-participant balances."""

import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal

from .exceptions import EmptyParticipantsError
from .models import (
    BalanceSheet,
    Diagnostic,
    Participant,
    Transaction,
    TransactionKind,
)
from .splits import collect_split_diagnostics, evaluate_split

logger = logging.getLogger(__name__)


class _Fold:
    """Mutable working state for a single accumulation pass."""

    def __init__(self, participants: Sequence[Participant]):
        self.participants = participants
        self.ids = {p.id for p in participants}
        self.owed = {p.id: Decimal("0") for p in participants}
        self.positions = {p.id: Decimal("0") for p in participants}
        self.diagnostics: list[Diagnostic] = []

    def report(self, code: str, message: str, transaction: Transaction) -> None:
        logger.warning(f"Transaction {transaction.id or '?'}: {message}")
        self.diagnostics.append(
            Diagnostic(code=code, message=message, transaction_id=transaction.id)
        )

    def add_cost(self, transaction: Transaction) -> None:
        """Apply an expense or active agreement."""
        assert transaction.split_rule is not None
        shares = evaluate_split(
            transaction.amount,
            transaction.split_rule,
            self.participants,
            transaction.payer_id,
        )
        for diagnostic in collect_split_diagnostics(
            transaction.amount,
            transaction.split_rule,
            self.participants,
            transaction.payer_id,
            transaction_id=transaction.id,
        ):
            self.report(diagnostic.code, diagnostic.message, transaction)

        advanced = Decimal("0")
        for participant_id, share in shares.items():
            self.owed[participant_id] += share
            self.positions[participant_id] += share
            advanced += share
        self.positions[transaction.payer_id] -= advanced

    def add_settlement(self, transaction: Transaction) -> None:
        """Apply a repayment: the payer reduces their own owed balance."""
        self.owed[transaction.payer_id] -= transaction.amount
        self.positions[transaction.payer_id] -= transaction.amount

        receiver_id = self._resolve_receiver(transaction)
        if receiver_id is not None:
            self.positions[receiver_id] += transaction.amount

    def _resolve_receiver(self, transaction: Transaction) -> str | None:
        if transaction.receiver_id is not None:
            if transaction.receiver_id == transaction.payer_id:
                self.report(
                    "unknown_receiver",
                    "Settlement paid to its own payer; receiver side skipped",
                    transaction,
                )
                return None
            if transaction.receiver_id in self.ids:
                return transaction.receiver_id
            self.report(
                "unknown_receiver",
                f"Settlement receiver {transaction.receiver_id} is not a participant",
                transaction,
            )
            return None

        others = [pid for pid in self.owed if pid != transaction.payer_id]
        if len(others) == 1:
            return others[0]

        self.report(
            "unattributed_settlement",
            "Settlement has no receiver; only the payer's balance was reduced",
            transaction,
        )
        return None


def build_balance_sheet(
    transactions: Iterable[Transaction], participants: Sequence[Participant]
) -> BalanceSheet:
    """
    Fold transactions into owed balances and signed positions.

    Steps:
    1. Start every participant at zero
    2. Add split shares for every expense and every active agreement
    3. Subtract each settlement from its payer (may overshoot into credit)

    Single malformed records are dropped with a diagnostic instead of
    aborting the fold.

    Args:
        transactions: Transactions already narrowed to the evaluated scope
        participants: Active participant set

    Returns:
        Balance sheet with owed balances, positions and diagnostics

    Raises:
        EmptyParticipantsError: If participants is empty
    """
    if not participants:
        raise EmptyParticipantsError()

    fold = _Fold(participants)

    for transaction in transactions:
        if transaction.payer_id not in fold.ids:
            fold.report(
                "unknown_payer",
                f"Payer {transaction.payer_id} is not a participant; record dropped",
                transaction,
            )
            continue

        if transaction.amount <= 0:
            fold.report(
                "non_positive_amount",
                f"Amount {transaction.amount} is not positive; record dropped",
                transaction,
            )
            continue

        if transaction.kind == TransactionKind.SETTLEMENT:
            fold.add_settlement(transaction)
        elif transaction.kind == TransactionKind.AGREEMENT and not transaction.active:
            logger.debug(f"Skipping inactive agreement {transaction.id}")
        else:
            fold.add_cost(transaction)

    return BalanceSheet(
        owed=fold.owed,
        positions=fold.positions,
        diagnostics=fold.diagnostics,
    )


def accumulate(
    transactions: Iterable[Transaction], participants: Sequence[Participant]
) -> dict[str, Decimal]:
    """
    Compute the net balance: what each participant currently owes.

    A payer is never credited for what others owe them; their balance only
    goes down when they settle. Use build_balance_sheet for signed positions.
    """
    return build_balance_sheet(transactions, participants).owed
