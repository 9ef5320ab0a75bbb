"""Service layer that composes scoping, accumulation and planning.

This module provides the single entry point presentation layers use. Every
call works on the values it is given and keeps no state between calls, so
the same transaction collection can be evaluated for several windows.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import date
from decimal import ROUND_FLOOR, Decimal

from .accumulator import build_balance_sheet
from .models import (
    LedgerResult,
    MonthComparison,
    Participant,
    Transaction,
    TransactionKind,
)
from .planner import plan_transfers
from .scope import (
    AllTime,
    ScopeWindow,
    describe_window,
    filter_transactions,
    month_end,
    resolve_bounds,
    shift_months,
)

logger = logging.getLogger(__name__)

TREND_THRESHOLD = Decimal("2")  # percent


def round_half_toward_positive(value: Decimal) -> int:
    """Round to an integer with halves going up, so -2.5 becomes -2."""
    return int((value + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


class LedgerService:
    """Evaluates who owes whom for a group of participants."""

    def __init__(self, clock: Callable[[], date] = date.today):
        """Initialize the service with the clock used for relative windows."""
        self.clock = clock

    def evaluate(
        self,
        transactions: Iterable[Transaction],
        participants: Sequence[Participant],
        window: ScopeWindow | None = None,
        today: date | None = None,
    ) -> LedgerResult:
        """
        Compute balances and suggested transfers for a scope.

        Pipeline: filter by window -> accumulate -> plan transfers.

        Args:
            transactions: All transactions of the group
            participants: Active participant set
            window: Scope to evaluate (defaults to all time)
            today: Reference date for relative windows (defaults to the clock)

        Returns:
            Ledger result with owed balances, positions, transfers and
            diagnostics
        """
        window = window or AllTime()
        today = today or self.clock()

        start, end = resolve_bounds(window, today)
        scoped = filter_transactions(transactions, window, today)
        sheet = build_balance_sheet(scoped, participants)
        transfers = plan_transfers(sheet.positions)

        logger.info(
            f"Evaluated {len(scoped)} transactions ({describe_window(window)}): "
            f"{len(transfers)} transfers, {len(sheet.diagnostics)} diagnostics"
        )

        return LedgerResult(
            window=window.kind,
            start=start,
            end=end,
            balances=sheet.owed,
            positions=sheet.positions,
            transfers=transfers,
            diagnostics=sheet.diagnostics,
        )

    def compare_months(
        self, transactions: Iterable[Transaction], today: date | None = None
    ) -> MonthComparison:
        """
        Compare total spending of the current month with the previous one.

        Expenses count in the month of their effective date. Active
        agreements are added to both months; settlements are repayments, not
        spending, and are ignored.
        """
        today = today or self.clock()
        current_start = shift_months(today, 0)
        previous_start = shift_months(today, -1)

        agreements_total = Decimal("0")
        current_total = Decimal("0")
        previous_total = Decimal("0")

        for transaction in transactions:
            if transaction.kind == TransactionKind.AGREEMENT:
                if transaction.active:
                    agreements_total += transaction.amount
            elif transaction.kind == TransactionKind.EXPENSE:
                effective = transaction.effective_date
                if current_start <= effective <= month_end(today):
                    current_total += transaction.amount
                elif previous_start <= effective <= month_end(previous_start):
                    previous_total += transaction.amount

        current_total += agreements_total
        previous_total += agreements_total

        if previous_total == 0:
            return MonthComparison(
                current_total=current_total,
                previous_total=previous_total,
                percent_change=0,
                trend="neutral",
            )

        change = (current_total - previous_total) / previous_total * 100
        if change > TREND_THRESHOLD:
            trend = "up"
        elif change < -TREND_THRESHOLD:
            trend = "down"
        else:
            trend = "neutral"

        return MonthComparison(
            current_total=current_total,
            previous_total=previous_total,
            percent_change=abs(round_half_toward_positive(change)),
            trend=trend,
        )


def evaluate_ledger(
    transactions: Iterable[Transaction],
    participants: Sequence[Participant],
    window: ScopeWindow | None = None,
    today: date | None = None,
) -> LedgerResult:
    """Evaluate with a default LedgerService."""
    return LedgerService().evaluate(transactions, participants, window, today)
