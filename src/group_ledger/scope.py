"""Scope windows and transaction filtering by date."""

import calendar
import logging
from collections.abc import Iterable
from datetime import date
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .models import Transaction, TransactionKind

logger = logging.getLogger(__name__)


class CurrentMonth(BaseModel):
    """The calendar month containing the reference date."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["current_month"] = "current_month"


class LastMonths(BaseModel):
    """The current calendar month plus the ``months - 1`` months before it."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["last_months"] = "last_months"
    months: int = Field(ge=1)


class DateRange(BaseModel):
    """An explicit inclusive date range."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["range"] = "range"
    start: date
    end: date

    @model_validator(mode="after")
    def _validate_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError(f"start {self.start} is after end {self.end}")
        return self


class AllTime(BaseModel):
    """No date restriction."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["all"] = "all"


ScopeWindow = Annotated[
    CurrentMonth | LastMonths | DateRange | AllTime,
    Field(discriminator="kind"),
]


def month_start(day: date) -> date:
    return day.replace(day=1)


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def shift_months(day: date, months: int) -> date:
    """Move to the first day of the month ``months`` away (negative = back)."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def resolve_bounds(
    window: ScopeWindow, today: date | None = None
) -> tuple[date | None, date | None]:
    """
    Turn a window into inclusive (start, end) dates.

    Returns (None, None) for the all-time window.
    """
    today = today or date.today()

    if isinstance(window, CurrentMonth):
        return month_start(today), month_end(today)
    if isinstance(window, LastMonths):
        return shift_months(today, -(window.months - 1)), month_end(today)
    if isinstance(window, DateRange):
        return window.start, window.end
    if isinstance(window, AllTime):
        return None, None

    raise TypeError(f"Unsupported scope window: {window!r}")


def describe_window(window: ScopeWindow) -> str:
    """Short human-readable label for a window."""
    if isinstance(window, LastMonths):
        return f"last {window.months} months"
    if isinstance(window, DateRange):
        return f"{window.start} to {window.end}"
    if isinstance(window, AllTime):
        return "all time"
    return "current month"


def filter_transactions(
    transactions: Iterable[Transaction],
    window: ScopeWindow,
    today: date | None = None,
) -> list[Transaction]:
    """
    Narrow transactions to a window before accumulation.

    Expenses and settlements are kept when their effective date (billing
    month override, else their own date) falls inside the window.
    Agreements always pass through: an active agreement is a standing
    monthly obligation and counts once per evaluated scope, whatever its
    length.

    Args:
        transactions: All transactions of the group
        window: Scope to evaluate
        today: Reference date for relative windows (defaults to today)

    Returns:
        New list with the transactions in scope, original order preserved
    """
    start, end = resolve_bounds(window, today)
    if start is None and end is None:
        return list(transactions)

    kept = []
    for transaction in transactions:
        if transaction.kind == TransactionKind.AGREEMENT:
            kept.append(transaction)
            continue

        effective = transaction.effective_date
        if start is not None and effective < start:
            continue
        if end is not None and effective > end:
            continue
        kept.append(transaction)

    logger.debug(f"Scope {describe_window(window)} kept {len(kept)} transactions")
    return kept
