"""Settlement planning: turn balances into suggested pairwise transfers."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from .models import EPSILON, Transfer

logger = logging.getLogger(__name__)


def to_cents(amount: Decimal) -> Decimal:
    """
    Quantize an amount to whole cents.
    Uses ROUND_HALF_UP for consistency.

    Args:
        amount: Currency amount as Decimal

    Returns:
        Amount with exactly two decimal places
    """
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def is_settled(balances: Mapping[str, Decimal]) -> bool:
    """True when every balance is within one cent of zero."""
    return all(abs(value) <= EPSILON for value in balances.values())


@dataclass
class _Party:
    participant_id: str
    remaining: Decimal


def plan_transfers(balances: Mapping[str, Decimal]) -> list[Transfer]:
    """
    Compute transfers that bring every balance to zero.

    Greedy debt netting:
    1. Split participants into debtors (balance > 0.01) and creditors
       (balance < -0.01)
    2. Sort both descending by amount; ties keep input order
    3. Walk debtors in order, paying creditors in order with
       min(remaining debt, remaining credit) until one side is exhausted

    The result has at most |debtors| + |creditors| - 1 transfers, which is
    not always the minimum possible count.

    Args:
        balances: Signed balance per participant (positive = owes)

    Returns:
        Transfers in sorted debtor order, then creditor order
    """
    debtors = [
        _Party(pid, value) for pid, value in balances.items() if value > EPSILON
    ]
    creditors = [
        _Party(pid, -value) for pid, value in balances.items() if value < -EPSILON
    ]

    # sort() is stable, so equal amounts keep their input order
    debtors.sort(key=lambda party: party.remaining, reverse=True)
    creditors.sort(key=lambda party: party.remaining, reverse=True)

    transfers: list[Transfer] = []

    for debtor in debtors:
        for creditor in creditors:
            if debtor.remaining <= EPSILON:
                break
            if creditor.remaining <= EPSILON:
                continue

            amount = min(debtor.remaining, creditor.remaining)
            if amount > EPSILON:
                transfers.append(
                    Transfer(
                        from_id=debtor.participant_id,
                        to_id=creditor.participant_id,
                        amount=to_cents(amount),
                    )
                )
                debtor.remaining -= amount
                creditor.remaining -= amount

    residual = sum((party.remaining for party in debtors), Decimal("0"))
    if residual > EPSILON:
        # Happens when positions do not sum to zero (unattributed settlements)
        logger.info(f"Unmatched debt after planning: {residual}")

    return transfers
