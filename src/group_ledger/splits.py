"""Split rule evaluation: how much each non-payer owes for one transaction."""

import logging
from collections.abc import Sequence
from decimal import Decimal

from .exceptions import EmptyParticipantsError, InvalidAmountError
from .models import (
    EPSILON,
    Diagnostic,
    EqualSplit,
    FixedSplit,
    FullSplit,
    Participant,
    PercentageSplit,
    SplitRule,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def _validate(amount: Decimal, participants: Sequence[Participant]) -> None:
    if amount <= 0:
        raise InvalidAmountError(amount)
    if not participants:
        raise EmptyParticipantsError()


def _resolve_full_owner(
    rule: FullSplit, non_payers: list[Participant]
) -> Participant | None:
    """Find the non-payer who owes the whole amount, if any."""
    if rule.payer_takes_all:
        return None
    if rule.owner_id is not None:
        for participant in non_payers:
            if participant.id == rule.owner_id:
                return participant
        return None
    if len(non_payers) == 1:
        return non_payers[0]
    return None


def evaluate_split(
    amount: Decimal,
    rule: SplitRule,
    participants: Sequence[Participant],
    payer_id: str,
) -> dict[str, Decimal]:
    """
    Compute what each non-payer owes for a transaction.

    The payer's own share is never emitted: the ledger only tracks amounts
    owed on costs someone else paid. Missing map entries fall back to
    defaults instead of failing, since records may come from partially
    migrated schemas.

    Args:
        amount: Positive transaction amount
        rule: Split rule of the transaction
        participants: Active participant set
        payer_id: Participant who paid

    Returns:
        Mapping of non-payer participant id to owed share

    Raises:
        InvalidAmountError: If amount <= 0
        EmptyParticipantsError: If participants is empty
    """
    _validate(amount, participants)

    count = len(participants)
    non_payers = [p for p in participants if p.id != payer_id]

    if isinstance(rule, EqualSplit):
        share = amount / count
        return {p.id: share for p in non_payers}

    if isinstance(rule, PercentageSplit):
        shares = {}
        for p in non_payers:
            percent = rule.percentages.get(p.id)
            if percent is None:
                # Even split, computed directly to avoid 100/3 drift
                shares[p.id] = amount / count
            else:
                shares[p.id] = amount * percent / HUNDRED
        return shares

    if isinstance(rule, FixedSplit):
        return {p.id: rule.amounts.get(p.id, Decimal("0")) for p in non_payers}

    if isinstance(rule, FullSplit):
        owner = _resolve_full_owner(rule, non_payers)
        return {
            p.id: amount if owner is not None and p.id == owner.id else Decimal("0")
            for p in non_payers
        }

    raise TypeError(f"Unsupported split rule: {rule!r}")


def collect_split_diagnostics(
    amount: Decimal,
    rule: SplitRule,
    participants: Sequence[Participant],
    payer_id: str,
    transaction_id: str | None = None,
) -> list[Diagnostic]:
    """
    Report anomalies that evaluate_split tolerates silently.

    Never raises for data-quality problems; caller errors (non-positive
    amount, no participants) are left to evaluate_split.
    """
    diagnostics: list[Diagnostic] = []
    non_payers = [p for p in participants if p.id != payer_id]

    if isinstance(rule, PercentageSplit):
        for p in non_payers:
            if p.id not in rule.percentages:
                diagnostics.append(
                    Diagnostic(
                        code="missing_percentage",
                        message=f"No percentage for {p.id}, using an even split",
                        transaction_id=transaction_id,
                    )
                )

    elif isinstance(rule, FixedSplit):
        for p in non_payers:
            if p.id not in rule.amounts:
                diagnostics.append(
                    Diagnostic(
                        code="missing_fixed_amount",
                        message=f"No fixed amount for {p.id}, assuming 0",
                        transaction_id=transaction_id,
                    )
                )
        participant_ids = {p.id for p in participants}
        parts_total = sum(
            (v for k, v in rule.amounts.items() if k in participant_ids),
            Decimal("0"),
        )
        if abs(parts_total - amount) > EPSILON:
            diagnostics.append(
                Diagnostic(
                    code="fixed_total_mismatch",
                    message=f"Fixed parts sum to {parts_total}, expected {amount}",
                    transaction_id=transaction_id,
                )
            )

    elif isinstance(rule, FullSplit):
        if not rule.payer_takes_all and _resolve_full_owner(rule, non_payers) is None:
            diagnostics.append(
                Diagnostic(
                    code="unresolved_full_owner",
                    message="Cannot tell which participant owes the full amount",
                    transaction_id=transaction_id,
                )
            )

    for diagnostic in diagnostics:
        logger.debug(f"{diagnostic.code}: {diagnostic.message}")

    return diagnostics
