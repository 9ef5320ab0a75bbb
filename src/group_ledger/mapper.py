"""Mapping of raw store records into engine transactions."""

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from .config import DEFAULT_PLACEHOLDER_NAMES
from .exceptions import RecordFormatError
from .models import (
    EqualSplit,
    FixedSplit,
    FullSplit,
    Participant,
    PercentageSplit,
    SplitRule,
    Transaction,
    TransactionKind,
)

logger = logging.getLogger(__name__)

POSITION_KEY = re.compile(r"^person(\d+)$")
FULL_SHARE = Decimal("100")


def configured_participants(
    profiles: Iterable[Mapping[str, Any]],
    placeholder_names: Sequence[str] = DEFAULT_PLACEHOLDER_NAMES,
) -> list[Participant]:
    """
    Build participants from profile rows, skipping unconfigured placeholders.

    Args:
        profiles: Rows with id, name and position
        placeholder_names: Names given to profiles nobody has claimed yet

    Returns:
        Participants ordered by position
    """
    participants = []
    for row in profiles:
        name = str(row.get("name", "")).strip()
        if name in placeholder_names:
            logger.debug(f"Skipping placeholder profile {row.get('id')}")
            continue
        try:
            participants.append(
                Participant(
                    id=str(row["id"]),
                    display_name=name,
                    position=int(row["position"]),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RecordFormatError(row.get("id"), f"invalid profile: {e}") from e

    return sorted(participants, key=lambda p: p.position)


def parse_amount(value: Any, record_id: str | None = None) -> Decimal:
    """Parse a currency amount without going through float."""
    if value is None or isinstance(value, bool):
        raise RecordFormatError(record_id, f"missing or invalid amount: {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise RecordFormatError(record_id, f"invalid amount: {value!r}") from e
    if not amount.is_finite():
        raise RecordFormatError(record_id, f"invalid amount: {value!r}")
    return amount


def parse_date(value: Any, record_id: str | None = None) -> date:
    """Parse an ISO date or timestamp; only the calendar date is kept."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise RecordFormatError(record_id, f"invalid date: {value!r}") from e


def parse_billing_month(value: Any, record_id: str | None = None) -> date | None:
    """Parse a billing month ("YYYY-MM" or ISO date) to the first of the month."""
    if value in (None, ""):
        return None
    text = str(value)
    if len(text) == 7:
        text = f"{text}-01"
    return parse_date(text, record_id).replace(day=1)


class RecordMapper:
    """Normalizes store rows for one group into Transactions.

    Legacy rows identify the payer by 1-based position and key split maps
    by ``person<N>``; newer rows carry participant ids. Both are resolved
    here so the engine only ever sees participant ids.
    """

    def __init__(
        self, participants: Sequence[Participant], reference_date: date | None = None
    ):
        """Initialize the mapper for a participant set."""
        self.participants = participants
        self.by_id = {p.id: p for p in participants}
        self.by_position = {p.position: p for p in participants}
        self.reference_date = reference_date or date.today()

    # ========================================================================
    # Identity resolution
    # ========================================================================

    def resolve_payer(self, row: Mapping[str, Any]) -> str:
        """
        Resolve the payer id of a row.

        Prefers the stable profile id, falls back to position. When neither
        resolves, the raw reference is returned so the accumulator can drop
        the record with a diagnostic.
        """
        record_id = _record_id(row)
        profile_id = row.get("paid_by_profile_id")
        if profile_id and str(profile_id) in self.by_id:
            return str(profile_id)

        position = row.get("paid_by")
        if position is not None:
            try:
                participant = self.by_position.get(int(position))
            except (TypeError, ValueError) as e:
                raise RecordFormatError(
                    record_id, f"invalid paid_by: {position!r}"
                ) from e
            if participant is not None:
                return participant.id

        if profile_id:
            return str(profile_id)
        if position is not None:
            return f"position:{position}"
        raise RecordFormatError(record_id, "no payer")

    def normalize_split_map(
        self, split_value: Mapping[str, Any] | None, record_id: str | None = None
    ) -> dict[str, Decimal]:
        """Rewrite ``person<N>`` keys to participant ids; id keys are kept."""
        normalized: dict[str, Decimal] = {}
        for key, value in (split_value or {}).items():
            match = POSITION_KEY.match(key)
            if match:
                participant = self.by_position.get(int(match.group(1)))
                if participant is None:
                    logger.debug(f"Record {record_id}: no participant at {key}")
                    continue
                key = participant.id
            normalized[key] = parse_amount(value, record_id)
        return normalized

    def split_rule(self, row: Mapping[str, Any], payer_id: str) -> SplitRule:
        """Build the split rule of an expense or agreement row."""
        record_id = _record_id(row)
        split_type = row.get("split_type")

        if split_type == "equal":
            return EqualSplit()
        if split_type == "percentage":
            return PercentageSplit(
                percentages=self.normalize_split_map(row.get("split_value"), record_id)
            )
        if split_type == "fixed":
            return FixedSplit(
                amounts=self.normalize_split_map(row.get("split_value"), record_id)
            )
        if split_type == "full":
            values = self.normalize_split_map(row.get("split_value"), record_id)
            owners = [pid for pid, value in values.items() if value == FULL_SHARE]
            if not owners or payer_id in owners:
                return FullSplit(payer_takes_all=True)
            return FullSplit(payer_takes_all=False, owner_id=owners[0])

        raise RecordFormatError(record_id, f"unknown split type: {split_type!r}")

    # ========================================================================
    # Row mapping
    # ========================================================================

    def expense(self, row: Mapping[str, Any]) -> Transaction:
        record_id = _record_id(row)
        payer_id = self.resolve_payer(row)
        return Transaction(
            id=record_id,
            kind=TransactionKind.EXPENSE,
            amount=parse_amount(row.get("total_amount"), record_id),
            payer_id=payer_id,
            split_rule=self.split_rule(row, payer_id),
            occurs_on=parse_date(row.get("expense_date"), record_id),
            billing_month=parse_billing_month(row.get("billing_month"), record_id),
            description=row.get("description"),
        )

    def agreement(self, row: Mapping[str, Any]) -> Transaction:
        record_id = _record_id(row)
        payer_id = self.resolve_payer(row)
        created_at = row.get("created_at")
        return Transaction(
            id=record_id,
            kind=TransactionKind.AGREEMENT,
            amount=parse_amount(row.get("amount"), record_id),
            payer_id=payer_id,
            split_rule=self.split_rule(row, payer_id),
            occurs_on=(
                parse_date(created_at, record_id) if created_at else self.reference_date
            ),
            active=bool(row.get("is_active", True)),
            description=row.get("name"),
        )

    def settlement(self, row: Mapping[str, Any]) -> Transaction:
        record_id = _record_id(row)
        receiver = row.get("received_by_profile_id")
        return Transaction(
            id=record_id,
            kind=TransactionKind.SETTLEMENT,
            amount=parse_amount(row.get("amount"), record_id),
            payer_id=self.resolve_payer(row),
            occurs_on=parse_date(row.get("settled_at"), record_id),
            receiver_id=str(receiver) if receiver else None,
            description=row.get("note"),
        )

    def map_all(
        self,
        expenses: Iterable[Mapping[str, Any]] = (),
        agreements: Iterable[Mapping[str, Any]] = (),
        settlements: Iterable[Mapping[str, Any]] = (),
    ) -> list[Transaction]:
        """Map every row of a group: expenses, then agreements, then settlements."""
        transactions = [self.expense(row) for row in expenses]
        transactions.extend(self.agreement(row) for row in agreements)
        transactions.extend(self.settlement(row) for row in settlements)
        logger.info(f"Mapped {len(transactions)} records")
        return transactions


def _record_id(row: Mapping[str, Any]) -> str | None:
    value = row.get("id")
    return str(value) if value is not None else None
