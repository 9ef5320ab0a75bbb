"""Read-only loading of ledger snapshots exported from the record store."""

import json
import logging
from collections.abc import Sequence
from datetime import date
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from .config import DEFAULT_PLACEHOLDER_NAMES
from .exceptions import SnapshotError
from .mapper import RecordMapper, configured_participants
from .models import Participant, Transaction

logger = logging.getLogger(__name__)


class Snapshot(BaseModel):
    """A consistent copy of one group's records."""

    model_config = ConfigDict(frozen=True)

    participants: list[Participant]
    transactions: list[Transaction]


def parse_snapshot(
    data: dict,
    placeholder_names: Sequence[str] = DEFAULT_PLACEHOLDER_NAMES,
    reference_date: date | None = None,
) -> Snapshot:
    """
    Map snapshot data into participants and transactions.

    Expected keys: profiles, expenses, agreements, settlements. Missing
    keys are treated as empty lists.
    """
    if not isinstance(data, dict):
        raise SnapshotError("Snapshot must be a JSON object")

    participants = configured_participants(
        data.get("profiles", []), placeholder_names
    )
    mapper = RecordMapper(participants, reference_date=reference_date)
    transactions = mapper.map_all(
        expenses=data.get("expenses", []),
        agreements=data.get("agreements", []),
        settlements=data.get("settlements", []),
    )
    return Snapshot(participants=participants, transactions=transactions)


def load_snapshot(
    path: Path,
    placeholder_names: Sequence[str] = DEFAULT_PLACEHOLDER_NAMES,
    reference_date: date | None = None,
) -> Snapshot:
    """Load a snapshot JSON file."""
    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise SnapshotError(f"Snapshot not found: {path}") from e
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Invalid snapshot JSON in {path}: {e}") from e

    snapshot = parse_snapshot(data, placeholder_names, reference_date)
    logger.info(
        f"Loaded {len(snapshot.participants)} participants and "
        f"{len(snapshot.transactions)} transactions from {path}"
    )
    return snapshot
