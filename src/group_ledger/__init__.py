"""group-ledger - Balances and settlement plans for shared expense groups."""

__version__ = "0.1.0"

from .accumulator import accumulate, build_balance_sheet
from .config import Settings, load_settings
from .mapper import RecordMapper, configured_participants
from .models import (
    EPSILON,
    BalanceSheet,
    Diagnostic,
    EqualSplit,
    FixedSplit,
    FullSplit,
    LedgerResult,
    MonthComparison,
    Participant,
    PercentageSplit,
    Transaction,
    TransactionKind,
    Transfer,
)
from .planner import plan_transfers
from .scope import AllTime, CurrentMonth, DateRange, LastMonths, filter_transactions
from .service import LedgerService, evaluate_ledger
from .snapshot import Snapshot, load_snapshot
from .splits import evaluate_split

__all__ = [
    "Settings",
    "load_settings",
    "EPSILON",
    "BalanceSheet",
    "Diagnostic",
    "EqualSplit",
    "FixedSplit",
    "FullSplit",
    "LedgerResult",
    "MonthComparison",
    "Participant",
    "PercentageSplit",
    "Transaction",
    "TransactionKind",
    "Transfer",
    "evaluate_split",
    "accumulate",
    "build_balance_sheet",
    "plan_transfers",
    "AllTime",
    "CurrentMonth",
    "DateRange",
    "LastMonths",
    "filter_transactions",
    "LedgerService",
    "evaluate_ledger",
    "RecordMapper",
    "configured_participants",
    "Snapshot",
    "load_snapshot",
]
