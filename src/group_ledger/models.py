"""Pydantic domain models for group-ledger."""

from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# One cent: balances and transfers within this distance of zero are settled.
EPSILON = Decimal("0.01")

# ============================================================================
# Participants
# ============================================================================


class Participant(BaseModel):
    """A person sharing expenses within one group."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    position: int = Field(ge=1)  # 1-based slot, fallback key for legacy records


# ============================================================================
# Split rules
# ============================================================================


class EqualSplit(BaseModel):
    """Amount divided evenly across all participants."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["equal"] = "equal"


class PercentageSplit(BaseModel):
    """Percent of the amount owed by each participant, keyed by participant id."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["percentage"] = "percentage"
    percentages: dict[str, Decimal] = Field(default_factory=dict)


class FixedSplit(BaseModel):
    """Absolute amount owed by each participant, keyed by participant id."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["fixed"] = "fixed"
    amounts: dict[str, Decimal] = Field(default_factory=dict)


class FullSplit(BaseModel):
    """One side pays 100%, the other 0%.

    When ``payer_takes_all`` is false, ``owner_id`` names the non-payer who
    owes the whole amount. It may be omitted when the payer has exactly one
    counterpart.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["full"] = "full"
    payer_takes_all: bool = True
    owner_id: str | None = None


SplitRule = Annotated[
    EqualSplit | PercentageSplit | FixedSplit | FullSplit,
    Field(discriminator="kind"),
]


# ============================================================================
# Transactions
# ============================================================================


class TransactionKind(StrEnum):
    EXPENSE = "expense"
    AGREEMENT = "agreement"  # recurring monthly obligation
    SETTLEMENT = "settlement"  # direct repayment


class Transaction(BaseModel):
    """A financial record fed to the engine.

    Expenses and settlements are point-in-time; agreements are standing
    monthly obligations and only count while ``active``.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    kind: TransactionKind
    amount: Decimal
    payer_id: str
    split_rule: SplitRule | None = None
    occurs_on: date
    billing_month: date | None = None  # deferred billing (credit cards)
    active: bool = True
    receiver_id: str | None = None  # settlements only
    description: str | None = None

    @model_validator(mode="after")
    def _validate_split_rule(self) -> "Transaction":
        if self.kind == TransactionKind.SETTLEMENT:
            if self.split_rule is not None:
                raise ValueError("settlements do not carry a split rule")
        elif self.split_rule is None:
            raise ValueError(f"{self.kind.value} requires a split rule")
        return self

    @property
    def effective_date(self) -> date:
        """Date used for scoping: billing month when present, else the record date."""
        return self.billing_month or self.occurs_on


class Transfer(BaseModel):
    """A planned payment from one participant to another."""

    model_config = ConfigDict(frozen=True)

    from_id: str
    to_id: str
    amount: Decimal = Field(gt=0)

    @model_validator(mode="after")
    def _validate_distinct(self) -> "Transfer":
        if self.from_id == self.to_id:
            raise ValueError(f"transfer from {self.from_id} to itself")
        return self


# ============================================================================
# Results
# ============================================================================


class Diagnostic(BaseModel):
    """A non-fatal data-quality anomaly found while folding transactions."""

    model_config = ConfigDict(frozen=True)

    code: Literal[
        "unknown_payer",
        "unknown_receiver",
        "unattributed_settlement",
        "missing_percentage",
        "missing_fixed_amount",
        "fixed_total_mismatch",
        "unresolved_full_owner",
        "non_positive_amount",
    ]
    message: str
    transaction_id: str | None = None


class BalanceSheet(BaseModel):
    """Accumulated balances for one set of transactions.

    - owed: cumulative amount each participant owes as a share of costs
            someone else paid, reduced by the settlements they made.
    - positions: signed net position (positive = owes, negative = is owed).
                 Sums to zero when every settlement has a receiver.
    """

    model_config = ConfigDict(frozen=True)

    owed: dict[str, Decimal]
    positions: dict[str, Decimal]
    diagnostics: list[Diagnostic] = Field(default_factory=list)


class LedgerResult(BaseModel):
    """Everything a presentation layer needs to render who owes whom."""

    model_config = ConfigDict(frozen=True)

    window: str
    start: date | None = None
    end: date | None = None
    balances: dict[str, Decimal]
    positions: dict[str, Decimal]
    transfers: list[Transfer]
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def is_settled(self) -> bool:
        return not self.transfers


class MonthComparison(BaseModel):
    """Spending of the current calendar month against the previous one."""

    model_config = ConfigDict(frozen=True)

    current_total: Decimal
    previous_total: Decimal
    percent_change: int  # absolute, rounded
    trend: Literal["up", "down", "neutral"]
