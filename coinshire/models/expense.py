"""
Core Data Models for Coinshire

These models define the schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Serialize to the camelCase JSON the HTTP boundary speaks
4. Stay permissive where the balance engine needs them to be

DESIGN DECISION: Expense records are NOT validated for business rules
(positive amounts, shares summing to 1, known users). That is the job of
the data-entry boundary (ExpenseCreate + ExpenseValidator). Once a record
exists, the balance engine must be able to process it no matter what.
"""

import datetime as dt
import math
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


def _money_to_json(value: Decimal) -> Optional[float]:
    """JSON number, or null when the amount does not fit in a float."""
    number = float(value)
    return number if math.isfinite(number) else None


# Money is kept as Decimal in Python but sent over the wire as a JSON number.
Money = Annotated[
    Decimal,
    PlainSerializer(_money_to_json, return_type=Optional[float], when_used="json"),
]

# Balance totals are float sums and may overflow to infinity.
BalanceAmount = Annotated[
    Decimal,
    Field(allow_inf_nan=True),
    PlainSerializer(_money_to_json, return_type=Optional[float], when_used="json"),
]

ShareFraction = Annotated[float, Field(allow_inf_nan=False)]


class CamelModel(BaseModel):
    """Base model accepting both snake_case and camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# USERS
# =============================================================================

class User(CamelModel):
    """One of the two people sharing expenses."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="User identifier")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")


# =============================================================================
# EXPENSES
# =============================================================================

class Expense(CamelModel):
    """
    A recorded expense.

    Immutable once created. Expenses are only ever inserted or
    hard-deleted; there is no update path.

    Split semantics:
    - With `shares`, a user's entry is their fraction of the amount.
    - Without `shares` (or without an entry for a user), the amount is
      split equally among `participants`.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique expense identifier")
    description: str = Field(..., description="Free-text label")
    amount: Money = Field(..., description="Whole expense total")
    date: dt.date = Field(..., description="Day the expense happened")
    paid_by: str = Field(..., description="User who fronted the money")
    participants: list[str] = Field(
        default_factory=list,
        description="Users sharing in this expense"
    )
    shares: Optional[dict[str, ShareFraction]] = Field(
        default=None,
        description="Optional per-user fractions (0-1)"
    )

    @model_validator(mode="before")
    @classmethod
    def default_participants_from_shares(cls, data: Any) -> Any:
        """When participants are omitted, everyone holding a share participates."""
        if isinstance(data, dict) and data.get("participants") is None:
            shares = data.get("shares")
            if shares:
                data = {**data, "participants": list(shares)}
        return data

    @field_validator("participants")
    @classmethod
    def collapse_duplicates(cls, v: list[str]) -> list[str]:
        """Participants are a set; keep the first occurrence of each id."""
        return list(dict.fromkeys(v))


class ExpenseCreate(CamelModel):
    """
    Payload for creating an expense.

    This is PROPOSED data straight from a form or API client. Every field
    is optional and unconstrained, so ExpenseValidator can report every
    missing or out-of-range value at once. Values of the wrong type never
    get this far; the HTTP layer reports them as an invalid payload too.
    """

    description: str = Field(
        default="",
        description="What the expense was for"
    )
    total: Optional[float] = Field(
        default=None,
        description="Expense total"
    )
    paid_by: Optional[str] = Field(
        default=None,
        description="User who paid"
    )
    payer_share_pct: float = Field(
        default=50.0,
        description="Payer's share of the total, in percent (0-100)"
    )


# =============================================================================
# BALANCE
# =============================================================================

class Balance(CamelModel):
    """
    A viewer's balance, derived from the expense history.

    Positive net: the viewer is owed money. Negative: the viewer owes.
    `by_expense` holds each expense's rounded contribution; `net` is
    rounded once from the unrounded total, so the two need not add up.
    """

    net: BalanceAmount = Field(default=Decimal("0.00"))
    by_expense: dict[str, BalanceAmount] = Field(default_factory=dict)

    @property
    def is_settled(self) -> bool:
        return self.net == 0


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating an expense creation payload."""

    validated_at: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc)
    )
    is_valid: bool = Field(
        ...,
        description="Can an expense be created from this payload?"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
