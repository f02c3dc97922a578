"""
Expense Creation Validation

DESIGN DECISION: All checks on new expenses happen HERE, before an
Expense record is ever constructed. The balance engine downstream is
permissive on purpose and will happily process nonsense; this module is
what keeps nonsense out of storage.

Errors block creation:
- Blank or overly long description
- Missing, non-finite, non-positive or over-limit total
- Missing or unknown payer, or nobody to split with
- Payer share outside 0-100%

Warnings are reported but do not block:
- A 100% payer share (the payer ends up owing the whole amount)

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the caller can show them to the user.
"""

import math
from typing import Optional

from coinshire.config import get_settings
from coinshire.config.settings import AppSettings
from coinshire.models.expense import (
    ExpenseCreate,
    User,
    ValidationIssue,
    ValidationResult,
)


class InvalidExpenseError(Exception):
    """Raised when an expense payload fails validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(f"Invalid expense: {messages}")


class ExpenseValidator:
    """Validates expense creation payloads against the known users."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def validate(self, payload: ExpenseCreate, users: list[User]) -> ValidationResult:
        """
        Check a creation payload.

        Args:
            payload: The proposed expense
            users: Users currently known to storage

        Returns:
            ValidationResult with all issues found
        """
        issues = []
        issues.extend(self._check_description(payload))
        issues.extend(self._check_total(payload))
        issues.extend(self._check_payer(payload, users))
        issues.extend(self._check_share(payload))

        warnings = [issue.message for issue in issues if issue.severity == "warning"]

        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=warnings,
        )

    def _check_description(self, payload: ExpenseCreate) -> list[ValidationIssue]:
        description = (payload.description or "").strip()
        if not description:
            return [ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
                suggested_fix="Say what the expense was for, e.g. 'Dinner'",
            )]
        max_length = self._settings.max_description_length
        if len(description) > max_length:
            return [ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description is longer than {max_length} characters",
                severity="error",
                suggested_fix="Shorten the description",
            )]
        return []

    def _check_total(self, payload: ExpenseCreate) -> list[ValidationIssue]:
        total = payload.total
        if total is None:
            return [ValidationIssue(
                field="total",
                issue_type="missing",
                message="Total is required",
                severity="error",
            )]
        if not math.isfinite(total) or total <= 0:
            return [ValidationIssue(
                field="total",
                issue_type="invalid_value",
                message="Total must be greater than zero",
                severity="error",
                suggested_fix="Enter the amount that was paid",
            )]
        max_amount = self._settings.max_expense_amount
        if total > max_amount:
            return [ValidationIssue(
                field="total",
                issue_type="too_large",
                message=f"Total ({total:,.2f}) is above the limit of {max_amount:,.2f}",
                severity="error",
                suggested_fix="Split it into several expenses or raise MAX_EXPENSE_AMOUNT",
            )]
        return []

    def _check_payer(self, payload: ExpenseCreate, users: list[User]) -> list[ValidationIssue]:
        if not payload.paid_by:
            return [ValidationIssue(
                field="paid_by",
                issue_type="missing",
                message="Payer is required",
                severity="error",
            )]
        user_ids = {user.id for user in users}
        if payload.paid_by not in user_ids:
            return [ValidationIssue(
                field="paid_by",
                issue_type="unknown_user",
                message=f"Unknown payer: {payload.paid_by}",
                severity="error",
            )]
        if not user_ids - {payload.paid_by}:
            return [ValidationIssue(
                field="paid_by",
                issue_type="invalid_value",
                message="There is nobody to split this expense with",
                severity="error",
            )]
        return []

    def _check_share(self, payload: ExpenseCreate) -> list[ValidationIssue]:
        pct = payload.payer_share_pct
        if not math.isfinite(pct) or not 0 <= pct <= 100:
            return [ValidationIssue(
                field="payer_share_pct",
                issue_type="out_of_range",
                message="Payer share must be between 0% and 100%",
                severity="error",
            )]
        if pct == 100:
            return [ValidationIssue(
                field="payer_share_pct",
                issue_type="suspicious_value",
                message="The payer takes the whole expense, so it is recorded as owed by the payer",
                severity="warning",
                suggested_fix="Lower the payer's share if the other person should pay back part of it",
            )]
        return []

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Render a validation result for display."""
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if result.has_errors:
            lines.append("❌ This expense can't be saved yet:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please double-check:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
