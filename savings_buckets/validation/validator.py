"""
Transaction Validation

DESIGN DECISION: Validation is a separate pass from applying.
The ledger applies any transaction it is given; this module decides
whether a transaction *should* be applied. Callers run validate()
first and only apply when there are no errors.

Checks happen in two stages:

STAGE 1 - SHAPE:
- Positive amount
- Every referenced bucket exists
- Reallocation has two different buckets
- Per-bucket split adds up to the amount

STAGE 2 - FUNDS:
- Source bucket holds enough for a reallocation or bucket withdrawal
- Total holds enough for a general withdrawal
- A general withdrawal needs a non-zero total to split against

Stage 2 only runs when stage 1 passes.

IMPORTANT: Validation NEVER fixes anything and never raises for
business conditions. It only reports.
"""

from decimal import Decimal
from typing import Optional

from savings_buckets.config import get_settings
from savings_buckets.currency import ZERO, format_currency, subtract_currency, sum_currency
from savings_buckets.ledger.allocation import allocation_is_balanced, allocation_total
from savings_buckets.models.savings import SavingsData
from savings_buckets.models.transaction import (
    BucketWithdrawalDraft,
    DepositDraft,
    ReallocationDraft,
    TransactionDraft,
    WithdrawalDraft,
)
from savings_buckets.models.validation import ValidationIssue, ValidationResult


class TransactionValidator:
    """Checks drafts and new buckets against the current ledger state."""

    def __init__(self, tolerance: Optional[Decimal] = None):
        """
        Args:
            tolerance: Allowed gap between a draft's amount and the sum
                       of its per-bucket split. Defaults to the configured
                       reconciliation tolerance (one cent).
        """
        if tolerance is None:
            tolerance = get_settings().ledger.reconciliation_tolerance
        self._tolerance = tolerance

    def _validate_shape(
        self,
        draft: TransactionDraft,
        state: SavingsData,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Is this a well-formed transaction for this state?

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if draft.amount <= ZERO:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_amount",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter a positive amount",
            ))

        known = state.bucket_names()
        for ref in draft.bucket_refs():
            if ref not in known:
                issues.append(ValidationIssue(
                    field="bucket",
                    issue_type="unknown_bucket",
                    message=f"Bucket {ref} does not exist",
                    severity="error",
                    suggested_fix="Pick one of the existing buckets",
                ))

        if isinstance(draft, ReallocationDraft) and draft.from_bucket == draft.to_bucket:
            issues.append(ValidationIssue(
                field="to_bucket",
                issue_type="same_bucket",
                message="Source and destination buckets must be different",
                severity="error",
            ))

        if isinstance(draft, DepositDraft):
            issues.extend(self._check_split(draft.amount, draft.allocations, "allocations"))
            if not state.buckets:
                issues.append(ValidationIssue(
                    field="allocations",
                    issue_type="no_buckets",
                    message="There are no buckets to receive this deposit",
                    severity="warning",
                    suggested_fix="Create a bucket first",
                ))
            elif not allocation_is_balanced(state.buckets):
                issues.append(self.allocation_warning(state))

        if isinstance(draft, WithdrawalDraft):
            issues.extend(self._check_split(draft.amount, draft.impact, "impact"))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _check_split(
        self,
        amount: Decimal,
        split: dict[str, Decimal],
        field: str,
    ) -> list[ValidationIssue]:
        split_total = sum_currency(split.values())
        gap = abs(subtract_currency(amount, split_total))
        if gap > self._tolerance:
            return [ValidationIssue(
                field=field,
                issue_type="split_mismatch",
                message=(
                    f"Per-bucket amounts add up to {format_currency(split_total)}, "
                    f"not {format_currency(amount)}"
                ),
                severity="error",
                suggested_fix="Recompute the split from the current buckets",
            )]
        return []

    def _validate_funds(
        self,
        draft: TransactionDraft,
        state: SavingsData,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Is there enough money for this transaction?

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if isinstance(draft, WithdrawalDraft):
            if state.total_balance <= ZERO:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="empty_balance",
                    message="Nothing to withdraw: the total balance is zero",
                    severity="error",
                ))
            elif draft.amount > state.total_balance:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="insufficient_funds",
                    message=(
                        f"Insufficient funds. Available: "
                        f"{format_currency(state.total_balance)}"
                    ),
                    severity="error",
                    suggested_fix="Withdraw a smaller amount",
                ))

        source_id = None
        if isinstance(draft, BucketWithdrawalDraft):
            source_id = draft.bucket
        elif isinstance(draft, ReallocationDraft):
            source_id = draft.from_bucket

        if source_id is not None:
            source = state.find_bucket(source_id)
            if source is not None and draft.amount > source.balance:
                issues.append(ValidationIssue(
                    field="bucket",
                    issue_type="insufficient_funds",
                    message=(
                        f"Insufficient funds in {source.name}. "
                        f"Available: {format_currency(source.balance)}"
                    ),
                    severity="error",
                    suggested_fix="Use a smaller amount or another bucket",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(
        self,
        draft: TransactionDraft,
        state: SavingsData,
    ) -> ValidationResult:
        """
        Run both stages.

        Args:
            draft: The transaction the caller wants to apply
            state: The current ledger state

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        shape_valid, shape_issues = self._validate_shape(draft, state)
        all_issues.extend(shape_issues)

        if shape_valid:
            _, funds_issues = self._validate_funds(draft, state)
            all_issues.extend(funds_issues)

        return ValidationResult(
            transaction_type=draft.type,
            issues=all_issues,
        )

    def validate_bucket(
        self,
        name: str,
        allocation: Decimal,
        state: SavingsData,
    ) -> ValidationResult:
        """
        Check a bucket before it is created.

        Duplicate names are only a warning; ids keep buckets apart.
        """
        issues = []

        if not name or not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Bucket name is required",
                severity="error",
            ))
        elif state.find_bucket_by_name(name.strip()) is not None:
            issues.append(ValidationIssue(
                field="name",
                issue_type="duplicate_name",
                message=f"A bucket named {name.strip()} already exists",
                severity="warning",
                suggested_fix="Use a different name to tell them apart",
            ))

        if allocation <= 0 or allocation > 100:
            issues.append(ValidationIssue(
                field="allocation",
                issue_type="invalid_allocation",
                message="Allocation must be between 0 and 100 percent",
                severity="error",
            ))
        else:
            projected = allocation_total(state.buckets) + allocation
            if projected != Decimal("100"):
                issues.append(ValidationIssue(
                    field="allocation",
                    issue_type="allocation_total",
                    message=f"Total allocation will be {projected:g}%, not 100%",
                    severity="warning",
                ))

        return ValidationResult(issues=issues)

    @staticmethod
    def allocation_warning(state: SavingsData) -> ValidationIssue:
        total = allocation_total(state.buckets)
        return ValidationIssue(
            field="allocation",
            issue_type="allocation_total",
            message=f"Total allocation should equal 100%. Current: {total:g}%",
            severity="warning",
            suggested_fix="Adjust bucket allocations so they add up to 100%",
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Short text summary of a validation result."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("This transaction cannot be applied:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   - {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please note:")
            for warning in result.warnings:
                lines.append(f"   - {warning}")

        return "\n".join(lines)
