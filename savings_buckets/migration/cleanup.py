"""
Data File Cleanup

One-off repair for savings files written before amounts were kept to
the cent. For each file:

1. Round every bucket balance, transaction amount and
   allocations/impact value to the cent
2. Recompute the total balance from the rounded bucket balances
3. Write the file back in place (2-space indent)
4. Read it back and check the stored total matches the bucket sum

Two layouts are understood:

- bootstrap snapshot: {"total_balance": ..., "buckets": {name: balance}}
- saved ledger state: {"totalBalance": ..., "buckets": [{"balance": ...}]}

Running it twice changes nothing the second time.

Usage:
    savings-clean-data [PATHS...]
"""

import argparse
import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from pydantic import BaseModel, Field

from savings_buckets.audit import AuditLogger, configure_logging
from savings_buckets.config import get_settings
from savings_buckets.currency import ZERO, format_currency, round_to_cents, sum_currency, to_decimal


class FieldChange(BaseModel):
    """Before/after value of one cleaned field."""

    field: str = Field(..., description="Location in the file, e.g. 'buckets.Travel'")
    before: Any = None
    after: Decimal

    @property
    def changed(self) -> bool:
        if self.before is None:
            return True
        try:
            return to_decimal(self.before) != self.after
        except ValueError:
            return True


class CleanupReport(BaseModel):
    """Outcome of cleaning one file."""

    path: str
    changes: list[FieldChange] = Field(default_factory=list)
    bucket_sum: Optional[Decimal] = None
    total_balance: Optional[Decimal] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def changed_fields(self) -> list[FieldChange]:
        return [change for change in self.changes if change.changed]

    @property
    def matches(self) -> bool:
        """Stored total equals the bucket sum after cleaning."""
        if not self.succeeded:
            return False
        return (self.total_balance or ZERO) == (self.bucket_sum or ZERO)


def _clean_value(container: dict, key: Any, label: str, changes: list[FieldChange]) -> Decimal:
    before = container[key]
    after = round_to_cents(before)
    container[key] = float(after)
    changes.append(FieldChange(field=label, before=before, after=after))
    return after


def _clean_buckets(data: dict, changes: list[FieldChange]) -> Optional[list[Decimal]]:
    """Round bucket balances in either layout; None when the file has no buckets."""
    buckets = data.get("buckets")
    if buckets is None:
        return None

    balances = []
    if isinstance(buckets, dict):
        for name in buckets:
            balances.append(_clean_value(buckets, name, f"buckets.{name}", changes))
    elif isinstance(buckets, list):
        for index, bucket in enumerate(buckets):
            if not isinstance(bucket, dict) or "balance" not in bucket:
                raise ValueError(f"Bucket #{index} has no balance")
            label = f"buckets.{bucket.get('name', index)}.balance"
            balances.append(_clean_value(bucket, "balance", label, changes))
    else:
        raise ValueError("'buckets' must be an object or a list")
    return balances


def _clean_transactions(data: dict, changes: list[FieldChange]) -> None:
    transactions = data.get("transactions") or []
    if not isinstance(transactions, list):
        raise ValueError("'transactions' must be a list")

    for index, transaction in enumerate(transactions):
        if not isinstance(transaction, dict):
            raise ValueError(f"Transaction #{index} is not an object")

        if transaction.get("amount") is not None:
            _clean_value(transaction, "amount", f"transactions[{index}].amount", changes)

        for split_key in ("allocations", "impact"):
            split = transaction.get(split_key)
            if not split:
                continue
            if not isinstance(split, dict):
                raise ValueError(f"Transaction #{index} {split_key} must be an object")
            for ref in split:
                _clean_value(split, ref, f"transactions[{index}].{split_key}.{ref}", changes)


def _total_key(data: dict) -> str:
    return "totalBalance" if "totalBalance" in data else "total_balance"


def _verify(path: Path) -> tuple[Decimal, Decimal]:
    """Re-read a cleaned file and return (bucket_sum, stored_total)."""
    data = json.loads(path.read_text(encoding="utf-8"))
    buckets = data.get("buckets") or {}
    if isinstance(buckets, dict):
        balances = buckets.values()
    else:
        balances = [bucket["balance"] for bucket in buckets]
    return sum_currency(balances), round_to_cents(data.get(_total_key(data)) or 0)


def clean_data_file(
    path: Union[str, Path],
    audit_logger: Optional[AuditLogger] = None,
) -> CleanupReport:
    """
    Clean one file in place.

    Never raises for a missing or malformed file; the problem is put
    in the report's `error` and the file is left untouched.
    """
    path = Path(path)
    audit_logger = audit_logger or AuditLogger()
    report = CleanupReport(path=str(path))

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("Top-level JSON value must be an object")

        changes: list[FieldChange] = []
        balances = _clean_buckets(data, changes)
        _clean_transactions(data, changes)

        if balances is not None:
            key = _total_key(data)
            new_total = sum_currency(balances)
            changes.append(FieldChange(field=key, before=data.get(key), after=new_total))
            data[key] = float(new_total)

        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        bucket_sum, total_balance = _verify(path)
    except (OSError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        report.error = str(e)
        audit_logger.log_file_cleanup_failed(str(path), str(e))
        return report

    report.changes = changes
    report.bucket_sum = bucket_sum
    report.total_balance = total_balance
    audit_logger.log_file_cleaned(str(path), len(report.changed_fields), report.matches)
    return report


def print_report(report: CleanupReport) -> None:
    print(f"Cleaning {report.path}...")
    if not report.succeeded:
        print(f"  Error: {report.error}")
        return

    for change in report.changes:
        if change.changed:
            print(f"  {change.field}: {change.before} -> {change.after}")
    if not report.changed_fields:
        print("  Already clean")

    print(f"  Sum of bucket balances: {format_currency(report.bucket_sum)}")
    print(f"  Stored total balance:   {format_currency(report.total_balance)}")
    print(f"  Match: {'yes' if report.matches else 'NO'}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="savings-clean-data",
        description="Round savings data files to the cent and recompute their totals.",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        help="Files to clean (default: the configured cleanup paths)",
    )
    args = parser.parse_args(argv)

    configure_logging()
    paths = args.paths or get_settings().ledger.cleanup_paths_list

    audit_logger = AuditLogger()
    failures = 0
    for path in paths:
        report = clean_data_file(path, audit_logger)
        print_report(report)
        if not report.matches:
            failures += 1

    if failures:
        print(f"\n{failures} of {len(paths)} file(s) failed or did not reconcile.")
        return 1

    print("\nData cleaning complete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
