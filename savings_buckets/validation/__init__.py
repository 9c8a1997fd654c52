"""Validation package."""

from savings_buckets.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
