"""One-off data migration utilities."""

from savings_buckets.migration.cleanup import CleanupReport, FieldChange, clean_data_file

__all__ = ["CleanupReport", "FieldChange", "clean_data_file"]
