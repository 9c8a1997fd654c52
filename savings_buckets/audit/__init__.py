"""Audit logging package."""

from savings_buckets.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
