"""Audit logging package."""

from powerbill.audit.logger import AuditLogger, setup_logging

__all__ = ["AuditLogger", "setup_logging"]
