"""
Data Models Package

This package contains all Pydantic models used by PowerBill.
Everything the store holds or persists conforms to these schemas.
"""

from powerbill.models.meter import (
    AppData,
    BillSnapshot,
    BillStatus,
    Meter,
    MeterUpdate,
    Property,
    PropertyType,
    Tenant,
)
from powerbill.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Data models
    "AppData",
    "BillSnapshot",
    "BillStatus",
    "Meter",
    "MeterUpdate",
    "Property",
    "PropertyType",
    "Tenant",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
