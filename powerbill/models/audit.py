"""
Audit Models for PowerBill

Every store mutation, import/export and bill refresh produces one audit
event. Events go to the structured log; they are never persisted with
the data document.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from powerbill.identifiers import new_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Properties
    PROPERTY_ADDED = "property_added"
    PROPERTY_DELETED = "property_deleted"

    # Meters
    METERS_ADDED = "meters_added"
    METER_UPDATED = "meter_updated"
    METER_REMOVED = "meter_removed"

    # Settings
    API_KEY_UPDATED = "api_key_updated"
    API_KEY_CLEARED = "api_key_cleared"

    # Backup
    DATA_EXPORTED = "data_exported"
    DATA_IMPORTED = "data_imported"
    IMPORT_REJECTED = "import_rejected"

    # Bills
    BILL_REFRESHED = "bill_refreshed"
    BILL_FETCH_FAILED = "bill_fetch_failed"

    # Persistence
    LOAD_FAILED = "load_failed"
    SAVE_FAILED = "save_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: str = Field(default_factory=new_id)
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'property', 'meter', 'data')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.property_added(property_id, name, "home")
        event = AuditEventBuilder.save_failed(key, str(error))
    """

    @staticmethod
    def property_added(property_id: str, name: str, property_type: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROPERTY_ADDED,
            entity_type="property",
            entity_id=property_id,
            description="Property added",
            details={"name": name, "type": property_type},
            is_user_action=True,
        )

    @staticmethod
    def property_deleted(property_id: str, meters_removed: int, existed: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROPERTY_DELETED,
            entity_type="property",
            entity_id=property_id,
            description=(
                f"Property deleted with {meters_removed} meters"
                if existed
                else "Property delete requested for unknown id"
            ),
            details={"meters_removed": meters_removed, "existed": existed},
            is_user_action=True,
        )

    @staticmethod
    def meters_added(property_id: str, meter_ids: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.METERS_ADDED,
            entity_type="property",
            entity_id=property_id,
            description=f"{len(meter_ids)} meters added",
            details={"meter_ids": meter_ids},
            is_user_action=True,
        )

    @staticmethod
    def meter_updated(meter_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.METER_UPDATED,
            entity_type="meter",
            entity_id=meter_id,
            description=f"Meter updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def meter_removed(meter_id: str, property_id: str, existed: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.METER_REMOVED,
            entity_type="meter",
            entity_id=meter_id,
            description="Meter removed" if existed else "Meter remove requested for unknown id",
            details={"property_id": property_id, "existed": existed},
            is_user_action=True,
        )

    @staticmethod
    def api_key_changed(cleared: bool) -> AuditEvent:
        # The key itself never goes into an event.
        return AuditEvent(
            event_type=(
                AuditEventType.API_KEY_CLEARED if cleared else AuditEventType.API_KEY_UPDATED
            ),
            entity_type="settings",
            description="API key cleared" if cleared else "API key updated",
            is_user_action=True,
        )

    @staticmethod
    def data_exported(property_count: int, meter_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_EXPORTED,
            entity_type="data",
            description=f"Backup exported: {property_count} properties, {meter_count} meters",
            details={"properties": property_count, "meters": meter_count},
            is_user_action=True,
        )

    @staticmethod
    def data_imported(property_count: int, meter_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_IMPORTED,
            entity_type="data",
            description=f"Backup imported: {property_count} properties, {meter_count} meters",
            details={"properties": property_count, "meters": meter_count},
            is_user_action=True,
        )

    @staticmethod
    def import_rejected(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="data",
            description="Backup import rejected",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def bill_refreshed(meter_id: str, amount: float, status: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_REFRESHED,
            entity_type="meter",
            entity_id=meter_id,
            description=f"Bill refreshed: ₹{amount:g} ({status})",
            details={"amount": amount, "status": status},
        )

    @staticmethod
    def bill_fetch_failed(meter_id: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_FETCH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="meter",
            entity_id=meter_id,
            description="Bill fetch failed",
            error_message=error_message,
        )

    @staticmethod
    def load_failed(storage_key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="data",
            description="Stored data unreadable, starting empty",
            details={"storage_key": storage_key},
            error_message=error_message,
        )

    @staticmethod
    def save_failed(storage_key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="data",
            description="Could not persist data, keeping in-memory state",
            details={"storage_key": storage_key},
            error_message=error_message,
        )
