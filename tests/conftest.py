"""Shared fixtures for PowerBill tests."""

from datetime import date, datetime, timezone

import pytest

from powerbill.audit import AuditLogger
from powerbill.models import (
    AppData,
    BillSnapshot,
    BillStatus,
    Meter,
    Property,
    PropertyType,
    Tenant,
)
from powerbill.services.storage import InMemoryStorage
from powerbill.store import MeterStore


STORAGE_KEY = "test_data"


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def events():
    return []


@pytest.fixture
def audit_logger(events):
    return AuditLogger(sink=events.append)


@pytest.fixture
def store(storage, audit_logger):
    return MeterStore(
        storage,
        storage_key=STORAGE_KEY,
        audit_logger=audit_logger,
        label_prefix="UKSC",
    )


@pytest.fixture
def snapshot():
    return BillSnapshot(
        amount=780,
        units_consumed=120,
        billing_date=date(2026, 10, 19),
        due_date=date(2026, 11, 2),
        status=BillStatus.UNPAID,
        fetched_at=datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc),
    )


@pytest.fixture
def sample_data(snapshot):
    """Two properties, one meter with tenant and bill, one bare meter."""
    return AppData(
        profiles=[
            Property(
                id="prop-1",
                name="Lake House",
                property_type=PropertyType.HOME,
                items=[
                    Meter(
                        id="meter-1",
                        account_number="110390320",
                        label="Ground floor",
                        tenant=Tenant(name="Asha", address="Flat 4", phone="9876543210"),
                        last_snapshot=snapshot,
                    ),
                    Meter(id="meter-2", account_number="110390321", label="UKSC 110390321"),
                ],
            ),
            Property(id="prop-2", name="Green Towers", property_type=PropertyType.APARTMENT),
        ],
        api_key="secret-key",
    )
