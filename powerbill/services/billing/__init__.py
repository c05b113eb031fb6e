"""Bill snapshot services."""

from powerbill.services.billing.generator import (
    FetchError,
    SimulatedBillService,
    SnapshotGenerator,
    official_bill_url,
    seed_for,
)

__all__ = [
    "FetchError",
    "SimulatedBillService",
    "SnapshotGenerator",
    "official_bill_url",
    "seed_for",
]
