"""Services package."""

from powerbill.services.billing import (
    FetchError,
    SimulatedBillService,
    SnapshotGenerator,
    official_bill_url,
)
from powerbill.services.documents import (
    build_share_message,
    receipt_filename,
    render_bill_receipt,
    whatsapp_share_url,
)
from powerbill.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    PersistenceAdapter,
    StorageError,
)

__all__ = [
    # Billing
    "FetchError",
    "SimulatedBillService",
    "SnapshotGenerator",
    "official_bill_url",
    # Documents
    "build_share_message",
    "receipt_filename",
    "render_bill_receipt",
    "whatsapp_share_url",
    # Storage
    "InMemoryStorage",
    "JsonFileStorage",
    "PersistenceAdapter",
    "StorageError",
]
