"""
Meter Store

The single owner of AppData. Every change to properties, meters, the API
key or the whole data set goes through a MeterStore method.

Guarantees:
- Each mutation is all-or-nothing. The new tree is built from frozen
  models and swapped in only after every check has passed; a raised
  StoreError means nothing changed.
- Each successful mutation writes the whole document exactly once.
  Reads and exports never write.
- Unreadable stored data at startup is treated as "no data yet", and a
  failed write is logged while the in-memory tree stays authoritative.
  Neither ever surfaces as a StoreError.
- Property ids and meter ids are never shared by two live entities.

A store is created once per process (see from_settings) and passed to
whatever needs it. It runs on one thread; callers must not mutate it
concurrently.
"""

from datetime import datetime
from types import TracebackType
from typing import Iterable, Mapping, Optional, Type, Union

import structlog
from pydantic import ValidationError

from powerbill.audit import AuditLogger
from powerbill.config import get_settings
from powerbill.identifiers import new_id
from powerbill.models.meter import (
    AppData,
    BillSnapshot,
    Meter,
    MeterUpdate,
    Property,
    PropertyType,
    Tenant,
)
from powerbill.serialization import DecodeError, decode, dumps, encode, loads
from powerbill.services.billing import FetchError, SnapshotGenerator
from powerbill.services.storage import JsonFileStorage, PersistenceAdapter, StorageError
from powerbill.validation import InputValidationError, parse_account_numbers, require_name


class StoreError(Exception):
    """Base exception for store operations."""
    pass


class InvalidInputError(StoreError):
    """Malformed caller input, e.g. a blank property name."""
    pass


class NotFoundError(StoreError):
    """A referenced property or meter does not exist."""
    pass


class BackupImportError(StoreError):
    """An imported document was rejected; current data is unchanged."""
    pass


class MeterStore:
    """
    Source of truth for all properties, meters and the API key.

    Usage:
        store = MeterStore(InMemoryStorage())
        home = store.add_property("Lake House", PropertyType.HOME)
        meters = store.add_meters_bulk(home.id, ["1001", "1002,1003"])
    """

    def __init__(
        self,
        storage: PersistenceAdapter,
        storage_key: Optional[str] = None,
        audit_logger: Optional[AuditLogger] = None,
        label_prefix: Optional[str] = None,
    ):
        settings = get_settings()
        self._storage = storage
        self._key = storage_key or settings.storage.storage_key
        self._label_prefix = (
            settings.app.default_label_prefix if label_prefix is None else label_prefix
        )
        self._audit = audit_logger or AuditLogger()
        self._logger = structlog.get_logger("powerbill.store")
        self._closed = False
        self._data = self._load()

    @classmethod
    def from_settings(cls, audit_logger: Optional[AuditLogger] = None) -> 'MeterStore':
        """Store backed by JSON files in the configured data directory."""
        settings = get_settings().storage
        return cls(
            JsonFileStorage(settings.data_dir),
            storage_key=settings.storage_key,
            audit_logger=audit_logger,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop accepting mutations. Every change is already persisted."""
        if not self._closed:
            self._closed = True
            self._logger.info("store_closed", storage_key=self._key)

    def __enter__(self) -> 'MeterStore':
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def data(self) -> AppData:
        return self._data

    @property
    def profiles(self) -> list[Property]:
        return list(self._data.profiles)

    @property
    def api_key(self) -> str:
        return self._data.api_key

    def get_property(self, property_id: str) -> Property:
        prop = self._data.find_property(property_id)
        if prop is None:
            raise NotFoundError(f"Property not found: {property_id}")
        return prop

    def get_meter(self, property_id: str, meter_id: str) -> Meter:
        meter = self.get_property(property_id).find_meter(meter_id)
        if meter is None:
            raise NotFoundError(f"Meter not found: {meter_id}")
        return meter

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def add_property(
        self,
        name: str,
        property_type: Union[PropertyType, str] = PropertyType.HOME,
    ) -> Property:
        """
        Create an empty property.

        Raises:
            InvalidInputError: If the name is blank or the type unknown
        """
        self._ensure_open()
        try:
            name = require_name(name)
            property_type = PropertyType(
                property_type.lower() if isinstance(property_type, str) else property_type
            )
        except InputValidationError as e:
            raise InvalidInputError(str(e)) from e
        except ValueError as e:
            raise InvalidInputError(f"Unknown property type: {property_type!r}") from e

        prop = Property(id=self._fresh_id(), name=name, property_type=property_type)
        self._commit(self._data.model_copy(update={"profiles": [*self._data.profiles, prop]}))
        self._audit.log_property_added(prop.id, prop.name, prop.property_type.value)
        return prop

    def delete_property(self, property_id: str) -> None:
        """Remove a property and every meter in it. Unknown ids are a no-op."""
        self._ensure_open()
        removed = self._data.find_property(property_id)
        remaining = [p for p in self._data.profiles if p.id != property_id]
        self._commit(self._data.model_copy(update={"profiles": remaining}))
        self._audit.log_property_deleted(
            property_id,
            meters_removed=len(removed.items) if removed else 0,
            existed=removed is not None,
        )

    # ------------------------------------------------------------------
    # Meters
    # ------------------------------------------------------------------

    def add_meters_bulk(
        self,
        property_id: str,
        account_numbers: Union[str, Iterable[str]],
    ) -> list[Meter]:
        """
        Append one meter per account number, in input order.

        Entries are split on commas and newlines, trimmed, and empty ones
        dropped. Repeated account numbers produce repeated meters.

        Raises:
            NotFoundError: If the property does not exist
            InvalidInputError: If an entry is not text
        """
        self._ensure_open()
        prop = self.get_property(property_id)
        try:
            numbers = parse_account_numbers(account_numbers)
        except InputValidationError as e:
            raise InvalidInputError(str(e)) from e

        taken = self._all_ids()
        meters = []
        for number in numbers:
            meter = Meter(
                id=self._fresh_id(taken),
                account_number=number,
                label=self.default_label(number),
            )
            taken.add(meter.id)
            meters.append(meter)

        updated = prop.model_copy(update={"items": [*prop.items, *meters]})
        self._commit(self._replace_property(updated))
        self._audit.log_meters_added(property_id, [m.id for m in meters])
        return meters

    def update_meter(
        self,
        property_id: str,
        meter_id: str,
        update: Union[MeterUpdate, Mapping[str, object]],
    ) -> Meter:
        """
        Apply the provided fields of a partial update to one meter.

        A mapping is read with MeterUpdate.from_payload, so unknown keys
        are ignored. A tenant replaces the whole tenant.

        Raises:
            NotFoundError: If the property or meter does not exist
            InvalidInputError: If a provided field has the wrong shape
        """
        self._ensure_open()
        prop = self.get_property(property_id)
        meter = prop.find_meter(meter_id)
        if meter is None:
            raise NotFoundError(f"Meter not found: {meter_id}")

        if not isinstance(update, MeterUpdate):
            try:
                update = MeterUpdate.from_payload(update)
            except ValidationError as e:
                raise InvalidInputError(f"Invalid meter update: {e}") from e

        changes = update.changes()
        updated_meter = meter.model_copy(update=changes)
        items = [updated_meter if m.id == meter_id else m for m in prop.items]
        self._commit(self._replace_property(prop.model_copy(update={"items": items})))
        self._audit.log_meter_updated(meter_id, sorted(changes))
        return updated_meter

    def update_tenant(self, property_id: str, meter_id: str, tenant: Tenant) -> Meter:
        """Replace a meter's tenant details."""
        return self.update_meter(property_id, meter_id, MeterUpdate(tenant=tenant))

    def remove_meter(self, property_id: str, meter_id: str) -> None:
        """Remove one meter. Unknown ids are a no-op."""
        self._ensure_open()
        prop = self._data.find_property(property_id)
        existed = prop is not None and prop.find_meter(meter_id) is not None
        data = self._data
        if existed:
            items = [m for m in prop.items if m.id != meter_id]
            data = self._replace_property(prop.model_copy(update={"items": items}))
        self._commit(data)
        self._audit.log_meter_removed(meter_id, property_id, existed)

    def default_label(self, account_number: str) -> str:
        return f"{self._label_prefix} {account_number}".strip()

    # ------------------------------------------------------------------
    # Bills
    # ------------------------------------------------------------------

    async def refresh_bill(
        self,
        property_id: str,
        meter_id: str,
        generator: SnapshotGenerator,
    ) -> BillSnapshot:
        """
        Fetch a new snapshot for a meter and store it as its latest bill.

        The previous snapshot stays visible while the fetch is pending.
        Overlapping refreshes are not deduplicated; the last one to finish
        wins.

        Raises:
            NotFoundError: If the meter does not exist, before or after the fetch
            FetchError: If the generator fails; the meter is left unchanged
        """
        meter = self.get_meter(property_id, meter_id)
        try:
            snapshot = await generator.generate_snapshot(meter.account_number)
        except FetchError as e:
            self._audit.log_bill_fetch_failed(meter_id, str(e))
            raise

        self.update_meter(property_id, meter_id, MeterUpdate(last_snapshot=snapshot))
        self._audit.log_bill_refreshed(meter_id, snapshot.amount, snapshot.status.value)
        return snapshot

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_api_key(self, key: str) -> None:
        """Replace the API key. An empty string clears it."""
        self._ensure_open()
        if not isinstance(key, str):
            raise InvalidInputError("API key must be text")
        self._commit(self._data.model_copy(update={"api_key": key}))
        self._audit.log_api_key_changed(cleared=not key)

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    def export_snapshot(self) -> dict:
        """The current data as a JSON-compatible document."""
        document = encode(self._data)
        self._audit.log_data_exported(len(self._data.profiles), self._data.meter_count)
        return document

    def export_bytes(self) -> bytes:
        """The current data as UTF-8 JSON, ready to download."""
        raw = dumps(self._data)
        self._audit.log_data_exported(len(self._data.profiles), self._data.meter_count)
        return raw

    def backup_filename(self, now: Optional[datetime] = None) -> str:
        stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
        return f"{get_settings().storage.backup_prefix}_{stamp}.json"

    def import_snapshot(self, document: Union[bytes, str, Mapping[str, object]]) -> None:
        """
        Replace all current data with an imported document.

        Nothing is merged: properties, meters and the API key all come
        from the document.

        Raises:
            BackupImportError: If the document is not valid; current data is unchanged
        """
        self._ensure_open()
        try:
            if isinstance(document, (bytes, bytearray, str)):
                data = loads(document)
            elif isinstance(document, Mapping):
                data = decode(dict(document))
            else:
                raise DecodeError(f"Unsupported document type: {type(document).__name__}")
        except DecodeError as e:
            self._audit.log_import_rejected(str(e))
            raise BackupImportError(str(e)) from e

        self._commit(data)
        self._audit.log_data_imported(len(data.profiles), data.meter_count)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreError("Store is closed")

    def _all_ids(self) -> set[str]:
        ids = set()
        for prop in self._data.profiles:
            ids.add(prop.id)
            ids.update(m.id for m in prop.items)
        return ids

    def _fresh_id(self, taken: Optional[set[str]] = None) -> str:
        taken = self._all_ids() if taken is None else taken
        candidate = new_id()
        while candidate in taken:
            candidate = new_id()
        return candidate

    def _replace_property(self, updated: Property) -> AppData:
        profiles = [updated if p.id == updated.id else p for p in self._data.profiles]
        return self._data.model_copy(update={"profiles": profiles})

    def _load(self) -> AppData:
        try:
            raw = self._storage.load(self._key)
        except StorageError as e:
            self._audit.log_load_failed(self._key, str(e))
            return AppData()

        if raw is None:
            self._logger.info("store_started_empty", storage_key=self._key)
            return AppData()

        try:
            data = loads(raw)
        except DecodeError as e:
            self._audit.log_load_failed(self._key, str(e))
            return AppData()

        self._logger.info(
            "store_loaded",
            storage_key=self._key,
            properties=len(data.profiles),
            meters=data.meter_count,
        )
        return data

    def _commit(self, data: AppData) -> None:
        self._data = data
        try:
            self._storage.save(self._key, dumps(data))
        except (StorageError, OSError) as e:
            self._audit.log_save_failed(self._key, str(e))
