"""
Core Data Models for PowerBill

These models define the strict schemas for everything the store holds:
properties, the meters inside them, each meter's tenant and its latest
bill snapshot.

All models are frozen. The store never edits a model in place; it builds
a new tree with model_copy() and swaps it in, so a failed operation
leaves the previous tree untouched.

Python field names are snake_case. The aliases are the field names of
the persisted JSON document, and are used both for reading and writing.
"""

import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from powerbill.identifiers import new_id


# Older documents wrote bill dates for display, e.g. "19 Oct 2026".
LEGACY_DATE_FORMATS = ("%d %b %Y", "%d-%b-%Y", "%d/%m/%Y")
# Some locales abbreviate September as "Sept", which %b does not accept.
_SEPT = re.compile(r"\bsept\b", re.IGNORECASE)


# =============================================================================
# ENUMS
# =============================================================================

class PropertyType(str, Enum):
    """Kind of property a group of meters belongs to."""
    HOME = "home"
    APARTMENT = "apartment"


class BillStatus(str, Enum):
    """Payment status reported with a bill snapshot."""
    PAID = "Paid"
    UNPAID = "Unpaid"


# =============================================================================
# VALUE OBJECTS
# =============================================================================

class Tenant(BaseModel):
    """
    Contact details of whoever occupies the metered unit.

    Every field may be blank. A tenant has no identity of its own and is
    always replaced as a whole.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    name: str = ""
    address: str = Field(
        default="",
        validation_alias=AliasChoices("address", "flatOrPlotNo"),
        description="Flat or plot designator"
    )
    phone: str = ""

    @property
    def is_blank(self) -> bool:
        return not (self.name or self.address or self.phone)


class BillSnapshot(BaseModel):
    """
    A point-in-time billing readout for one meter.

    Immutable once created. A meter keeps only the latest one.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    amount: float = Field(
        ...,
        ge=0,
        description="Amount due in INR"
    )
    units_consumed: float = Field(
        ...,
        ge=0,
        alias="units",
        description="Units consumed in kWh"
    )
    billing_date: date = Field(..., alias="date")
    due_date: date = Field(..., alias="dueDate")
    status: BillStatus = BillStatus.UNPAID
    fetched_at: Optional[datetime] = Field(
        default=None,
        alias="fetchedAt",
        description="When the snapshot was captured"
    )

    @field_validator('billing_date', 'due_date', mode='before')
    @classmethod
    def accept_display_dates(cls, v: Any) -> Any:
        """Accept the display formats written by older documents."""
        if isinstance(v, str):
            text = _SEPT.sub("Sep", v.strip())
            for fmt in LEGACY_DATE_FORMATS:
                try:
                    return datetime.strptime(text, fmt).date()
                except ValueError:
                    continue
        return v

    @model_validator(mode='after')
    def validate_dates(self) -> 'BillSnapshot':
        if self.due_date < self.billing_date:
            raise ValueError("Due date cannot be before billing date")
        return self


# =============================================================================
# ENTITIES
# =============================================================================

class Meter(BaseModel):
    """
    One billable electricity service account.

    The account number is the utility's identifier and is deliberately
    not unique: the same number may be added twice.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    id: str = Field(default_factory=new_id, min_length=1)
    account_number: str = Field(..., alias="ukscNumber")
    label: str = ""
    tenant: Tenant = Field(default_factory=Tenant)
    last_snapshot: Optional[BillSnapshot] = Field(default=None, alias="lastBill")


class Property(BaseModel):
    """A home or apartment grouping meters in display order."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(default_factory=new_id, min_length=1)
    name: str
    property_type: PropertyType = Field(default=PropertyType.HOME, alias="type")
    items: list[Meter] = Field(default_factory=list)

    def find_meter(self, meter_id: str) -> Optional[Meter]:
        for meter in self.items:
            if meter.id == meter_id:
                return meter
        return None


class AppData(BaseModel):
    """
    Root aggregate: every property plus the single configuration secret.

    Identifiers are checked for uniqueness on construction, so a document
    with colliding ids never becomes live data.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    profiles: list[Property] = Field(default_factory=list)
    api_key: str = Field(default="", alias="apiKey")

    @model_validator(mode='after')
    def validate_unique_ids(self) -> 'AppData':
        property_ids: set[str] = set()
        meter_ids: set[str] = set()
        for prop in self.profiles:
            if prop.id in property_ids:
                raise ValueError(f"Duplicate property id: {prop.id}")
            property_ids.add(prop.id)
            for meter in prop.items:
                if meter.id in meter_ids:
                    raise ValueError(f"Duplicate meter id: {meter.id}")
                meter_ids.add(meter.id)
        return self

    def find_property(self, property_id: str) -> Optional[Property]:
        for prop in self.profiles:
            if prop.id == property_id:
                return prop
        return None

    @property
    def meter_count(self) -> int:
        return sum(len(prop.items) for prop in self.profiles)


# =============================================================================
# PARTIAL UPDATES
# =============================================================================

class MeterUpdate(BaseModel):
    """
    Named optional fields for a partial meter update.

    A field left as None is not touched. Unknown keyword arguments are
    rejected; use from_payload() for loosely-typed input such as a JSON
    body, which drops keys it does not know.

    The tenant is replaced as a whole, never merged field by field.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    label: Optional[str] = None
    account_number: Optional[str] = Field(default=None, alias="ukscNumber")
    tenant: Optional[Tenant] = None
    last_snapshot: Optional[BillSnapshot] = Field(default=None, alias="lastBill")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> 'MeterUpdate':
        known = set()
        for name, field in cls.model_fields.items():
            known.add(name)
            if field.alias:
                known.add(field.alias)
        return cls.model_validate({k: v for k, v in payload.items() if k in known})

    def changes(self) -> dict[str, Any]:
        """Field name -> new value, for every field that was provided."""
        return {
            name: getattr(self, name)
            for name in type(self).model_fields
            if getattr(self, name) is not None
        }

    @property
    def is_empty(self) -> bool:
        return not self.changes()
