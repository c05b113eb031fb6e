"""
Bill Snapshot Generation

The utility's bill pages cannot be queried directly, so bills come from a
simulated service with realistic behaviour: a short delay, then a
snapshot derived deterministically from the account number.

Derivation, from the last three characters of the account number:
- seed   = their leading integer, or 123 when there is none or it is zero
- amount = seed * 1.5 + 300, rounded half up
- units  = floor((seed * 1.5 + 300) / 6.5)
- status = Paid when seed is divisible by 3, otherwise Unpaid
- dates  = billed today, due a configured number of days later

Any other generator only needs to implement SnapshotGenerator.
"""

import asyncio
import math
import re
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional
from urllib.parse import urlencode

import structlog

from powerbill.config import get_settings
from powerbill.models.meter import BillSnapshot, BillStatus


DEFAULT_SEED = 123
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class FetchError(Exception):
    """A bill snapshot could not be produced."""

    def __init__(self, account_number: str, message: str):
        self.account_number = account_number
        super().__init__(message)


class SnapshotGenerator(ABC):
    """Produces the current bill snapshot for an account number."""

    @abstractmethod
    async def generate_snapshot(self, account_number: str) -> BillSnapshot:
        """
        Raises:
            FetchError: If no snapshot can be produced
        """
        pass


def seed_for(account_number: str) -> int:
    """Seed derived from the last three characters of an account number."""
    match = _LEADING_INT.match(account_number[-3:])
    seed = int(match.group(1)) if match else 0
    return seed or DEFAULT_SEED


class SimulatedBillService(SnapshotGenerator):
    """Deterministic stand-in for the utility's billing system."""

    def __init__(
        self,
        due_in_days: Optional[int] = None,
        latency_seconds: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        settings = get_settings().billing
        self._due_in_days = settings.due_in_days if due_in_days is None else due_in_days
        self._latency = (
            settings.simulated_latency_seconds if latency_seconds is None else latency_seconds
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = structlog.get_logger("powerbill.billing")

    async def generate_snapshot(self, account_number: str) -> BillSnapshot:
        account_number = account_number.strip()
        if not account_number:
            raise FetchError(account_number, "Account number is required to fetch a bill")

        self._logger.info("bill_query", account_number=account_number)
        if self._latency > 0:
            await asyncio.sleep(self._latency)

        now = self._clock()
        return self.snapshot_for(account_number, now.date(), fetched_at=now)

    def snapshot_for(
        self,
        account_number: str,
        billing_date: date,
        fetched_at: Optional[datetime] = None,
    ) -> BillSnapshot:
        """Build the snapshot for an account on a given billing date."""
        seed = seed_for(account_number)
        raw_amount = seed * 1.5 + 300

        return BillSnapshot(
            amount=math.floor(raw_amount + 0.5),
            units_consumed=math.floor(raw_amount / 6.5),
            billing_date=billing_date,
            due_date=billing_date + timedelta(days=self._due_in_days),
            status=BillStatus.PAID if seed % 3 == 0 else BillStatus.UNPAID,
            fetched_at=fetched_at,
        )


def official_bill_url(account_number: str, portal_url: Optional[str] = None) -> str:
    """Link to the utility's own bill page for manual verification."""
    base = portal_url or get_settings().billing.portal_url
    return f"{base}?{urlencode({'ukscno': account_number.strip()})}"
