"""Tests for the simulated bill service."""

import asyncio
from datetime import date, datetime, timezone

import pytest

from powerbill.models import BillStatus
from powerbill.services.billing import (
    FetchError,
    SimulatedBillService,
    official_bill_url,
    seed_for,
)


FIXED_NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def service():
    return SimulatedBillService(due_in_days=14, latency_seconds=0, clock=lambda: FIXED_NOW)


class TestSeed:
    """Tests for the account-number seed."""

    @pytest.mark.parametrize("account, expected", [
        ("110390320", 320),
        ("1001", 1),
        ("12", 12),
        ("1000", 123),
        ("ABC", 123),
        ("45X", 45),
        ("", 123),
    ])
    def test_seed(self, account, expected):
        """Test seeds from the last three characters."""
        assert seed_for(account) == expected


class TestSimulatedBillService:
    """Tests for deterministic snapshot generation."""

    def test_known_account(self, service):
        """Test amount, units, status and dates for a typical account."""
        bill = asyncio.run(service.generate_snapshot("110390320"))
        assert bill.amount == 780
        assert bill.units_consumed == 120
        assert bill.status == BillStatus.UNPAID
        assert bill.billing_date == date(2026, 10, 19)
        assert bill.due_date == date(2026, 11, 2)
        assert bill.fetched_at == FIXED_NOW

    def test_rounds_half_up(self, service):
        """Test that 301.5 rounds to 302 and 304.5 to 305."""
        assert service.snapshot_for("1001", date(2026, 1, 1)).amount == 302
        assert service.snapshot_for("003", date(2026, 1, 1)).amount == 305

    def test_units_use_unrounded_amount(self, service):
        """Test units for seed 1: floor(301.5 / 6.5) = 46."""
        assert service.snapshot_for("1001", date(2026, 1, 1)).units_consumed == 46

    def test_paid_when_seed_divisible_by_three(self, service):
        """Test the status rule, including the default seed 123."""
        assert service.snapshot_for("123", date(2026, 1, 1)).status == BillStatus.PAID
        assert service.snapshot_for("000", date(2026, 1, 1)).status == BillStatus.PAID
        assert service.snapshot_for("124", date(2026, 1, 1)).status == BillStatus.UNPAID

    def test_deterministic(self, service):
        """Test that the same account gives the same bill."""
        first = asyncio.run(service.generate_snapshot("555"))
        second = asyncio.run(service.generate_snapshot("555"))
        assert first == second

    def test_blank_account_fails(self, service):
        """Test that a blank account number is a FetchError."""
        with pytest.raises(FetchError) as exc_info:
            asyncio.run(service.generate_snapshot("   "))
        assert exc_info.value.account_number == ""

    def test_custom_due_offset(self):
        """Test the due-date offset setting."""
        service = SimulatedBillService(due_in_days=7, latency_seconds=0)
        bill = service.snapshot_for("1", date(2026, 10, 19))
        assert bill.due_date == date(2026, 10, 26)


class TestOfficialBillUrl:
    """Tests for the portal link."""

    def test_url(self):
        """Test the query string."""
        url = official_bill_url(" 110390320 ", portal_url="https://example.org/bill")
        assert url == "https://example.org/bill?ukscno=110390320"
