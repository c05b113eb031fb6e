"""Tests for receipts and share messages."""

from urllib.parse import unquote

import pytest

from powerbill.models import Meter, Tenant
from powerbill.services.documents import (
    build_share_message,
    receipt_filename,
    render_bill_receipt,
    whatsapp_share_url,
)


@pytest.fixture
def meter():
    return Meter(
        id="m1",
        account_number="110390320",
        label="Ground floor",
        tenant=Tenant(name="Asha", address="Flat 4", phone="+91 98765-43210"),
    )


class TestReceipt:
    """Tests for the PDF receipt."""

    def test_renders_pdf(self, meter, snapshot):
        """Test that the output is a PDF document."""
        pdf = render_bill_receipt(meter, snapshot)
        assert pdf.startswith(b"%PDF")
        assert len(pdf) > 500

    def test_blank_tenant_and_non_latin_text(self, snapshot):
        """Test that blank fields and non-Latin-1 names still render."""
        meter = Meter(account_number="1", label="घर", tenant=Tenant())
        assert render_bill_receipt(meter, snapshot).startswith(b"%PDF")

    def test_does_not_modify_inputs(self, meter, snapshot):
        """Test that rendering is read-only."""
        before = (meter.model_copy(), snapshot.model_copy())
        render_bill_receipt(meter, snapshot)
        assert (meter, snapshot) == before

    def test_filename(self, meter, snapshot):
        """Test the receipt download name."""
        assert receipt_filename(meter, snapshot) == "Bill_110390320_2026-10-19.pdf"


class TestShare:
    """Tests for the tenant share message."""

    def test_message(self, meter, snapshot):
        """Test the notification text."""
        message = build_share_message(meter, snapshot)
        assert "Hello Asha" in message
        assert "*110390320*" in message
        assert "Amount: ₹780" in message
        assert "Due Date: 02 Nov 2026" in message
        assert "Status: Unpaid" in message

    def test_message_without_tenant_name(self, snapshot):
        """Test the fallback greeting."""
        message = build_share_message(Meter(account_number="1"), snapshot)
        assert "Hello Tenant" in message

    def test_url_with_phone(self, meter, snapshot):
        """Test that the last ten digits follow the country code."""
        url = whatsapp_share_url(meter, snapshot, country_code="91")
        assert url.startswith("https://wa.me/919876543210?text=")
        assert unquote(url.split("?text=", 1)[1]) == build_share_message(meter, snapshot)

    def test_url_with_short_phone(self, snapshot):
        """Test that a short phone number gives a recipient-less link."""
        meter = Meter(account_number="1", tenant=Tenant(phone="12345"))
        assert whatsapp_share_url(meter, snapshot, country_code="91").startswith(
            "https://wa.me/?text="
        )
