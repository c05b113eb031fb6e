"""
Tenant Share Message

Builds the bill notification text sent to a tenant and the WhatsApp link
that opens it. When the tenant's phone has fewer than ten digits the link
opens WhatsApp without a recipient.
"""

import re
from typing import Optional
from urllib.parse import quote

from powerbill.config import get_settings
from powerbill.models.meter import BillSnapshot, Meter


WHATSAPP_BASE = "https://wa.me/"
_NON_DIGITS = re.compile(r"\D")


def build_share_message(meter: Meter, snapshot: BillSnapshot) -> str:
    """WhatsApp-formatted bill notification for the meter's tenant."""
    return (
        "*Electricity Bill Notification*\n\n"
        f"Hello {meter.tenant.name or 'Tenant'},\n\n"
        f"Your electricity bill for UKSC *{meter.account_number}* is ready.\n\n"
        "*Bill Summary:*\n"
        f"Amount: ₹{snapshot.amount:g}\n"
        f"Due Date: {snapshot.due_date.strftime('%d %b %Y')}\n"
        f"Status: {snapshot.status.value}\n\n"
        "_Generated via PowerBill Pro_"
    )


def whatsapp_share_url(
    meter: Meter,
    snapshot: BillSnapshot,
    country_code: Optional[str] = None,
) -> str:
    text = quote(build_share_message(meter, snapshot), safe="")
    digits = _NON_DIGITS.sub("", meter.tenant.phone)
    if len(digits) >= 10:
        code = country_code if country_code is not None else get_settings().billing.share_country_code
        return f"{WHATSAPP_BASE}{code}{digits[-10:]}?text={text}"
    return f"{WHATSAPP_BASE}?text={text}"
