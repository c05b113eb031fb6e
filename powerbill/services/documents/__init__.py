"""Bill documents: PDF receipts and tenant share messages."""

from powerbill.services.documents.receipt import receipt_filename, render_bill_receipt
from powerbill.services.documents.share import build_share_message, whatsapp_share_url

__all__ = [
    "build_share_message",
    "receipt_filename",
    "render_bill_receipt",
    "whatsapp_share_url",
]
