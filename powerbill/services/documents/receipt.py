"""
PDF Bill Receipt

Renders a one-page receipt for a meter and a bill snapshot. The renderer
is a pure function of its two inputs and never touches the store.

fpdf2's core fonts are Latin-1 only, so text outside that range is
replaced and the rupee sign is written as "Rs.".
"""

from fpdf import FPDF

from powerbill.models.meter import BillSnapshot, Meter


HEADER_RGB = (37, 99, 235)
BODY_RGB = (40, 40, 40)
LABEL_X = 20
VALUE_X = 80
LINE_HEIGHT = 10


def _pdf_text(value: str) -> str:
    return value.encode("latin-1", errors="replace").decode("latin-1")


def _format_amount(amount: float) -> str:
    return f"{amount:,.2f}".rstrip("0").rstrip(".")


def receipt_filename(meter: Meter, snapshot: BillSnapshot) -> str:
    """Download filename for a receipt, e.g. 'Bill_110390320_2026-10-19.pdf'."""
    account = "".join(c for c in meter.account_number if c.isalnum() or c in "-_") or "meter"
    return f"Bill_{account}_{snapshot.billing_date.isoformat()}.pdf"


class _ReceiptWriter:
    def __init__(self):
        self.pdf = FPDF(orientation="P", unit="mm", format="A4")
        self.pdf.set_auto_page_break(auto=False)
        self.pdf.add_page()
        self.y = 60.0

    def header(self, title: str) -> None:
        self.pdf.set_fill_color(*HEADER_RGB)
        self.pdf.rect(0, 0, 210, 40, style="F")
        self.pdf.set_text_color(255, 255, 255)
        self.pdf.set_font("helvetica", "B", 22)
        self.pdf.text(LABEL_X, 25, _pdf_text(title))
        self.pdf.set_text_color(*BODY_RGB)
        self.pdf.set_font("helvetica", "", 12)

    def line(self, label: str, value: str) -> None:
        self.pdf.set_font("helvetica", "B", 12)
        self.pdf.text(LABEL_X, self.y, _pdf_text(f"{label}:"))
        self.pdf.set_font("helvetica", "", 12)
        self.pdf.text(VALUE_X, self.y, _pdf_text(value))
        self.y += LINE_HEIGHT

    def rule(self) -> None:
        self.y += 5
        self.pdf.set_draw_color(200)
        self.pdf.line(LABEL_X, self.y, 190, self.y)
        self.y += 15

    def heading(self, text: str) -> None:
        self.pdf.set_font("helvetica", "B", 14)
        self.pdf.text(LABEL_X, self.y, _pdf_text(text))
        self.y += LINE_HEIGHT

    def total(self, text: str) -> None:
        self.y += 10
        self.pdf.set_font("helvetica", "B", 18)
        self.pdf.set_text_color(*HEADER_RGB)
        self.pdf.text(LABEL_X, self.y, _pdf_text(text))

    def to_bytes(self) -> bytes:
        return bytes(self.pdf.output())


def render_bill_receipt(meter: Meter, snapshot: BillSnapshot) -> bytes:
    """
    Render the receipt PDF.

    Args:
        meter: The meter the bill belongs to (account, label, tenant)
        snapshot: The bill to print

    Returns:
        PDF file contents
    """
    writer = _ReceiptWriter()
    writer.header("Electricity Bill Receipt")

    writer.line("UKSC Number", meter.account_number)
    writer.line("Property Label", meter.label)
    writer.rule()

    writer.line("Tenant Name", meter.tenant.name or "N/A")
    writer.line("Flat/Plot No", meter.tenant.address or "N/A")
    writer.line("Phone", meter.tenant.phone or "N/A")
    writer.y += 15

    writer.heading("Bill Summary")
    writer.line("Billing Date", snapshot.billing_date.strftime("%d %b %Y"))
    writer.line("Due Date", snapshot.due_date.strftime("%d %b %Y"))
    writer.line("Units Consumed", f"{snapshot.units_consumed:g} kWh")
    writer.line("Status", snapshot.status.value)

    writer.total(f"Total Amount: Rs. {_format_amount(snapshot.amount)}/-")
    return writer.to_bytes()
