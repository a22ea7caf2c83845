# backend/utils/pdf.py
import logging
from pathlib import Path
from typing import Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from config import settings
from models.sale import Sale

logger = logging.getLogger(__name__)

FONT_REGULAR_NAME = "DejaVuSans"
FONT_BOLD_NAME = "DejaVuSans-Bold"
FALLBACK_REGULAR = "Helvetica"
FALLBACK_BOLD = "Helvetica-Bold"

_fonts: Optional[tuple] = None


def invoice_filename(sale: Sale) -> str:
    return f"Invoice-{sale.invoice_number}.pdf"


def get_pdf_path(sale: Sale) -> Path:
    """Location of the rendered invoice under INVOICE_DIR."""
    storage = Path(settings.INVOICE_DIR)
    storage.mkdir(parents=True, exist_ok=True)
    return storage / invoice_filename(sale)


def _init_fonts() -> tuple:
    """Register the bundled TTF fonts once; fall back to the built-in Helvetica."""
    global _fonts
    if _fonts is not None:
        return _fonts

    font_dir = Path(settings.FONT_DIR)
    regular, bold = font_dir / "DejaVuSans.ttf", font_dir / "DejaVuSans-Bold.ttf"
    if not regular.exists():
        logger.warning("Font file not found at %s, using %s", regular, FALLBACK_REGULAR)
        _fonts = (FALLBACK_REGULAR, FALLBACK_BOLD)
        return _fonts

    pdfmetrics.registerFont(TTFont(FONT_REGULAR_NAME, str(regular)))
    bold_name = FONT_REGULAR_NAME
    if bold.exists():
        pdfmetrics.registerFont(TTFont(FONT_BOLD_NAME, str(bold)))
        bold_name = FONT_BOLD_NAME
    _fonts = (FONT_REGULAR_NAME, bold_name)
    return _fonts


def money(value) -> str:
    return f"{float(value or 0):,.2f}"


def company_info() -> dict:
    return {
        "name": settings.COMPANY_NAME,
        "address": settings.COMPANY_ADDRESS,
        "phone": settings.COMPANY_PHONE,
    }


def generate_invoice_pdf(sale: Sale, out_path: Path, company: Optional[dict] = None) -> Path:
    """
    Render a sale receipt:
    - company header and invoice number
    - customer, cashier and payment details
    - line items table
    - totals (total, paid, change)
    """
    regular, bold = _init_fonts()
    company = company or company_info()

    c = canvas.Canvas(str(out_path), pagesize=A4)
    width, height = A4

    def draw_text(x, y, text, font=regular, size=10, align="left"):
        c.setFont(font, size)
        text_str = str(text) if text is not None else ""
        if align == "right":
            c.drawRightString(x, y, text_str)
        elif align == "center":
            c.drawCentredString(x, y, text_str)
        else:
            c.drawString(x, y, text_str)

    # --- header ---
    y = height - 20 * mm
    draw_text(20 * mm, y, company.get("name"), font=bold, size=16)
    draw_text(190 * mm, y, "INVOICE", font=bold, size=16, align="right")
    y -= 6 * mm
    draw_text(20 * mm, y, company.get("address"), size=9)
    draw_text(190 * mm, y, sale.invoice_number, size=10, align="right")
    y -= 5 * mm
    draw_text(20 * mm, y, f"Tel: {company.get('phone')}", size=9)
    created = sale.created_at.strftime("%d/%m/%Y %H:%M") if sale.created_at else ""
    draw_text(190 * mm, y, created, size=10, align="right")

    y -= 6 * mm
    c.setLineWidth(0.5)
    c.line(20 * mm, y, 190 * mm, y)
    y -= 8 * mm

    # --- customer / payment ---
    draw_text(20 * mm, y, "Customer:", font=bold)
    draw_text(45 * mm, y, sale.customer_name or "Walk-in customer")
    draw_text(110 * mm, y, "Payment:", font=bold)
    draw_text(135 * mm, y, (sale.payment_method or "").upper())
    y -= 5 * mm
    draw_text(20 * mm, y, "Cashier:", font=bold)
    draw_text(45 * mm, y, sale.user.name if sale.user else "-")
    draw_text(110 * mm, y, "Status:", font=bold)
    draw_text(135 * mm, y, sale.status)
    y -= 12 * mm

    # --- items table ---
    c.setFillColorRGB(0.95, 0.95, 0.95)
    c.rect(20 * mm, y - 2 * mm, 170 * mm, 8 * mm, fill=1, stroke=0)
    c.setFillColorRGB(0, 0, 0)

    c.setFont(bold, 9)
    c.drawString(22 * mm, y, "No.")
    c.drawString(32 * mm, y, "Product")
    c.drawRightString(125 * mm, y, "Qty")
    c.drawRightString(155 * mm, y, "Price")
    c.drawRightString(185 * mm, y, "Subtotal")
    y -= 8 * mm

    c.setFont(regular, 9)
    for idx, it in enumerate(sale.items, start=1):
        c.drawString(22 * mm, y, str(idx))
        c.drawString(32 * mm, y, str(it.product_name or f"ID:{it.product_id}")[:50])
        c.drawRightString(125 * mm, y, str(it.quantity))
        c.drawRightString(155 * mm, y, money(it.price))
        c.drawRightString(185 * mm, y, money(it.subtotal))

        c.setLineWidth(0.1)
        c.line(20 * mm, y - 2 * mm, 190 * mm, y - 2 * mm)
        y -= 6 * mm

        if y < 40 * mm:
            c.showPage()
            y = height - 20 * mm
            c.setFont(regular, 9)

    # --- totals ---
    y -= 5 * mm
    if y < 40 * mm:
        c.showPage()
        y = height - 30 * mm

    for label, value, size in (
        ("TOTAL:", sale.total, 12),
        ("Paid:", sale.payment_amount, 10),
        ("Change:", sale.change_amount, 10),
    ):
        c.setFont(bold, size)
        c.drawRightString(150 * mm, y, label)
        c.drawRightString(185 * mm, y, money(value))
        y -= 6 * mm

    if sale.notes:
        y -= 4 * mm
        draw_text(20 * mm, y, f"Notes: {sale.notes}"[:100], size=9)

    draw_text(width / 2, 20 * mm, "Thank you for your purchase", size=9, align="center")

    c.showPage()
    c.save()
    return out_path
