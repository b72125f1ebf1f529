# quote_pdf.py
import io
from datetime import datetime, timezone
from typing import List, Optional

from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

import pricing_config as cfg
from quote_cart import Cart
from quote_models import CartLine

MARGIN = 54
DESC_WIDTH = 260

# material names are Japanese
JP_FONT = "HeiseiKakuGo-W5"
pdfmetrics.registerFont(UnicodeCIDFont(JP_FONT))


def _yen(x) -> str:
    try:
        if x is None:
            return ""
        return f"¥{int(x):,}"
    except (TypeError, ValueError):
        return str(x)


def _describe(line: CartLine) -> str:
    q = line.quote
    desc = (
        f"{q.width_mm}x{q.depth_mm}x{q.height_mm}mm | "
        f"{q.material.name} {q.thickness.thickness_mm:g}mm "
        f"({cfg.SHEET_SIZE_LABELS.get(q.thickness.size, '?')})"
    )
    names = [o.option.name for o in q.selected_options]
    if names:
        desc += " | " + ", ".join(names)
    return desc


def _wrap(text: str) -> List[str]:
    return simpleSplit(text, JP_FONT, 10, DESC_WIDTH) or [""]


def _table_header(c: canvas.Canvas, y: float, w: float) -> float:
    c.setFont("Helvetica-Bold", 10)
    c.drawString(MARGIN, y, "Item")
    c.drawString(330, y, "Qty")
    c.drawString(380, y, "Unit")
    c.drawString(460, y, "Line Total")
    y -= 12
    c.line(MARGIN, y, w - MARGIN, y)
    y -= 12
    c.setFont("Helvetica", 10)
    return y


def make_quote_pdf(cart: Cart, *, customer_email: Optional[str] = None) -> bytes:
    """Render the cart as a one-table PDF quote."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    w, h = A4

    y = h - MARGIN
    c.setFont("Helvetica-Bold", 16)
    c.drawString(MARGIN, y, "Wooden Crate Quote")
    y -= 18

    c.setFont("Helvetica", 10)
    now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    c.drawString(MARGIN, y, f"Generated: {now}")
    y -= 14
    if customer_email:
        c.drawString(MARGIN, y, f"Customer: {customer_email}")
        y -= 14

    c.drawString(MARGIN, y, "Dimensions are internal. Prices include 10% consumption tax.")
    y -= 18

    y = _table_header(c, y, w)

    for i, line in enumerate(cart.lines, start=1):
        if y < 90:
            c.showPage()
            y = _table_header(c, h - MARGIN, w)

        c.setFont("Helvetica", 10)
        c.drawRightString(350, y, str(line.quantity))
        c.drawRightString(440, y, _yen(line.total_price))
        c.drawRightString(w - MARGIN, y, _yen(line.line_total))

        c.setFont(JP_FONT, 10)
        for text in _wrap(f"{i}. {_describe(line)}"):
            c.drawString(MARGIN, y, text)
            y -= 12
        y -= 2
        c.setFont("Helvetica", 10)

        price = line.quote.price
        if price is not None and price.express_charge:
            c.setFont("Helvetica-Oblique", 9)
            c.drawString(70, y, f"Express production: {_yen(price.express_charge)}")
            y -= 12
            c.setFont("Helvetica", 10)

    y -= 8
    c.line(MARGIN, y, w - MARGIN, y)
    y -= 16

    c.setFont("Helvetica-Bold", 11)
    c.drawRightString(440, y, "Total:")
    c.drawRightString(w - MARGIN, y, _yen(cart.total_amount))
    y -= 18

    c.setFont("Helvetica", 9)
    c.drawString(MARGIN, y, "Quote valid for 30 days unless otherwise agreed.")

    c.save()
    buf.seek(0)
    return buf.read()
