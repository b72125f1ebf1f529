import re

from reportlab.pdfbase.pdfmetrics import stringWidth

from quote_builder import QuoteBuilder
from quote_cart import Cart
from quote_pdf import DESC_WIDTH, JP_FONT, _describe, _wrap, _yen, make_quote_pdf


def _cart(lauan, thickness, *options):
    b = QuoteBuilder(width=500, depth=400, height=300, material=lauan, thickness=thickness)
    for o in options:
        b.add_option(o)
    cart = Cart()
    cart.add(b.snapshot())
    return cart


def test_yen_formatting():
    assert _yen(13200) == "¥13,200"
    assert _yen(None) == ""
    assert _yen("n/a") == "n/a"


def test_line_description(lauan, thickness, handle):
    cart = _cart(lauan, thickness, handle)

    desc = _describe(cart.lines[0])

    assert desc.startswith("500x400x300mm | ラワン合板 9mm (4x8)")
    assert desc.endswith("Rope handle")


def test_long_descriptions_wrap_instead_of_truncating(lauan, thickness, handle, express):
    cart = _cart(lauan, thickness, handle, express)
    text = "1. " + _describe(cart.lines[0]) + " | " + ", ".join(["Forklift skids", "Screw-fixed lid", "Bend buckle"] * 3)

    lines = _wrap(text)

    assert len(lines) > 1
    assert " ".join(lines) == text
    assert all(stringWidth(t, JP_FONT, 10) <= DESC_WIDTH for t in lines)


def test_renders_pdf(lauan, thickness, express):
    pdf = make_quote_pdf(_cart(lauan, thickness, express), customer_email="buyer@example.com")
    assert pdf.startswith(b"%PDF")


def test_long_carts_span_pages(lauan, thickness):
    b = QuoteBuilder(width=500, depth=400, height=300, material=lauan, thickness=thickness)
    cart = Cart()
    for _ in range(80):
        cart.add(b.snapshot())

    pdf = make_quote_pdf(cart)

    assert max(int(n) for n in re.findall(rb"/Count (\d+)", pdf)) >= 2
