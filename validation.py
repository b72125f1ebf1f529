# validation.py
"""Dimension checks for crate quotes.

Two layers:

* ``validate_dimensions`` is the hard gate. It always runs before a quote
  is frozen into the cart.
* ``check_material_constraints`` compares the box against the stock sheet
  of the chosen material. It runs on every edit and only produces a
  warning for display.

Both return an error instance or ``None``; callers decide whether to raise.
"""
from typing import Optional

import pricing_config as cfg
from catalog import Material, MaterialClass


class QuoteError(Exception):
    code = "quote_error"
    blocking = True

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "field": self.field,
            "blocking": self.blocking,
        }


class InvalidDimension(QuoteError):
    code = "invalid_dimension"


class DimensionTooLarge(QuoteError):
    code = "dimension_too_large"

    def __init__(self, message: str, *, limit_mm: int, field: Optional[str] = None, blocking: bool = True) -> None:
        super().__init__(message, field=field)
        self.limit_mm = limit_mm
        self.blocking = blocking


class MaterialSheetConstraintViolation(QuoteError):
    code = "sheet_constraint"
    blocking = False

    def __init__(self, message: str, *, threshold_mm: int, oversized: int) -> None:
        super().__init__(message)
        self.threshold_mm = threshold_mm
        self.oversized = oversized


class IncompleteQuote(QuoteError):
    code = "incomplete_quote"


class DuplicateExpressOption(QuoteError):
    code = "duplicate_express"


def _dims(width, depth, height):
    return (("width", width), ("depth", depth), ("height", height))


def validate_dimensions(width, depth, height) -> Optional[QuoteError]:
    for name, value in _dims(width, depth, height):
        if value is None or value <= 0:
            return InvalidDimension("All dimensions must be greater than 0 mm.", field=name)

    for name, value in _dims(width, depth, height):
        if value > cfg.ABSOLUTE_MAX_DIMENSION_MM:
            return DimensionTooLarge(
                f"Dimensions must be {cfg.ABSOLUTE_MAX_DIMENSION_MM} mm or less.",
                limit_mm=cfg.ABSOLUTE_MAX_DIMENSION_MM,
                field=name,
            )

    return None


def check_material_constraints(material: Optional[Material], width, depth, height) -> Optional[QuoteError]:
    if material is None:
        return None

    w, d, h = (int(x or 0) for x in (width, depth, height))
    limits = cfg.SHEET_LIMITS[MaterialClass(material.material_class).value]
    max_mm = limits["max_dimension"]
    threshold = limits["long_side_threshold"]

    for name, value in _dims(w, d, h):
        if value > max_mm:
            return DimensionTooLarge(
                f"The maximum size for {material.name} is {max_mm} mm.",
                limit_mm=max_mm,
                field=name,
                blocking=False,
            )

    oversized = sum(1 for x in (w, d, h) if x > threshold)
    if oversized > 1:
        return MaterialSheetConstraintViolation(
            f"For {material.name}, only one dimension may exceed {threshold} mm; "
            f"the other two must be {threshold} mm or less.",
            threshold_mm=threshold,
            oversized=oversized,
        )

    return None
