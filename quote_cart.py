# quote_cart.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from quote_models import CartLine, QuoteData
from validation import IncompleteQuote, validate_dimensions

logger = logging.getLogger(__name__)


class Cart:
    """
    Ordered list of frozen quotes. Prices are the ones locked in when each
    quote was added; nothing here looks at the live catalog.
    """

    def __init__(self) -> None:
        self._lines: List[CartLine] = []

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def total_amount(self) -> int:
        return sum(line.total_price * line.quantity for line in self._lines)

    def get(self, line_id: str) -> Optional[CartLine]:
        return next((line for line in self._lines if line.line_id == line_id), None)

    def add(self, quote: QuoteData) -> str:
        # final gate, even if the caller skipped the live checks
        error = validate_dimensions(quote.width_mm, quote.depth_mm, quote.height_mm)
        if error is not None:
            raise error
        if quote.price is None:
            raise IncompleteQuote("The quote has no price.")

        line = CartLine(
            line_id=uuid.uuid4().hex,
            quote=quote,
            quantity=quote.quantity,
            added_at=datetime.now(timezone.utc),
        )
        self._lines.append(line)
        logger.debug("cart line added: %s (%s yen)", line.line_id, quote.total_price)
        return line.line_id

    def remove(self, line_id: str) -> None:
        self._lines = [line for line in self._lines if line.line_id != line_id]

    def update_quantity(self, line_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove(line_id)
            return

        self._lines = [
            CartLine(line.line_id, line.quote, quantity, line.added_at) if line.line_id == line_id else line
            for line in self._lines
        ]

    def clear(self) -> None:
        self._lines = []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lines": [line.to_dict() for line in self._lines],
            "total_amount": self.total_amount,
        }
