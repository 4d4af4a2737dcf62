"""Turning a broker reply into a numeric $/mile counter-offer.

The state machine only depends on the OfferExtractor protocol, so the
regex heuristic below can be swapped for a stricter parser without touching
app.negotiations.service.
"""

import re
from typing import Optional, Protocol


class OfferExtractor(Protocol):
    def extract(self, email_body: str, counter_offer: Optional[float] = None) -> Optional[float]:
        """Return the broker's offer in $/mile, or None if it can't be determined."""
        ...


class RegexOfferExtractor:
    """Prefer the explicit numeric field; otherwise take the first rate-per-mile token.

    Recognises "$2.50/mile", "$2.50 / mi", "$2.50 per mile" and "2.50/mi".
    Bare dollar amounts ("$1,500") are ignored: they are usually totals, not rates.
    """

    RATE_PATTERNS = [
        re.compile(r"\$\s*(\d+(?:\.\d+)?)\s*/\s*mi(?:le)?\b", re.IGNORECASE),
        re.compile(r"\$\s*(\d+(?:\.\d+)?)\s+per\s+mi(?:le)?\b", re.IGNORECASE),
        re.compile(r"(\d+(?:\.\d+)?)\s*/\s*mi(?:le)?\b", re.IGNORECASE),
    ]

    def extract(self, email_body: str, counter_offer: Optional[float] = None) -> Optional[float]:
        if counter_offer is not None:
            return counter_offer if counter_offer > 0 else None
        if not email_body:
            return None

        for pattern in self.RATE_PATTERNS:
            match = pattern.search(email_body)
            if match:
                rate = float(match.group(1))
                if rate > 0:
                    return rate
        return None
