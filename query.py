import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from errors import PayloadValidationError
from models import Product

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def parse_positive_int(name: str, raw: Optional[str], default: int) -> int:
    """Parse a query-string integer that must be >= 1.

    Absent or blank values give ``default``; anything that is not a plain
    base-10 integer of at least 1 is rejected with a 400.
    """
    if raw is None or not raw.strip():
        return default
    text = raw.strip()
    if not text.isdigit() or not text.isascii() or int(text) < 1:
        raise PayloadValidationError(f"{name} must be a positive integer")
    return int(text)


@dataclass
class ProductQuery:
    category: Optional[str] = None
    search: Optional[str] = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_params(cls, category=None, search=None, page=None, limit=None) -> "ProductQuery":
        return cls(
            category=category or None,
            search=search or None,
            page=parse_positive_int("page", page, DEFAULT_PAGE),
            limit=parse_positive_int("limit", limit, DEFAULT_LIMIT),
        )

    def filter(self, products: List[Product]) -> List[Product]:
        result = products
        if self.category:
            needle = self.category.casefold()
            result = [p for p in result if needle in p.category.casefold()]
        if self.search:
            needle = self.search.casefold()
            result = [p for p in result if needle in p.name.casefold()]
        return result

    def apply(self, products: List[Product]) -> Tuple[List[Product], dict]:
        """Filter then slice one page; returns the page and its pagination metadata."""
        filtered = self.filter(products)
        start = (self.page - 1) * self.limit
        page_items = filtered[start:start + self.limit]
        pagination = {
            "current_page": self.page,
            "total_pages": math.ceil(len(filtered) / self.limit),
            "total_items": len(filtered),
            "items_per_page": self.limit,
        }
        return page_items, pagination
