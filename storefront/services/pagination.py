"""
Page/limit helpers shared by every list endpoint.
"""

from dataclasses import dataclass
from typing import Optional, Union

from storefront.config import get_settings

MAX_PAGE = 10_000_000


def _to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _clamp(n: int, low: int, high: int) -> int:
    return max(low, min(high, n))


@dataclass(frozen=True)
class Page:
    """A 1-based page request, already clamped to legal bounds."""
    page: int
    size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

    @classmethod
    def from_params(
        cls,
        page: Union[int, str, None] = None,
        size: Union[int, str, None] = None,
        default_size: Optional[int] = None,
    ) -> "Page":
        """Raw query values in, legal page out. Unparseable values use the defaults."""
        settings = get_settings()
        default_size = default_size or settings.DEFAULT_PAGE_SIZE
        return cls(
            page=_clamp(_to_int(page, 1), 1, MAX_PAGE),
            size=_clamp(_to_int(size, default_size), 1, settings.MAX_PAGE_SIZE),
        )
