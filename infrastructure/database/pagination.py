"""
Limit/offset paging for the stored collections.

Collections are small JSON arrays that are already ordered newest first, so
a page is just a slice plus the metadata the API envelopes expose.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from app.domain.exceptions import ValidationError

DEFAULT_LIMIT = 100
MAX_LIMIT = 500


def _checked_window(limit: Optional[int], offset: Optional[int]) -> tuple[int, int]:
    limit = DEFAULT_LIMIT if limit is None else limit
    offset = 0 if offset is None else offset
    if not 1 <= limit <= MAX_LIMIT:
        raise ValidationError(
            f"limit must be between 1 and {MAX_LIMIT}",
            detail={"errors": [{"field": "limit", "message": f"got {limit}"}]},
        )
    if offset < 0:
        raise ValidationError(
            "offset cannot be negative",
            detail={"errors": [{"field": "offset", "message": f"got {offset}"}]},
        )
    return limit, offset


@dataclass(frozen=True)
class PaginatedResponse:
    """One page of a collection together with its position in the whole."""

    items: list[Any]
    total: int
    limit: int
    offset: int

    @property
    def has_next(self) -> bool:
        return self.offset + len(self.items) < self.total

    @property
    def has_prev(self) -> bool:
        return self.offset > 0

    def to_dict(self, serialize: Optional[Callable[[Any], Any]] = None) -> dict[str, Any]:
        return {
            "items": [serialize(item) for item in self.items] if serialize else list(self.items),
            "pagination": {
                "total": self.total,
                "limit": self.limit,
                "offset": self.offset,
                "has_next": self.has_next,
                "has_prev": self.has_prev,
            },
        }


def paginate(items: Sequence[Any], limit: Optional[int] = None, offset: Optional[int] = None) -> PaginatedResponse:
    """Slice an already ordered sequence into one page.

    Raises:
        ValidationError: limit outside 1..500 or a negative offset.
    """
    limit, offset = _checked_window(limit, offset)
    return PaginatedResponse(
        items=list(items[offset : offset + limit]),
        total=len(items),
        limit=limit,
        offset=offset,
    )
