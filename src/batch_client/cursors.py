"""
Pagination cursors: progress markers for one traversal.

Two variants exist and exactly one is used per traversal, as fixed by the
resource's :class:`~src.batch_client.strategies.EntityStrategy`:

- :class:`OffsetCursor`: the list method takes an explicit ``start``
  record index and reports ``total``.
- :class:`IdCursor`: the list method has no offset; progress is a
  "greater than / less than the last seen id" filter combined with a sort on
  that id.

Cursors hold no I/O and live only for one traversal.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass

from .config import PAGE_SIZE
from .errors import InvalidArgumentError


class SortDirection(str, enum.Enum):
    ASCENDING = "ASC"
    DESCENDING = "DESC"

    @classmethod
    def parse(cls, value: str | SortDirection) -> SortDirection:
        """
        Parse ``'ASC'`` / ``'desc'`` / enum members into a direction.

        Raises:
            InvalidArgumentError: Unrecognized value.
        """
        if isinstance(value, SortDirection):
            return value
        normalized = str(value).strip().upper()
        if normalized in ("ASC", "ASCENDING"):
            return cls.ASCENDING
        if normalized in ("DESC", "DESCENDING"):
            return cls.DESCENDING
        raise InvalidArgumentError(f"unknown sort direction «{value}», expected ASC or DESC")


# ---------------------------------------------------------------------------
# Offset variant
# ---------------------------------------------------------------------------

@dataclass
class OffsetCursor:
    """
    Offset-based progress through a result set of (eventually) known size.

    ``next_start`` doubles as the count of items yielded so far: every page
    but the last is full, so the next page starts where yielding stopped.

    Attributes:
        next_start: ``start`` value of the next page to request.
        page_size: Records per logical page.
        total_known: ``total`` reported by the first call, if any.
    """

    next_start: int = 0
    page_size: int = PAGE_SIZE
    total_known: int | None = None

    def learn_total(self, total: int | None) -> None:
        if total is not None:
            self.total_known = max(int(total), 0)

    def advance(self, count: int = 1) -> None:
        self.next_start += count

    def remaining(self, limit: int | None = None) -> int | None:
        """
        Items still to fetch, bounded by ``limit``.

        Returns:
            Non-negative count, or ``None`` when neither a total nor a limit
            bounds the traversal.
        """
        bounds = []
        if self.total_known is not None:
            bounds.append(self.total_known - self.next_start)
        if limit is not None:
            bounds.append(limit - self.next_start)
        if not bounds:
            return None
        return max(min(bounds), 0)

    def pages_needed(self, limit: int | None = None) -> int | None:
        remaining = self.remaining(limit)
        if remaining is None:
            return None
        return math.ceil(remaining / self.page_size)

    def page_starts(self, capacity: int, limit: int | None = None) -> list[int]:
        """
        ``start`` values for the next physical call, one per logical page.

        Args:
            capacity: Maximum commands per physical call.
            limit: Caller-supplied item limit, if any.

        Returns:
            Up to ``capacity`` start offsets, none at or beyond ``total``.
        """
        needed = self.pages_needed(limit)
        count = capacity if needed is None else min(needed, capacity)
        starts = []
        for i in range(count):
            start = self.next_start + i * self.page_size
            if self.total_known is not None and start >= self.total_known:
                break
            starts.append(start)
        return starts

    def is_exhausted(self, limit: int | None = None) -> bool:
        remaining = self.remaining(limit)
        return remaining is not None and remaining <= 0


# ---------------------------------------------------------------------------
# Id-based variant
# ---------------------------------------------------------------------------

@dataclass
class IdCursor:
    """
    Id-boundary progress for resources without an offset parameter.

    Attributes:
        filter_key: Id field the boundary filter and sort apply to.
        sort_direction: Ascending walks ``>id``, descending walks ``<id``.
        last_seen_id: Id of the last accepted item, ``None`` before the first.
    """

    filter_key: str
    sort_direction: SortDirection = SortDirection.ASCENDING
    last_seen_id: int | None = None

    @property
    def is_ascending(self) -> bool:
        return self.sort_direction is SortDirection.ASCENDING

    @property
    def boundary_key(self) -> str:
        operator = ">" if self.is_ascending else "<"
        return f"{operator}{self.filter_key}"

    def boundary_filter(self, base_filter: dict | None = None) -> dict:
        """Copy of ``base_filter`` narrowed to ids beyond :attr:`last_seen_id`."""
        narrowed = dict(base_filter or {})
        if self.last_seen_id is not None:
            narrowed[self.boundary_key] = self.last_seen_id
        return narrowed

    def order(self) -> dict:
        return {self.filter_key: self.sort_direction.value}

    def accepts(self, item_id: int | None) -> bool:
        """Whether ``item_id`` lies strictly beyond the current boundary."""
        if item_id is None:
            return False
        if self.last_seen_id is None:
            return True
        if self.is_ascending:
            return item_id > self.last_seen_id
        return item_id < self.last_seen_id

    def advance(self, item_id: int) -> None:
        self.last_seen_id = item_id
