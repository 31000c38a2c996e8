"""
Traversal engine: lazy, batched reads through unbounded list methods.

:func:`get_traversable_list` returns a :class:`TraversalIterator`.  The
iterator is pull-driven, single-pass and non-restartable; it keeps one
physical call's worth of items in memory and issues the next physical call
only when that buffer runs dry.  Breaking out of a ``for`` loop therefore
stops all further network traffic.

Offset mode
-----------
1. An unbatched first call with ``start=0`` returns page 1 and ``total``.
2. When ``total`` exceeds one page, each physical call carries up to
   ``capacity`` list commands, one per remaining page, with
   ``start = counter + i * page_size``.
3. Traversal ends on an empty page, at ``limit``, or when the counter
   reaches ``total``.

Round trips after the first call: ``ceil(ceil((total - page_size) / page_size) / capacity)``.

Id-based mode
-------------
1. An unbatched first call, sorted by the id field and filtered by the
   current boundary, returns page 1 (and ``total`` when the method reports it).
2. Each physical call then carries up to ``capacity`` commands.  The first
   uses the literal boundary (``>id`` ascending, ``<id`` descending); every
   later one references the last id of the previous command's page through a
   :class:`~src.batch_client.commands.ResultReference`, which the portal
   resolves inside the same physical call.
3. Items not strictly beyond the boundary are dropped, so yielded ids are
   strictly monotonic with no duplicates.  Traversal ends on an empty or
   short page, at ``limit``, or when ``total`` items were yielded.
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Iterator, Mapping
from typing import Any

from .commands import CommandBatch
from .config import BATCH_CAPACITY, DEFAULT_SORT_DIRECTION, PAGE_SIZE
from .cursors import IdCursor, OffsetCursor, SortDirection
from .errors import BatchExecutionError, InvalidArgumentError
from .hooks import Observer, notify
from .results import BatchResult, CallResult, CommandResult
from .strategies import EntityStrategy, PaginationMode, strategy_for
from .transport import BatchTransport


# ---------------------------------------------------------------------------
# Parameter construction
# ---------------------------------------------------------------------------

def build_list_parameters(
    strategy: EntityStrategy,
    order: Mapping | None = None,
    filter: Mapping | None = None,
    select: list | None = None,
    extra_params: Mapping | None = None,
) -> dict:
    """
    Merge the caller's listing arguments into remote parameter names.

    Empty ``order`` / ``filter`` / ``select`` are omitted entirely.

    Args:
        strategy: Strategy naming the remote sort/filter/select parameters.
        order: Sort specification, e.g. ``{'ID': 'ASC'}``.
        filter: Filter specification, e.g. ``{'>DATE_CREATE': '2024-01-01'}``.
        select: Fields to return.
        extra_params: Resource-specific parameters passed through unchanged
                      (``IBLOCK_TYPE_ID``, ``groupId``, ...).

    Returns:
        Parameter dict for the list method (without ``start``).
    """
    params: dict[str, Any] = dict(extra_params or {})
    if select:
        params[strategy.select_param] = list(select)
    if filter:
        params[strategy.filter_param] = dict(filter)
    if order:
        params[strategy.order_param] = dict(order)
    return params


def resolve_sort_direction(order: Mapping | None, key_field: str) -> SortDirection:
    """
    Extract the id sort direction for an id-based traversal.

    Raises:
        InvalidArgumentError: ``order`` sorts by anything but ``key_field``.
    """
    if not order:
        return SortDirection.parse(DEFAULT_SORT_DIRECTION)
    if len(order) != 1:
        raise InvalidArgumentError(
            f"id-based traversal can only sort by «{key_field}», got {list(order)}"
        )
    (field_name, direction), = order.items()
    if str(field_name).lower() != key_field.lower():
        raise InvalidArgumentError(
            f"id-based traversal can only sort by «{key_field}», got «{field_name}»"
        )
    return SortDirection.parse(direction)


# ---------------------------------------------------------------------------
# Iterator
# ---------------------------------------------------------------------------

class TraversalIterator(Iterator):
    """
    Pull-based iterator over every item of a list method.

    Internal state is ``{cursor, buffer, exhausted}``; a physical call is
    made only from :meth:`__next__` when the buffer is empty.

    Attributes:
        cursor: :class:`OffsetCursor` or :class:`IdCursor`, fixed by the strategy.
        physical_calls: Number of network round trips made so far.
        total: ``total`` reported by the first call, if any.
    """

    def __init__(
        self,
        transport: BatchTransport,
        api_method: str,
        order: Mapping | None = None,
        filter: Mapping | None = None,
        select: list | None = None,
        limit: int | None = None,
        extra_params: Mapping | None = None,
        *,
        strategy: EntityStrategy | None = None,
        capacity: int = BATCH_CAPACITY,
        page_size: int = PAGE_SIZE,
        observer: Observer | None = None,
    ) -> None:
        if limit is not None and limit < 0:
            raise InvalidArgumentError(f"limit must not be negative, got {limit}")
        if capacity < 1 or page_size < 1:
            raise InvalidArgumentError("capacity and page_size must be positive")

        self.transport = transport
        self.api_method = api_method
        self.strategy = strategy or strategy_for(api_method)
        self.limit = limit
        self.capacity = capacity
        self.page_size = page_size
        self.observer = observer

        self.physical_calls = 0
        self.total: int | None = None
        self._buffer: deque = deque()
        self._queued = 0
        self._started = False
        self._exhausted = limit == 0

        if self.strategy.pagination is PaginationMode.ID_BASED:
            direction = resolve_sort_direction(order, self.strategy.key_id_field_name)
            self.cursor: OffsetCursor | IdCursor = IdCursor(
                filter_key=self.strategy.key_id_field_name,
                sort_direction=direction,
            )
            self._base_filter = dict(filter or {})
            self._params = build_list_parameters(
                self.strategy, None, None, select, extra_params
            )
        else:
            self.cursor = OffsetCursor(page_size=page_size)
            self._params = build_list_parameters(
                self.strategy, order, filter, select, extra_params
            )

        notify(
            observer,
            "get_traversable_list.start",
            api_method=api_method,
            pagination=self.strategy.pagination.value,
            order=order,
            filter=filter,
            select=select,
            limit=limit,
        )

    # ── iterator protocol ─────────────────────────────────────────────────

    def __iter__(self) -> TraversalIterator:
        return self

    def __next__(self) -> Any:
        while not self._buffer:
            if self._exhausted:
                raise StopIteration
            try:
                self._fetch()
            except Exception:
                self._exhausted = True
                self._buffer.clear()
                raise
        return self._buffer.popleft()

    @property
    def exhausted(self) -> bool:
        return self._exhausted and not self._buffer

    # ── helpers ───────────────────────────────────────────────────────────

    def _enqueue(self, item: Any) -> bool:
        """Buffer one item; return ``True`` once ``limit`` items are queued."""
        self._buffer.append(item)
        self._queued += 1
        return self.limit is not None and self._queued >= self.limit

    def _limit_reached(self) -> bool:
        return self.limit is not None and self._queued >= self.limit

    def _finish(self, reason: str) -> None:
        self._exhausted = True
        notify(
            self.observer,
            "get_traversable_list.finish",
            reason=reason,
            items_count=self._queued,
            physical_calls=self.physical_calls,
        )

    def _call_first_page(self, params: dict) -> CallResult:
        self.physical_calls += 1
        try:
            return self.transport.call(self.api_method, params)
        except Exception as exc:
            notify(self.observer, "get_traversable_list.error", error=str(exc))
            raise BatchExecutionError(
                f"get traversable list {self.api_method}: {exc}"
            ) from exc

    def _execute(self, batch: CommandBatch) -> BatchResult:
        self.physical_calls += 1
        notify(
            self.observer,
            "get_traversable_list.batch_registered",
            commands_count=len(batch),
            items_so_far=self._queued,
        )
        return batch.execute()

    def _page_items(self, result: CommandResult) -> list:
        if result.error is not None:
            raise BatchExecutionError(
                f"get traversable list {self.api_method}: command "
                f"{result.command_id} failed: {result.error}"
            )
        return self.strategy.extract_items(result.value)

    def _fetch(self) -> None:
        if isinstance(self.cursor, OffsetCursor):
            if not self._started:
                self._fetch_offset_first_page()
            else:
                self._fetch_offset_batch()
        else:
            if not self._started:
                self._fetch_id_first_page()
            else:
                self._fetch_id_batch()

    # ── offset mode ───────────────────────────────────────────────────────

    def _fetch_offset_first_page(self) -> None:
        cursor = self.cursor
        self._started = True

        response = self._call_first_page({**self._params, "start": 0})
        self.total = response.total
        cursor.learn_total(response.total)
        notify(self.observer, "get_traversable_list.total", total=response.total)

        items = self.strategy.extract_items(response.value)
        cursor.advance(len(items))
        for item in items:
            if self._enqueue(item):
                return self._finish("limit reached on first page")

        if not items:
            return self._finish("empty result")
        if cursor.total_known is not None and cursor.total_known <= self.page_size:
            return self._finish("single page")
        if cursor.total_known is None and len(items) < self.page_size:
            return self._finish("single page")
        if cursor.is_exhausted(self.limit):
            return self._finish("all items processed")

    def _fetch_offset_batch(self) -> None:
        cursor = self.cursor
        starts = cursor.page_starts(self.capacity, self.limit)
        if not starts:
            return self._finish("all items processed")

        batch = CommandBatch(self.transport, self.capacity, self.observer)
        for start in starts:
            batch.register(self.api_method, {**self._params, "start": start})

        for result in self._execute(batch):
            items = self._page_items(result)
            if not items:
                return self._finish("empty result")
            cursor.advance(len(items))
            for item in items:
                if self._enqueue(item):
                    return self._finish("limit reached")
            if cursor.total_known is None and len(items) < self.page_size:
                return self._finish("short page")

        if cursor.is_exhausted(self.limit):
            return self._finish("all items processed")

    # ── id-based mode ─────────────────────────────────────────────────────

    def _id_params(self, boundary: Any = None) -> dict:
        cursor = self.cursor
        page_filter = cursor.boundary_filter(self._base_filter)
        if boundary is not None:
            page_filter[cursor.boundary_key] = boundary
        return {
            **self._params,
            self.strategy.filter_param: page_filter,
            self.strategy.order_param: cursor.order(),
        }

    def _accept_page(self, items: list) -> tuple[int, bool]:
        """
        Buffer the items of one page that lie beyond the boundary.

        Returns:
            ``(accepted_count, limit_reached)``.
        """
        cursor = self.cursor
        accepted = 0
        for item in items:
            item_id = self.strategy.item_id(item)
            if not cursor.accepts(item_id):
                continue
            cursor.advance(item_id)
            accepted += 1
            if self._enqueue(item):
                return accepted, True
        return accepted, False

    def _total_reached(self) -> bool:
        return self.total is not None and self._queued >= self.total

    def _fetch_id_first_page(self) -> None:
        self._started = True

        response = self._call_first_page(self._id_params())
        self.total = response.total
        notify(self.observer, "get_traversable_list.total", total=response.total)

        items = self.strategy.extract_items(response.value)
        if not items:
            return self._finish("empty result")
        accepted, limit_reached = self._accept_page(items)
        if limit_reached:
            return self._finish("limit reached on first page")
        if accepted == 0 or len(items) < self.page_size:
            return self._finish("single page")
        if self._total_reached():
            return self._finish("all items processed")

    def _pages_to_request(self) -> int:
        bounds = [self.capacity]
        if self.total is not None:
            bounds.append(math.ceil((self.total - self._queued) / self.page_size))
        if self.limit is not None:
            bounds.append(math.ceil((self.limit - self._queued) / self.page_size))
        return max(min(bounds), 0)

    def _fetch_id_batch(self) -> None:
        pages = self._pages_to_request()
        if pages == 0:
            return self._finish("all items processed")

        batch = CommandBatch(self.transport, self.capacity, self.observer)
        previous_id = batch.register(self.api_method, self._id_params())
        for _ in range(1, pages):
            reference = self.strategy.result_reference(previous_id, self.page_size - 1)
            previous_id = batch.register(self.api_method, self._id_params(reference))

        for result in self._execute(batch):
            items = self._page_items(result)
            if not items:
                return self._finish("empty result")
            accepted, limit_reached = self._accept_page(items)
            if limit_reached:
                return self._finish("limit reached")
            if accepted == 0:
                return self._finish("no items beyond last seen id")
            if len(items) < self.page_size:
                return self._finish("short page")

        if self._total_reached():
            return self._finish("all items processed")


def get_traversable_list(
    transport: BatchTransport,
    api_method: str,
    order: Mapping | None = None,
    filter: Mapping | None = None,
    select: list | None = None,
    limit: int | None = None,
    extra_params: Mapping | None = None,
    *,
    strategy: EntityStrategy | None = None,
    capacity: int = BATCH_CAPACITY,
    page_size: int = PAGE_SIZE,
    observer: Observer | None = None,
) -> TraversalIterator:
    """
    Lazily iterate every item a list method returns, batching page requests.

    Argument errors (negative ``limit``, an id-based ``order`` on another
    field) raise immediately; no network call happens until the first item
    is requested.

    Args:
        transport: Transport performing physical calls.
        api_method: List method, e.g. ``'lists.element.get'``.
        order: Sort specification.  Id-based resources accept only
               ``{<id field>: 'ASC' | 'DESC'}``.
        filter: Filter specification.
        select: Fields to return.
        limit: Maximum number of items to yield; ``None`` for all.
        extra_params: Resource-specific parameters passed through unchanged.
        strategy: Entity strategy; resolved from ``api_method`` when omitted.
        capacity: Maximum commands per physical call.
        page_size: Records per logical page.
        observer: Optional phase-boundary observer.

    Returns:
        :class:`TraversalIterator` yielding raw item dicts in remote order.

    Raises:
        InvalidArgumentError: Invalid arguments (at call time).
        BatchExecutionError: A physical call failed (during iteration).
    """
    return TraversalIterator(
        transport,
        api_method,
        order,
        filter,
        select,
        limit,
        extra_params,
        strategy=strategy,
        capacity=capacity,
        page_size=page_size,
        observer=observer,
    )
