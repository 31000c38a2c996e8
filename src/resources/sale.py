"""
Batch services for sale orders and basket items.

Both list methods lack an offset parameter, so listing walks the ``id``
boundary (see :mod:`src.batch_client.traversal`, id-based mode).  Updates are
keyed by integer order / basket item id; deletes take bare integer ids.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from src.batch_client.mutations import INTEGER_ID, LOWERCASE_FIELDS

from .base import ResourceBatch


class _SaleBatch(ResourceBatch):
    add_shape = LOWERCASE_FIELDS
    update_shape = INTEGER_ID
    delete_shape = INTEGER_ID

    def list(
        self,
        order: Mapping | None = None,
        filter: Mapping | None = None,
        select: list | None = None,
        limit: int | None = None,
    ) -> Iterator[dict]:
        """Iterate records sorted by ``id``; ``order`` may only flip the direction."""
        return self.batch.get_traversable_list(self.method("list"), order, filter, select, limit)


class OrderBatch(_SaleBatch):
    method_prefix = "sale.order"


class BasketItemBatch(_SaleBatch):
    method_prefix = "sale.basketitem"

    def list_for_order(self, order_id: int, limit: int | None = None) -> Iterator[dict]:
        return self.list(filter={"orderId": order_id}, limit=limit)
