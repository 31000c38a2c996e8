"""
Per-resource entity strategies.

Remote resources differ in exactly three ways that matter to the engine:

- the field holding an item's identifier (``ID`` vs ``id``),
- where the item array sits inside a raw result (bare list, or nested under
  ``items`` / ``orders`` / ``basketItems``), which also shapes the path of a
  deferred reference to "the last item of the previous page",
- which pagination scheme the list method supports (offset ``start`` or an
  id-boundary filter).

An :class:`EntityStrategy` captures those differences as data so one generic
traversal engine serves every resource.  Strategies are stateless and shared.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .commands import ResultReference


class PaginationMode(str, enum.Enum):
    OFFSET = "offset"
    ID_BASED = "id_based"


@dataclass(frozen=True)
class EntityStrategy:
    """
    Resource-specific hooks consulted by the traversal engine.

    Attributes:
        key_id_field_name: Field holding each item's identifier.
        pagination: Cursor variant used for this resource; never changes
                    mid-traversal.
        items_key: Key nesting the item array in a raw result, or ``None``
                   when the result is the array itself.
        order_param: Name of the remote sort parameter.
        filter_param: Name of the remote filter parameter.
        select_param: Name of the remote field-selection parameter.
    """

    key_id_field_name: str = "ID"
    pagination: PaginationMode = PaginationMode.OFFSET
    items_key: str | None = None
    order_param: str = "order"
    filter_param: str = "filter"
    select_param: str = "select"

    def result_reference(
        self,
        command_id: str,
        index: int,
        key_field: str | None = None,
    ) -> ResultReference:
        """
        Reference to the ``key_field`` of item ``index`` in ``command_id``'s page.

        Args:
            command_id: Command whose result is referenced.
            index: Position of the item in that command's page.
            key_field: Field to read; defaults to :attr:`key_id_field_name`.
        """
        field_name = key_field or self.key_id_field_name
        if self.items_key is None:
            return ResultReference(command_id, (index, field_name))
        return ResultReference(command_id, (self.items_key, index, field_name))

    def reference_field_path(
        self,
        command_id: str,
        index: int,
        key_field: str | None = None,
    ) -> str:
        """Wire expression of :meth:`result_reference`, e.g. ``$result[cmd_0][orders][49][id]``."""
        return self.result_reference(command_id, index, key_field).expression

    def extract_items(self, raw: Any) -> list:
        """
        Pull the item array out of a raw (sub-)result.

        A missing key, ``None``, ``False`` or any non-container value yields
        an empty page rather than an error, so the engine's empty-page stop
        still applies.
        """
        if self.items_key is not None:
            if not isinstance(raw, Mapping):
                return []
            raw = raw.get(self.items_key)

        if isinstance(raw, list):
            return raw
        if isinstance(raw, Mapping):
            # Some list methods key pages by record id: {"12": {...}, "13": {...}}
            return [item for item in raw.values() if isinstance(item, Mapping)]
        return []

    def item_id(self, item: Mapping) -> int | None:
        """Integer id of ``item``, or ``None`` when absent or non-numeric."""
        value = item.get(self.key_id_field_name) if isinstance(item, Mapping) else None
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None


# ---------------------------------------------------------------------------
# Predefined strategies
# ---------------------------------------------------------------------------

DEFAULT_STRATEGY = EntityStrategy()

CRM_ITEM_STRATEGY = EntityStrategy(
    key_id_field_name="id",
    pagination=PaginationMode.ID_BASED,
    items_key="items",
)

SALE_ORDER_STRATEGY = EntityStrategy(
    key_id_field_name="id",
    pagination=PaginationMode.ID_BASED,
    items_key="orders",
)

SALE_BASKET_ITEM_STRATEGY = EntityStrategy(
    key_id_field_name="id",
    pagination=PaginationMode.ID_BASED,
    items_key="basketItems",
)

LIST_ELEMENT_STRATEGY = EntityStrategy(
    key_id_field_name="ID",
    pagination=PaginationMode.OFFSET,
    order_param="ELEMENT_ORDER",
    filter_param="FILTER",
    select_param="SELECT",
)

LISTS_STRATEGY = EntityStrategy(
    key_id_field_name="ID",
    pagination=PaginationMode.OFFSET,
    order_param="IBLOCK_ORDER",
    filter_param="FILTER",
    select_param="SELECT",
)

SCRUM_STRATEGY = EntityStrategy(
    key_id_field_name="id",
    pagination=PaginationMode.OFFSET,
)

# Longest matching prefix wins
STRATEGY_REGISTRY: dict[str, EntityStrategy] = {
    "crm.item.": CRM_ITEM_STRATEGY,
    "sale.order.": SALE_ORDER_STRATEGY,
    "sale.basketitem.": SALE_BASKET_ITEM_STRATEGY,
    "lists.element.": LIST_ELEMENT_STRATEGY,
    "lists.get": LISTS_STRATEGY,
    "tasks.api.scrum.": SCRUM_STRATEGY,
}


def strategy_for(api_method: str) -> EntityStrategy:
    """
    Resolve the strategy for a remote method name.

    Args:
        api_method: Remote method, e.g. ``'sale.order.list'``.

    Returns:
        The registered strategy with the longest matching prefix, or
        :data:`DEFAULT_STRATEGY`.
    """
    method = api_method.lower()
    matches = [prefix for prefix in STRATEGY_REGISTRY if method.startswith(prefix)]
    if not matches:
        return DEFAULT_STRATEGY
    return STRATEGY_REGISTRY[max(matches, key=len)]
