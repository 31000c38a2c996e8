"""
Batch services for universal lists: lists, fields, sections and elements.

Every lists method takes ``IBLOCK_TYPE_ID`` plus the list's numeric
``IBLOCK_ID`` or its ``IBLOCK_CODE``.  Mutation items carry those keys
themselves; the listing helpers build them from arguments.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from src.batch_client.mutations import ELEMENT, FIELD, LIST_IBLOCK, SECTION

from .base import ResourceBatch, iblock_parameters


class ListsBatch(ResourceBatch):
    """``lists.add`` / ``lists.update`` / ``lists.delete`` / ``lists.get``."""

    method_prefix = "lists"
    update_shape = LIST_IBLOCK
    delete_shape = LIST_IBLOCK

    def get(
        self,
        iblock_type_id: str,
        order: Mapping | None = None,
        filter: Mapping | None = None,
        select: list | None = None,
        limit: int | None = None,
    ) -> Iterator[dict]:
        return self.batch.get_traversable_list(
            "lists.get",
            order,
            filter,
            select,
            limit,
            extra_params={"IBLOCK_TYPE_ID": iblock_type_id},
        )


class FieldBatch(ResourceBatch):
    method_prefix = "lists.field"
    delete_shape = FIELD


class SectionBatch(ResourceBatch):
    method_prefix = "lists.section"
    delete_shape = SECTION

    def list(
        self,
        iblock_type_id: str,
        iblock: int | str,
        filter: Mapping | None = None,
        select: list | None = None,
        iblock_code: str | None = None,
    ) -> Iterator[dict]:
        """
        Iterate the sections of one list.

        Args:
            iblock_type_id: Information block type, e.g. ``'lists'``.
            iblock: List id (int) or code (str).
            filter: ``FILTER`` conditions.
            select: ``SELECT`` fields.
            iblock_code: Explicit ``IBLOCK_CODE``, sent alongside a numeric id.
        """
        params: dict[str, Any] = iblock_parameters(iblock_type_id, iblock)
        if iblock_code is not None:
            params["IBLOCK_CODE"] = iblock_code
        if filter:
            params["FILTER"] = dict(filter)
        if select:
            params["SELECT"] = list(select)
        return self.batch.get_traversable_list("lists.section.get", extra_params=params)


class ElementBatch(ResourceBatch):
    method_prefix = "lists.element"
    delete_shape = ELEMENT

    def get(
        self,
        iblock_type_id: str,
        iblock: int | str,
        select: list | None = None,
        filter: Mapping | None = None,
        order: Mapping | None = None,
        limit: int | None = None,
    ) -> Iterator[dict]:
        """
        Iterate the elements of one list.

        Args:
            iblock_type_id: Information block type, e.g. ``'lists'``.
            iblock: List id (int, sent as ``IBLOCK_ID``) or code (str, sent
                    as ``IBLOCK_CODE``).
            select: Fields to return.
            filter: Filter conditions.
            order: ``ELEMENT_ORDER`` specification.
            limit: Maximum number of elements to yield.

        Returns:
            Lazy iterator of element dicts.
        """
        return self.batch.get_traversable_list(
            "lists.element.get",
            order,
            filter,
            select,
            limit,
            extra_params=iblock_parameters(iblock_type_id, iblock),
        )
