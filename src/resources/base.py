"""
Shared plumbing for per-resource batch services.

A service is a thin binding of method names and mutation shapes onto a
:class:`~src.batch_client.batch.Batch`.  Items stay plain dicts; mutation
results are wrapped in the read-only views from
:mod:`src.batch_client.results`.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from src.batch_client.batch import Batch
from src.batch_client.mutations import FIELDS_PAYLOAD, MutationShape
from src.batch_client.results import (
    AddedItemResult,
    DeletedItemResult,
    UpdatedItemResult,
)


def iblock_parameters(iblock_type_id: str, iblock: int | str) -> dict:
    """``IBLOCK_TYPE_ID`` plus ``IBLOCK_ID`` (int) or ``IBLOCK_CODE`` (str)."""
    params: dict[str, Any] = {"IBLOCK_TYPE_ID": iblock_type_id}
    if isinstance(iblock, int) and not isinstance(iblock, bool):
        params["IBLOCK_ID"] = iblock
    else:
        params["IBLOCK_CODE"] = iblock
    return params


class ResourceBatch:
    """
    Base class for batch services of one resource.

    Subclasses set ``method_prefix`` (e.g. ``'lists.element'``) and the
    mutation shapes their methods expect.
    """

    method_prefix: str = ""
    add_shape: MutationShape = FIELDS_PAYLOAD
    update_shape: MutationShape = FIELDS_PAYLOAD
    delete_shape: MutationShape = FIELDS_PAYLOAD

    def __init__(self, batch: Batch) -> None:
        self.batch = batch

    def method(self, action: str) -> str:
        return f"{self.method_prefix}.{action}"

    def add(self, items: Iterable | Mapping) -> Iterator[tuple[Any, AddedItemResult]]:
        results = self.batch.add_entity_items(
            self.method("add"), items, shape=self.add_shape
        )
        return ((key, AddedItemResult(result)) for key, result in results)

    def update(self, items: Mapping) -> Iterator[tuple[Any, UpdatedItemResult]]:
        results = self.batch.update_entity_items(
            self.method("update"), items, shape=self.update_shape
        )
        return ((key, UpdatedItemResult(result)) for key, result in results)

    def delete(self, items: Iterable) -> Iterator[tuple[Any, DeletedItemResult]]:
        results = self.batch.delete_entity_items(
            self.method("delete"), items, shape=self.delete_shape
        )
        return ((key, DeletedItemResult(result)) for key, result in results)
