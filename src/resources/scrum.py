"""
Batch services for scrum epics and backlog items.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from src.batch_client.mutations import BACKLOG, INTEGER_ID, LOWERCASE_FIELDS

from .base import ResourceBatch


class _ScrumBatch(ResourceBatch):
    update_shape = INTEGER_ID
    delete_shape = INTEGER_ID

    def list(
        self,
        order: Mapping | None = None,
        filter: Mapping | None = None,
        select: list | None = None,
        limit: int | None = None,
    ) -> Iterator[dict]:
        return self.batch.get_traversable_list(self.method("list"), order, filter, select, limit)


class EpicBatch(_ScrumBatch):
    """Epics: add items are ``{'fields': {...}}``."""

    method_prefix = "tasks.api.scrum.epic"
    add_shape = LOWERCASE_FIELDS


class BacklogBatch(_ScrumBatch):
    """
    Backlog items: add items are either ``{'fields': {...}}`` or flat
    ``{'groupId': ..., <field>: ...}`` records.
    """

    method_prefix = "tasks.api.scrum.backlog"
    add_shape = BACKLOG
