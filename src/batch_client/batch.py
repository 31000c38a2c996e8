"""
Batch facade: one object bundling every engine operation for a transport.

Each traversal and mutation call builds its own command batch and cursor, so
no state crosses calls.  The only exception is the explicit
:meth:`Batch.register_command` / :meth:`Batch.execute` pair, which works on
the facade's own command batch.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from .commands import CommandBatch
from .config import BATCH_CAPACITY, PAGE_SIZE
from .hooks import Observer
from .mutations import (
    FIELDS_PAYLOAD,
    MutationShape,
    add_entity_items,
    delete_entity_items,
    update_entity_items,
)
from .results import BatchResult, CommandResult
from .strategies import EntityStrategy
from .transport import BatchTransport
from .traversal import TraversalIterator, get_traversable_list


class Batch:
    """
    Entry point of the batch client.

    Args:
        transport: Transport performing physical calls.
        observer: Optional phase-boundary observer passed to every operation.
        capacity: Maximum commands per physical call.
        page_size: Records per logical page for traversals.
    """

    def __init__(
        self,
        transport: BatchTransport,
        observer: Observer | None = None,
        capacity: int = BATCH_CAPACITY,
        page_size: int = PAGE_SIZE,
    ) -> None:
        self.transport = transport
        self.observer = observer
        self.capacity = capacity
        self.page_size = page_size
        self._commands = CommandBatch(transport, capacity, observer)

    # ── explicit command batch ────────────────────────────────────────────

    def register_command(
        self,
        api_method: str,
        parameters: Mapping | None = None,
        command_id: str | None = None,
    ) -> str:
        return self._commands.register(api_method, parameters, command_id)

    def clear_commands(self) -> None:
        self._commands.clear()

    def execute(self) -> BatchResult:
        return self._commands.execute()

    # ── traversal ─────────────────────────────────────────────────────────

    def get_traversable_list(
        self,
        api_method: str,
        order: Mapping | None = None,
        filter: Mapping | None = None,
        select: list | None = None,
        limit: int | None = None,
        extra_params: Mapping | None = None,
        *,
        strategy: EntityStrategy | None = None,
    ) -> TraversalIterator:
        """See :func:`~src.batch_client.traversal.get_traversable_list`."""
        return get_traversable_list(
            self.transport,
            api_method,
            order,
            filter,
            select,
            limit,
            extra_params,
            strategy=strategy,
            capacity=self.capacity,
            page_size=self.page_size,
            observer=self.observer,
        )

    # ── mutations ─────────────────────────────────────────────────────────

    def _mutation_batch(self) -> CommandBatch:
        return CommandBatch(self.transport, self.capacity, self.observer)

    def add_entity_items(
        self,
        api_method: str,
        items: Iterable | Mapping,
        *,
        shape: MutationShape = FIELDS_PAYLOAD,
        additional_parameters: Mapping | None = None,
    ) -> Iterator[tuple[Any, CommandResult]]:
        return add_entity_items(
            self._mutation_batch(),
            api_method,
            items,
            shape=shape,
            additional_parameters=additional_parameters,
        )

    def update_entity_items(
        self,
        api_method: str,
        items: Iterable | Mapping,
        *,
        shape: MutationShape = FIELDS_PAYLOAD,
        additional_parameters: Mapping | None = None,
    ) -> Iterator[tuple[Any, CommandResult]]:
        return update_entity_items(
            self._mutation_batch(),
            api_method,
            items,
            shape=shape,
            additional_parameters=additional_parameters,
        )

    def delete_entity_items(
        self,
        api_method: str,
        items: Iterable | Mapping,
        *,
        shape: MutationShape = FIELDS_PAYLOAD,
        additional_parameters: Mapping | None = None,
    ) -> Iterator[tuple[Any, CommandResult]]:
        return delete_entity_items(
            self._mutation_batch(),
            api_method,
            items,
            shape=shape,
            additional_parameters=additional_parameters,
        )

    def __repr__(self) -> str:
        return f"Batch(transport={self.transport!r}, capacity={self.capacity})"
