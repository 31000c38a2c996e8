"""
Batch add / update / delete of entity items.

Every operation has the same shape:

1. Validate every input item locally.  Any failure raises
   :class:`InvalidArgumentError` naming the offending item, and nothing is
   registered or sent.
2. Register one command per item, in input order, with parameters shaped by
   a :class:`MutationShape` (resources disagree on ``FIELDS`` vs ``fields``,
   ``ID`` vs ``id``, composite keys, ...).
3. Execute the batch once, as one physical call.
4. Return an iterator of ``(original_key, CommandResult)`` pairs.

Per-item failures reported by the portal come back as unsuccessful results,
never as exceptions.  A failed physical call raises
:class:`BatchExecutionError` and yields nothing.

Chunking policy: these operations never split input across physical calls.
More items than the batch capacity raise :class:`CapacityExceededError`
before any I/O.  Callers with larger inputs pre-chunk with :func:`iter_chunks`
and call the operation once per chunk.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from itertools import islice
from typing import Any

from .commands import CommandBatch
from .config import BATCH_CAPACITY
from .errors import BatchExecutionError, CapacityExceededError, InvalidArgumentError
from .hooks import Observer, notify
from .results import BatchResult, CommandError, CommandResult


@dataclass(frozen=True)
class MutationShape:
    """
    How one resource family expects mutation parameters.

    Attributes:
        payload_key: Key holding the record fields (``FIELDS`` / ``fields``);
                     required on add and update items.
        id_param: Name of the identifier parameter for integer-id resources.
        integer_ids: Update keys and delete items are bare integer ids, sent
                     as ``{id_param: id}`` (plus ``{payload_key: ...}`` on update).
        update_key_param: When set, the update mapping's key is injected into
                          the parameters under this name (e.g. ``IBLOCK_ID``).
        delete_required_keys: Keys every delete item must carry.
        delete_keys: When set, only these keys of a delete item are sent.
        group_key: Add items carrying this key but no payload key are
                   restructured into ``{group_key: ..., payload_key: {rest}}``.
    """

    payload_key: str = "FIELDS"
    id_param: str = "id"
    integer_ids: bool = False
    update_key_param: str | None = None
    delete_required_keys: tuple[str, ...] = ()
    delete_keys: tuple[str, ...] | None = None
    group_key: str | None = None


FIELDS_PAYLOAD = MutationShape()

LOWERCASE_FIELDS = MutationShape(payload_key="fields")

LIST_IBLOCK = MutationShape(
    update_key_param="IBLOCK_ID",
    delete_required_keys=("IBLOCK_TYPE_ID", "IBLOCK_ID"),
    delete_keys=("IBLOCK_TYPE_ID", "IBLOCK_ID", "ELEMENT_ID"),
)

FIELD = MutationShape(delete_required_keys=("IBLOCK_TYPE_ID", "FIELD_ID"))

SECTION = MutationShape(delete_required_keys=("IBLOCK_TYPE_ID", "SECTION_ID"))

ELEMENT = MutationShape(delete_required_keys=("IBLOCK_TYPE_ID",))

INTEGER_ID = MutationShape(payload_key="fields", integer_ids=True)

BACKLOG = MutationShape(payload_key="fields", integer_ids=True, group_key="groupId")


# ---------------------------------------------------------------------------
# Input handling
# ---------------------------------------------------------------------------

def _keyed(items: Iterable | Mapping) -> list[tuple[Any, Any]]:
    if isinstance(items, Mapping):
        return list(items.items())
    return list(enumerate(items))


def iter_chunks(items: Iterable | Mapping, size: int = BATCH_CAPACITY) -> Iterator:
    """
    Split ``items`` into consecutive chunks of at most ``size``.

    Mappings are chunked into dicts (keys preserved), anything else into lists.

    Args:
        items: Input of a mutation operation.
        size: Chunk size, normally the batch capacity.

    Returns:
        Iterator of chunks, each small enough for one physical call.
    """
    if size < 1:
        raise InvalidArgumentError(f"chunk size must be positive, got {size}")
    if isinstance(items, Mapping):
        pairs = iter(items.items())
        while chunk := dict(islice(pairs, size)):
            yield chunk
    else:
        values = iter(items)
        while chunk := list(islice(values, size)):
            yield chunk


def _require_mapping(key: Any, item: Any) -> None:
    if not isinstance(item, Mapping):
        raise InvalidArgumentError(
            f"item {key} must be a mapping, got «{type(item).__name__}»"
        )


def _require_integer_id(key: Any, value: Any, position: str = "") -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(
            f"invalid type «{type(value).__name__}» of entity id «{value}»{position}, "
            "the id must be integer type"
        )


def prepare_add_parameters(items: Iterable | Mapping, shape: MutationShape) -> list[tuple[Any, dict]]:
    """Validate add items and build their command parameters."""
    prepared = []
    for key, item in _keyed(items):
        _require_mapping(key, item)
        params = dict(item)
        if shape.payload_key not in params:
            if shape.group_key is not None and shape.group_key in params:
                group = params.pop(shape.group_key)
                params = {shape.group_key: group, shape.payload_key: params}
            else:
                raise InvalidArgumentError(
                    f"key «{shape.payload_key}» not found in entity item with id {key}"
                )
        prepared.append((key, params))
    return prepared


def prepare_update_parameters(items: Iterable | Mapping, shape: MutationShape) -> list[tuple[Any, dict]]:
    """Validate update items and build their command parameters."""
    prepared = []
    for key, item in _keyed(items):
        _require_mapping(key, item)
        if shape.payload_key not in item:
            raise InvalidArgumentError(
                f"key «{shape.payload_key}» not found in entity item with id {key}"
            )

        if shape.integer_ids:
            _require_integer_id(key, key)
            params = {shape.id_param: key, shape.payload_key: item[shape.payload_key]}
        else:
            params = dict(item)
            if shape.update_key_param is not None:
                params[shape.update_key_param] = key
        prepared.append((key, params))
    return prepared


def prepare_delete_parameters(items: Iterable | Mapping, shape: MutationShape) -> list[tuple[Any, dict]]:
    """Validate delete items and build their command parameters."""
    prepared = []
    for key, item in _keyed(items):
        if shape.integer_ids:
            _require_integer_id(key, item, f" at position {key}")
            prepared.append((key, {shape.id_param: item}))
            continue

        _require_mapping(key, item)
        for required in shape.delete_required_keys:
            if required not in item:
                raise InvalidArgumentError(
                    f"key «{required}» not found in entity item with id {key}"
                )
        if shape.delete_keys is None:
            params = dict(item)
        else:
            params = {k: item[k] for k in shape.delete_keys if k in item}
        prepared.append((key, params))
    return prepared


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def _run(
    operation: str,
    batch: CommandBatch,
    api_method: str,
    prepared_factory,
    additional_parameters: Mapping | None,
    observer: Observer | None,
) -> Iterator[tuple[Any, CommandResult]]:
    event = operation.replace(" ", "_")
    notify(observer, f"{event}.start", api_method=api_method)

    try:
        prepared = prepared_factory()
        if len(prepared) > batch.capacity:
            raise CapacityExceededError(
                batch.capacity,
                f"batch {operation}: {len(prepared)} items exceed the batch capacity "
                f"of {batch.capacity}; split the input with iter_chunks",
            )
        batch.clear()
        registered = []
        for key, params in prepared:
            if additional_parameters:
                params = {**params, **additional_parameters}
            registered.append((key, batch.register(api_method, params)))
        result = batch.execute()
    except (InvalidArgumentError, CapacityExceededError) as exc:
        notify(observer, f"{event}.error", error=str(exc))
        raise
    except BatchExecutionError as exc:
        cause = exc.__cause__ or exc
        notify(observer, f"{event}.error", error=str(cause))
        raise BatchExecutionError(f"batch {operation}: {cause}") from cause

    return _yield_results(event, registered, result, observer)


def _yield_results(
    event: str,
    registered: list[tuple[Any, str]],
    result: BatchResult,
    observer: Observer | None,
) -> Iterator[tuple[Any, CommandResult]]:
    for key, command_id in registered:
        if command_id in result:
            yield key, result[command_id]
        else:
            yield key, CommandResult(
                command_id, error=CommandError("missing_result", f"no result for {command_id}")
            )
    notify(observer, f"{event}.finish", items_count=len(registered))


def add_entity_items(
    batch: CommandBatch,
    api_method: str,
    items: Iterable | Mapping,
    *,
    shape: MutationShape = FIELDS_PAYLOAD,
    additional_parameters: Mapping | None = None,
    observer: Observer | None = None,
) -> Iterator[tuple[Any, CommandResult]]:
    """
    Add entity items with one physical call.

    Args:
        batch: Command batch to (re)use; it is cleared first.
        api_method: Add method, e.g. ``'lists.element.add'``.
        items: Sequence of item mappings (keys are positions) or a mapping of
               caller keys to items.
        shape: Parameter shape of the resource.
        additional_parameters: Merged into every command's parameters.
        observer: Optional phase-boundary observer.

    Returns:
        Iterator of ``(key, CommandResult)`` in input order.

    Raises:
        InvalidArgumentError: An item is not a mapping or lacks the payload key.
        CapacityExceededError: More items than the batch capacity.
        BatchExecutionError: The physical call failed.
    """
    return _run(
        "add entity items",
        batch,
        api_method,
        lambda: prepare_add_parameters(items, shape),
        additional_parameters,
        observer or batch.observer,
    )


def update_entity_items(
    batch: CommandBatch,
    api_method: str,
    items: Iterable | Mapping,
    *,
    shape: MutationShape = FIELDS_PAYLOAD,
    additional_parameters: Mapping | None = None,
    observer: Observer | None = None,
) -> Iterator[tuple[Any, CommandResult]]:
    """
    Update entity items with one physical call.

    ``items`` is normally a mapping of entity id → item; its keys are the
    keys of the returned pairs.  See :func:`add_entity_items` for the rest.
    """
    return _run(
        "update entity items",
        batch,
        api_method,
        lambda: prepare_update_parameters(items, shape),
        additional_parameters,
        observer or batch.observer,
    )


def delete_entity_items(
    batch: CommandBatch,
    api_method: str,
    items: Iterable | Mapping,
    *,
    shape: MutationShape = FIELDS_PAYLOAD,
    additional_parameters: Mapping | None = None,
    observer: Observer | None = None,
) -> Iterator[tuple[Any, CommandResult]]:
    """Delete entity items with one physical call.  See :func:`add_entity_items`."""
    return _run(
        "delete entity items",
        batch,
        api_method,
        lambda: prepare_delete_parameters(items, shape),
        additional_parameters,
        observer or batch.observer,
    )
