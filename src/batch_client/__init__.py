"""
src/batch_client — batched access to the portal's REST API.

Module layout
-------------
config.py      — capacity, page size, wire constants (re-exported from config/)
errors.py      — exception hierarchy, transport error categorization
hooks.py       — phase-boundary observers, console progress observer
results.py     — CommandResult / BatchResult / CallResult, mutation result views
commands.py    — Command, ResultReference, size-bounded CommandBatch
parser.py      — query-string encoding, batch payloads, response parsing
transport.py   — BatchTransport protocol, RestBatchTransport (requests)
strategies.py  — per-resource EntityStrategy presets and registry
cursors.py     — OffsetCursor, IdCursor
traversal.py   — lazy batched traversal of list methods
mutations.py   — batch add / update / delete of entity items
batch.py       — Batch facade bundling the above

Public interface
----------------
Build a client:
    batch = Batch(RestBatchTransport())

Walk every item of a list method:
    for item in batch.get_traversable_list("crm.item.list", extra_params={...}):
        ...

Mutate many items in one physical call:
    batch.add_entity_items(api_method, items)
    batch.update_entity_items(api_method, items)
    batch.delete_entity_items(api_method, items)
"""

from .batch import Batch
from .commands import Command, CommandBatch, ResultReference
from .errors import (
    BatchError,
    BatchExecutionError,
    CapacityExceededError,
    InvalidArgumentError,
    TransportError,
    TransportErrorCategory,
)
from .hooks import print_observer
from .mutations import iter_chunks
from .results import (
    AddedItemResult,
    BatchResult,
    CallResult,
    CommandError,
    CommandResult,
    DeletedItemResult,
    UpdatedItemResult,
)
from .strategies import EntityStrategy, PaginationMode, strategy_for
from .transport import BatchTransport, RestBatchTransport
from .traversal import TraversalIterator, get_traversable_list

__all__ = [
    # Facade
    "Batch",
    # Commands
    "Command",
    "CommandBatch",
    "ResultReference",
    # Results
    "BatchResult",
    "CallResult",
    "CommandError",
    "CommandResult",
    "AddedItemResult",
    "UpdatedItemResult",
    "DeletedItemResult",
    # Traversal
    "EntityStrategy",
    "PaginationMode",
    "strategy_for",
    "TraversalIterator",
    "get_traversable_list",
    "iter_chunks",
    # Transport
    "BatchTransport",
    "RestBatchTransport",
    # Errors
    "BatchError",
    "BatchExecutionError",
    "CapacityExceededError",
    "InvalidArgumentError",
    "TransportError",
    "TransportErrorCategory",
    # Observers
    "print_observer",
]
