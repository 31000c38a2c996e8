"""
Commands, deferred result references, and the size-bounded command batch.

A :class:`CommandBatch` is built up locally, sent as one physical call via
:meth:`CommandBatch.execute`, then cleared before it is reused.  It is the
only place in the engine that suspends on the network.

Deferred references
-------------------
A parameter value may be a :class:`ResultReference` instead of a literal.
The portal substitutes it with a value taken from an earlier command's
result inside the same physical call, so a chain of dependent commands
costs one round trip.  The client never resolves references itself; it
only renders them as ``$result[<command_id>][<key>]...`` on the wire.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .config import BATCH_CAPACITY, DEFAULT_COMMAND_PREFIX, RESULT_REFERENCE_PREFIX
from .errors import BatchExecutionError, CapacityExceededError, InvalidArgumentError
from .hooks import Observer, notify
from .results import BatchResult

if TYPE_CHECKING:
    from .transport import BatchTransport


@dataclass(frozen=True)
class ResultReference:
    """
    Pointer into another command's future result.

    Args:
        command_id: Id of a command registered earlier in the same batch.
        path: Keys/indexes leading from that command's ``result`` to the value,
              e.g. ``("orders", 49, "id")``.
    """

    command_id: str
    path: tuple = ()

    @property
    def expression(self) -> str:
        segments = "".join(f"[{segment}]" for segment in self.path)
        return f"{RESULT_REFERENCE_PREFIX}[{self.command_id}]{segments}"

    def __str__(self) -> str:
        return self.expression


def _collect_references(value: Any, found: list[ResultReference]) -> None:
    if isinstance(value, ResultReference):
        found.append(value)
    elif isinstance(value, Mapping):
        for nested in value.values():
            _collect_references(nested, found)
    elif isinstance(value, (list, tuple)):
        for nested in value:
            _collect_references(nested, found)


@dataclass(frozen=True)
class Command:
    """One logical remote-procedure invocation."""

    id: str
    method: str
    parameters: dict = field(default_factory=dict)

    def references(self) -> list[ResultReference]:
        """All :class:`ResultReference` values in the (nested) parameters."""
        found: list[ResultReference] = []
        _collect_references(self.parameters, found)
        return found


class CommandBatch:
    """
    Ordered, size-bounded collection of commands sent as one physical call.

    The batch is single-use per logical group: call :meth:`clear` before
    registering the next group.  Nothing clears it implicitly.

    Args:
        transport: Object implementing :class:`~src.batch_client.transport.BatchTransport`.
        capacity: Maximum commands per physical call.
        observer: Optional phase-boundary observer (see :mod:`.hooks`).
    """

    def __init__(
        self,
        transport: BatchTransport,
        capacity: int = BATCH_CAPACITY,
        observer: Observer | None = None,
    ) -> None:
        if capacity < 1:
            raise InvalidArgumentError(f"batch capacity must be positive, got {capacity}")
        self.transport = transport
        self.capacity = capacity
        self.observer = observer
        self._commands: list[Command] = []
        self._ids: set[str] = set()

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands)

    @property
    def commands(self) -> tuple[Command, ...]:
        return tuple(self._commands)

    @property
    def is_full(self) -> bool:
        return len(self._commands) >= self.capacity

    def register(
        self,
        method: str,
        parameters: Mapping | None = None,
        command_id: str | None = None,
    ) -> str:
        """
        Append a command to the batch.

        Args:
            method: Remote method name, e.g. ``'lists.element.get'``.
            parameters: Method parameters; values may be :class:`ResultReference`.
            command_id: Explicit id; defaults to ``cmd_<position>``.

        Returns:
            The command id.

        Raises:
            CapacityExceededError: The batch already holds ``capacity`` commands.
            InvalidArgumentError: Empty method, duplicate id, or a reference to
                a command not registered earlier in this batch.
        """
        if len(self._commands) >= self.capacity:
            raise CapacityExceededError(self.capacity)
        if not method:
            raise InvalidArgumentError("api method name must not be empty")

        if command_id is None:
            command_id = f"{DEFAULT_COMMAND_PREFIX}{len(self._commands)}"
        if command_id in self._ids:
            raise InvalidArgumentError(f"command id «{command_id}» is already registered")

        command = Command(command_id, method, dict(parameters or {}))
        for reference in command.references():
            if reference.command_id not in self._ids:
                raise InvalidArgumentError(
                    f"command «{command_id}» references «{reference.command_id}», "
                    "which is not registered earlier in this batch"
                )

        self._commands.append(command)
        self._ids.add(command_id)
        return command_id

    def clear(self) -> None:
        self._commands.clear()
        self._ids.clear()

    def execute(self) -> BatchResult:
        """
        Send every registered command as one physical call.

        Returns:
            :class:`BatchResult` in submission order.  An empty batch returns
            an empty result without touching the transport.

        Raises:
            BatchExecutionError: The transport raised; the original exception
                is chained as ``__cause__``.
        """
        if not self._commands:
            return BatchResult()

        commands = list(self._commands)
        notify(self.observer, "command_batch.execute", commands_count=len(commands))
        try:
            result = self.transport.execute_batch(commands)
        except Exception as exc:
            notify(self.observer, "command_batch.error", error=str(exc))
            raise BatchExecutionError(f"batch execution failed: {exc}") from exc

        notify(
            self.observer,
            "command_batch.executed",
            commands_count=len(commands),
            failed_count=len(result.failed()),
        )
        return result
