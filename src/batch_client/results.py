"""
Result containers for single calls and batch calls.

A physical batch call produces exactly one :class:`BatchResult`, holding one
:class:`CommandResult` per submitted command in submission order.  A command
the portal rejected is still a regular result, with ``error`` set; only a
failure of the physical call itself raises.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CommandError:
    """Portal-reported failure of one command (``error`` / ``error_description``)."""

    code: str
    description: str = ""

    def __str__(self) -> str:
        if self.description:
            return f"{self.code}: {self.description}"
        return self.code


@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of one command inside a physical call.

    Attributes:
        command_id: Id the command was registered under.
        value: Decoded ``result`` entry for the command (``None`` on error).
        error: Portal-reported error, or ``None``.
        total: ``total`` reported for list methods, if any.
        next: ``next`` offset reported for list methods, if any.
    """

    command_id: str
    value: Any = None
    error: CommandError | None = None
    total: int | None = None
    next: int | None = None

    @property
    def is_success(self) -> bool:
        # update/delete methods report a rejected change as a plain ``false``
        return self.error is None and self.value is not False


@dataclass(frozen=True)
class CallResult:
    """Response of one unbatched call."""

    value: Any
    total: int | None = None
    next: int | None = None


class BatchResult:
    """Ordered mapping ``command_id → CommandResult`` for one physical call."""

    def __init__(self, results: list[CommandResult] | None = None) -> None:
        self._results: dict[str, CommandResult] = {}
        for result in results or []:
            self._results[result.command_id] = result

    def __iter__(self) -> Iterator[CommandResult]:
        return iter(self._results.values())

    def __len__(self) -> int:
        return len(self._results)

    def __getitem__(self, command_id: str) -> CommandResult:
        return self._results[command_id]

    def __contains__(self, command_id: object) -> bool:
        return command_id in self._results

    def __repr__(self) -> str:
        return f"BatchResult({list(self._results)!r})"

    def command_ids(self) -> list[str]:
        return list(self._results)

    def values(self) -> list[CommandResult]:
        return list(self._results.values())

    def failed(self) -> list[CommandResult]:
        """Results whose command was rejected by the portal."""
        return [r for r in self._results.values() if not r.is_success]


# ---------------------------------------------------------------------------
# Mutation result views
# ---------------------------------------------------------------------------

class _ItemBatchResult:
    """Read-only view over the :class:`CommandResult` of one mutation."""

    def __init__(self, command_result: CommandResult) -> None:
        self.command_result = command_result

    @property
    def error(self) -> CommandError | None:
        return self.command_result.error

    def is_success(self) -> bool:
        return self.command_result.is_success

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.command_result!r})"


class AddedItemResult(_ItemBatchResult):
    """Result of an ``*.add`` command; ``id`` is the new record's id."""

    @property
    def id(self) -> int | None:
        value = self.command_result.value
        if isinstance(value, dict):
            # Sale methods nest the record one level deeper: {"order": {"id": 5}}
            if "id" not in value and "ID" not in value and len(value) == 1:
                (nested,) = value.values()
                if isinstance(nested, dict):
                    value = nested
            # Scrum and sale methods wrap the new record: {"id": 5, ...}
            value = value.get("id", value.get("ID"))
        if isinstance(value, bool) or value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None


class UpdatedItemResult(_ItemBatchResult):
    """Result of an ``*.update`` command."""


class DeletedItemResult(_ItemBatchResult):
    """Result of a ``*.delete`` command."""
