"""
Shared pytest fixtures for the batch client tests.

FakePortal is an in-memory BatchTransport standing in for a live portal.  It
builds the same wire envelopes the REST API returns and runs them through
src/batch_client/parser.py, so the engine sees exactly what it would see
over HTTP.  It also:

- stores list records per list method and honours ``start`` (offset
  resources) or ``>id`` / ``<id`` filters plus ``order`` (id-based resources),
- resolves ResultReference parameters against earlier commands of the same
  physical call, the way the portal resolves ``$result[...]`` expressions,
- reports per-command failures in ``result_error``,
- records every physical call, so tests can count round trips (spy).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from src.batch_client.batch import Batch
from src.batch_client.commands import ResultReference
from src.batch_client.hooks import collect_events
from src.batch_client.parser import parse_batch_response, parse_call_response


class CommandFailure(Exception):
    """Raised by a fake handler to report a per-command portal error."""

    def __init__(self, code: str, description: str = "") -> None:
        super().__init__(code)
        self.code = code
        self.description = description


@dataclass
class FakeList:
    records: list
    key: str = "ID"
    items_key: str | None = None
    id_based: bool = False
    report_total: bool = True
    total_override: int | None = None
    filter_param: str = "filter"
    order_param: str = "order"


@dataclass
class FakePortal:
    page_size: int = 50
    lists: dict = field(default_factory=dict)
    handlers: dict = field(default_factory=dict)
    calls: list = field(default_factory=list)
    resolved_references: list = field(default_factory=list)
    fail_next: Exception | None = None
    next_id: int = 1000

    # ── configuration ─────────────────────────────────────────────────────

    def add_list(self, method: str, records: list, **options: Any) -> FakeList:
        resource = FakeList(list(records), **options)
        self.lists[method] = resource
        return resource

    def on(self, method: str, handler: Callable[[dict], Any]) -> None:
        self.handlers[method] = handler

    @property
    def physical_calls(self) -> int:
        return len(self.calls)

    @property
    def batch_calls(self) -> list:
        return [commands for kind, commands in self.calls if kind == "batch"]

    # ── BatchTransport ────────────────────────────────────────────────────

    def call(self, method: str, parameters: dict):
        self.calls.append(("call", (method, dict(parameters))))
        self._raise_pending_failure()
        try:
            value, total, next_ = self._dispatch(method, parameters)
        except CommandFailure as failure:
            return parse_call_response(
                {"error": failure.code, "error_description": failure.description}
            )

        payload = {"result": value}
        if total is not None:
            payload["total"] = total
        if next_ is not None:
            payload["next"] = next_
        return parse_call_response(payload)

    def execute_batch(self, commands):
        commands = list(commands)
        self.calls.append(("batch", [(c.id, c.method, c.parameters) for c in commands]))
        self._raise_pending_failure()

        values, errors, totals, nexts = {}, {}, {}, {}
        for command in commands:
            params = self._resolve(command.parameters, values)
            try:
                value, total, next_ = self._dispatch(command.method, params)
            except CommandFailure as failure:
                errors[command.id] = {
                    "error": failure.code,
                    "error_description": failure.description,
                }
                continue
            values[command.id] = value
            if total is not None:
                totals[command.id] = total
            if next_ is not None:
                nexts[command.id] = next_

        payload = {
            "result": {
                "result": values,
                # The portal serializes an empty map as []
                "result_error": errors or [],
                "result_total": totals or [],
                "result_next": nexts or [],
            }
        }
        return parse_batch_response(payload, [c.id for c in commands])

    # ── server side ───────────────────────────────────────────────────────

    def _raise_pending_failure(self) -> None:
        if self.fail_next is not None:
            exc, self.fail_next = self.fail_next, None
            raise exc

    def _lookup(self, reference: ResultReference, values: dict) -> Any:
        value: Any = values.get(reference.command_id)
        for segment in reference.path:
            if isinstance(value, list) and isinstance(segment, int) and 0 <= segment < len(value):
                value = value[segment]
            elif isinstance(value, Mapping) and segment in value:
                value = value[segment]
            else:
                # Unresolvable expressions reach the method verbatim
                return reference.expression
        return value

    def _resolve(self, value: Any, values: dict) -> Any:
        if isinstance(value, ResultReference):
            resolved = self._lookup(value, values)
            self.resolved_references.append((value.expression, resolved))
            return resolved
        if isinstance(value, Mapping):
            return {k: self._resolve(v, values) for k, v in value.items()}
        if isinstance(value, list):
            return [self._resolve(v, values) for v in value]
        return value

    def _dispatch(self, method: str, params: dict) -> tuple[Any, int | None, int | None]:
        if method in self.handlers:
            return self.handlers[method](params), None, None
        if method in self.lists:
            return self._list_page(self.lists[method], params)
        if method.endswith(".add"):
            self.next_id += 1
            return self.next_id, None, None
        if method.endswith(".update") or method.endswith(".delete"):
            return True, None, None
        raise CommandFailure("ERROR_METHOD_NOT_FOUND", f"Method not found: {method}")

    def _list_page(self, resource: FakeList, params: dict) -> tuple[Any, int | None, int | None]:
        key = resource.key
        next_ = None
        if resource.id_based:
            conditions = dict(params.get(resource.filter_param) or {})
            order = params.get(resource.order_param) or {}
            descending = str(order.get(key, "ASC")).upper() == "DESC"
            lower = conditions.pop(f">{key}", None)
            upper = conditions.pop(f"<{key}", None)

            matching = [
                r for r in resource.records
                if all(r.get(k) == v for k, v in conditions.items())
            ]
            total = len(matching)
            matching.sort(key=lambda r: int(r[key]), reverse=descending)
            if isinstance(lower, int):
                matching = [r for r in matching if int(r[key]) > lower]
            if isinstance(upper, int):
                matching = [r for r in matching if int(r[key]) < upper]
            page = matching[:self.page_size]
        else:
            start = int(params.get("start", 0))
            total = len(resource.records)
            page = resource.records[start:start + self.page_size]
            if start + self.page_size < total:
                next_ = start + self.page_size

        if resource.total_override is not None:
            total = resource.total_override
        value = {resource.items_key: page} if resource.items_key else page
        return value, (total if resource.report_total else None), next_


def make_records(count: int, key: str = "ID", first_id: int = 1, **extra: Any) -> list[dict]:
    """``count`` records with consecutive ids starting at ``first_id``."""
    return [
        {key: first_id + i, "NAME": f"record {first_id + i}", **extra}
        for i in range(count)
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def portal():
    return FakePortal()


@pytest.fixture
def events():
    return []


@pytest.fixture
def observer(events):
    return collect_events(events)


@pytest.fixture
def batch(portal, observer):
    return Batch(portal, observer=observer)
