"""
Wire encoding of commands and parsing of portal responses.

No I/O occurs here; all functions are pure transformations of dicts and
strings to support easy unit testing.

Wire formats
------------
Single call response::

    {"result": <any>, "total": 120, "next": 50, "time": {...}}

Batch call response::

    {"result": {"result":       {"cmd_0": <any>, ...},
                "result_error": {"cmd_1": {"error": "...", "error_description": "..."}},
                "result_total": {"cmd_0": 120},
                "result_next":  {"cmd_0": 100},
                "result_time":  {...}},
     "time": {...}}

A failed physical call carries a top-level ``error`` / ``error_description``
pair instead of ``result``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import urlencode

from .commands import Command, ResultReference
from .config import BATCH_RESULT_KEYS
from .errors import TransportError, TransportErrorCategory
from .results import BatchResult, CallResult, CommandError, CommandResult


# ---------------------------------------------------------------------------
# Command encoding
# ---------------------------------------------------------------------------

def _scalar(value: Any) -> str:
    if isinstance(value, ResultReference):
        return value.expression
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def flatten_parameters(params: Mapping, prefix: str = "") -> list[tuple[str, str]]:
    """
    Flatten nested parameters into PHP-style ``key[sub][0]`` pairs.

    ``None`` values are omitted, matching how the portal's own SDKs build
    query strings.

    Args:
        params: Parameter mapping, possibly nested with dicts and lists.
        prefix: Key prefix for the current nesting level.

    Returns:
        List of ``(key, value)`` string pairs in insertion order.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        full_key = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            pairs.extend(flatten_parameters(value, full_key))
        elif isinstance(value, (list, tuple)):
            pairs.extend(flatten_parameters(dict(enumerate(value)), full_key))
        else:
            pairs.append((full_key, _scalar(value)))
    return pairs


def encode_parameters(params: Mapping) -> str:
    """
    URL-encode parameters the way the batch endpoint expects inside ``cmd``.

    ``ResultReference`` values are rendered as ``$result[...]`` expressions.
    """
    return urlencode(flatten_parameters(params))


def encode_command(command: Command) -> str:
    """Render one command as ``method?query`` for the ``cmd`` map."""
    query = encode_parameters(command.parameters)
    return f"{command.method}?{query}" if query else command.method


def build_batch_payload(commands: Iterable[Command], halt: int = 0) -> dict:
    """
    Construct the JSON body of a batch request.

    Args:
        commands: Commands in submission order.
        halt: ``1`` to stop at the first failing command; the engine always
              sends ``0``.

    Returns:
        Dict with ``halt`` and ``cmd`` keys.
    """
    return {
        "halt": halt,
        "cmd": {command.id: encode_command(command) for command in commands},
    }


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def _raise_for_error_payload(payload: Any) -> None:
    if not isinstance(payload, Mapping):
        raise TransportError(
            f"malformed response: expected a JSON object, got {type(payload).__name__}",
            category=TransportErrorCategory.INVALID_RESPONSE,
        )
    if "error" in payload:
        error_code = str(payload.get("error"))
        description = str(payload.get("error_description") or "")
        message = f"{error_code}: {description}" if description else error_code
        raise TransportError(
            message,
            category=TransportErrorCategory.categorize(message, error_code=error_code),
        )


def _as_mapping(value: Any) -> dict:
    # An empty PHP array is serialized as [] rather than {}
    if isinstance(value, Mapping):
        return dict(value)
    return {}


def _as_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_command_error(raw: Any) -> CommandError:
    """Normalize one ``result_error`` entry into a :class:`CommandError`."""
    if isinstance(raw, Mapping):
        return CommandError(
            code=str(raw.get("error") or "unknown_error"),
            description=str(raw.get("error_description") or ""),
        )
    return CommandError(code="unknown_error", description=str(raw))


def parse_call_response(payload: Any) -> CallResult:
    """
    Parse the response of one unbatched call.

    Raises:
        TransportError: Payload is not an object, carries a top-level error,
                        or has no ``result`` key.
    """
    _raise_for_error_payload(payload)
    if "result" not in payload:
        raise TransportError(
            f"malformed response: missing 'result', keys present: {list(payload.keys())}",
            category=TransportErrorCategory.INVALID_RESPONSE,
        )
    return CallResult(
        value=payload["result"],
        total=_as_int(payload.get("total")),
        next=_as_int(payload.get("next")),
    )


def parse_batch_response(payload: Any, command_ids: Iterable[str]) -> BatchResult:
    """
    Parse a batch response into a :class:`BatchResult`.

    Results follow the order of ``command_ids`` (the submission order), not
    the order of keys in the payload.  A command the portal reported on in
    neither ``result`` nor ``result_error`` gets a ``missing_result`` error.

    Args:
        payload: Decoded JSON body of the batch response.
        command_ids: Ids of the submitted commands, in submission order.

    Returns:
        :class:`BatchResult` with one entry per submitted command.

    Raises:
        TransportError: Top-level error or malformed envelope.
    """
    _raise_for_error_payload(payload)
    body = payload.get("result")
    if not isinstance(body, Mapping):
        raise TransportError(
            "malformed batch response: 'result' is not an object",
            category=TransportErrorCategory.INVALID_RESPONSE,
        )

    values = _as_mapping(body.get(BATCH_RESULT_KEYS["result"]))
    errors = _as_mapping(body.get(BATCH_RESULT_KEYS["error"]))
    totals = _as_mapping(body.get(BATCH_RESULT_KEYS["total"]))
    nexts = _as_mapping(body.get(BATCH_RESULT_KEYS["next"]))

    results: list[CommandResult] = []
    for command_id in command_ids:
        if command_id in errors:
            error: CommandError | None = parse_command_error(errors[command_id])
        elif command_id not in values:
            error = CommandError("missing_result", f"no result returned for {command_id}")
        else:
            error = None

        results.append(CommandResult(
            command_id=command_id,
            value=values.get(command_id) if error is None else None,
            error=error,
            total=_as_int(totals.get(command_id)),
            next=_as_int(nexts.get(command_id)),
        ))

    return BatchResult(results)
