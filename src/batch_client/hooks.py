"""
Observer hooks for phase-boundary events.

The engine never writes to a global logger.  Every public operation accepts
an optional ``observer`` callable and reports events through it::

    def observer(event: str, context: dict) -> None: ...

Event names follow ``<operation>.<phase>``, e.g.
``get_traversable_list.start``, ``get_traversable_list.total``,
``command_batch.execute``, ``update_entity_items.error``.
"""

from __future__ import annotations

from typing import Any, Callable

Observer = Callable[[str, dict], None]


def notify(observer: Observer | None, event: str, **context: Any) -> None:
    """Send ``event`` to ``observer``; no-op when no observer is attached."""
    if observer is None:
        return
    observer(event, context)


def print_observer(event: str, context: dict) -> None:
    """
    Console observer printing one progress line per event.

    Large values (item lists, raw parameters) are summarized by length so a
    traversal over thousands of records stays readable.

    Args:
        event: Event name.
        context: Event payload.
    """
    parts = []
    for key, value in context.items():
        if isinstance(value, (list, tuple, dict)) and len(value) > 5:
            value = f"<{type(value).__name__} of {len(value)}>"
        parts.append(f"{key}={value}")
    suffix = f" ({', '.join(parts)})" if parts else ""
    print(f"  [{event}]{suffix}")


def collect_events(sink: list) -> Observer:
    """Return an observer that appends ``(event, context)`` tuples to ``sink``."""

    def _observer(event: str, context: dict) -> None:
        sink.append((event, context))

    return _observer
