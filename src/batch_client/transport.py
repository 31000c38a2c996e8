"""
Batch transport protocol and the inbound-webhook REST implementation.

The engine depends only on :class:`BatchTransport`.  :class:`RestBatchTransport`
is the concrete implementation used against a live portal; tests substitute
an in-memory fake.

Design notes:
- A transport fails the whole call only for transport-level problems
  (network, HTTP status, auth, malformed body).  A single command rejected by
  the portal inside a batch is reported in the :class:`BatchResult`, not
  raised.
- No retries happen here.  Callers wanting retries wrap the transport.
"""

from __future__ import annotations

import os
import time
from collections.abc import Sequence
from typing import Protocol

import requests

from .commands import Command
from .config import (
    BATCH_METHOD,
    HALT_ON_ERROR,
    PORTAL_WEBHOOK_URL_ENV,
    REQUEST_TIMEOUT_SECONDS,
    RESPONSE_FORMAT,
)
from .errors import TransportError, TransportErrorCategory
from .parser import (
    build_batch_payload,
    parse_batch_response,
    parse_call_response,
)
from .results import BatchResult, CallResult


class BatchTransport(Protocol):
    """What the engine needs from a transport."""

    def call(self, method: str, parameters: dict) -> CallResult:
        """Perform one unbatched call."""
        ...

    def execute_batch(self, commands: Sequence[Command]) -> BatchResult:
        """Send ``commands`` as one physical call; results in submission order."""
        ...


# ---------------------------------------------------------------------------
# Request construction
# ---------------------------------------------------------------------------

def resolve_webhook_url(webhook_url: str | None = None) -> str:
    """
    Return the webhook base URL, falling back to the environment.

    Args:
        webhook_url: Explicit base URL; takes precedence over the environment.

    Returns:
        Base URL with exactly one trailing slash.

    Raises:
        ValueError: No URL given and the environment variable is unset.
    """
    url = webhook_url or os.getenv(PORTAL_WEBHOOK_URL_ENV)
    if not url:
        raise ValueError(
            f"Webhook URL not found. Set the '{PORTAL_WEBHOOK_URL_ENV}' environment "
            "variable or pass webhook_url explicitly."
        )
    return url.rstrip("/") + "/"


def build_endpoint_url(method: str, webhook_url: str | None = None) -> str:
    """
    Return the full endpoint URL for a REST method.

    Args:
        method: Remote method name, e.g. ``'sale.order.list'``.
        webhook_url: Explicit base URL (see :func:`resolve_webhook_url`).

    Returns:
        URL of the form ``<webhook>/<method>.json``.
    """
    return f"{resolve_webhook_url(webhook_url)}{method}.{RESPONSE_FORMAT}"


# ---------------------------------------------------------------------------
# REST transport
# ---------------------------------------------------------------------------

class RestBatchTransport:
    """
    :class:`BatchTransport` over the portal's inbound-webhook REST API.

    Args:
        webhook_url: Webhook base URL; defaults to ``$PORTAL_WEBHOOK_URL``.
        timeout: HTTP timeout per physical call, in seconds.
        session: Optional ``requests.Session`` (connection reuse, proxies).
    """

    def __init__(
        self,
        webhook_url: str | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self.webhook_url = resolve_webhook_url(webhook_url)
        self.timeout = timeout
        self.session = session
        self.last_latency_seconds: float | None = None

    def _post(self, method: str, body: dict) -> object:
        url = build_endpoint_url(method, self.webhook_url)
        post = self.session.post if self.session is not None else requests.post

        start = time.monotonic()
        try:
            response = post(url, json=body, timeout=self.timeout)
        except requests.Timeout as exc:
            raise TransportError(
                f"{method}: request timed out after {self.timeout}s",
                category=TransportErrorCategory.TIMEOUT,
            ) from exc
        except requests.RequestException as exc:
            raise TransportError(
                f"{method}: {exc}",
                category=TransportErrorCategory.categorize(exc),
            ) from exc
        self.last_latency_seconds = round(time.monotonic() - start, 3)

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.ok:
            # The portal explains most 4xx/5xx responses in a JSON body
            error_code = payload.get("error") if isinstance(payload, dict) else None
            description = (
                payload.get("error_description") if isinstance(payload, dict) else None
            )
            detail = description or error_code or response.reason or "HTTP error"
            raise TransportError(
                f"{method}: HTTP {response.status_code}: {detail}",
                category=TransportErrorCategory.categorize(
                    detail,
                    status_code=response.status_code,
                    error_code=error_code,
                ),
                status_code=response.status_code,
            )

        if payload is None:
            raise TransportError(
                f"{method}: response body is not valid JSON",
                category=TransportErrorCategory.INVALID_RESPONSE,
                status_code=response.status_code,
            )
        return payload

    def call(self, method: str, parameters: dict) -> CallResult:
        return parse_call_response(self._post(method, parameters))

    def execute_batch(self, commands: Sequence[Command]) -> BatchResult:
        body = build_batch_payload(commands, halt=HALT_ON_ERROR)
        payload = self._post(BATCH_METHOD, body)
        return parse_batch_response(payload, [command.id for command in commands])

    def __repr__(self) -> str:
        # The webhook URL embeds the auth token; keep it out of reprs
        return f"RestBatchTransport(timeout={self.timeout})"


__all__ = [
    "BatchTransport",
    "RestBatchTransport",
    "build_endpoint_url",
    "resolve_webhook_url",
]
