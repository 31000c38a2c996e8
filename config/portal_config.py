"""
Portal endpoint and wire configuration.

This is the AUTHORITATIVE source for endpoint configuration.
src/batch_client/config.py imports from here — do not maintain parallel copies.

BEFORE USING THE REST TRANSPORT:
1. Create an inbound webhook on the portal with the scopes your resources need
   (``lists``, ``sale``, ``task``).
2. Export its base URL, e.g.
   ``PORTAL_WEBHOOK_URL=https://example.portal.test/rest/1/abcdef123456/``

ENVIRONMENT VARIABLES REQUIRED:
    PORTAL_WEBHOOK_URL  — inbound webhook base URL (includes the auth token)
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Webhook endpoint
# ---------------------------------------------------------------------------

PORTAL_WEBHOOK_URL_ENV: str = "PORTAL_WEBHOOK_URL"

# Every REST method is addressed as <webhook>/<method>.<format>
RESPONSE_FORMAT: str = "json"

# ---------------------------------------------------------------------------
# Batch endpoint
# ---------------------------------------------------------------------------
#
# Fields of one batch request body:
#   halt  — 0: keep executing after a failed command, 1: stop at first error
#   cmd   — {command_id: "method?url-encoded-query"}
#
# The engine relies on per-command outcomes, so halt is always 0.

BATCH_METHOD: str = "batch"
HALT_ON_ERROR: int = 0

# Template the server resolves inside one batch: $result[cmd_0][orders][49][id]
RESULT_REFERENCE_PREFIX: str = "$result"

# ---------------------------------------------------------------------------
# Batch response keys
# ---------------------------------------------------------------------------

BATCH_RESULT_KEYS: dict[str, str] = {
    "result":  "result",
    "error":   "result_error",
    "total":   "result_total",
    "next":    "result_next",
}
