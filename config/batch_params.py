"""
Batch sizing, pagination, and request constants.

This is the AUTHORITATIVE source for batch and pagination constants.
src/batch_client/config.py imports from here — do not maintain parallel copies.

Design constraints:
- The portal accepts at most 50 commands in one batch request.
- Every list method returns at most 50 records per page and ignores larger
  page-size requests, so PAGE_SIZE is fixed rather than configurable per call.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Batch sizing
# ---------------------------------------------------------------------------

# Maximum commands per physical call
BATCH_CAPACITY: int = 50

# Records per logical page of any list method
PAGE_SIZE: int = 50

# Auto-generated command ids: cmd_0, cmd_1, ...
DEFAULT_COMMAND_PREFIX: str = "cmd_"

# ---------------------------------------------------------------------------
# Request constants
# ---------------------------------------------------------------------------

# HTTP timeout for one physical call (no automatic retry on expiry)
REQUEST_TIMEOUT_SECONDS: int = 30

# Default sort direction of id-based traversals
DEFAULT_SORT_DIRECTION: str = "ASC"
