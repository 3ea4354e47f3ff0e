# =============================================================================
# core/sessions.py  —  Session Registry
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Maps a client-visible session handle ("energy", "session_1718000000000")
#   to the most recent continuation token Bedrock issued for it.
#
# INVARIANTS:
#   - At most one token per handle; the latest successful response wins.
#   - Iteration order is insertion order.  Overwriting a handle keeps its
#     original position.
#   - An empty/absent token means "session exists, no continuation yet".
#
# CONCURRENCY:
#   No locking.  Everything runs on one event loop, and each mutation is a
#   single synchronous dict write.  Two in-flight calls on the same handle
#   can still interleave: the one whose network response lands last wins.
# =============================================================================

import time
from typing import Optional

from core.models import SessionEntry


class SessionRegistry:
    """In-memory, process-lifetime handle → continuation token map."""

    def __init__(self):
        self._tokens: dict[str, Optional[str]] = {}

    def __contains__(self, handle: object) -> bool:
        return handle in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

    def create(self, handle: str) -> None:
        """Register ``handle`` with no continuation.  Resets an existing one."""
        self._tokens[handle] = None

    def resolve(self, handle: str) -> Optional[str]:
        """Return the stored token, or None if unknown or not yet issued."""
        return self._tokens.get(handle) or None

    def update(self, handle: str, token: str) -> None:
        self._tokens[handle] = token

    def list(self) -> list[SessionEntry]:
        return [SessionEntry(handle=h, token=t or None) for h, t in self._tokens.items()]

    def new_handle(self) -> str:
        """Generate an unused ``session_<epoch ms>`` handle."""
        base = f"session_{int(time.time() * 1000)}"
        handle = base
        suffix = 1
        while handle in self._tokens:
            handle = f"{base}_{suffix}"
            suffix += 1
        return handle
