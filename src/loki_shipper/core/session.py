"""Process-lifetime session identity used to tag every stream."""

from __future__ import annotations

import secrets
import threading
import time
from typing import Optional

_session_id: Optional[str] = None
_session_lock = threading.Lock()


def new_session_id() -> str:
    """Build a short opaque id from the wall-clock time and a random component."""
    return f"{int(time.time()):x}-{secrets.token_hex(3)}"


def get_session_id() -> str:
    """Get the session id of this process, creating it on first use."""
    global _session_id
    with _session_lock:
        if _session_id is None:
            _session_id = new_session_id()
        return _session_id
