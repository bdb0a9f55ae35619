"""ID generation and timestamp utilities."""

import threading
import time
from datetime import date, datetime, timezone

# last millisecond value handed out by _next_millis
_last_millis = 0
_millis_lock = threading.Lock()


def _next_millis() -> int:
    """Wall-clock milliseconds, bumped so that no value is issued twice."""
    global _last_millis
    with _millis_lock:
        now = int(time.time() * 1000)
        if now <= _last_millis:
            now = _last_millis + 1
        _last_millis = now
        return now


def generate_prompt_id() -> str:
    """Generate a unique prompt node ID (``prompt-<ms>``)."""
    return f"prompt-{_next_millis()}"


def generate_system_id() -> str:
    """Generate a unique system node ID (``system-<ms>``)."""
    return f"system-{_next_millis()}"


def completion_id(prompt_id: str, index: int) -> str:
    """ID of the ``index``-th completion under a prompt."""
    return f"completion-{prompt_id}-{index}"


def edge_id(source: str, target: str) -> str:
    """ID of the edge between two nodes."""
    return f"edge-{source}-{target}"


def date_stamp(day: date | None = None) -> str:
    """YYYY-MM-DD stamp used in export file names (UTC today by default)."""
    if day is None:
        day = datetime.now(timezone.utc).date()
    return day.isoformat()
