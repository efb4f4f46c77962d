"""Event-stream framing helpers."""

import json
from typing import Any, Dict

from identification.models import SessionUpdate

SSE_HEADERS: Dict[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

HEARTBEAT = ": heartbeat\n\n"


def format_sse(event: str, data: Any) -> str:
    """One text/event-stream frame: event line, single-line JSON data, blank line."""
    return f"event: {event}\ndata: {json.dumps(data, separators=(',', ':'))}\n\n"


def format_update(update: SessionUpdate) -> str:
    return format_sse(update.type.value, update.data)
