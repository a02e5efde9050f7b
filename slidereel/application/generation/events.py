"""
Typed events of the generation stream and their SSE wire form.

A stream carries zero or more thought events followed by exactly one
terminal event (``JsonEvent`` or ``ErrorEvent``).
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Union

JSON_READY_MARKER = "--- JSON READY ---"
ERROR_PREFIX = "ERROR: "


def _sse_frame(event: str, payload: str) -> str:
    data = "\n".join(f"data: {line}" for line in payload.split("\n"))
    return f"event: {event}\n{data}\n\n"


@dataclass(frozen=True)
class ThoughtEvent:
    """A chunk of streamed planning text."""

    text: str
    terminal = False

    def to_sse(self) -> str:
        return _sse_frame("thought", self.text)


@dataclass(frozen=True)
class ThoughtLineEvent:
    """A complete status line (progress notes, adjustment counts)."""

    text: str
    terminal = False

    def to_sse(self) -> str:
        return _sse_frame("thoughtln", self.text)


@dataclass(frozen=True)
class JsonEvent:
    document: Dict[str, Any]
    terminal = True

    def to_sse(self) -> str:
        return _sse_frame("json", json.dumps(self.document))


@dataclass(frozen=True)
class ErrorEvent:
    message: str
    code: str = "GENERATION_FAILED"
    terminal = True

    def to_sse(self) -> str:
        # Clients display thoughtln lines verbatim, errors included.
        return _sse_frame("thoughtln", f"{ERROR_PREFIX}{self.message}")


GenerationEvent = Union[ThoughtEvent, ThoughtLineEvent, JsonEvent, ErrorEvent]
