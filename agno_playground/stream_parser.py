"""
Incremental decoder for agent run streams.

The Agno runtime streams run events as newline-delimited ``data:`` frames.
Frames normally carry JSON, but older runtimes emit the repr() of the event
object instead, e.g. ``RunResponseContentEvent(event='RunResponseContent',
content='hi', ...)``. Both forms are decoded into ``RunResponse`` models;
anything else is skipped without raising.
"""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

try:
    from .models import RunResponse
except ImportError:
    import sys
    import os
    sys.path.append(os.path.dirname(__file__))
    from models import RunResponse

DATA_PREFIX = "data:"

_EVENT_REPR = re.compile(r"^\s*(\w*Event)\(([\s\S]*)\)\s*$")
_OBJECT_REPR = re.compile(r"^(\w+)\(([\s\S]*)\)$")
_ENUM_REPR = re.compile(r"^<\w+\.\w+:\s*'([^']*)'>$")
_NUMBER = re.compile(r"^-?\d+(\.\d+)?([eE][-+]?\d+)?$")
_KEY_AHEAD = re.compile(r"\s*\w+=")

_OPENERS = "([{"
_CLOSERS = ")]}"


def consume(buffer: str, chunk: str) -> Tuple[str, List[RunResponse]]:
    """
    Feed one text chunk through the decoder.

    Returns the unterminated tail to pass back on the next call together with
    the events decoded from every complete line.
    """
    lines = (buffer + chunk).split("\n")
    remaining = lines.pop()

    events = []
    for line in lines:
        event = decode_line(line)
        if event is not None:
            events.append(event)

    return remaining, events


def flush(buffer: str) -> List[RunResponse]:
    """Force the trailing partial line through once the transport has ended"""
    _, events = consume(buffer, "\n")
    return events


def decode_line(line: str) -> Optional[RunResponse]:
    if not line.startswith(DATA_PREFIX):
        return None

    payload = line[len(DATA_PREFIX):].strip()
    if not payload:
        return None

    event = decode_payload(payload)
    if event is None:
        logger.debug(f"Skipping undecodable stream frame: {payload[:200]}")
    return event


def decode_payload(payload: str) -> Optional[RunResponse]:
    """Decode a frame payload as JSON, falling back to the event repr() form"""
    try:
        data = json.loads(payload)
    except ValueError:
        data = parse_event_string(payload)
    else:
        if not isinstance(data, dict):
            return None

    if data is None:
        return None
    return _build_event(data)


def _build_event(data: Dict[str, Any]) -> Optional[RunResponse]:
    # Absent and null fields both fall back to the model defaults
    fields = {key: value for key, value in data.items()
              if not (key in ("event", "created_at", "content_type") and value is None)}
    try:
        return RunResponse.model_validate(fields)
    except PydanticValidationError as e:
        invalid = {error["loc"][0] for error in e.errors() if error["loc"]}
        logger.debug(f"Replacing malformed stream frame fields with defaults: {sorted(map(str, invalid))}")

    # A frame is still an event when some of its fields are malformed
    fields = {key: value for key, value in fields.items() if key not in invalid}
    try:
        return RunResponse.model_validate(fields)
    except PydanticValidationError as e:
        logger.debug(f"Stream frame does not describe a run event: {e}")
        return None


# Legacy repr() decoding

def parse_event_string(payload: str) -> Optional[Dict[str, Any]]:
    """Parse ``SomethingEvent(key=value, ...)`` into a dict, None if it does not match"""
    match = _EVENT_REPR.match(payload)
    if not match:
        return None
    return _parse_keyword_arguments(match.group(2))


def parse_literal(text: str) -> Any:
    """Convert one repr() value into the closest Python value"""
    text = text.strip()

    if text == "None":
        return None
    if text == "True":
        return True
    if text == "False":
        return False

    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        quote = text[0]
        return text[1:-1].replace("\\" + quote, quote).replace("\\n", "\n")

    if _NUMBER.match(text):
        try:
            return int(text)
        except ValueError:
            return float(text)

    if text.startswith("[") and text.endswith("]"):
        inner = text[1:-1]
        if not inner.strip():
            return []
        return [parse_literal(item) for item in _split_top_level(inner)]

    enum_match = _ENUM_REPR.match(text)
    if enum_match:
        return enum_match.group(1)

    object_match = _OBJECT_REPR.match(text)
    if object_match:
        return _parse_keyword_arguments(object_match.group(2))

    return text


def _parse_keyword_arguments(body: str) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for part in _split_top_level(body, require_key=True):
        key, sep, value = part.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        result[key] = parse_literal(value)
    return result


def _split_top_level(text: str, require_key: bool = False) -> List[str]:
    """
    Split on commas outside quotes and brackets.

    With ``require_key`` a comma only separates when a ``key=`` follows it,
    so unquoted values that contain commas stay whole.
    """
    parts = []
    current = []
    depth = 0
    quote = None
    i = 0
    while i < len(text):
        char = text[i]
        if quote:
            if char == "\\" and i + 1 < len(text):
                current.append(char)
                current.append(text[i + 1])
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth = max(depth - 1, 0)
        elif char == "," and depth == 0:
            if not require_key or _KEY_AHEAD.match(text, i + 1):
                parts.append("".join(current))
                current = []
                i += 1
                continue
        current.append(char)
        i += 1

    if "".join(current).strip():
        parts.append("".join(current))
    return parts


class StreamFrameParser:
    """
    Stateful wrapper around consume() for a single stream.

    One parser belongs to one reader; feed() calls must not interleave.
    """

    def __init__(self):
        self.buffer = ""

    def feed(self, chunk: str) -> List[RunResponse]:
        self.buffer, events = consume(self.buffer, chunk)
        return events

    def close(self) -> List[RunResponse]:
        events = flush(self.buffer)
        self.buffer = ""
        return events
