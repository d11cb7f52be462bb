"""
Helpers for JSON that arrives inside server-rendered <script> payloads
rather than in the DOM.

Payload length varies between deploys, so the array boundary is found by
bracket balance over the text, skipping anything inside JSON strings.
"""
from __future__ import annotations

import json
import re
from typing import Any, Iterator, List, Optional

# self.__next_f.push([1,"..."]) chunks emitted by Next.js RSC pages
_NEXT_F_CHUNK_RE = re.compile(r'self\.__next_f\.push\(\[1,"(.*?)"\]\)</script>', re.DOTALL)


def iter_next_flight_chunks(html: str) -> Iterator[str]:
    """Yield the raw (still escaped) string body of each RSC push chunk."""
    for m in _NEXT_F_CHUNK_RE.finditer(html or ""):
        yield m.group(1)


def unescape_js_string(s: str) -> str:
    """Undo the JS string-literal escaping applied to RSC chunk bodies."""
    try:
        return json.loads(f'"{s}"')
    except json.JSONDecodeError:
        return s.replace('\\"', '"').replace("\\\\", "\\")


def find_balanced_array_end(text: str, start: int) -> Optional[int]:
    """
    text[start] must be '['. Return the index of its matching ']' or None
    when the text ends first.
    """
    if start < 0 or start >= len(text) or text[start] != "[":
        return None

    depth = 0
    in_string = False
    i = start
    n = len(text)
    while i < n:
        c = text[i]
        if in_string:
            if c == "\\":
                i += 2
                continue
            if c == '"':
                in_string = False
        elif c == '"':
            in_string = True
        elif c in "[{":
            depth += 1
        elif c in "]}":
            depth -= 1
            if depth == 0:
                return i if c == "]" else None
        i += 1
    return None


def extract_json_array_after(text: str, marker: str) -> Optional[List[Any]]:
    """
    Parse the first balanced JSON array that starts at or after marker.

    Returns None when the marker is missing or no complete array follows.
    Raises json.JSONDecodeError when the balanced slice is not valid JSON.
    """
    idx = (text or "").find(marker)
    if idx < 0:
        return None
    arr_start = text.find("[", idx)
    if arr_start < 0:
        return None
    end = find_balanced_array_end(text, arr_start)
    if end is None:
        return None
    parsed = json.loads(text[arr_start : end + 1])
    return parsed if isinstance(parsed, list) else None
