from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

OBJECT = "object"
ARRAY = "array"

NO_JSON_FOUND = "No valid JSON object or array found."

# Opening fences carry an optional language tag; closing fences are bare.
_FENCE_RE = re.compile(r"```[A-Za-z0-9_+#.\-]*")

_CLOSERS = {"{": "}", "[": "]"}


@dataclass
class ExtractionResult:
    ok: bool
    data: Any = None
    shape: Optional[str] = None
    error: Optional[str] = None
    source: str = ""
    span: Optional[Tuple[int, int]] = None

    @property
    def is_object(self) -> bool:
        return self.ok and self.shape == OBJECT

    @property
    def is_array(self) -> bool:
        return self.ok and self.shape == ARRAY


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text)


def scan_top_level_spans(text: str) -> List[Tuple[int, int]]:
    """Return ``(start, end)`` spans of top-level ``{...}``/``[...]`` regions.

    Brackets inside double-quoted strings are ignored while inside a region.
    Regions whose brackets do not match, or that never close, are dropped.
    """
    spans: List[Tuple[int, int]] = []
    stack: List[str] = []
    start = -1
    in_string = False
    escaped = False
    idx = 0
    while idx < len(text) or stack:
        if idx >= len(text):
            # Unterminated region: resume scanning just after its opener.
            stack.clear()
            in_string = escaped = False
            idx = start + 1
            start = -1
            continue
        char = text[idx]
        if stack:
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char in _CLOSERS:
                stack.append(_CLOSERS[char])
            elif char in "}]":
                if char != stack.pop():
                    stack.clear()
                    idx = start + 1
                    start = -1
                    continue
                if not stack:
                    spans.append((start, idx + 1))
                    start = -1
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
            start = idx
        idx += 1
    return spans


def try_extract_json(raw_text: str) -> ExtractionResult:
    """Recover a JSON object or array embedded in free text.

    Object spans take precedence over array spans. Malformed JSON is reported,
    never repaired.
    """
    text = strip_code_fences(raw_text or "")
    spans = scan_top_level_spans(text)
    objects = [span for span in spans if text[span[0]] == "{"]
    arrays = [span for span in spans if text[span[0]] == "["]

    first_error: Optional[str] = None
    for shape, candidates in ((OBJECT, objects), (ARRAY, arrays)):
        for start, end in candidates:
            try:
                data = json.loads(text[start:end])
            except json.JSONDecodeError as exc:
                if first_error is None:
                    first_error = str(exc)
                continue
            return ExtractionResult(
                ok=True, data=data, shape=shape, source=text, span=(start, end)
            )

    return ExtractionResult(ok=False, error=first_error or NO_JSON_FOUND, source=text)
