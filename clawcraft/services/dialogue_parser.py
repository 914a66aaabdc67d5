"""
Dialogue parser - tolerant reading of generated dialogue.

Generation backends are asked for a JSON array of {"speaker", "text"}
objects, but what comes back is often wrapped in code fences, surrounded by
prose, or cut off mid-object when the model hits its token limit. The
functions here are pure so each step can be tested on its own:

- strip_code_fences: drop ``` markup
- find_array_bounds: first '[' and its matching ']' (string-aware)
- repair_truncated_json: close whatever a truncated array left open
- parse_dialogue: the full pipeline, returning a ParseResult
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[A-Za-z0-9_+-]*")
_PARTIAL_UNICODE_ESCAPE_RE = re.compile(r"\\u[0-9A-Fa-f]{0,3}$")
_DANGLING_KEY_COLON_RE = re.compile(r',?\s*"[^"\\]*"\s*:\s*$')
_DANGLING_KEY_RE = re.compile(r'([{,])\s*"[^"\\]*"\s*$')

SPEAKER_FIELDS = ("speaker", "speakerId", "speaker_id")


@dataclass(frozen=True)
class DialogueLine:
    """A parsed line before speaker resolution."""

    speaker: str
    text: str


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parse_dialogue. `ok` is True only with at least one line."""

    ok: bool
    lines: tuple[DialogueLine, ...] = field(default_factory=tuple)
    repaired: bool = False
    error: str | None = None

    @classmethod
    def failure(cls, error: str, repaired: bool = False) -> ParseResult:
        return cls(ok=False, error=error, repaired=repaired)


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers (``` and ```json), keep the body."""
    return _FENCE_RE.sub("", text)


def _scan_string_state(text: str) -> tuple[bool, bool]:
    """Return (inside_string, pending_escape) at the end of text."""
    in_string = False
    escape = False
    for ch in text:
        if escape:
            escape = False
            continue
        if ch == "\\":
            if in_string:
                escape = True
            continue
        if ch == '"':
            in_string = not in_string
    return in_string, escape


def find_array_bounds(text: str) -> tuple[int, int | None] | None:
    """
    Locate the first '[' and the index of its matching ']'.

    Brackets inside string literals are ignored.

    Returns:
        None if there is no '[' at all, (start, end) when the array closes,
        (start, None) when the input ends first (truncated output).
    """
    start = text.find("[")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(text)):
        ch = text[i]
        if escape:
            escape = False
            continue
        if in_string:
            if ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return start, i
    return start, None


def repair_truncated_json(fragment: str) -> str:
    """
    Close a JSON fragment that was cut off before its end.

    1. Close an open string literal (dropping a half-written escape)
    2. Drop dangling trailing tokens: a comma, a key with no value, a key
       with a colon but no value
    3. Append the '}' / ']' closers for every unmatched opener, innermost first

    Best effort: the result is not guaranteed to parse.
    """
    text = fragment.rstrip()

    in_string, escape = _scan_string_state(text)
    if in_string:
        if escape:
            text = text[:-1]
        text = _PARTIAL_UNICODE_ESCAPE_RE.sub("", text)
        text += '"'

    for _ in range(8):
        stripped = text.rstrip()
        if stripped.endswith(":"):
            text = _DANGLING_KEY_COLON_RE.sub("", stripped)
            continue
        if stripped.endswith(","):
            text = stripped[:-1]
            continue
        match = _DANGLING_KEY_RE.search(stripped)
        if match:
            # Keep an opening brace, drop a separating comma
            cut = match.start(1) + 1 if match.group(1) == "{" else match.start(1)
            text = stripped[:cut]
            continue
        text = stripped
        break

    closers: list[str] = []
    in_string = False
    escape = False
    for ch in text:
        if escape:
            escape = False
            continue
        if in_string:
            if ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            closers.append("}")
        elif ch == "[":
            closers.append("]")
        elif ch in "}]" and closers:
            closers.pop()

    return text + "".join(reversed(closers))


def _coerce_line(item: object) -> DialogueLine | None:
    if not isinstance(item, dict):
        return None
    speaker = next(
        (item[k] for k in SPEAKER_FIELDS if isinstance(item.get(k), str)),
        None,
    )
    text = item.get("text")
    if speaker is None or not isinstance(text, str):
        return None
    speaker = speaker.strip()
    text = text.strip()
    if not speaker or not text:
        return None
    return DialogueLine(speaker=speaker, text=text)


def parse_dialogue(raw: str | None) -> ParseResult:
    """
    Parse generated output into dialogue lines.

    Items that are not objects with a string speaker and non-empty text are
    skipped. A result with zero usable lines is a failure.
    """
    if raw is None or not raw.strip():
        return ParseResult.failure("empty response")

    cleaned = strip_code_fences(raw)
    bounds = find_array_bounds(cleaned)
    if bounds is None:
        return ParseResult.failure("no JSON array in response")

    start, end = bounds
    repaired = end is None
    if repaired:
        candidate = repair_truncated_json(cleaned[start:])
        logger.debug(f"Repaired truncated dialogue ({len(cleaned) - start} chars)")
    else:
        candidate = cleaned[start:end + 1]

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        return ParseResult.failure(f"invalid JSON: {e.msg}", repaired=repaired)

    if not isinstance(data, list):
        return ParseResult.failure("top-level value is not an array", repaired=repaired)

    lines = tuple(line for line in (_coerce_line(item) for item in data) if line is not None)
    if not lines:
        return ParseResult.failure("no usable turns", repaired=repaired)

    return ParseResult(ok=True, lines=lines, repaired=repaired)
