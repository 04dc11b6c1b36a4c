"""Utilities for cleaning up model text before and after JSON parsing."""
from __future__ import annotations

import re
from typing import Any, Iterator


_CODE_FENCE_RE = re.compile(r"```[a-zA-Z0-9_-]*[ \t]*\n?")
_MARKDOWN_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_MARKDOWN_INLINE_CODE_RE = re.compile(r"`([^`]+)`")
_MARKDOWN_EMPHASIS_RE = re.compile(r"([*_]{1,3})([^*_]+)\1")
_MARKDOWN_HEADING_RE = re.compile(r"(^|\n)#{1,6}\s*")


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fence markers (```json ... ```), keeping their content."""

    return _CODE_FENCE_RE.sub("", text).replace("```", "").strip()


def _outside_strings(text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(index, char)`` for characters that are not inside a JSON string literal."""

    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
            continue
        yield index, char


def remove_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing ``}`` or ``]``.

    Commas inside string literals are left alone.
    """

    drop: set[int] = set()
    for index, char in _outside_strings(text):
        if char != ",":
            continue
        end = index + 1
        while end < len(text) and text[end].isspace():
            end += 1
        if end < len(text) and text[end] in "}]":
            drop.update(range(index, end))
    if not drop:
        return text
    return "".join(char for index, char in enumerate(text) if index not in drop)


def find_balanced(text: str, opener: str, closer: str, *, allow_unclosed: bool = True) -> str | None:
    """Return the first ``opener ... closer`` span with balanced nesting.

    Brackets inside JSON string literals are ignored. When the text is cut
    off before the span closes, everything from the opener to the end is
    returned so that later stages can try to salvage it, unless
    ``allow_unclosed`` is false, in which case ``None`` is returned.
    """

    start = text.find(opener)
    if start == -1:
        return None

    depth = 0
    for index, char in _outside_strings(text[start:]):
        if char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return text[start : start + index + 1]
    return text[start:] if allow_unclosed else None


def last_complete_element_end(array_text: str) -> int:
    """Return the index of the ``}`` closing the last complete object of a JSON array.

    ``array_text`` must start with ``[``. Braces inside strings are ignored.
    Returns ``-1`` when no top-level element object was closed.
    """

    depth = 0
    last_end = -1
    for index, char in _outside_strings(array_text):
        if char in "[{":
            depth += 1
        elif char in "]}":
            depth -= 1
            if char == "}" and depth == 1:
                last_end = index
    return last_end


def markdown_to_plain_text(value: Any) -> str:
    """Convert the bits of Markdown models like to sprinkle into titles into plain text.

    Non-string inputs return an empty string.
    """

    if not isinstance(value, str):
        return ""

    text = value
    text = _MARKDOWN_LINK_RE.sub(r"\1", text)
    text = _MARKDOWN_INLINE_CODE_RE.sub(r"\1", text)
    text = _MARKDOWN_HEADING_RE.sub(r"\1", text)
    text = _MARKDOWN_EMPHASIS_RE.sub(r"\2", text)
    text = text.replace("\r", " ")
    text = re.sub(r"\s+", " ", text)
    return text.strip()


__all__ = [
    "find_balanced",
    "last_complete_element_end",
    "markdown_to_plain_text",
    "remove_trailing_commas",
    "strip_code_fences",
]
