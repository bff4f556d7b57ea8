"""
JSON payload extraction from free-form model text.

Models often wrap JSON in prose or markdown. extract_json() locates the
payload with an explicit ordered strategy and reports which one matched:

1. FENCED_BLOCK      - the body of a ```json ... ``` (or bare ```) fence
2. BALANCED_BRACES   - the first balanced {...} span
3. BALANCED_BRACKETS - the first balanced [...] span

Brace and bracket scans skip over string literals (including escaped
quotes), so braces inside strings do not affect nesting. When nothing is
found the result is NOT_FOUND; callers check `.found` rather than testing
for None.

Extraction only locates text. Decoding is left to the caller so that a
located-but-malformed payload can be told apart from a missing one.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ExtractionStrategy(str, Enum):
    FENCED_BLOCK = "fenced_block"
    BALANCED_BRACES = "balanced_braces"
    BALANCED_BRACKETS = "balanced_brackets"


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of extract_json(); `payload` is None only for NOT_FOUND."""
    payload: Optional[str]
    strategy: Optional[ExtractionStrategy]

    @property
    def found(self) -> bool:
        return self.payload is not None


NOT_FOUND = ExtractionResult(payload=None, strategy=None)

_FENCE_PATTERN = re.compile(r"```[ \t]*(?:json|JSON)?[ \t]*\r?\n?(.*?)```", re.DOTALL)


def _from_fence(text: str) -> Optional[str]:
    for match in _FENCE_PATTERN.finditer(text):
        body = match.group(1).strip()
        if body.startswith("{") or body.startswith("["):
            return body
    return None


def _scan_balanced(text: str, start: int, open_char: str, close_char: str) -> Optional[int]:
    """Index of the character closing the span opened at `start`, or None."""
    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]
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
        elif char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return index

    return None


def _first_balanced_span(text: str, open_char: str, close_char: str) -> Optional[str]:
    start = text.find(open_char)
    while start != -1:
        end = _scan_balanced(text, start, open_char, close_char)
        if end is not None:
            return text[start:end + 1]
        # Unclosed opener; try the next one
        start = text.find(open_char, start + 1)
    return None


def extract_json(text: Optional[str]) -> ExtractionResult:
    """
    Locate the JSON payload inside a model response.

    Args:
        text: Raw model output.

    Returns:
        ExtractionResult with the payload text and the strategy that found
        it, or NOT_FOUND.

    Example:
        >>> extract_json('Sure! ```json\\n{"a": 1}\\n```').payload
        '{"a": 1}'
        >>> extract_json("no json here").found
        False
    """
    if not text:
        return NOT_FOUND

    fenced = _from_fence(text)
    if fenced is not None:
        return ExtractionResult(payload=fenced, strategy=ExtractionStrategy.FENCED_BLOCK)

    braces = _first_balanced_span(text, "{", "}")
    if braces is not None:
        return ExtractionResult(payload=braces, strategy=ExtractionStrategy.BALANCED_BRACES)

    brackets = _first_balanced_span(text, "[", "]")
    if brackets is not None:
        return ExtractionResult(payload=brackets, strategy=ExtractionStrategy.BALANCED_BRACKETS)

    return NOT_FOUND


__all__ = [
    "ExtractionStrategy",
    "ExtractionResult",
    "NOT_FOUND",
    "extract_json",
]
