"""Recover step objects from raw, untrusted completion text.

The upstream model is asked for a bare JSON array but regularly wraps it in
code fences, adds prose, gets cut off by the token limit, or emits
almost-JSON. `parse_completion` runs an ordered cascade of recovery
strategies and stops at the first one that yields at least one object.
Strategies only recover what the text contains; they never invent steps.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

StepLike = Dict[str, Any]
Strategy = Callable[[str], Optional[List[StepLike]]]

_LEADING_FENCE_RE = re.compile(r"^\s*```[\w-]*[ \t]*")
_TRAILING_FENCE_RE = re.compile(r"```\s*$")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_OBJECT_BOUNDARY_RE = re.compile(r"\}\s*(?:,|$)")
_TYPOGRAPHIC_QUOTES = str.maketrans({"“": '"', "”": '"', "„": '"', "‘": "'", "’": "'"})
_WRAPPER_KEYS = ("plan", "steps", "learningPath", "learning_path", "days", "items", "data")
MAX_BOUNDARY_ATTEMPTS = 64


class RecoveryFailure(ValueError):
    """No recovery strategy produced a single usable object."""


@dataclass(frozen=True)
class ParsedCompletion:
    steps: List[StepLike]
    strategy: str


def _strip_fences(raw: str) -> str:
    # only a fence wrapping the whole reply; backticks inside values are content
    text = _LEADING_FENCE_RE.sub("", raw or "", count=1)
    return _TRAILING_FENCE_RE.sub("", text, count=1).strip()


def _as_steps(value: Any) -> Optional[List[StepLike]]:
    if isinstance(value, dict):
        for key in _WRAPPER_KEYS:
            if isinstance(value.get(key), list):
                value = value[key]
                break
        else:
            return None
    if not isinstance(value, list):
        return None
    steps = [item for item in value if isinstance(item, dict)]
    return steps or None


def _parse_steps(text: str) -> Optional[List[StepLike]]:
    try:
        value = json.loads(text)
    except ValueError:
        return None
    return _as_steps(value)


def _outer_array(text: str) -> Optional[str]:
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def parse_direct(raw: str) -> Optional[List[StepLike]]:
    """Fence-stripped text parses as-is."""
    return _parse_steps(_strip_fences(raw))


def parse_extracted(raw: str) -> Optional[List[StepLike]]:
    """Parse the span from the first `[` to the last `]`, dropping surrounding prose."""
    candidate = _outer_array(_strip_fences(raw))
    return _parse_steps(candidate) if candidate else None


def _looks_truncated(body: str) -> bool:
    if not body.endswith("]"):
        return True
    try:
        json.loads(body)
    except json.JSONDecodeError as exc:
        # a cut after an inner list still ends with "]"; the error then sits at end of input
        return "Unterminated" in exc.msg or exc.pos >= len(body) - 1
    return False


def repair_truncation(raw: str) -> Optional[List[StepLike]]:
    """Close the array after the last complete object of a cut-off reply."""
    text = _strip_fences(raw)
    start = text.find("[")
    if start == -1:
        return None
    body = text[start:]
    if not _looks_truncated(body):
        return None

    boundaries = [match.start() for match in _OBJECT_BOUNDARY_RE.finditer(body)]
    for position in reversed(boundaries[-MAX_BOUNDARY_ATTEMPTS:]):
        steps = _parse_steps(body[: position + 1] + "]")
        if steps:
            logger.info("Truncated completion repaired at offset %d (%d objects kept)", start + position, len(steps))
            return steps
    return None


def _cosmetic(text: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", text.translate(_TYPOGRAPHIC_QUOTES))


def repair_cosmetics(raw: str) -> Optional[List[StepLike]]:
    """Drop trailing commas and typographic quotes, then retry."""
    text = _cosmetic(_strip_fences(raw))
    steps = _parse_steps(text)
    if steps:
        return steps
    candidate = _outer_array(text)
    return _parse_steps(candidate) if candidate else None


def _matching_brace(text: str, start: int) -> Optional[int]:
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
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def _load_object(candidate: str) -> Optional[StepLike]:
    for attempt in (candidate, _cosmetic(candidate)):
        try:
            value = json.loads(attempt)
        except ValueError:
            continue
        return value if isinstance(value, dict) else None
    return None


def salvage_objects(raw: str) -> Optional[List[StepLike]]:
    """Parse every balanced `{...}` independently and keep those that load as objects."""
    text = raw or ""
    salvaged: List[StepLike] = []
    position = 0
    while True:
        start = text.find("{", position)
        if start == -1:
            break
        end = _matching_brace(text, start)
        value = _load_object(text[start : end + 1]) if end is not None else None
        if value is None:
            # look for complete objects nested inside this one
            position = start + 1
            continue
        salvaged.append(value)
        position = end + 1
    return salvaged or None


STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("direct", parse_direct),
    ("extraction", parse_extracted),
    ("truncation_repair", repair_truncation),
    ("cosmetic_repair", repair_cosmetics),
    ("object_salvage", salvage_objects),
)


def parse_completion(raw: str) -> ParsedCompletion:
    """Run the recovery cascade; raise RecoveryFailure when nothing is usable."""
    text = raw or ""
    logger.debug("Parsing completion of %d chars", len(text))
    for name, strategy in STRATEGIES:
        steps = strategy(text)
        if steps:
            if name != "direct":
                logger.warning("Completion recovered via %s: %d objects", name, len(steps))
            else:
                logger.info("Completion parsed directly: %d objects", len(steps))
            return ParsedCompletion(steps=steps, strategy=name)
        logger.debug("Strategy %s recovered nothing", name)

    logger.warning("No recovery strategy produced objects from %d chars of completion text", len(text))
    raise RecoveryFailure("completion text contained no recoverable step objects")
