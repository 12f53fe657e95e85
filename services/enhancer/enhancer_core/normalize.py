from __future__ import annotations

import random
import re
from typing import Callable, Sequence, Tuple

from .errors import ParseError

BULLET = "•"

ACTION_VERBS: Tuple[str, ...] = (
    "Developed",
    "Implemented",
    "Created",
    "Led",
    "Managed",
    "Executed",
    "Improved",
    "Achieved",
    "Increased",
    "Reduced",
    "Delivered",
    "Designed",
    "Established",
    "Coordinated",
    "Transformed",
)
_ACTION_VERB_SET = frozenset(ACTION_VERBS)

DATE_RANGE_SEPARATOR = " - "

_LIST_MARKER_RE = re.compile(r"^[ \t]*(?:[-*]|\d+[.)])[ \t]+\S", re.MULTILINE)
_LEADING_MARKER_RE = re.compile(r"^(?:•|[-*](?=\s)|\d+[.)](?=\s))\s*")
_NUMBERED_LINE_RE = re.compile(r"^\d+[.)]\s")
# Numbered items run together on one line: "1. Led the team. 2. Built the API."
_INLINE_NUMBER_RE = re.compile(r"(?<=[.!?])\s+(?=\d+[.)]\s)")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
# Rough past/continuous/third-person shape; not a part-of-speech check.
_VERB_SHAPE_RE = re.compile(r"^[A-Z][a-z]+(?:ed|ing)|^[A-Z][a-z]+s\b")


def has_bullet_markers(text: str) -> bool:
    return BULLET in text or bool(_LIST_MARKER_RE.search(text))


def starts_with_action_verb(sentence: str) -> bool:
    words = sentence.split(maxsplit=1)
    if not words:
        return False
    first = words[0].strip(",;:")
    return first in _ACTION_VERB_SET or bool(_VERB_SHAPE_RE.match(sentence))


def canonicalize_bullets(text: str) -> str:
    lines = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        items = _INLINE_NUMBER_RE.split(line) if _NUMBERED_LINE_RE.match(line) else [line]
        for item in items:
            content = _LEADING_MARKER_RE.sub("", item, count=1).strip()
            if content:
                lines.append(f"{BULLET} {content}")
    return "\n".join(lines)


def split_sentences(text: str) -> list[str]:
    sentences = []
    for chunk in _SENTENCE_SPLIT_RE.split(text):
        sentence = " ".join(chunk.split())
        if sentence:
            sentences.append(sentence)
    return sentences


def synthesize_bullets(
    text: str, choose: Callable[[Sequence[str]], str] = random.choice
) -> str:
    lines = []
    for sentence in split_sentences(text):
        if not starts_with_action_verb(sentence):
            verb = choose(ACTION_VERBS)
            sentence = f"{verb} {sentence[0].lower()}{sentence[1:]}"
        lines.append(f"{BULLET} {sentence}")
    return "\n".join(lines)


def normalize_bullets(
    text: str, choose: Callable[[Sequence[str]], str] = random.choice
) -> str:
    """Coerce a completion reply into ``• ``-prefixed lines.

    Replies that already use bullets or list markers only get their markers
    canonicalized. Anything else is split into sentences and a fallback action
    verb is injected where the sentence does not look like it opens with one.
    """
    stripped = text.strip()
    if not stripped:
        return ""
    if has_bullet_markers(stripped):
        return canonicalize_bullets(stripped)
    return synthesize_bullets(stripped, choose)


def split_date_range(text: str) -> Tuple[str, str]:
    cleaned = text.strip().strip("\"'").strip()
    parts = cleaned.split(DATE_RANGE_SEPARATOR)
    if len(parts) != 2:
        raise ParseError(f"Expected a date range like 'MM YYYY - MM YYYY', got: {cleaned!r}")
    start_date, end_date = parts[0].strip(), parts[1].strip()
    if not start_date or not end_date:
        raise ParseError(f"Expected a date range like 'MM YYYY - MM YYYY', got: {cleaned!r}")
    return start_date, end_date
