"""Text formatting for wiki-links, previews, and relative dates."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Iterator

# Match [[target]] and [[target|alias]]
INLINE_REF_PATTERN = re.compile(r"\[\[([^\]]+?)(?:\|([^\]]+))?\]\]")

# Markup-style tags removed before truncation
TAG_PATTERN = re.compile(r"<[^>]*>")

LINE_BREAK_PATTERN = re.compile(r"\r?\n")

CHARS_PER_LINE = 80
ELLIPSIS = "..."

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR


def _replace_ref(match: re.Match[str]) -> str:
    target, alias = match.group(1), match.group(2)
    return alias if alias is not None else target


def strip_inline_refs(text: str) -> str:
    """Replace every [[target]] or [[target|alias]] with its display text.

    Substitution repeats until no reference is left, so stripping an
    already-stripped string is a no-op.
    """
    result, count = INLINE_REF_PATTERN.subn(_replace_ref, text)
    while count:
        result, count = INLINE_REF_PATTERN.subn(_replace_ref, result)
    return result


@dataclass(frozen=True)
class TextSegment:
    """Literal text between references."""

    text: str

    @property
    def source(self) -> str:
        return self.text


@dataclass(frozen=True)
class RefSegment:
    """A wiki-link reference."""

    target: str
    display: str
    source: str  # the raw [[...]] span


Segment = TextSegment | RefSegment


class InlineRefSplit:
    """Iterable view of a string split into literal and reference segments.

    Iteration is lazy and can be restarted; each pass scans the text again.
    """

    def __init__(self, text: str):
        self.text = text

    def __iter__(self) -> Iterator[Segment]:
        last = 0
        for match in INLINE_REF_PATTERN.finditer(self.text):
            if match.start() > last:
                yield TextSegment(self.text[last : match.start()])
            target, alias = match.group(1), match.group(2)
            yield RefSegment(
                target=target,
                display=alias if alias is not None else target,
                source=match.group(0),
            )
            last = match.end()
        if last < len(self.text):
            yield TextSegment(self.text[last:])

    def __repr__(self) -> str:
        return f"InlineRefSplit({self.text!r})"


def split_inline_refs(text: str) -> InlineRefSplit:
    """Split text into literal and reference segments, left to right."""
    return InlineRefSplit(text)


def truncate_to_lines(text: str, max_lines: int) -> str:
    """Collapse text to its first `max_lines` non-blank lines.

    Lines are joined with a single space. Output longer than
    `max_lines * 80` characters is cut and suffixed with an ellipsis.
    Callers only pass `max_lines > 0`.
    """
    stripped = TAG_PATTERN.sub("", text).strip()
    lines = [line for line in LINE_BREAK_PATTERN.split(stripped) if line.strip()]
    truncated = " ".join(lines[:max_lines])

    max_chars = max_lines * CHARS_PER_LINE
    if len(truncated) > max_chars:
        return truncated[:max_chars].strip() + ELLIPSIS
    return truncated


def format_relative_date(timestamp_ms: float, now_ms: float) -> str:
    """Describe how long ago `timestamp_ms` was, relative to `now_ms`.

    Buckets: Just now, minutes, hours, Yesterday, days, weeks (days // 7),
    months (days // 30), years (days // 365). Day count is whole elapsed
    days, not calendar days.
    """
    # Future timestamps (clock skew, touched files) read as "now"
    seconds = max(0, int((now_ms - timestamp_ms) // 1000))
    minutes = seconds // MINUTE
    hours = seconds // HOUR
    days = seconds // DAY

    if days == 0:
        if hours == 0:
            if minutes == 0:
                return "Just now"
            return f"{minutes}m ago"
        return f"{hours}h ago"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days}d ago"
    if days < 30:
        return f"{days // 7}w ago"
    if days < 365:
        return f"{days // 30}mo ago"
    return f"{days // 365}y ago"


def merge_tags(frontmatter_tags: Any, inline_tags: Iterable[str]) -> list[str]:
    """Frontmatter tags followed by inline tags, in order, without duplicates.

    `frontmatter_tags` may be a single value or a list. One leading '#'
    is dropped from each tag.
    """
    if not frontmatter_tags:
        frontmatter_tags = []
    elif not isinstance(frontmatter_tags, (list, tuple)):
        frontmatter_tags = [frontmatter_tags]

    tags: list[str] = []
    for tag in [*frontmatter_tags, *inline_tags]:
        text = str(tag)
        if text.startswith("#"):
            text = text[1:]
        if text and text not in tags:
            tags.append(text)
    return tags


def format_word_count(count: int) -> str:
    return f"{count:,} words"
