"""Markdown parsing utilities for wiki-links, embeds, and inline tags."""

import re

# Match [[target]], [[target|display]], [[target#section]], [[target#section|display]]
WIKILINK_PATTERN = re.compile(r"(?<!!)\[\[([^\]|#]+)(?:#[^\]|]+)?(?:\|[^\]]+)?\]\]")

# Match ![[target]] (with optional #section or |size) and ![alt](target "title")
EMBED_PATTERN = re.compile(
    r"!\[\[(?P<wiki>[^\]|#]+)[^\]]*\]\]"
    r"|!\[[^\]]*\]\((?P<md><[^>]+>|[^)\s]+)[^)]*\)"
)

# A tag needs at least one non-digit character: #2024 is not a tag.
# Letters may be any Unicode word character.
INLINE_TAG_PATTERN = re.compile(r"(?<![\w#/&])#([\w\-/]*(?:[^\W\d]|[\-/])[\w\-/]*)")

FENCED_CODE_PATTERN = re.compile(r"^(```|~~~).*?^\1", re.MULTILINE | re.DOTALL)
INLINE_CODE_PATTERN = re.compile(r"`[^`\n]*`")


def _dedupe(items: list[str]) -> list[str]:
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def _without_code(content: str) -> str:
    return INLINE_CODE_PATTERN.sub("", FENCED_CODE_PATTERN.sub("", content))


def extract_links(content: str) -> list[str]:
    """Extract wiki-link targets (not embeds) from content, in order, deduplicated."""
    return _dedupe([m.strip() for m in WIKILINK_PATTERN.findall(content)])


def extract_embeds(content: str) -> list[str]:
    """Extract embed targets in document order.

    Handles Obsidian embeds (![[image.png]]) and markdown images
    (![alt](path/to/image.png)). URL-encoded spaces in markdown targets
    are decoded.
    """
    result = []
    for match in EMBED_PATTERN.finditer(_without_code(content)):
        target = match.group("wiki")
        if target is None:
            target = match.group("md").strip("<>").replace("%20", " ")
        result.append(target.strip())
    return _dedupe(result)


def extract_inline_tags(content: str) -> list[str]:
    """Extract #tags from the body, outside code, in order of appearance.

    Tags are returned as written, including the leading '#'.
    """
    return _dedupe([f"#{tag}" for tag in INLINE_TAG_PATTERN.findall(_without_code(content))])
