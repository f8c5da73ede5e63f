"""
Best-effort #tag extraction from raw memo content.

The markdown analyzer owned by the main service rebuilds a more accurate
payload later; this only seeds ``payload["tags"]`` on create and update.
"""

from __future__ import annotations

import re
from typing import Optional

# A tag starts with a letter and runs until whitespace or the next '#'.
TAG_PATTERN = re.compile(r"(?:^|\s)#([A-Za-z][^\s#]*)")


def extract_tags(content: str) -> list[str]:
    """Return tags in order of first appearance, without duplicates."""
    seen: set[str] = set()
    tags: list[str] = []
    for match in TAG_PATTERN.finditer(content or ""):
        tag = match.group(1)
        if tag not in seen:
            seen.add(tag)
            tags.append(tag)
    return tags


def build_payload(content: str) -> Optional[dict]:
    """Payload seeded from content, or None when no tags were found."""
    tags = extract_tags(content)
    if not tags:
        return None
    return {"tags": tags}
