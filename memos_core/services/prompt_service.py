"""
Prompt templates handed to calling agents.
"""

from __future__ import annotations

import json

from memos_core.errors import ValidationIssue

CAPTURE_DESCRIPTION = (
    "Capture a thought, idea, or note as a new memo. "
    "Use this prompt when the user wants to quickly save something. "
    "The assistant will call create_memo with the provided content."
)
REVIEW_DESCRIPTION = (
    "Search and review memos on a given topic. "
    "The assistant will call search_memos and summarise the results."
)


def capture_instruction(content: str, tags: str = "") -> str:
    if not content:
        raise ValidationIssue("content argument is required", field="content", error_type="required")
    instruction = (
        "Please save the following as a new private memo using the create_memo tool."
        f"\n\nContent:\n{content}"
    )
    if tags:
        instruction += f"\n\nAppend these tags inline using #tag syntax: {tags}"
    return instruction


def review_instruction(topic: str) -> str:
    if not topic:
        raise ValidationIssue("topic argument is required", field="topic", error_type="required")
    return (
        f"Please use the search_memos tool to find memos about {json.dumps(topic)}, "
        "then provide a concise summary of what has been written on this topic, "
        "grouped by theme. Include the memo names so the user can reference them."
    )
