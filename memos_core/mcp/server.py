"""
MCP server wiring: tool, resource and prompt registration.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import PromptError, ResourceError
from pydantic import Field

import memos_core.config as config
from memos_core.errors import ResourceResolutionError, ValidationIssue
from memos_core.mcp.auth_middleware import MCPAuthMiddleware, get_current_context
from memos_core.services import memo_service, prompt_service, resource_service, tag_service

READ_ONLY_TOOL_ANNOTATIONS = {"readOnlyHint": True}
DESTRUCTIVE_TOOL_ANNOTATIONS = {"destructiveHint": True}

MemoName = Annotated[str, Field(description='Memo resource name, e.g. "memos/abc123"')]
VisibilityArg = Literal["PRIVATE", "PROTECTED", "PUBLIC"]
StateArg = Literal["NORMAL", "ARCHIVED"]

mcp = FastMCP(
    config.SERVICE_NAME,
    instructions=(
        "Read and write Memos notes. Public memos are readable without a token; "
        "creating, editing and commenting require a personal access token."
    ),
)


async def tool_inventory_status() -> dict:
    """Return tool inventory details."""
    tools = await mcp.get_tools()
    tool_names = sorted(tools.keys())
    if not tool_names:
        config.logger.warning("tool_inventory_empty", extra={"tool_count": 0})
    return {
        "tool_count": len(tool_names),
        "tools": tool_names,
    }


# =============================================================================
# Tools
# =============================================================================

@mcp.tool(
    annotations=READ_ONLY_TOOL_ANNOTATIONS,
    description=(
        "List memos visible to the caller. Authenticated users see their own memos plus "
        "public and protected memos; unauthenticated callers see only public memos."
    ),
)
def list_memos(
    page_size: Annotated[Optional[int], Field(description="Maximum memos to return (1-100, default 20)")] = None,
    page: Annotated[Optional[int], Field(description="Zero-based page index for pagination (default 0)")] = None,
    state: Annotated[Optional[StateArg], Field(description="Filter by state: NORMAL (default) or ARCHIVED")] = None,
    order_by_pinned: Annotated[bool, Field(description="When true, pinned memos appear first")] = False,
    filter: Annotated[
        Optional[str],
        Field(description='Optional CEL filter, e.g. content.contains("keyword") or tags.exists(t, t == "work")'),
    ] = None,
) -> dict:
    return memo_service.list_memos(
        page_size=page_size,
        page=page,
        state=state,
        order_by_pinned=order_by_pinned,
        filter_expr=filter,
        context=get_current_context(),
    )


@mcp.tool(
    annotations=READ_ONLY_TOOL_ANNOTATIONS,
    description="Get a single memo by resource name. Public memos are accessible without authentication.",
)
def get_memo(name: MemoName) -> dict:
    return memo_service.get_memo(name=name, context=get_current_context())


@mcp.tool(description="Create a new memo. Requires authentication.")
def create_memo(
    content: Annotated[str, Field(description="Memo content in Markdown. Use #tag syntax for tagging.")],
    visibility: Annotated[Optional[VisibilityArg], Field(description="Visibility (default: PRIVATE)")] = None,
) -> dict:
    return memo_service.create_memo(
        content=content,
        visibility=visibility,
        context=get_current_context(),
    )


@mcp.tool(
    description=(
        "Update a memo's content, visibility, pin state, or archive state. Requires "
        "authentication and ownership. Omit any field to leave it unchanged."
    ),
)
def update_memo(
    name: MemoName,
    content: Annotated[Optional[str], Field(description="New Markdown content")] = None,
    visibility: Annotated[Optional[VisibilityArg], Field(description="New visibility")] = None,
    pinned: Annotated[Optional[bool], Field(description="Pin or unpin the memo")] = None,
    state: Annotated[
        Optional[StateArg],
        Field(description="Set to ARCHIVED to archive, NORMAL to restore"),
    ] = None,
) -> dict:
    return memo_service.update_memo(
        name=name,
        content=content,
        visibility=visibility,
        pinned=pinned,
        state=state,
        context=get_current_context(),
    )


@mcp.tool(
    annotations=DESTRUCTIVE_TOOL_ANNOTATIONS,
    description="Permanently delete a memo. Requires authentication and ownership.",
)
def delete_memo(name: MemoName) -> dict:
    return memo_service.delete_memo(name=name, context=get_current_context())


@mcp.tool(
    annotations=READ_ONLY_TOOL_ANNOTATIONS,
    description=(
        "Search memo content. Authenticated users search their own and visible memos; "
        "unauthenticated callers search public memos only."
    ),
)
def search_memos(
    query: Annotated[str, Field(description="Text to search for in memo content")],
) -> dict:
    return memo_service.search_memos(query=query, context=get_current_context())


@mcp.tool(
    annotations=READ_ONLY_TOOL_ANNOTATIONS,
    description="List comments on a memo. Visibility rules for comments match those of the parent memo.",
)
def list_memo_comments(name: MemoName) -> dict:
    return memo_service.list_memo_comments(name=name, context=get_current_context())


@mcp.tool(
    description=(
        "Add a comment to a memo. The comment inherits the parent memo's visibility. "
        "Requires authentication."
    ),
)
def create_memo_comment(
    name: MemoName,
    content: Annotated[str, Field(description="Comment content in Markdown")],
) -> dict:
    return memo_service.create_memo_comment(
        name=name,
        content=content,
        context=get_current_context(),
    )


@mcp.tool(
    annotations=READ_ONLY_TOOL_ANNOTATIONS,
    description=(
        "List all tags with their memo counts. Authenticated users see tags from their own "
        "and visible memos; unauthenticated callers see tags from public memos only. "
        "Results are sorted by count descending, then alphabetically."
    ),
)
def list_tags() -> dict:
    return tag_service.list_tags(context=get_current_context())


# =============================================================================
# Resources
# =============================================================================

@mcp.resource(
    resource_service.MEMO_URI_TEMPLATE,
    name="Memo",
    description=(
        "A single Memos note identified by its UID. Returns the memo content as Markdown "
        "with a YAML frontmatter header containing metadata."
    ),
    mime_type=resource_service.MEMO_MIME_TYPE,
)
def memo_resource(uid: str) -> str:
    try:
        return resource_service.read_memo_resource(
            resource_service.memo_uri(uid),
            context=get_current_context(),
        )
    except ResourceResolutionError as exc:
        raise ResourceError(f"{exc.error_kind}: {exc}") from exc


# =============================================================================
# Prompts
# =============================================================================

@mcp.prompt(name="capture", description=prompt_service.CAPTURE_DESCRIPTION)
def capture(content: str, tags: str = "") -> str:
    try:
        return prompt_service.capture_instruction(content, tags)
    except ValidationIssue as exc:
        raise PromptError(str(exc)) from exc


@mcp.prompt(name="review", description=prompt_service.REVIEW_DESCRIPTION)
def review(topic: str) -> str:
    try:
        return prompt_service.review_instruction(topic)
    except ValidationIssue as exc:
        raise PromptError(str(exc)) from exc


def build_mcp_app():
    """Streamable HTTP app wrapped with caller authentication."""
    return MCPAuthMiddleware(mcp.http_app(
        path="/",
        transport="streamable-http",
        stateless_http=True,
        json_response=True,
    ))
