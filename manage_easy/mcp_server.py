"""MCP server exposing the Manage Easy functions as tools and resources."""
import json
import logging
import sys
from typing import Any, List, Literal, Optional

from mcp.server.fastmcp import FastMCP

from manage_easy.client import ApiService
from manage_easy.config.settings import Settings

logger = logging.getLogger(__name__)

mcp = FastMCP("manage-easy-mcp")

_api: Optional[ApiService] = None


def configure(api: ApiService):
    global _api
    _api = api


def get_api() -> ApiService:
    global _api
    if _api is None:
        _api = ApiService(base_url=Settings.MCP_API_URL, token=Settings.MCP_FIREBASE_TOKEN)
    return _api


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)


def _error(e: Exception) -> str:
    logger.error(f"Tool call failed: {e}")
    return f"Error: {e}"


def _body(**fields) -> dict:
    return {k: v for k, v in fields.items() if v is not None}


# Tool arguments keep the wire names (ideaId, featureId) so they forward unchanged

@mcp.tool()
def list_ideas(tag: Optional[str] = None) -> str:
    """List all ideas, optionally filtered by tag."""
    try:
        return _dump(get_api().list_ideas(tag=tag))
    except Exception as e:
        return _error(e)


@mcp.tool()
def list_features(ideaId: Optional[str] = None, tag: Optional[str] = None) -> str:
    """List features, optionally filtered by ideaId or tag."""
    try:
        return _dump(get_api().list_features(idea_id=ideaId, tag=tag))
    except Exception as e:
        return _error(e)


@mcp.tool()
def list_works(featureId: Optional[str] = None, ideaId: Optional[str] = None, tag: Optional[str] = None) -> str:
    """List works (tasks/bugs), optionally filtered by featureId, ideaId, or tag."""
    try:
        return _dump(get_api().list_works(feature_id=featureId, idea_id=ideaId, tag=tag))
    except Exception as e:
        return _error(e)


@mcp.tool()
def create_work(
    title: str,
    description: Optional[str] = None,
    type: Optional[Literal["TASK", "BUG"]] = None,
    status: Optional[Literal["CREATED", "TODO", "IN_PROGRESS", "DONE"]] = None,
    featureId: Optional[str] = None,
    ideaId: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> str:
    """Create a new work item (Task or Bug).

    MUST be bound to an Idea (via ideaId) or Feature (via featureId); a
    featureId auto-binds the ideaId.
    """
    body = _body(title=title, description=description, type=type, status=status,
                 featureId=featureId, ideaId=ideaId, tags=tags)
    try:
        data = get_api().create_work(body)
    except Exception as e:
        return _error(e)
    return f"Work created successfully: ID {data.get('id')}"


@mcp.tool()
def create_idea(title: str, description: Optional[str] = None, tags: Optional[List[str]] = None) -> str:
    """Create a new Idea."""
    try:
        data = get_api().create_idea(_body(title=title, description=description, tags=tags))
    except Exception as e:
        return _error(e)
    return f"Idea created successfully: ID {data.get('id')}"


@mcp.tool()
def create_feature(ideaId: str, title: str, description: Optional[str] = None,
                   tags: Optional[List[str]] = None) -> str:
    """Create a new Feature under an Idea."""
    body = _body(ideaId=ideaId, title=title, description=description, tags=tags)
    try:
        data = get_api().create_feature(body)
    except Exception as e:
        return _error(e)
    return f"Feature created successfully: ID {data.get('id')}"


@mcp.resource("idea://{idea_id}", mime_type="application/json")
def idea_resource(idea_id: str) -> str:
    """A single idea as JSON."""
    return _dump(get_api().get_idea(idea_id))


@mcp.resource("feature://{feature_id}", mime_type="application/json")
def feature_resource(feature_id: str) -> str:
    """A single feature as JSON."""
    return _dump(get_api().get_feature(feature_id))


@mcp.resource("work://{work_id}", mime_type="application/json")
def work_resource(work_id: str) -> str:
    """A single work item as JSON."""
    return _dump(get_api().get_work(work_id))


def main():
    if not Settings.MCP_FIREBASE_TOKEN:
        print("Error: MCP_FIREBASE_TOKEN environment variable is required.", file=sys.stderr)
        sys.exit(1)
    logger.info(f"MCP server forwarding to {Settings.MCP_API_URL}")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
