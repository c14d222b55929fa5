"""
Rapport MCP Server
Model Context Protocol server exposing a user's Rapport canvas

Provides tools to read the canvas SVG, fetch an editing guide, query
elements and write a validated, sanitized SVG back to the project store.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from canvas_validators import ValidatorLimits

from .canvas_tools import CanvasTools
from .credentials import CredentialStore
from .errors import RapportError
from .settings import Settings
from .store import ProjectStore

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("RapportMCP")

SERVER_NAME = "rapport-mcp"

# Global tools instance, built on first use so the server can start before login
_canvas_tools: Optional[CanvasTools] = None
_limits: Optional[ValidatorLimits] = None


def configure_logging(level: str = "INFO") -> None:
    """Log to stderr; stdout carries the MCP stream."""
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def set_validator_limits(limits: Optional[ValidatorLimits]) -> None:
    global _limits, _canvas_tools
    _limits = limits
    _canvas_tools = None


def get_canvas_tools() -> CanvasTools:
    """Get or create the canvas tools bound to the saved login"""
    global _canvas_tools

    if _canvas_tools is None:
        settings = Settings.from_env()
        credentials_store = CredentialStore(settings.credentials_path)
        store = ProjectStore.from_settings(settings, credentials_store.load())
        _canvas_tools = CanvasTools(store, credentials_store.require_user_id, limits=_limits)
        logger.info(f"Connected to project store at {settings.supabase_url}")

    return _canvas_tools


def reset_canvas_tools() -> None:
    global _canvas_tools
    if _canvas_tools is not None:
        _canvas_tools.store.close()
    _canvas_tools = None


@asynccontextmanager
async def server_lifespan(server: FastMCP) -> AsyncIterator[Dict[str, Any]]:
    """Manage server startup and shutdown lifecycle"""
    logger.info("Rapport MCP server starting up")

    try:
        try:
            get_canvas_tools()
        except RapportError as e:
            logger.warning(f"Project store not ready on startup: {e}")
            logger.warning("Run `rapport-mcp login` before using the canvas tools")

        yield {}
    finally:
        reset_canvas_tools()
        logger.info("Rapport MCP server shut down")


mcp = FastMCP(SERVER_NAME, lifespan=server_lifespan)


def _run_tool(name: str, call) -> str:
    logger.info(f"Executing tool: {name}")
    try:
        return call(get_canvas_tools())
    except RapportError as e:
        logger.error(f"Error in {name}: {e.code}")
        raise ToolError(f"Tool execution failed: {e}") from e


@mcp.tool()
def get_svg(project_id: str, include_metadata: bool = True, user_id: Optional[str] = None) -> str:
    """
    Get the SVG document and metadata for a Rapport canvas. Returns the current
    SVG along with canvas information like element count, viewBox, pins, and
    update history.

    Parameters:
    - project_id: The project ID (UUID)
    - include_metadata: Include canvas metadata (default: true)
    - user_id: Optional user ID to verify project ownership. If provided, only
      returns projects owned by this user.
    """
    return _run_tool(
        "get_svg",
        lambda tools: tools.get_svg(project_id, include_metadata=include_metadata, user_id=user_id),
    )


@mcp.tool()
def get_canvas_template() -> str:
    """
    Get a comprehensive template and guide for modifying a Rapport canvas. This
    provides the current canvas state plus detailed instructions on how to
    add/modify elements, including examples, security guidelines, and best
    practices. USE THIS FIRST before making any changes to understand the
    canvas structure.
    """
    return _run_tool("get_canvas_template", lambda tools: tools.get_canvas_template())


@mcp.tool()
def update_svg(
    project_id: str,
    svg_document: str,
    skip_validation: bool = False,
    user_id: Optional[str] = None,
) -> str:
    """
    Update the SVG document for a Rapport canvas. The SVG will be validated for
    security (no scripts, event handlers, or malicious content) and integrity
    before being saved. Returns detailed feedback about the update including
    element counts and any warnings.

    Parameters:
    - project_id: The project ID (UUID)
    - svg_document: The complete, valid SVG document as a string. Must include
      <svg> wrapper with xmlns and viewBox attributes. All elements must have
      unique IDs and appropriate data-type attributes.
    - skip_validation: Skip security validation (NOT RECOMMENDED - use only for
      emergency overrides)
    - user_id: Optional user ID to verify project ownership. If provided, only
      allows updates to projects owned by this user.
    """
    return _run_tool(
        "update_svg",
        lambda tools: tools.update_svg(
            project_id,
            svg_document,
            skip_validation=skip_validation,
            user_id=user_id,
        ),
    )


@mcp.tool()
def query_elements(selector: str) -> str:
    """
    Query and search for specific elements in a Rapport canvas using CSS-like
    selectors. Useful for finding elements by type, ID, or data attributes
    before modifying them.

    Parameters:
    - selector: tag names like "rect" or "circle", #id for specific elements,
      [data-type="value"] for element types
    """
    return _run_tool("query_elements", lambda tools: tools.query_elements(selector))


def main(log_level: str = "INFO") -> None:
    """Run the Rapport MCP server over stdio"""
    configure_logging(log_level)
    logger.info("Starting Rapport MCP Server...")
    mcp.run()


if __name__ == "__main__":
    main()
