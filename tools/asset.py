"""Reference asset registration tools"""

import logging

from mcp.server.fastmcp import FastMCP

logger = logging.getLogger("MCP_Server")


def register_asset_tools(mcp: FastMCP, asset_manager):
    """Register asset registration tools with the MCP server"""

    @mcp.tool()
    def register_asset(source_uri: str) -> dict:
        """Upload a reference image to the Gemini Files API.

        Registered images are sent by handle instead of inline bytes in later
        generation calls. Registering the same URI again within the cache TTL
        returns the existing handle without uploading.
        """
        source_uri = source_uri.strip()
        try:
            handle_uri = asset_manager.register_asset(source_uri)
        except Exception as exc:
            logger.exception("register_asset failed for %s", source_uri)
            return {"error": str(exc), "error_type": type(exc).__name__}

        registration = asset_manager.get_registration(source_uri)
        return {
            "source_uri": source_uri,
            "handle_uri": handle_uri,
            "mime_type": registration.mime_type if registration else None,
            "expires_at": registration.expires_at.isoformat() if registration else None,
        }

    @mcp.tool()
    def unregister_asset(source_uri: str) -> dict:
        """Delete a previously registered reference image from the Gemini Files API.

        Fails if the registration is unknown or its cache entry has expired.
        """
        source_uri = source_uri.strip()
        try:
            asset_manager.unregister_asset(source_uri)
        except Exception as exc:
            logger.exception("unregister_asset failed for %s", source_uri)
            return {"error": str(exc), "error_type": type(exc).__name__}
        return {"success": True, "source_uri": source_uri}
