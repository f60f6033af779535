"""Configuration tools for the Gemini image MCP server"""

from mcp.server.fastmcp import FastMCP

from managers.config_manager import PipelineConfig


def register_configuration_tools(mcp: FastMCP, config: PipelineConfig):
    """Register configuration tools with the MCP server"""

    @mcp.tool()
    def get_config() -> dict:
        """Get the effective pipeline configuration.

        Shows the model, compression settings, cache TTL and allowed URL schemes
        merged from config file, environment and hardcoded defaults. The API key
        is never returned.
        """
        return config.redacted()
