import argparse
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from mcp.server.fastmcp import FastMCP

from gemini_client import GeminiClient
from managers.asset_cache import TTLCache
from managers.asset_fetcher import AssetFetcher, GCSObjectReader
from managers.asset_manager import AssetManager
from managers.config_manager import PipelineConfig, load_pipeline_config
from managers.image_generator import ImageGenerator
from managers.part_assembler import PartAssembler
from managers.url_validator import UrlValidator
from tools.asset import register_asset_tools
from tools.configuration import register_configuration_tools
from tools.generation import register_generation_tools

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("MCP_Server")


class AppContext:
    def __init__(self, cache: TTLCache):
        self.cache = cache


def create_server(
    config: PipelineConfig,
    gemini_client: Optional[GeminiClient] = None,
    storage_reader=None,
) -> FastMCP:
    """Wire the pipeline from config and register every tool on a new FastMCP instance"""
    gemini_client = gemini_client or GeminiClient(api_key=config.api_key)
    storage_reader = storage_reader or GCSObjectReader(project=config.gcp_project)

    cache = TTLCache()
    validator = UrlValidator(config.allowed_schemes)
    fetcher = AssetFetcher(storage_reader=storage_reader)
    assembler = PartAssembler(cache, fetcher, validator, config)
    asset_manager = AssetManager(gemini_client, cache, fetcher, validator, config)
    image_generator = ImageGenerator(assembler, gemini_client, config.model)

    @asynccontextmanager
    async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
        """Manage application lifecycle"""
        logger.info(f"Starting MCP server lifecycle (model={config.model})")
        try:
            yield AppContext(cache=cache)
        finally:
            dropped = cache.cleanup_expired()
            logger.info(f"Shutting down MCP server ({dropped} expired cache entries dropped)")

    mcp = FastMCP("Gemini_Image_MCP_Server", lifespan=app_lifespan)
    register_generation_tools(mcp, image_generator)
    register_asset_tools(mcp, asset_manager)
    register_configuration_tools(mcp, config)
    return mcp


def main():
    parser = argparse.ArgumentParser(description="Gemini image generation MCP server")
    parser.add_argument(
        "--transport",
        default="streamable-http",
        choices=["stdio", "sse", "streamable-http"],
        help="MCP transport (default: streamable-http)",
    )
    parser.add_argument("--model", help="Override the Gemini image model")
    parser.add_argument("--no-compression", action="store_true", help="Send reference images uncompressed")
    args = parser.parse_args()

    overrides = {"model": args.model}
    if args.no_compression:
        overrides["compression_enabled"] = False
    config = load_pipeline_config(overrides)

    mcp = create_server(config)
    mcp.run(transport=args.transport)


if __name__ == "__main__":
    main()
