"""Pipeline components for the Gemini image MCP server"""

from managers.asset_cache import TTLCache
from managers.asset_fetcher import AssetFetcher, GCSObjectReader
from managers.asset_manager import AssetManager
from managers.config_manager import PipelineConfig, load_pipeline_config
from managers.image_generator import ImageGenerator
from managers.part_assembler import PartAssembler
from managers.response_interpreter import interpret_response
from managers.url_validator import UrlValidator

__all__ = [
    "AssetFetcher",
    "AssetManager",
    "GCSObjectReader",
    "ImageGenerator",
    "PartAssembler",
    "PipelineConfig",
    "TTLCache",
    "UrlValidator",
    "interpret_response",
    "load_pipeline_config",
]
