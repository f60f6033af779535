"""Data models for the Gemini image MCP server"""

from models.asset import AssetKind, AssetReference, RemoteAssetHandle
from models.generation import (
    GenerateOptions,
    ImageGenerationRequest,
    ImageOutput,
    ImagePageRequest,
)
from models.parts import InlineImagePart, Part, RemoteHandlePart, TextPart

__all__ = [
    "AssetKind",
    "AssetReference",
    "GenerateOptions",
    "ImageGenerationRequest",
    "ImageOutput",
    "ImagePageRequest",
    "InlineImagePart",
    "Part",
    "RemoteAssetHandle",
    "RemoteHandlePart",
    "TextPart",
]
