"""Shared helper functions for tool implementations"""

import base64
import logging
from typing import Any, Dict

from asset_processor import get_image_metadata
from models.generation import ImageOutput

logger = logging.getLogger("MCP_Server")


def build_image_response(output: ImageOutput) -> Dict[str, Any]:
    """Serialize a generated image for an MCP tool response.

    Args:
        output: Result of ImageGenerator.generate_panel/generate_page

    Returns:
        Response dict with base64 image data, MIME type, dimensions and the
        seed echoed back at full width.
    """
    metadata = get_image_metadata(output.data)
    return {
        "image_base64": base64.b64encode(output.data).decode("ascii"),
        "mime_type": output.mime_type,
        "width": metadata["width"],
        "height": metadata["height"],
        "bytes_size": len(output.data),
        "used_seed": output.used_seed,
    }
