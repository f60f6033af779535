"""Image generation tools for the Gemini image MCP server"""

import logging
from typing import List, Optional

from mcp.server.fastmcp import FastMCP

from models.generation import ImageGenerationRequest, ImagePageRequest
from tools.helpers import build_image_response

logger = logging.getLogger("MCP_Server")


def register_generation_tools(mcp: FastMCP, image_generator):
    """Register generate_image and generate_page with the MCP server"""

    @mcp.tool()
    def generate_image(
        prompt: str,
        negative_prompt: str = "",
        reference_url: str = "",
        aspect_ratio: str = "",
        seed: Optional[int] = None,
        system_prompt: str = "",
    ) -> dict:
        """Generate a single image from a prompt and an optional reference image.

        Args:
            prompt: What to draw
            negative_prompt: Elements to avoid
            reference_url: http(s):// or gs:// URL of a reference image. Unreachable
                or unsafe references are skipped and the image is generated from text only.
            aspect_ratio: e.g. "1:1", "16:9"
            seed: Fixed seed for reproducibility; omit for random
            system_prompt: Optional system instruction

        Returns:
            image_base64, mime_type, width, height, bytes_size and used_seed, or an error.
        """
        request = ImageGenerationRequest(
            prompt=prompt,
            negative_prompt=negative_prompt,
            aspect_ratio=aspect_ratio,
            reference_url=reference_url,
            seed=seed,
            system_prompt=system_prompt,
        )
        try:
            return build_image_response(image_generator.generate_panel(request))
        except Exception as exc:
            logger.exception("generate_image failed")
            return {"error": str(exc), "error_type": type(exc).__name__}

    @mcp.tool()
    def generate_page(
        prompt: str,
        reference_urls: Optional[List[str]] = None,
        negative_prompt: str = "",
        aspect_ratio: str = "",
        seed: Optional[int] = None,
        system_prompt: str = "",
    ) -> dict:
        """Generate one image (e.g. a full comic page) from a prompt and several reference images.

        References are attached in the order given. Any reference that cannot be
        loaded is dropped; the remaining ones are still used.
        """
        request = ImagePageRequest(
            prompt=prompt,
            negative_prompt=negative_prompt,
            aspect_ratio=aspect_ratio,
            reference_urls=list(reference_urls or []),
            seed=seed,
            system_prompt=system_prompt,
        )
        try:
            return build_image_response(image_generator.generate_page(request))
        except Exception as exc:
            logger.exception("generate_page failed")
            return {"error": str(exc), "error_type": type(exc).__name__}
