"""Prompt assembly and generation for single panels and multi-reference pages"""

import logging
from typing import Any, List, Optional, Protocol, Sequence

from exceptions import GenerationError
from managers.part_assembler import PartAssembler
from managers.response_interpreter import interpret_response
from models.generation import GenerateOptions, ImageGenerationRequest, ImageOutput, ImagePageRequest
from models.parts import Part, TextPart

logger = logging.getLogger("MCP_Server")

NEGATIVE_PROMPT_SEPARATOR = "\n\n[Negative Prompt]\n"


class GenerativeModel(Protocol):
    def generate(
        self,
        model: str,
        parts: Sequence[Part],
        options: GenerateOptions,
        timeout: Optional[float] = None,
    ) -> Any:
        ...


def build_final_prompt(prompt: str, negative_prompt: str = "") -> str:
    if not negative_prompt or not negative_prompt.strip():
        return prompt
    return prompt + NEGATIVE_PROMPT_SEPARATOR + negative_prompt


def narrow_seed(seed: Optional[int]) -> Optional[int]:
    """Truncate a 64-bit seed to the signed 32-bit range the API accepts.

    Wraps like a two's-complement cast, so 2**63 - 1 becomes -1.
    """
    if seed is None:
        return None
    return ((seed + 2**31) % 2**32) - 2**31


class ImageGenerator:
    def __init__(self, assembler: PartAssembler, client: GenerativeModel, model: str):
        if assembler is None:
            raise ValueError("assembler is required")
        if client is None:
            raise ValueError("client is required")
        self.assembler = assembler
        self.client = client
        self.model = model

    def generate_panel(self, request: ImageGenerationRequest, timeout: Optional[float] = None) -> ImageOutput:
        """Generate one image from a prompt and an optional reference.

        timeout bounds each blocking call (reference fetch, generate) separately.
        """
        parts: List[Part] = [TextPart(build_final_prompt(request.prompt, request.negative_prompt))]
        if request.reference_url:
            part = self.assembler.prepare_asset_part(request.reference_url, timeout)
            if part is not None:
                parts.append(part)

        return self._generate(parts, request.aspect_ratio, request.system_prompt, request.seed, timeout)

    def generate_page(self, request: ImagePageRequest, timeout: Optional[float] = None) -> ImageOutput:
        """Generate one image from a prompt and several references"""
        logger.info(f"Preparing page generation with model={self.model} ref_count={len(request.reference_urls)}")
        parts: List[Part] = [TextPart(build_final_prompt(request.prompt, request.negative_prompt))]
        images = self.assembler.prepare_asset_parts(request.reference_urls, timeout)
        parts.extend(images)
        logger.info(f"Assembled {len(parts)} parts ({len(images)} images)")

        return self._generate(parts, request.aspect_ratio, request.system_prompt, request.seed, timeout)

    def _generate(
        self,
        parts: List[Part],
        aspect_ratio: str,
        system_prompt: str,
        seed: Optional[int],
        timeout: Optional[float] = None,
    ) -> ImageOutput:
        options = GenerateOptions(
            aspect_ratio=aspect_ratio,
            seed=narrow_seed(seed),
            system_prompt=system_prompt,
        )
        try:
            response = self.client.generate(self.model, parts, options, timeout=timeout)
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"Gemini image generation failed: {e}") from e

        return interpret_response(response, seed)
