"""Request and result models for image generation"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ImageGenerationRequest:
    """Single panel generation with at most one reference image"""
    prompt: str
    negative_prompt: str = ""
    aspect_ratio: str = ""
    reference_url: str = ""
    seed: Optional[int] = None  # None means random
    system_prompt: str = ""


@dataclass
class ImagePageRequest:
    """Page generation combining several reference images"""
    prompt: str
    negative_prompt: str = ""
    aspect_ratio: str = ""
    reference_urls: List[str] = field(default_factory=list)
    seed: Optional[int] = None
    system_prompt: str = ""


@dataclass(frozen=True)
class GenerateOptions:
    aspect_ratio: str = ""
    seed: Optional[int] = None  # Already narrowed to int32
    system_prompt: str = ""


@dataclass(frozen=True)
class ImageOutput:
    """Image extracted from a generation response"""
    data: bytes
    mime_type: str
    used_seed: int  # Caller's full-width seed, never the narrowed one
