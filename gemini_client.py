"""Thin wrapper around the google-genai SDK for image generation and the Files API"""

import logging
from io import BytesIO
from typing import Optional, Sequence, Tuple

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from exceptions import GenerationError, RegistrationError
from models.generation import GenerateOptions
from models.parts import InlineImagePart, Part, RemoteHandlePart, TextPart

logger = logging.getLogger("GeminiClient")


def to_genai_part(part: Part) -> types.Part:
    if isinstance(part, TextPart):
        return types.Part.from_text(text=part.text)
    if isinstance(part, InlineImagePart):
        return types.Part.from_bytes(data=part.data, mime_type=part.mime_type)
    if isinstance(part, RemoteHandlePart):
        return types.Part.from_uri(file_uri=part.uri, mime_type=part.mime_type or None)
    raise TypeError(f"Unsupported part type: {type(part).__name__}")


def http_options_for(timeout: Optional[float]) -> Optional[types.HttpOptions]:
    """Per-request deadline; the SDK takes milliseconds"""
    if timeout is None:
        return None
    return types.HttpOptions(timeout=int(timeout * 1000))


def build_generate_config(
    options: GenerateOptions,
    timeout: Optional[float] = None,
) -> types.GenerateContentConfig:
    kwargs = {"response_modalities": ["IMAGE"], "http_options": http_options_for(timeout)}
    if options.aspect_ratio:
        kwargs["image_config"] = types.ImageConfig(aspect_ratio=options.aspect_ratio)
    if options.seed is not None:
        kwargs["seed"] = options.seed
    if options.system_prompt:
        kwargs["system_instruction"] = options.system_prompt
    return types.GenerateContentConfig(**kwargs)


class GeminiClient:
    def __init__(self, api_key: Optional[str] = None, client: Optional[genai.Client] = None):
        # genai.Client falls back to GEMINI_API_KEY / GOOGLE_API_KEY when api_key is None
        self._client = client or genai.Client(api_key=api_key)

    def generate(
        self,
        model: str,
        parts: Sequence[Part],
        options: GenerateOptions,
        timeout: Optional[float] = None,
    ) -> types.GenerateContentResponse:
        contents = [types.Content(role="user", parts=[to_genai_part(p) for p in parts])]
        logger.info(f"Requesting image from {model} with {len(parts)} parts")
        try:
            return self._client.models.generate_content(
                model=model,
                contents=contents,
                config=build_generate_config(options, timeout),
            )
        except genai_errors.APIError as e:
            raise GenerationError(f"Gemini generate_content failed: {e}") from e

    def upload_file(
        self,
        data: bytes,
        mime_type: str,
        display_name: str,
        timeout: Optional[float] = None,
    ) -> Tuple[str, str]:
        """Upload bytes to the Files API, returning (uri, name)"""
        try:
            uploaded = self._client.files.upload(
                file=BytesIO(data),
                config=types.UploadFileConfig(
                    mime_type=mime_type,
                    display_name=display_name,
                    http_options=http_options_for(timeout),
                ),
            )
        except genai_errors.APIError as e:
            raise RegistrationError(f"File upload failed for {display_name}: {e}") from e

        if not uploaded.uri or not uploaded.name:
            raise RegistrationError(f"File upload for {display_name} returned no uri/name")
        logger.info(f"Uploaded {display_name} as {uploaded.name}")
        return uploaded.uri, uploaded.name

    def delete_file(self, name: str, timeout: Optional[float] = None) -> None:
        try:
            self._client.files.delete(
                name=name,
                config=types.DeleteFileConfig(http_options=http_options_for(timeout)),
            )
        except genai_errors.APIError as e:
            raise RegistrationError(f"File deletion failed for {name}: {e}") from e
        logger.info(f"Deleted remote file {name}")

