"""Extract the generated image from a Gemini generate_content response"""

import logging
from typing import Any, Optional

from exceptions import EmptyResponseError, GenerationHaltedError
from models.generation import ImageOutput

logger = logging.getLogger("MCP_Server")

NORMAL_FINISH_REASONS = {"STOP", "FINISH_REASON_UNSPECIFIED"}


def finish_reason_name(reason: Any) -> Optional[str]:
    """Normalize a FinishReason enum member, plain string or None"""
    if reason is None:
        return None
    return str(getattr(reason, "value", reason))


def _block_reason(response: Any) -> Optional[str]:
    feedback = getattr(response, "prompt_feedback", None)
    reason = getattr(feedback, "block_reason", None) if feedback is not None else None
    return finish_reason_name(reason)


def interpret_response(response: Any, requested_seed: Optional[int]) -> ImageOutput:
    """Return the first inline image of the primary candidate.

    Only candidates[0] is consulted. A halted candidate is rejected before
    its parts are read.

    Args:
        response: google.genai GenerateContentResponse (or any object of the same shape)
        requested_seed: Seed the caller asked for; echoed untouched, None becomes 0

    Raises:
        EmptyResponseError: No response, no candidates, or no image part
        GenerationHaltedError: Finish reason other than STOP/unspecified
    """
    if response is None:
        raise EmptyResponseError("empty response from Gemini")

    candidates = getattr(response, "candidates", None)
    if not candidates:
        raise EmptyResponseError("no candidates in response", block_reason=_block_reason(response))

    candidate = candidates[0]
    status = finish_reason_name(getattr(candidate, "finish_reason", None))
    if status is not None and status not in NORMAL_FINISH_REASONS:
        logger.warning(f"Generation halted with finish reason {status}")
        raise GenerationHaltedError(status)

    content = getattr(candidate, "content", None)
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            return ImageOutput(
                data=inline.data,
                mime_type=inline.mime_type or "",
                used_seed=0 if requested_seed is None else requested_seed,
            )

    raise EmptyResponseError("no image produced", block_reason=_block_reason(response))
