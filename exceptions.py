"""Classified errors raised by the image pipeline"""

from typing import Optional


class ImagePipelineError(Exception):
    """Base class for every error raised by the pipeline"""


class RejectedReferenceError(ImagePipelineError):
    """URL is malformed or resolves to a restricted network"""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Rejected reference {url!r}: {reason}")
        self.url = url
        self.reason = reason


class AssetUnavailableError(ImagePipelineError):
    """Fetching from HTTP or object storage failed"""


class UnsupportedContentError(ImagePipelineError):
    """Bytes are not recognizable as an image"""


class RegistrationError(ImagePipelineError):
    """Upload to or deletion from the remote asset store failed"""


class RegistrationNotFoundError(RegistrationError):
    """No live registration entry exists for the source URI"""

    def __init__(self, source_uri: str):
        super().__init__(
            f"No live registration for {source_uri!r}; it was never registered or has expired"
        )
        self.source_uri = source_uri


class GenerationError(ImagePipelineError):
    """The remote generate call itself failed"""


class GenerationHaltedError(ImagePipelineError):
    """The primary candidate stopped for a reason other than a normal stop"""

    def __init__(self, status: str):
        super().__init__(f"Generation halted with finish reason: {status}")
        self.status = status


class EmptyResponseError(ImagePipelineError):
    """The response carried no candidates or no image data"""

    def __init__(self, message: str, block_reason: Optional[str] = None):
        if block_reason:
            message = f"{message} (prompt blocked: {block_reason})"
        super().__init__(message)
        self.block_reason = block_reason
