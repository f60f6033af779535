"""Generation request parts"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class InlineImagePart:
    mime_type: str
    data: bytes


@dataclass(frozen=True)
class RemoteHandlePart:
    uri: str
    mime_type: str = ""


Part = Union[TextPart, InlineImagePart, RemoteHandlePart]
