"""Message content variants and their wire encoding.

On the wire a message ``content`` is either a JSON string or an array of
``{type, text?, image_url?}`` objects. The array form carries no explicit
tag, so decoding inspects the JSON shape. This module hides that decision.
"""

from collections.abc import Iterable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ImageURL(BaseModel):
    """Reference to an image, usually a ``data:`` URL."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(description="Image URL or base64 data URL")


class ContentPart(BaseModel):
    """One element of a multipart message body."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text", "image_url"] = Field(description="Part discriminator")
    text: str | None = Field(default=None, description="Text for 'text' parts")
    image_url: ImageURL | None = Field(default=None, description="Image for 'image_url' parts")

    @classmethod
    def of_text(cls, text: str) -> "ContentPart":
        return cls(type="text", text=text)

    @classmethod
    def of_image(cls, url: str) -> "ContentPart":
        return cls(type="image_url", image_url=ImageURL(url=url))


class TextContent(BaseModel):
    """Message body made of a single string."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str = ""


class PartsContent(BaseModel):
    """Message body made of ordered content parts."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["parts"] = "parts"
    parts: tuple[ContentPart, ...] = ()


def encode_content(body: TextContent | PartsContent) -> str | list[dict[str, Any]]:
    """Encode a message body to its wire shape.

    Parts take precedence: a ``PartsContent`` body is always sent as an
    array, even when it holds a single text part.
    """
    if isinstance(body, PartsContent):
        return [part.model_dump(mode="json", exclude_none=True) for part in body.parts]
    return body.text


def decode_content(raw: Any) -> TextContent | PartsContent:
    """Decode a wire ``content`` value by its shape.

    Strings (and null) become ``TextContent``; arrays become ``PartsContent``.
    Already-decoded bodies are passed through.

    Raises:
        ValueError: If the value is neither a string nor an array
    """
    if isinstance(raw, (TextContent, PartsContent)):
        return raw
    if raw is None:
        return TextContent()
    if isinstance(raw, str):
        return TextContent(text=raw)
    if isinstance(raw, (list, tuple)):
        return PartsContent(parts=tuple(_decode_parts(raw)))
    raise ValueError(f"unsupported message content of type {type(raw).__name__}")


def _decode_parts(raw_parts: Iterable[Any]) -> Iterable[ContentPart]:
    for raw in raw_parts:
        if isinstance(raw, ContentPart):
            yield raw
        else:
            yield ContentPart.model_validate(raw)
