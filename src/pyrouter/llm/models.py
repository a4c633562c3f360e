"""Wire models for the OpenRouter chat and models APIs.

Message content travels as either a plain string or an array of typed
parts. The two shapes are modelled as a tagged union (``TextContent`` |
``PartsContent``) and the shape detection lives in ``content.py``, so nothing
outside this package needs to know how a message is encoded.
"""

from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_serializer,
    model_validator,
)

from .content import (
    ContentPart,
    ImageURL,
    PartsContent,
    TextContent,
    decode_content,
    encode_content,
)

Role = Literal["system", "user", "assistant"]


MessageBody = Annotated[TextContent | PartsContent, Field(discriminator="kind")]


class Message(BaseModel):
    """A chat message.

    Construct it the way it appears on the wire::

        Message(role="user", content="hello")
        Message(role="user", content=[ContentPart.of_text("describe"),
                                      ContentPart.of_image(data_url)])

    or with ``content_parts=[...]``. Messages are immutable once built.
    """

    model_config = ConfigDict(frozen=True)

    role: Role = Field(description="Role of the message sender")
    body: MessageBody = Field(default_factory=TextContent)

    @model_validator(mode="before")
    @classmethod
    def _accept_wire_shape(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "body" in data:
            return data
        data = dict(data)
        parts = data.pop("content_parts", None)
        content = data.pop("content", "")
        data["body"] = decode_content(parts if parts else content)
        return data

    @model_serializer(mode="plain")
    def _to_wire(self) -> dict[str, Any]:
        return {"role": self.role, "content": encode_content(self.body)}

    @property
    def content(self) -> str:
        """Plain text of the message.

        For multipart messages this mirrors the first text part.
        """
        if isinstance(self.body, TextContent):
            return self.body.text
        for part in self.body.parts:
            if part.type == "text" and part.text is not None:
                return part.text
        return ""

    @property
    def content_parts(self) -> list[ContentPart] | None:
        """Ordered content parts, or None for a plain text message."""
        if isinstance(self.body, PartsContent):
            return list(self.body.parts)
        return None


class ImageConfig(BaseModel):
    """Image generation parameters."""

    model_config = ConfigDict(frozen=True)

    aspect_ratio: str | None = Field(default=None, description="e.g. '1:1', '16:9'")
    image_size: str | None = Field(default=None, description="Resolution tier: 1K, 2K or 4K")


class ChatRequest(BaseModel):
    """Request body for ``/chat/completions``.

    Built fresh for every call and never mutated after submission; the
    client derives stream/non-stream variants with ``model_copy``.
    """

    model_config = ConfigDict(frozen=True)

    model: str = Field(description="Target model identifier")
    messages: tuple[Message, ...] = Field(default=(), description="Ordered conversation")
    stream: bool = Field(default=False)
    modalities: tuple[str, ...] | None = Field(default=None)
    image_config: ImageConfig | None = Field(default=None)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the JSON body, omitting unset optional fields."""
        return self.model_dump(mode="json", exclude_none=True)


class ImageContent(BaseModel):
    """Image returned by an image-capable model."""

    type: str = "image_url"
    image_url: ImageURL


class Delta(BaseModel):
    content: str | None = None


class ResponseMessage(BaseModel):
    content: str | None = None
    images: list[ImageContent] = Field(default_factory=list)


class Choice(BaseModel):
    """A completion choice; streaming chunks fill ``delta``, full responses ``message``."""

    delta: Delta = Field(default_factory=Delta)
    message: ResponseMessage = Field(default_factory=ResponseMessage)
    finish_reason: str | None = None


class ErrorBody(BaseModel):
    """Error object embedded in an otherwise successful response."""

    message: str = ""
    code: int | str | None = None


class ChatResponse(BaseModel):
    """Response from ``/chat/completions`` (and each decoded SSE payload)."""

    id: str | None = None
    model: str | None = None
    choices: list[Choice] = Field(default_factory=list)
    error: ErrorBody | None = None
    usage: dict[str, Any] | None = None


class StreamChunk(BaseModel):
    """One incremental unit of streamed output."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(default="", description="Text delta")
    done: bool = Field(default=False, description="True for the end-of-stream marker")
    finish_reason: str | None = Field(default=None)


class CatalogueRecord(BaseModel):
    """Catalogue entry where a JSON ``null`` reads as the field default."""

    @model_validator(mode="before")
    @classmethod
    def _nulls_as_defaults(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class ModelPricing(CatalogueRecord):
    prompt: str = ""
    completion: str = ""
    request: str = ""
    image: str = ""
    web_search: str | None = None
    input_audio: str | None = None


class ModelArchitecture(CatalogueRecord):
    tokenizer: str = ""
    instruct_type: str | None = None
    input_modalities: list[str] = Field(default_factory=list)
    output_modalities: list[str] = Field(default_factory=list)


class TopProviderInfo(CatalogueRecord):
    context_length: int | None = None
    max_completion_tokens: int | None = None
    is_moderated: bool = False


class PerRequestLimits(CatalogueRecord):
    prompt_tokens: int | None = None
    completion_tokens: int | None = None


class Model(CatalogueRecord):
    """A model from the OpenRouter catalogue."""

    id: str
    name: str = ""
    created: int = 0
    description: str = ""
    context_length: int | None = None
    pricing: ModelPricing = Field(default_factory=ModelPricing)
    architecture: ModelArchitecture = Field(default_factory=ModelArchitecture)
    top_provider: TopProviderInfo = Field(default_factory=TopProviderInfo)
    per_request_limits: PerRequestLimits | None = None
    supported_parameters: list[str] = Field(default_factory=list)

    def is_image_model(self) -> bool:
        """True if the model can produce images."""
        return "image" in self.architecture.output_modalities

    def supports_image_input(self) -> bool:
        return "image" in self.architecture.input_modalities

    def is_text_model(self) -> bool:
        """True if the model takes and returns text."""
        return has_text_modality(self.architecture.input_modalities) and has_text_modality(
            self.architecture.output_modalities
        )


class ModelsResponse(BaseModel):
    data: list[Model] = Field(default_factory=list)


class ListModelsOptions(BaseModel):
    """Query filters for ``/models``."""

    model_config = ConfigDict(frozen=True)

    category: str | None = None
    supported_parameters: str | None = None

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.category:
            params["category"] = self.category
        if self.supported_parameters:
            params["supported_parameters"] = self.supported_parameters
        return params


def has_text_modality(modalities: list[str]) -> bool:
    return "text" in modalities


def filter_text_models(models: list[Model]) -> list[Model]:
    """Keep only models with text input and text output."""
    return [m for m in models if m.is_text_model()]


def format_price_per_million(price_per_token: str) -> str:
    """Convert a per-token price string to a per-million-tokens figure."""
    try:
        price = float(price_per_token)
    except ValueError:
        return price_per_token
    if price == 0:
        return "0" if price_per_token == "0" else price_per_token
    per_million = price * 1_000_000
    if per_million < 0.01:
        return f"{per_million:.4f}"
    return f"{per_million:.2f}"
