from pydantic import BaseModel, Field


class ModelSpec(BaseModel):
    """Target model descriptor.

    Capability flags left as ``None`` are resolved by the capability lookup
    (see ``chatcompile.capabilities``).

    Attributes:
        id: Model id as sent to the provider (e.g. ``gpt-4o``).
        provider: Provider id (e.g. ``openai``, ``anthropic``).
        vision: Whether the model accepts image input.
        image_enhancement: Whether the model edits a prior turn's image.
        native_file_types: Media types the provider accepts as inline documents.
        file_handles: Whether the provider accepts out-of-band uploaded file ids.
    """

    id: str
    provider: str = "openai"
    name: str | None = None
    vision: bool | None = None
    image_enhancement: bool | None = None
    native_file_types: list[str] = Field(default_factory=list)
    file_handles: bool = False
