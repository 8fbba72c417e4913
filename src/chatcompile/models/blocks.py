"""Source conversation types.

A conversation is a list of ``Message`` objects. Messages reference their
content by block id; the blocks themselves live in a block store.
"""

from datetime import UTC, datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

BlockStatus = Literal["pending", "processing", "streaming", "success", "error", "paused"]
ToolStatus = Literal["pending", "invoking", "done", "error", "cancelled"]


class FileRef(BaseModel):
    """A file owned by the conversation store."""

    path: str
    origin_name: str
    media_type: str = "application/octet-stream"
    size: int | None = None
    # Id of a copy uploaded out-of-band to the provider, if any
    remote_id: str | None = None


class BlockBase(BaseModel):
    """Properties shared by every content block."""

    id: str
    message_id: str
    status: BlockStatus = "success"
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class MainTextBlock(BlockBase):
    type: Literal["main_text"] = "main_text"
    content: str = ""


class ThinkingBlock(BlockBase):
    """Assistant reasoning content."""

    type: Literal["thinking"] = "thinking"
    content: str = ""


class ImageBlock(BlockBase):
    """An image, either a local file or a URL (possibly a base64 data URL)."""

    type: Literal["image"] = "image"
    file: FileRef | None = None
    url: str | None = None


class FileBlock(BlockBase):
    type: Literal["file"] = "file"
    file: FileRef


class ToolInfo(BaseModel):
    """The tool a recorded invocation ran against.

    ``type`` is ``"provider"`` for tools executed server-side by the model
    provider (e.g. web search) and ``"client"`` for everything else.
    """

    name: str | None = None
    type: Literal["client", "provider"] = "client"


class ToolResponse(BaseModel):
    """Raw record of one tool invocation, as kept by the chat session."""

    id: str
    tool_call_id: str | None = None
    tool: ToolInfo = Field(default_factory=ToolInfo)
    tool_name: str | None = None
    arguments: Any = None
    status: ToolStatus = "pending"
    response: Any = None


class ToolBlockMetadata(BaseModel):
    raw_tool_response: ToolResponse | None = None


class ToolBlock(BlockBase):
    """A tool invocation descriptor.

    Attributes:
        tool_id: Stable invocation id assigned by the model, if any.
        tool_name: Name of the invoked tool, if known.
        arguments: Structured call arguments.
        content: Result payload, structured or string.
        metadata: Raw invocation record used for history replay.
    """

    type: Literal["tool"] = "tool"
    tool_id: str | None = None
    tool_name: str | None = None
    arguments: dict[str, Any] | None = None
    content: Any = None
    metadata: ToolBlockMetadata = Field(default_factory=ToolBlockMetadata)


ContentBlock = Annotated[
    Union[MainTextBlock, ThinkingBlock, ImageBlock, FileBlock, ToolBlock],
    Field(discriminator="type"),
]


class Message(BaseModel):
    """One conversation turn.

    Attributes:
        id: Stable message identifier.
        role: The role of the message sender (system, user, assistant, tool).
        blocks: Ordered ids of the content blocks making up the message.
    """

    id: str
    role: Literal["system", "user", "assistant", "tool"]
    blocks: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
