from chatcompile.models.blocks import (
    ContentBlock,
    FileBlock,
    FileRef,
    ImageBlock,
    MainTextBlock,
    Message,
    ThinkingBlock,
    ToolBlock,
    ToolBlockMetadata,
    ToolInfo,
    ToolResponse,
)
from chatcompile.models.model import ModelSpec
from chatcompile.models.parts import (
    FileHandle,
    FilePart,
    ImagePart,
    ReasoningPart,
    RequestMessage,
    RequestPart,
    TextPart,
    ToolCallPart,
    ToolResultOutput,
    ToolResultPart,
)

__all__ = [
    # Source
    "ContentBlock",
    "FileBlock",
    "FileRef",
    "ImageBlock",
    "MainTextBlock",
    "Message",
    "ThinkingBlock",
    "ToolBlock",
    "ToolBlockMetadata",
    "ToolInfo",
    "ToolResponse",
    # Target model
    "ModelSpec",
    # Request
    "FileHandle",
    "FilePart",
    "ImagePart",
    "ReasoningPart",
    "RequestMessage",
    "RequestPart",
    "TextPart",
    "ToolCallPart",
    "ToolResultOutput",
    "ToolResultPart",
]
