from chatcompile.blocks import BlockStore, InMemoryBlockStore
from chatcompile.capabilities import DefaultModelCapabilities, ModelCapabilities
from chatcompile.compiler import (
    CompiledMessage,
    ConversationCompiler,
    MessageCompiler,
    compile_conversation,
)
from chatcompile.config import CompilerConfig
from chatcompile.files import DefaultFileProcessor, FileProcessor
from chatcompile.materializers import FileMaterializer, ImageMaterializer
from chatcompile.models import (
    FileBlock,
    FileHandle,
    FilePart,
    FileRef,
    ImageBlock,
    ImagePart,
    MainTextBlock,
    Message,
    ModelSpec,
    ReasoningPart,
    RequestMessage,
    TextPart,
    ThinkingBlock,
    ToolBlock,
    ToolCallPart,
    ToolResponse,
    ToolResultOutput,
    ToolResultPart,
)
from chatcompile.tools import AssistantToolMode, ToolIdCache, ToolPairing

__all__ = [
    # Main classes
    "ConversationCompiler",
    "MessageCompiler",
    "CompiledMessage",
    "compile_conversation",
    # Config
    "CompilerConfig",
    # Collaborators
    "BlockStore",
    "InMemoryBlockStore",
    "ModelCapabilities",
    "DefaultModelCapabilities",
    "FileProcessor",
    "DefaultFileProcessor",
    # Materializers
    "FileMaterializer",
    "ImageMaterializer",
    # Tools
    "AssistantToolMode",
    "ToolIdCache",
    "ToolPairing",
    # Models - Source
    "Message",
    "MainTextBlock",
    "ThinkingBlock",
    "ImageBlock",
    "FileBlock",
    "FileRef",
    "ToolBlock",
    "ToolResponse",
    "ModelSpec",
    # Models - Request
    "RequestMessage",
    "TextPart",
    "ImagePart",
    "FilePart",
    "FileHandle",
    "ReasoningPart",
    "ToolCallPart",
    "ToolResultPart",
    "ToolResultOutput",
]
