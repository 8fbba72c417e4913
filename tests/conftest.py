from pathlib import Path
from typing import Any

import pytest

from chatcompile.blocks import InMemoryBlockStore
from chatcompile.compiler.conversation import ConversationCompiler
from chatcompile.config import CompilerConfig
from chatcompile.models.blocks import (
    ContentBlock,
    FileBlock,
    FileRef,
    ImageBlock,
    MainTextBlock,
    Message,
    ThinkingBlock,
    ToolBlock,
)
from chatcompile.models.model import ModelSpec
from chatcompile.models.parts import FileHandle, FilePart, TextPart

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-data"


class MockFileProcessor:
    """File processor returning canned results per block id."""

    def __init__(
        self,
        native: dict[str, FilePart | FileHandle] | None = None,
        text: dict[str, TextPart] | None = None,
        native_error: Exception | None = None,
    ) -> None:
        self.native = native or {}
        self.text = text or {}
        self.native_error = native_error
        self.native_calls: list[str] = []
        self.text_calls: list[str] = []

    async def try_native_file_part(
        self, block: FileBlock, model: ModelSpec
    ) -> FilePart | FileHandle | None:
        self.native_calls.append(block.id)
        if self.native_error is not None:
            raise self.native_error
        return self.native.get(block.id)

    async def try_text_extraction(self, block: FileBlock) -> TextPart | None:
        self.text_calls.append(block.id)
        return self.text.get(block.id)


def text_block(block_id: str, content: str, message_id: str = "msg-1") -> MainTextBlock:
    return MainTextBlock(id=block_id, message_id=message_id, content=content)


def thinking_block(block_id: str, content: str, message_id: str = "msg-1") -> ThinkingBlock:
    return ThinkingBlock(id=block_id, message_id=message_id, content=content)


def image_url_block(block_id: str, url: str, message_id: str = "msg-1") -> ImageBlock:
    return ImageBlock(id=block_id, message_id=message_id, url=url)


def image_file_block(
    block_id: str, path: Path, media_type: str = "image/png", message_id: str = "msg-1"
) -> ImageBlock:
    return ImageBlock(
        id=block_id,
        message_id=message_id,
        file=FileRef(path=str(path), origin_name=path.name, media_type=media_type),
    )


def file_block(
    block_id: str,
    path: Path | str = "/nonexistent/doc.pdf",
    origin_name: str = "doc.pdf",
    media_type: str = "application/pdf",
    remote_id: str | None = None,
    message_id: str = "msg-1",
) -> FileBlock:
    return FileBlock(
        id=block_id,
        message_id=message_id,
        file=FileRef(
            path=str(path),
            origin_name=origin_name,
            media_type=media_type,
            remote_id=remote_id,
        ),
    )


def tool_block(block_id: str = "tool-1", message_id: str = "msg-1", **overrides: Any) -> ToolBlock:
    fields: dict[str, Any] = {
        "tool_id": "call_123",
        "tool_name": "test_tool",
        "arguments": {"key": "value"},
        "content": "Tool execution result",
    }
    fields.update(overrides)
    return ToolBlock(id=block_id, message_id=message_id, **fields)


@pytest.fixture
def block_store() -> InMemoryBlockStore:
    """Provide an empty in-memory block store."""
    return InMemoryBlockStore()


@pytest.fixture
def make_message(block_store: InMemoryBlockStore):
    """Build a Message whose blocks are registered in the block store."""

    def build(message_id: str, role: str, *blocks: ContentBlock) -> Message:
        for block in blocks:
            block_store.add(block)
        return Message(id=message_id, role=role, blocks=[b.id for b in blocks])

    return build


@pytest.fixture
def file_processor() -> MockFileProcessor:
    return MockFileProcessor()


@pytest.fixture
def compiler(
    block_store: InMemoryBlockStore, file_processor: MockFileProcessor
) -> ConversationCompiler:
    """Compiler with default settings and a mock file processor."""
    return ConversationCompiler(
        block_store,
        config=CompilerConfig(),
        file_processor=file_processor,
    )


@pytest.fixture
def vision_model() -> ModelSpec:
    return ModelSpec(id="gpt-4o", vision=True, image_enhancement=False)


@pytest.fixture
def text_model() -> ModelSpec:
    return ModelSpec(id="text-only-model", vision=False, image_enhancement=False)


@pytest.fixture
def enhancement_model() -> ModelSpec:
    return ModelSpec(id="qwen-image-edit", vision=True, image_enhancement=True)


@pytest.fixture
def png_file(tmp_path: Path) -> Path:
    """Write a small fake PNG to disk."""
    path = tmp_path / "picture.png"
    path.write_bytes(PNG_BYTES)
    return path
