"""Block lookup for conversation messages.

This module provides the protocol the compiler uses to read a message's
content blocks by kind, plus an in-memory implementation.
"""

import logging
from collections.abc import Iterable
from typing import Protocol, TypeVar

from chatcompile.models.blocks import (
    ContentBlock,
    FileBlock,
    ImageBlock,
    MainTextBlock,
    Message,
    ThinkingBlock,
    ToolBlock,
)

logger = logging.getLogger(__name__)

_B = TypeVar("_B")


class BlockStore(Protocol):
    """Protocol for resolving a message's blocks.

    Every method returns blocks in original authoring order and returns an
    empty result, never an error, when the message has no block of that kind.
    """

    async def extract_text(self, message: Message) -> str:
        """Return the message's main text blocks flattened to one string."""
        ...

    async def extract_images(self, message: Message) -> list[ImageBlock]:
        ...

    async def extract_files(self, message: Message) -> list[FileBlock]:
        ...

    async def extract_reasoning(self, message: Message) -> list[ThinkingBlock]:
        ...

    async def extract_tools(self, message: Message) -> list[ToolBlock]:
        ...


class InMemoryBlockStore:
    """Block store backed by a dict of block id to block.

    Block ids referenced by a message but missing from the store are skipped.

    Args:
        blocks: Initial blocks to index.
        text_separator: Separator used when joining several main text blocks.
    """

    def __init__(
        self,
        blocks: Iterable[ContentBlock] = (),
        *,
        text_separator: str = "\n\n",
    ) -> None:
        self._blocks: dict[str, ContentBlock] = {}
        self._text_separator = text_separator
        for block in blocks:
            self.add(block)

    def add(self, block: ContentBlock) -> None:
        self._blocks[block.id] = block

    def get(self, block_id: str) -> ContentBlock | None:
        return self._blocks.get(block_id)

    def __len__(self) -> int:
        return len(self._blocks)

    def _find(self, message: Message, kind: type[_B]) -> list[_B]:
        found: list[_B] = []
        for block_id in message.blocks:
            block = self._blocks.get(block_id)
            if block is None:
                logger.debug("block %s of message %s not found", block_id, message.id)
                continue
            if isinstance(block, kind):
                found.append(block)
        return found

    async def extract_text(self, message: Message) -> str:
        texts = [block.content for block in self._find(message, MainTextBlock)]
        return self._text_separator.join(texts)

    async def extract_images(self, message: Message) -> list[ImageBlock]:
        return self._find(message, ImageBlock)

    async def extract_files(self, message: Message) -> list[FileBlock]:
        return self._find(message, FileBlock)

    async def extract_reasoning(self, message: Message) -> list[ThinkingBlock]:
        return self._find(message, ThinkingBlock)

    async def extract_tools(self, message: Message) -> list[ToolBlock]:
        return self._find(message, ToolBlock)
