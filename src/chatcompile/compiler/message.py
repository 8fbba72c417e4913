"""Per-message compilation.

Dispatches on the source role:

- system / user: text, images (vision models only), files. A file resolved
  to a provider-side handle splits the output into a system message carrying
  the handle and the user message built so far.
- assistant: text, reasoning, tool parts, files. In replay mode tool activity
  is emitted as separate assistant/tool turns ahead of the message.
- tool: tool results only.
"""

import asyncio
import logging

from chatcompile.blocks import BlockStore
from chatcompile.materializers.files import FileMaterializer
from chatcompile.materializers.images import ImageMaterializer
from chatcompile.models.blocks import FileBlock, ImageBlock, Message, ThinkingBlock
from chatcompile.models.model import ModelSpec
from chatcompile.models.parts import (
    FileHandle,
    ImagePart,
    ReasoningPart,
    RequestMessage,
    RequestPart,
    TextPart,
)
from chatcompile.tools import (
    AssistantToolMode,
    ToolIdCache,
    ToolPairing,
    build_tool_history,
    pair_tool_block,
    tool_result_parts,
)

logger = logging.getLogger(__name__)

CompiledMessage = RequestMessage | list[RequestMessage]


class MessageCompiler:
    """Compiles one conversation message into request message(s).

    Args:
        block_store: Source of the message's blocks.
        images: Image block materializer.
        files: File block materializer.
        tool_pairing: Inline pairing strategy for assistant tool blocks.
        assistant_tool_mode: Inline parts or replayed history for assistant tools.
        unknown_tool_name: Name used for tool blocks without one.
    """

    def __init__(
        self,
        block_store: BlockStore,
        images: ImageMaterializer,
        files: FileMaterializer,
        *,
        tool_pairing: ToolPairing = ToolPairing.PREFER_RESULT,
        assistant_tool_mode: AssistantToolMode = AssistantToolMode.INLINE,
        unknown_tool_name: str = "unknown",
    ) -> None:
        self._block_store = block_store
        self._images = images
        self._files = files
        self._tool_pairing = tool_pairing
        self._assistant_tool_mode = assistant_tool_mode
        self._unknown_tool_name = unknown_tool_name

    async def compile(
        self,
        message: Message,
        model: ModelSpec | None = None,
        *,
        vision: bool = False,
        tool_ids: ToolIdCache | None = None,
    ) -> CompiledMessage:
        """Compile a single message.

        Args:
            message: The source message.
            model: Target model; without it files skip the native attempt.
            vision: Whether images are sent to the model.
            tool_ids: Id cache of the enclosing compilation. A private cache is
                used and released when omitted.

        Returns:
            One request message, or a list for the handle split and replayed
            tool history.
        """
        own_cache = tool_ids is None
        ids = ToolIdCache() if tool_ids is None else tool_ids
        try:
            return await self._dispatch(message, model, vision, ids)
        finally:
            if own_cache:
                ids.clear()

    async def _dispatch(
        self,
        message: Message,
        model: ModelSpec | None,
        vision: bool,
        ids: ToolIdCache,
    ) -> CompiledMessage:
        if message.role in ("user", "system"):
            return await self._compile_user(message, model, vision)
        if message.role == "assistant":
            return await self._compile_assistant(message, model, ids)
        if message.role == "tool":
            return await self._compile_tool(message, ids)
        raise ValueError(f"Unknown message role: {message.role}")

    async def _compile_user(
        self, message: Message, model: ModelSpec | None, vision: bool
    ) -> CompiledMessage:
        content, image_blocks, file_blocks = await asyncio.gather(
            self._block_store.extract_text(message),
            self._block_store.extract_images(message),
            self._block_store.extract_files(message),
        )

        parts: list[RequestPart] = []
        if content:
            parts.append(TextPart(text=content))
        parts.extend(await self._image_parts(image_blocks, vision))

        # Files resolve one at a time; a handle ends the turn, so later
        # files are never sent to the processor.
        for block in file_blocks:
            result = await self._files.materialize(block, model)
            if result is None:
                continue
            if isinstance(result, FileHandle):
                logger.debug(
                    "message=%s file=%s sent by handle, splitting turn",
                    message.id,
                    block.file.origin_name,
                )
                return [
                    RequestMessage(role="system", content=result.handle),
                    RequestMessage(role="user", content=parts if parts else ""),
                ]
            parts.append(result)

        logger.debug("compiled message=%s role=%s parts=%d", message.id, message.role, len(parts))
        return RequestMessage(role="user", content=parts)

    async def _image_parts(self, blocks: list[ImageBlock], vision: bool) -> list[ImagePart]:
        if not vision:
            if blocks:
                logger.debug("dropping %d image(s) for non-vision model", len(blocks))
            return []
        return await self._images.materialize_all(blocks)

    async def _compile_assistant(
        self, message: Message, model: ModelSpec | None, ids: ToolIdCache
    ) -> CompiledMessage:
        content, thinking_blocks, file_blocks, tool_blocks = await asyncio.gather(
            self._block_store.extract_text(message),
            self._block_store.extract_reasoning(message),
            self._block_store.extract_files(message),
            self._block_store.extract_tools(message),
        )

        parts: list[RequestPart] = []
        if content:
            parts.append(TextPart(text=content))
        parts.extend(self._reasoning_parts(thinking_blocks))

        if self._assistant_tool_mode is AssistantToolMode.INLINE:
            for block in tool_blocks:
                parts.extend(
                    pair_tool_block(
                        block,
                        ids,
                        pairing=self._tool_pairing,
                        unknown_tool_name=self._unknown_tool_name,
                    )
                )

        parts.extend(await self._assistant_file_parts(file_blocks, model))

        assistant_message = RequestMessage(role="assistant", content=parts)
        logger.debug("compiled message=%s role=assistant parts=%d", message.id, len(parts))

        if self._assistant_tool_mode is AssistantToolMode.INLINE:
            return assistant_message

        history = build_tool_history(tool_blocks, unknown_tool_name=self._unknown_tool_name)
        if not history:
            return assistant_message
        if assistant_message.has_content():
            return [*history, assistant_message]
        return history

    @staticmethod
    def _reasoning_parts(blocks: list[ThinkingBlock]) -> list[ReasoningPart]:
        return [ReasoningPart(text=block.content) for block in blocks]

    async def _assistant_file_parts(
        self, blocks: list[FileBlock], model: ModelSpec | None
    ) -> list[RequestPart]:
        # Handles are carried out-of-band only for user turns
        results = await self._files.materialize_all(blocks, model, allow_handle=False)
        return [
            result
            for result in results
            if result is not None and not isinstance(result, FileHandle)
        ]

    async def _compile_tool(self, message: Message, ids: ToolIdCache) -> RequestMessage:
        tool_blocks = await self._block_store.extract_tools(message)
        parts = tool_result_parts(tool_blocks, ids, unknown_tool_name=self._unknown_tool_name)
        if tool_blocks and not parts:
            logger.warning("Tool message %s has no resolvable results", message.id)
        return RequestMessage(role="tool", content=parts)
