"""Whole-conversation compilation.

Usage:
    ```python
    from chatcompile import ConversationCompiler, InMemoryBlockStore, ModelSpec

    store = InMemoryBlockStore(blocks)
    compiler = ConversationCompiler(store)
    request = await compiler.compile(messages, ModelSpec(id="gpt-4o"))
    ```
"""

import logging
from collections.abc import Callable, Sequence

from chatcompile.blocks import BlockStore
from chatcompile.capabilities import DefaultModelCapabilities, ModelCapabilities
from chatcompile.compiler.message import CompiledMessage, MessageCompiler
from chatcompile.config import CompilerConfig
from chatcompile.files import DefaultFileProcessor, FileProcessor
from chatcompile.materializers.files import FileMaterializer
from chatcompile.materializers.images import ImageMaterializer
from chatcompile.models.blocks import Message
from chatcompile.models.model import ModelSpec
from chatcompile.models.parts import RequestMessage
from chatcompile.tools import (
    AssistantToolMode,
    ToolIdCache,
    ToolPairing,
    generate_tool_call_id,
)

logger = logging.getLogger(__name__)


class ConversationCompiler:
    """Compiles an ordered conversation into request messages.

    Messages are compiled in order and multi-message results are flattened
    into the output. For image-enhancement models the output is reduced to
    the final assistant/user pair, with the assistant's images attached to
    the user turn.

    Example:
        ```python
        compiler = ConversationCompiler(
            store,
            config=CompilerConfig(assistant_tool_mode="replay"),
        )
        request = await compiler.compile(messages, model)
        ```
    """

    def __init__(
        self,
        block_store: BlockStore,
        config: CompilerConfig | None = None,
        capabilities: ModelCapabilities | None = None,
        file_processor: FileProcessor | None = None,
        *,
        tool_pairing: ToolPairing | str | None = None,
        assistant_tool_mode: AssistantToolMode | str | None = None,
        tool_id_factory: Callable[[], str] = generate_tool_call_id,
    ) -> None:
        """Initialize the compiler.

        Args:
            block_store: Source of message blocks.
            config: Compiler settings. Uses defaults (and environment) if not provided.
            capabilities: Model capability lookup. Uses DefaultModelCapabilities
                if not provided.
            file_processor: Native file / text extraction collaborator. Uses
                DefaultFileProcessor if not provided.
            tool_pairing: Overrides config.tool_pairing.
            assistant_tool_mode: Overrides config.assistant_tool_mode.
            tool_id_factory: Generator for synthesized tool call ids.
        """
        self._config = config or CompilerConfig()
        self._block_store = block_store
        self._capabilities = capabilities or DefaultModelCapabilities(self._config)
        self._tool_id_factory = tool_id_factory

        processor = file_processor or DefaultFileProcessor(
            max_chars=self._config.text_extraction_max_chars
        )
        self._images = ImageMaterializer(
            default_media_type=self._config.default_image_media_type,
            max_concurrency=self._config.max_concurrency,
        )
        self._files = FileMaterializer(processor, max_concurrency=self._config.max_concurrency)

        self._message_compiler = MessageCompiler(
            block_store,
            self._images,
            self._files,
            tool_pairing=ToolPairing(tool_pairing or self._config.tool_pairing),
            assistant_tool_mode=AssistantToolMode(
                assistant_tool_mode or self._config.assistant_tool_mode
            ),
            unknown_tool_name=self._config.unknown_tool_name,
        )

    @property
    def message_compiler(self) -> MessageCompiler:
        return self._message_compiler

    async def compile_message(
        self,
        message: Message,
        model: ModelSpec | None = None,
    ) -> CompiledMessage:
        """Compile one message on its own, with a private tool id cache."""
        vision = self._capabilities.is_vision_capable(model) if model else False
        return await self._message_compiler.compile(message, model, vision=vision)

    async def compile(
        self,
        messages: Sequence[Message],
        model: ModelSpec,
    ) -> list[RequestMessage]:
        """Compile a full conversation.

        Args:
            messages: Source messages in conversation order.
            model: Target model.

        Returns:
            The request message sequence.
        """
        ids = ToolIdCache(self._tool_id_factory)
        try:
            vision = self._capabilities.is_vision_capable(model)
            groups: list[list[RequestMessage]] = []
            for message in messages:
                compiled = await self._message_compiler.compile(
                    message, model, vision=vision, tool_ids=ids
                )
                groups.append(compiled if isinstance(compiled, list) else [compiled])

            output = [compiled for group in groups for compiled in group]
            logger.debug(
                "compile model=%s vision=%s messages=%d output=%d",
                model.id,
                vision,
                len(messages),
                len(output),
            )

            if (
                self._capabilities.is_image_enhancement_model(model)
                and len(messages) >= self._config.enhancement_min_messages
            ):
                return await self._apply_image_enhancement(messages, groups, output)
            return output
        finally:
            ids.clear()

    async def _apply_image_enhancement(
        self,
        messages: Sequence[Message],
        groups: list[list[RequestMessage]],
        output: list[RequestMessage],
    ) -> list[RequestMessage]:
        """Attach the last assistant turn's images to the final user turn.

        Returns ``[system?, assistant, user]`` where system is the first
        system message of the full output.
        """
        assistant_source, user_source = messages[-2:]
        assistant_group, user_group = groups[-2:]
        user_message = next((m for m in user_group if m.role == "user"), None)

        if assistant_source.role != "assistant" or user_message is None:
            logger.warning(
                "Image enhancement expects an assistant then a user message, got roles=%s",
                [assistant_source.role, user_source.role],
            )
            return output

        # Replayed tool turns precede the reply; keep only the reply so no
        # tool call is left without its result.
        assistant_message = assistant_group[-1]
        if assistant_message.role != "assistant":
            assistant_message = RequestMessage(role="assistant", content=[])

        image_blocks = await self._block_store.extract_images(assistant_source)
        image_parts = await self._images.materialize_all(image_blocks)
        user_message = user_message.model_copy(
            update={"content": [*user_message.parts(), *image_parts]}
        )
        logger.debug("image enhancement moved %d image(s) to user turn", len(image_parts))

        result = [assistant_message, user_message]
        system_message = next((m for m in output if m.role == "system"), None)
        if system_message is not None:
            result.insert(0, system_message)
        return result


async def compile_conversation(
    messages: Sequence[Message],
    model: ModelSpec,
    block_store: BlockStore,
    config: CompilerConfig | None = None,
    **kwargs,
) -> list[RequestMessage]:
    """Compile a conversation with a throwaway ``ConversationCompiler``."""
    compiler = ConversationCompiler(block_store, config=config, **kwargs)
    return await compiler.compile(messages, model)
