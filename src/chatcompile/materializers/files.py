"""File block materialization.

Each file block gets a native attempt first (only when a target model is
known), then falls back to text extraction. Read and decode failures at
either tier are logged and never propagate to the compiler.
"""

import binascii
import logging
from collections.abc import Sequence

from pydantic import ValidationError

from chatcompile.files import FileProcessor
from chatcompile.materializers.pool import gather_ordered
from chatcompile.models.blocks import FileBlock
from chatcompile.models.model import ModelSpec
from chatcompile.models.parts import FileHandle, FilePart, TextPart

logger = logging.getLogger(__name__)

MaterializedFile = FilePart | TextPart | FileHandle

FILE_ERRORS = (OSError, ValueError, binascii.Error, ValidationError)


class FileMaterializer:
    """Resolves file blocks through a ``FileProcessor``.

    Args:
        processor: Native conversion and text extraction collaborator.
        max_concurrency: Number of file conversions allowed at once.
    """

    def __init__(self, processor: FileProcessor, *, max_concurrency: int = 4) -> None:
        self._processor = processor
        self._max_concurrency = max_concurrency

    async def materialize(
        self,
        block: FileBlock,
        model: ModelSpec | None = None,
        *,
        allow_handle: bool = True,
    ) -> MaterializedFile | None:
        """Materialize one file block.

        Args:
            block: The file block.
            model: Target model. Without one the native attempt is skipped.
            allow_handle: When False a FileHandle from the native attempt is
                treated as a decline and text extraction is tried instead.

        Returns:
            A native FilePart or FileHandle, a TextPart from extraction, or
            None when the block was dropped.
        """
        name = block.file.origin_name

        if model is not None:
            native = await self._try_native(block, model)
            if isinstance(native, FileHandle) and not allow_handle:
                logger.debug("File %s handle not usable here, extracting text", name)
            elif native is not None:
                logger.debug("File %s processed as native file format", name)
                return native

        try:
            text_part = await self._processor.try_text_extraction(block)
        except FILE_ERRORS:
            logger.warning("Text extraction failed for file %s", name, exc_info=True)
            text_part = None

        if text_part is None:
            logger.warning("File %s could not be processed in any format", name)
            return None

        logger.debug("File %s processed as text content", name)
        return text_part

    async def _try_native(
        self, block: FileBlock, model: ModelSpec
    ) -> FilePart | FileHandle | None:
        try:
            return await self._processor.try_native_file_part(block, model)
        except FILE_ERRORS:
            logger.warning(
                "Native conversion failed for file %s, falling back to text",
                block.file.origin_name,
                exc_info=True,
            )
            return None

    async def materialize_all(
        self,
        blocks: Sequence[FileBlock],
        model: ModelSpec | None = None,
        *,
        allow_handle: bool = True,
    ) -> list[MaterializedFile | None]:
        """Materialize blocks concurrently.

        The result has one entry per input block, in input order; dropped
        blocks are None so callers can still act on block position.
        """
        return await gather_ordered(
            (self.materialize(block, model, allow_handle=allow_handle) for block in blocks),
            self._max_concurrency,
        )
