"""File conversion collaborators.

Provides the protocol for turning a file block into a provider-native part
or into extracted text, and a default implementation reading local files.
"""

import base64
import logging
from pathlib import PurePath
from typing import Protocol

import aiofiles

from chatcompile.models.blocks import FileBlock
from chatcompile.models.model import ModelSpec
from chatcompile.models.parts import FileHandle, FilePart, TextPart

logger = logging.getLogger(__name__)

TEXT_MEDIA_TYPES = {
    "application/json",
    "application/xml",
    "application/x-yaml",
    "application/yaml",
    "application/javascript",
    "application/x-sh",
    "application/sql",
    "application/toml",
}

TEXT_EXTENSIONS = {
    ".txt", ".md", ".markdown", ".csv", ".tsv", ".json", ".jsonl", ".xml",
    ".yaml", ".yml", ".toml", ".ini", ".cfg", ".log", ".html", ".htm", ".css",
    ".js", ".ts", ".tsx", ".jsx", ".py", ".java", ".kt", ".go", ".rs", ".c",
    ".h", ".cpp", ".hpp", ".cs", ".rb", ".php", ".swift", ".sh", ".sql",
}


async def read_file_bytes(path: str) -> bytes:
    """Read a whole file without blocking the event loop."""
    async with aiofiles.open(path, "rb") as f:
        return await f.read()


async def read_file_base64(path: str) -> str:
    return base64.b64encode(await read_file_bytes(path)).decode("ascii")


def is_text_file(media_type: str, filename: str) -> bool:
    """Whether a file can be decoded as text for extraction."""
    if media_type.startswith("text/") or media_type in TEXT_MEDIA_TYPES:
        return True
    return PurePath(filename).suffix.lower() in TEXT_EXTENSIONS


class FileProcessor(Protocol):
    """Protocol for the two file conversion tiers."""

    async def try_native_file_part(
        self, block: FileBlock, model: ModelSpec
    ) -> FilePart | FileHandle | None:
        """Convert a file block into a provider-native payload.

        Args:
            block: The file block.
            model: Target model.

        Returns:
            A FilePart with inline data, a FileHandle for an uploaded file,
            or None when the model cannot ingest this file natively.
        """
        ...

    async def try_text_extraction(self, block: FileBlock) -> TextPart | None:
        """Extract a file's text. Returns None when nothing usable was found."""
        ...


class DefaultFileProcessor:
    """File processor for files on local storage.

    Native ingestion is offered when the provider already holds an uploaded
    copy (``remote_id`` with ``model.file_handles``) or when the file's media
    type is listed in ``model.native_file_types``. Text extraction decodes
    text-like files as UTF-8.

    Args:
        max_chars: Optional limit on extracted text length.
    """

    def __init__(self, *, max_chars: int | None = None) -> None:
        self._max_chars = max_chars

    async def try_native_file_part(
        self, block: FileBlock, model: ModelSpec
    ) -> FilePart | FileHandle | None:
        file = block.file
        if model.file_handles and file.remote_id:
            return FileHandle.from_remote_id(file.remote_id)

        if file.media_type not in model.native_file_types:
            return None

        data = await read_file_base64(file.path)
        return FilePart(data=data, media_type=file.media_type, filename=file.origin_name)

    async def try_text_extraction(self, block: FileBlock) -> TextPart | None:
        file = block.file
        if not is_text_file(file.media_type, file.origin_name):
            logger.debug("no text extractor for %s (%s)", file.origin_name, file.media_type)
            return None

        raw = await read_file_bytes(file.path)
        text = raw.decode("utf-8", errors="replace").strip()
        if not text:
            return None
        if self._max_chars is not None and len(text) > self._max_chars:
            text = text[: self._max_chars]

        return TextPart(text=f"{file.origin_name}\n{text}")
