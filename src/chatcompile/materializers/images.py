"""Image block materialization."""

import logging
import re
from collections.abc import Sequence

from chatcompile.files import read_file_base64
from chatcompile.materializers.pool import gather_ordered
from chatcompile.models.blocks import ImageBlock
from chatcompile.models.parts import ImagePart

logger = logging.getLogger(__name__)

# data:<mime>[;param...];base64,<payload>
_DATA_URL = re.compile(r"^data:([^;,]*)((?:;[^;,]*)*);base64,(.+)$", re.DOTALL)


def parse_data_url(url: str, default_media_type: str = "image/png") -> tuple[str, str] | None:
    """Split a base64 data URL into ``(payload, media_type)``.

    Returns None when the URL is not a base64 data URL. A missing or
    malformed mime segment yields ``default_media_type``.
    """
    match = _DATA_URL.match(url)
    if match is None:
        return None
    mime, _params, payload = match.groups()
    if "/" not in mime:
        mime = default_media_type
    return payload, mime


class ImageMaterializer:
    """Turns image blocks into image parts.

    Local files are read and base64 encoded, data URLs are unpacked and any
    other URL is passed through. Blocks that cannot be loaded are dropped
    with a warning.

    Args:
        default_media_type: Media type used when a data URL has none.
        max_concurrency: Number of image reads allowed at once.
    """

    def __init__(
        self,
        *,
        default_media_type: str = "image/png",
        max_concurrency: int = 4,
    ) -> None:
        self._default_media_type = default_media_type
        self._max_concurrency = max_concurrency

    async def materialize(self, block: ImageBlock) -> ImagePart | None:
        if block.file is not None:
            try:
                data = await read_file_base64(block.file.path)
            except OSError as exc:
                logger.warning("Failed to load image %s: %s", block.file.path, exc)
                return None
            return ImagePart(image=data, media_type=block.file.media_type)

        if block.url:
            if not block.url.startswith("data:"):
                return ImagePart(image=block.url)
            parsed = parse_data_url(block.url, self._default_media_type)
            if parsed is None:
                logger.warning("Unparseable data URL in image block %s", block.id)
                return None
            payload, media_type = parsed
            return ImagePart(image=payload, media_type=media_type)

        logger.warning("Image block %s has neither file nor url", block.id)
        return None

    async def materialize_all(self, blocks: Sequence[ImageBlock]) -> list[ImagePart]:
        """Materialize blocks concurrently, keeping input order and dropping failures."""
        parts = await gather_ordered(
            (self.materialize(block) for block in blocks), self._max_concurrency
        )
        return [part for part in parts if part is not None]
