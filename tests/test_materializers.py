"""Tests for image and file materialization."""

import asyncio
import base64
from pathlib import Path

import pytest

from chatcompile.materializers.files import FileMaterializer
from chatcompile.materializers.images import ImageMaterializer, parse_data_url
from chatcompile.materializers.pool import gather_ordered
from chatcompile.models.model import ModelSpec
from chatcompile.models.parts import FileHandle, FilePart, TextPart

from .conftest import PNG_BYTES, MockFileProcessor, file_block, image_file_block, image_url_block


class TestParseDataUrl:
    """Test parse_data_url helper."""

    def test_payload_and_mime(self) -> None:
        assert parse_data_url("data:image/jpeg;base64,QUJD") == ("QUJD", "image/jpeg")

    def test_extra_params_ignored(self) -> None:
        assert parse_data_url("data:image/webp;name=a.webp;base64,QUJD") == ("QUJD", "image/webp")

    def test_missing_mime_uses_default(self) -> None:
        assert parse_data_url("data:;base64,QUJD", "image/png") == ("QUJD", "image/png")

    def test_not_base64(self) -> None:
        assert parse_data_url("data:image/png,rawdata") is None


class TestGatherOrdered:
    @pytest.mark.asyncio
    async def test_results_follow_input_order(self) -> None:
        """Completion order does not affect result order."""

        async def delayed(value: int, delay: float) -> int:
            await asyncio.sleep(delay)
            return value

        results = await gather_ordered(
            [delayed(1, 0.03), delayed(2, 0.0), delayed(3, 0.01)], limit=2
        )

        assert results == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self) -> None:
        running = 0
        peak = 0

        async def work() -> None:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        await gather_ordered([work() for _ in range(6)], limit=2)

        assert peak == 2


class TestImageMaterializer:
    """Test ImageMaterializer."""

    @pytest.mark.asyncio
    async def test_local_file_encoded(self, png_file: Path) -> None:
        """Local image files are read and base64 encoded."""
        part = await ImageMaterializer().materialize(image_file_block("img-1", png_file))

        assert part is not None
        assert part.image == base64.b64encode(PNG_BYTES).decode("ascii")
        assert part.media_type == "image/png"

    @pytest.mark.asyncio
    async def test_missing_file_dropped(self, tmp_path: Path, caplog) -> None:
        """An unreadable file is skipped with a warning."""
        block = image_file_block("img-1", tmp_path / "missing.png")

        with caplog.at_level("WARNING"):
            part = await ImageMaterializer().materialize(block)

        assert part is None
        assert "Failed to load image" in caplog.text

    @pytest.mark.asyncio
    async def test_data_url_unpacked(self) -> None:
        part = await ImageMaterializer().materialize(
            image_url_block("img-1", "data:image/jpeg;base64,QUJD")
        )

        assert part.image == "QUJD"
        assert part.media_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_data_url_default_media_type(self) -> None:
        materializer = ImageMaterializer(default_media_type="image/webp")
        part = await materializer.materialize(image_url_block("img-1", "data:;base64,QUJD"))

        assert part.media_type == "image/webp"

    @pytest.mark.asyncio
    async def test_remote_url_passthrough(self) -> None:
        part = await ImageMaterializer().materialize(
            image_url_block("img-1", "https://example.com/cat.png")
        )

        assert part.image == "https://example.com/cat.png"
        assert part.media_type is None

    @pytest.mark.asyncio
    async def test_unparseable_data_url_dropped(self) -> None:
        part = await ImageMaterializer().materialize(image_url_block("img-1", "data:image/png,raw"))

        assert part is None

    @pytest.mark.asyncio
    async def test_materialize_all_keeps_order_and_drops_failures(
        self, png_file: Path, tmp_path: Path
    ) -> None:
        blocks = [
            image_url_block("img-1", "https://example.com/a.png"),
            image_file_block("img-2", tmp_path / "missing.png"),
            image_file_block("img-3", png_file),
            image_url_block("img-4", "https://example.com/b.png"),
        ]

        parts = await ImageMaterializer(max_concurrency=2).materialize_all(blocks)

        assert [p.image for p in parts] == [
            "https://example.com/a.png",
            base64.b64encode(PNG_BYTES).decode("ascii"),
            "https://example.com/b.png",
        ]


class TestFileMaterializer:
    """Test the native-first / text-fallback policy."""

    @pytest.fixture
    def model(self) -> ModelSpec:
        return ModelSpec(id="claude-sonnet-4", native_file_types=["application/pdf"])

    @pytest.mark.asyncio
    async def test_native_part_used(self, model: ModelSpec) -> None:
        native = FilePart(data="UERG", media_type="application/pdf", filename="doc.pdf")
        processor = MockFileProcessor(native={"file-1": native})

        result = await FileMaterializer(processor).materialize(file_block("file-1"), model)

        assert result == native
        assert processor.text_calls == []

    @pytest.mark.asyncio
    async def test_no_model_skips_native(self) -> None:
        """Without a model only text extraction is attempted."""
        processor = MockFileProcessor(text={"file-1": TextPart(text="doc.pdf\nhello")})

        result = await FileMaterializer(processor).materialize(file_block("file-1"))

        assert result == TextPart(text="doc.pdf\nhello")
        assert processor.native_calls == []

    @pytest.mark.asyncio
    async def test_native_decline_falls_back_to_text(self, model: ModelSpec) -> None:
        processor = MockFileProcessor(text={"file-1": TextPart(text="extracted")})

        result = await FileMaterializer(processor).materialize(file_block("file-1"), model)

        assert result == TextPart(text="extracted")
        assert processor.native_calls == ["file-1"]

    @pytest.mark.asyncio
    async def test_native_error_falls_back_to_text(self, model: ModelSpec) -> None:
        """A failing native attempt never propagates."""
        processor = MockFileProcessor(
            text={"file-1": TextPart(text="extracted")},
            native_error=OSError("disk gone"),
        )

        result = await FileMaterializer(processor).materialize(file_block("file-1"), model)

        assert result == TextPart(text="extracted")

    @pytest.mark.asyncio
    async def test_decode_error_falls_back_to_text(self, model: ModelSpec) -> None:
        processor = MockFileProcessor(
            text={"file-1": TextPart(text="extracted")},
            native_error=ValueError("bad payload"),
        )

        result = await FileMaterializer(processor).materialize(file_block("file-1"), model)

        assert result == TextPart(text="extracted")

    @pytest.mark.asyncio
    async def test_unexpected_error_propagates(self, model: ModelSpec) -> None:
        """Errors outside read and decode failures reach the caller."""
        processor = MockFileProcessor(native_error=RuntimeError("processor bug"))

        with pytest.raises(RuntimeError):
            await FileMaterializer(processor).materialize(file_block("file-1"), model)

        assert processor.text_calls == []

    @pytest.mark.asyncio
    async def test_nothing_usable_dropped(self, model: ModelSpec, caplog) -> None:
        processor = MockFileProcessor()

        with caplog.at_level("WARNING"):
            result = await FileMaterializer(processor).materialize(file_block("file-1"), model)

        assert result is None
        assert "could not be processed in any format" in caplog.text

    @pytest.mark.asyncio
    async def test_handle_returned_when_allowed(self, model: ModelSpec) -> None:
        handle = FileHandle(handle="fileid://abc")
        processor = MockFileProcessor(native={"file-1": handle})

        result = await FileMaterializer(processor).materialize(file_block("file-1"), model)

        assert result == handle

    @pytest.mark.asyncio
    async def test_handle_refused_falls_back_to_text(self, model: ModelSpec) -> None:
        processor = MockFileProcessor(
            native={"file-1": FileHandle(handle="fileid://abc")},
            text={"file-1": TextPart(text="extracted")},
        )

        result = await FileMaterializer(processor).materialize(
            file_block("file-1"), model, allow_handle=False
        )

        assert result == TextPart(text="extracted")

    @pytest.mark.asyncio
    async def test_materialize_all_keeps_positions(self, model: ModelSpec) -> None:
        """Dropped blocks stay as None placeholders."""
        processor = MockFileProcessor(
            text={"file-1": TextPart(text="one"), "file-3": TextPart(text="three")}
        )
        blocks = [file_block("file-1"), file_block("file-2"), file_block("file-3")]

        results = await FileMaterializer(processor).materialize_all(blocks, model)

        assert results == [TextPart(text="one"), None, TextPart(text="three")]
