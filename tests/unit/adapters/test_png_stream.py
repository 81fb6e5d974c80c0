"""Unit tests for PngStreamSplitter."""
from __future__ import annotations

import pytest

from backend.src.adapters.outbound.ffmpeg.png_stream import PngStreamError, PngStreamSplitter


class TestPngStreamSplitter:
    def test_splits_concatenated_images(self, png_factory):
        images = [png_factory(i) for i in range(3)]
        splitter = PngStreamSplitter()

        assert splitter.feed(b"".join(images)) == images
        assert splitter.pending == 0

    def test_reassembles_across_tiny_chunks(self, png_factory):
        images = [png_factory(i) for i in range(4)]
        stream = b"".join(images)
        splitter = PngStreamSplitter()

        out: list[bytes] = []
        for pos in range(0, len(stream), 7):
            out.extend(splitter.feed(stream[pos:pos + 7]))

        assert out == images

    def test_incomplete_image_is_held_back(self, png_factory):
        image = png_factory(1)
        splitter = PngStreamSplitter()

        assert splitter.feed(image[:-3]) == []
        assert splitter.pending == len(image) - 3
        assert splitter.feed(image[-3:]) == [image]

    def test_rejects_non_png_data(self):
        splitter = PngStreamSplitter()
        with pytest.raises(PngStreamError, match="PNG signature"):
            splitter.feed(b"GIF89a" + b"\x00" * 16)

    def test_complete_images_survive_trailing_garbage(self, png_factory):
        image = png_factory(1)
        splitter = PngStreamSplitter()

        assert splitter.feed(image + b"garbage!garbage!") == [image]
        with pytest.raises(PngStreamError):
            splitter.feed(b"")

    def test_png_stream_error_is_value_error(self):
        assert issubclass(PngStreamError, ValueError)
