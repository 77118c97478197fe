"""Tests for image decoding and tensor preparation."""

from __future__ import annotations

import io

import numpy as np
import pytest
from conftest import png_bytes
from PIL import Image

from ecoclear.errors import ImageDecodeError
from ecoclear.ml.preprocessing import IMAGENET_MEAN, IMAGENET_STD, PillowPreprocessor


@pytest.fixture()
def preprocessor() -> PillowPreprocessor:
    return PillowPreprocessor(max_image_pixels=1_000_000)


class TestDecodeImage:
    def test_decodes_png_to_rgb_array(self, preprocessor: PillowPreprocessor) -> None:
        image = preprocessor.decode_image(png_bytes(width=64, height=48))
        assert image.shape == (48, 64, 3)
        assert image.dtype == np.uint8
        assert tuple(image[0, 0]) == (200, 30, 30)

    def test_grayscale_is_converted_to_rgb(self, preprocessor: PillowPreprocessor) -> None:
        buf = io.BytesIO()
        Image.new("L", (10, 10), color=128).save(buf, format="PNG")
        image = preprocessor.decode_image(buf.getvalue())
        assert image.shape == (10, 10, 3)

    def test_exif_orientation_is_applied(self, preprocessor: PillowPreprocessor) -> None:
        img = Image.new("RGB", (40, 20), color=(0, 0, 255))
        exif = img.getexif()
        exif[0x0112] = 6  # rotate 90 degrees clockwise on display
        buf = io.BytesIO()
        img.save(buf, format="JPEG", exif=exif)

        image = preprocessor.decode_image(buf.getvalue())

        assert image.shape[:2] == (40, 20)

    def test_empty_bytes_rejected(self, preprocessor: PillowPreprocessor) -> None:
        with pytest.raises(ImageDecodeError, match="Empty"):
            preprocessor.decode_image(b"")

    def test_garbage_rejected(self, preprocessor: PillowPreprocessor) -> None:
        with pytest.raises(ImageDecodeError):
            preprocessor.decode_image(b"definitely not an image")

    def test_pixel_limit_enforced(self) -> None:
        small = PillowPreprocessor(max_image_pixels=100)
        with pytest.raises(ImageDecodeError, match="limit"):
            small.decode_image(png_bytes(width=20, height=20))

    def test_decode_error_is_value_error(self, preprocessor: PillowPreprocessor) -> None:
        with pytest.raises(ValueError):
            preprocessor.decode_image(b"nope")


class TestPreprocessForClassification:
    def test_output_shape_and_dtype(self, preprocessor: PillowPreprocessor) -> None:
        image = np.zeros((300, 500, 3), dtype=np.uint8)
        tensor = preprocessor.preprocess_for_classification(image, 224)
        assert tensor.shape == (1, 3, 224, 224)
        assert tensor.dtype == np.float32

    def test_small_portrait_image_is_upscaled(self, preprocessor: PillowPreprocessor) -> None:
        image = np.zeros((50, 30, 3), dtype=np.uint8)
        tensor = preprocessor.preprocess_for_classification(image, 224)
        assert tensor.shape == (1, 3, 224, 224)

    def test_normalization(self, preprocessor: PillowPreprocessor) -> None:
        image = np.full((256, 256, 3), 255, dtype=np.uint8)
        tensor = preprocessor.preprocess_for_classification(image, 224)
        expected = (1.0 - IMAGENET_MEAN) / IMAGENET_STD
        for channel in range(3):
            assert np.allclose(tensor[0, channel], expected[channel], atol=1e-5)
