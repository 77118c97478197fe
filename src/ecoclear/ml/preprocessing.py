"""Image preprocessing pipeline.

Decodes uploaded bytes (any format Pillow can read), applies EXIF
orientation, converts to RGB, enforces the pixel limit, and turns the
result into a normalized NCHW tensor for ImageNet-style classifiers.
"""

from __future__ import annotations

import io
from typing import TYPE_CHECKING, Protocol

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from ecoclear.errors import ImageDecodeError

if TYPE_CHECKING:
    from numpy.typing import NDArray

IMAGENET_MEAN = np.array([0.485, 0.456, 0.406], dtype=np.float32)
IMAGENET_STD = np.array([0.229, 0.224, 0.225], dtype=np.float32)


class ImagePreprocessor(Protocol):
    """Protocol for image preprocessing."""

    def decode_image(self, image_bytes: bytes) -> NDArray[np.uint8]:
        """Decode raw image bytes into an RGB uint8 numpy array.

        Args:
            image_bytes: Raw file bytes (any supported format).

        Returns:
            HxWx3 RGB uint8 numpy array.

        Raises:
            ImageDecodeError: If the image cannot be decoded or exceeds size limits.
        """
        ...

    def preprocess_for_classification(self, image: NDArray[np.uint8], size: int) -> NDArray[np.float32]:
        """Prepare an image for the classification model.

        Args:
            image: HxWx3 RGB uint8 array.
            size: Square input edge expected by the model.

        Returns:
            Float32 tensor of shape (1, 3, size, size).
        """
        ...


class PillowPreprocessor:
    """ImagePreprocessor backed by Pillow and numpy."""

    def __init__(self, max_image_pixels: int) -> None:
        self._max_image_pixels = max_image_pixels

    def decode_image(self, image_bytes: bytes) -> NDArray[np.uint8]:
        if not image_bytes:
            raise ImageDecodeError("Empty image upload")

        try:
            with Image.open(io.BytesIO(image_bytes)) as img:
                width, height = img.size
                if width * height > self._max_image_pixels:
                    raise ImageDecodeError(
                        f"Image is {width}x{height}, above the limit of {self._max_image_pixels} pixels"
                    )
                oriented = ImageOps.exif_transpose(img)
                rgb = oriented.convert("RGB")
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
            raise ImageDecodeError(f"Could not decode image: {exc}") from exc

        return np.asarray(rgb, dtype=np.uint8)

    def preprocess_for_classification(self, image: NDArray[np.uint8], size: int) -> NDArray[np.float32]:
        pil = Image.fromarray(image)

        # Resize the shorter side to 256/224 of the crop, then center-crop.
        scaled = round(size * 256 / 224)
        width, height = pil.size
        if width <= height:
            new_w, new_h = scaled, max(scaled, round(height * scaled / width))
        else:
            new_w, new_h = max(scaled, round(width * scaled / height)), scaled
        pil = pil.resize((new_w, new_h), Image.Resampling.BILINEAR)

        left = (new_w - size) // 2
        top = (new_h - size) // 2
        pil = pil.crop((left, top, left + size, top + size))

        array = np.asarray(pil, dtype=np.float32) / 255.0
        array = (array - IMAGENET_MEAN) / IMAGENET_STD
        return np.ascontiguousarray(array.transpose(2, 0, 1)[np.newaxis, ...], dtype=np.float32)
