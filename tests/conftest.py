"""Shared fixtures: a controllable fake classifier and sample images."""

from __future__ import annotations

import asyncio
import io

import numpy as np
import pytest
from PIL import Image

from ecoclear.categories import WasteCategory
from ecoclear.errors import ClassificationError, ModelLoadError
from ecoclear.ml.waste_classifier import ClassificationResult, ImageUpload

PLASTIC_RESULT = ClassificationResult(
    category=WasteCategory.PLASTIC,
    confidence=0.87,
    label="water bottle",
    disposal_instructions="Rinse and recycle.",
    reasoning="Matched 'water bottle'.",
)


class FakeClassifier:
    """WasteClassifier double.

    ``load_error`` / ``classify_error`` make the calls fail. Setting ``gate``
    (or ``load_gate``) holds ``classify`` (or ``load_model``) until the event
    is set, so tests can observe the in-progress states.
    """

    def __init__(
        self,
        result: ClassificationResult = PLASTIC_RESULT,
        load_error: Exception | None = None,
        classify_error: Exception | None = None,
    ) -> None:
        self.result = result
        self.load_error = load_error
        self.classify_error = classify_error
        self.gate: asyncio.Event | None = None
        self.load_gate: asyncio.Event | None = None
        self.load_calls = 0
        self.classified: list[ImageUpload] = []
        self.is_loaded = False

    async def load_model(self) -> None:
        self.load_calls += 1
        if self.load_gate is not None:
            await self.load_gate.wait()
        if self.load_error is not None:
            raise self.load_error
        self.is_loaded = True

    async def classify(self, image: ImageUpload) -> ClassificationResult:
        self.classified.append(image)
        if self.gate is not None:
            await self.gate.wait()
        if self.classify_error is not None:
            raise self.classify_error
        return self.result


def make_upload(name: str = "item.jpg", data: bytes = b"jpeg-bytes") -> ImageUpload:
    return ImageUpload(filename=name, content_type="image/jpeg", data=data)


def png_bytes(width: int = 64, height: int = 48, color: tuple[int, int, int] = (200, 30, 30)) -> bytes:
    image = Image.fromarray(np.full((height, width, 3), color, dtype=np.uint8))
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def fake_classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture()
def failing_loader() -> FakeClassifier:
    return FakeClassifier(load_error=ModelLoadError("network down"))


@pytest.fixture()
def failing_classifier() -> FakeClassifier:
    return FakeClassifier(classify_error=ClassificationError("boom"))
