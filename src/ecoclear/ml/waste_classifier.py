"""Waste classifier: the two-call contract the session layer depends on.

``load_model()`` prepares the network once; ``classify(image)`` turns one
uploaded image into a ClassificationResult. Any implementation (on-device
ONNX, a remote inference call, a test fake) must satisfy the same contract.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from ecoclear.categories import WasteCategory, categorize_label, disposal_instructions
from ecoclear.errors import ClassificationError, ImageDecodeError, ModelLoadError
from ecoclear.ml.image_classifier import LabelScore, OnnxImageClassifier

if TYPE_CHECKING:
    from ecoclear.ml.inference import InferencePool
    from ecoclear.ml.model_manager import ModelManager
    from ecoclear.ml.preprocessing import ImagePreprocessor

logger = logging.getLogger(__name__)

TOP_K = 3


@dataclass(frozen=True)
class ImageUpload:
    """An in-memory image file as received from the client."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of one classification request."""

    category: WasteCategory | str
    confidence: float
    label: str
    disposal_instructions: str
    reasoning: str


class WasteClassifier(Protocol):
    async def load_model(self) -> None:
        """Load the underlying model. Raises on failure."""
        ...

    async def classify(self, image: ImageUpload) -> ClassificationResult:
        """Classify one image. Raises on failure."""
        ...


def _display_label(label: str) -> str:
    return label.split(",")[0].strip()


def build_result(predictions: list[LabelScore], model_description: str) -> ClassificationResult:
    """Turn ranked model predictions into a disposal recommendation."""
    if not predictions:
        raise ClassificationError("Model returned no predictions")

    top = predictions[0]
    category, keyword = categorize_label(top.label)
    label = _display_label(top.label)
    percent = round(top.confidence * 100)

    if keyword is None:
        reasoning = (
            f"{model_description} ranked '{label}' first ({percent}%). "
            "It does not match any recyclable material group, so it is treated as general waste."
        )
    else:
        reasoning = (
            f"{model_description} ranked '{label}' first ({percent}%), "
            f"which matches the {category} group via '{keyword}'."
        )
    runners_up = [f"{_display_label(p.label)} ({round(p.confidence * 100)}%)" for p in predictions[1:]]
    if runners_up:
        reasoning += " Runner-up labels: " + ", ".join(runners_up) + "."

    return ClassificationResult(
        category=category,
        confidence=min(max(top.confidence, 0.0), 1.0),
        label=label,
        disposal_instructions=disposal_instructions(category),
        reasoning=reasoning,
    )


class OnnxWasteClassifier:
    """WasteClassifier running an ONNX ImageNet model in the inference pool."""

    def __init__(
        self,
        model_name: str,
        model_manager: ModelManager,
        preprocessor: ImagePreprocessor,
        pool: InferencePool,
    ) -> None:
        self._model_name = model_name
        self._model_manager = model_manager
        self._preprocessor = preprocessor
        self._pool = pool
        self._loaded = False
        self._load_lock = asyncio.Lock()

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    async def load_model(self) -> None:
        """Fetch and open the model once. Later calls return as soon as it is loaded.

        Loading waits for a pool slot without the queue timeout, so a busy
        pool delays a load but never fails it.
        """
        async with self._load_lock:
            if self._loaded:
                return
            try:
                await self._pool.run_untimed(self._prime)
            except Exception as exc:
                logger.warning("Loading %s failed: %s", self._model_name, exc)
                raise ModelLoadError(f"Could not load model '{self._model_name}'") from exc
            self._loaded = True
        logger.info("Model %s ready", self._model_name)

    async def classify(self, image: ImageUpload) -> ClassificationResult:
        if not self._loaded:
            raise ClassificationError("Model is not loaded")
        try:
            predictions = await self._pool.run(self._predict, image.data)
        except ImageDecodeError:
            raise
        except TimeoutError as exc:
            raise ClassificationError("Inference queue is full") from exc
        except Exception as exc:
            raise ClassificationError(f"Inference failed for '{image.filename}'") from exc

        description = self._model_manager.get_spec(self._model_name).description
        return build_result(predictions, description)

    def _prime(self) -> None:
        self._model_manager.get_session(self._model_name)
        self._model_manager.get_labels(self._model_name)

    def _predict(self, image_bytes: bytes) -> list[LabelScore]:
        spec = self._model_manager.get_spec(self._model_name)
        image = self._preprocessor.decode_image(image_bytes)
        tensor = self._preprocessor.preprocess_for_classification(image, spec.input_size)
        classifier = OnnxImageClassifier(
            self._model_name,
            self._model_manager.get_session(self._model_name),
            self._model_manager.get_labels(self._model_name),
        )
        return classifier.classify(tensor, top_k=TOP_K)
