"""ImageNet-style image classification on an ONNX session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray
    from onnxruntime import InferenceSession


@dataclass(frozen=True)
class LabelScore:
    """A single classification prediction."""

    label: str
    confidence: float


class ImageClassifier(Protocol):
    """Protocol for image classification models."""

    @property
    def model_name(self) -> str:
        """Return the model identifier string."""
        ...

    def classify(self, tensor: NDArray[np.float32], top_k: int = 5) -> list[LabelScore]:
        """Classify a preprocessed image and return ranked labels.

        Args:
            tensor: (1, 3, H, W) float32 input.
            top_k: Number of predictions to return.

        Returns:
            Predictions sorted by confidence (descending).
        """
        ...


def softmax(logits: NDArray[np.float32]) -> NDArray[np.float32]:
    shifted = logits - np.max(logits)
    exp = np.exp(shifted)
    return exp / np.sum(exp)


class OnnxImageClassifier:
    """Runs a single-output classification network and ranks its labels."""

    def __init__(self, model_name: str, session: InferenceSession, labels: list[str]) -> None:
        self._model_name = model_name
        self._session = session
        self._labels = labels
        self._input_name = session.get_inputs()[0].name

    @property
    def model_name(self) -> str:
        return self._model_name

    def classify(self, tensor: NDArray[np.float32], top_k: int = 5) -> list[LabelScore]:
        outputs = self._session.run(None, {self._input_name: tensor})
        scores = np.asarray(outputs[0], dtype=np.float32).reshape(-1)
        if scores.shape[0] != len(self._labels):
            raise ValueError(f"Model produced {scores.shape[0]} scores for {len(self._labels)} labels")

        # Some exports already end in a softmax layer.
        total = float(np.sum(scores))
        if np.all(scores >= 0) and abs(total - 1.0) < 1e-3:
            probs = scores
        else:
            probs = softmax(scores)

        top = np.argsort(probs)[::-1][:top_k]
        return [LabelScore(label=self._labels[i], confidence=float(probs[i])) for i in top]
