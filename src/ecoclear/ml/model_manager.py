"""Model manager for the classification networks.

Fetches ONNX weights and their class label files from HuggingFace, keeps
one InferenceSession per model, and drops sessions nobody has used for
``model_ttl`` seconds. Labels stay cached after eviction; they are small.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from huggingface_hub import hf_hub_download
from onnxruntime import GraphOptimizationLevel, InferenceSession, SessionOptions
from onnxruntime.capi.onnxruntime_pybind11_state import ExecutionMode

if TYPE_CHECKING:
    from ecoclear.config import Settings

logger = logging.getLogger(__name__)

Provider = str | tuple[str, dict[str, object]]


class ModelManager(Protocol):
    """What the classifier needs from model storage. Tests substitute a mock."""

    def get_spec(self, model_name: str) -> ModelSpec: ...

    def get_session(self, model_name: str) -> InferenceSession: ...

    def get_labels(self, model_name: str) -> list[str]: ...

    def get_loaded_models(self) -> list[str]: ...

    def unload_idle_models(self) -> None: ...

    def shutdown(self) -> None: ...


@dataclass(frozen=True)
class ModelSpec:
    """Where a classification model lives and how to feed it."""

    name: str
    repo_id: str
    filename: str
    labels_filename: str
    input_size: int
    license: str
    description: str


MODELS_REPO = "ecoclear/ecoclear-models"

MODEL_REGISTRY: dict[str, ModelSpec] = {
    spec.name: spec
    for spec in (
        ModelSpec(
            name="mobilenetv2_imagenet",
            repo_id=MODELS_REPO,
            filename="mobilenetv2-12.onnx",
            labels_filename="imagenet_classes.txt",
            input_size=224,
            license="Apache-2.0",
            description="MobileNet v2",
        ),
        ModelSpec(
            name="efficientnet_lite4_imagenet",
            repo_id=MODELS_REPO,
            filename="efficientnet-lite4-11.onnx",
            labels_filename="imagenet_classes.txt",
            input_size=224,
            license="Apache-2.0",
            description="EfficientNet-Lite4",
        ),
    )
}


def build_providers(settings: Settings) -> list[Provider]:
    """Execution providers for the configured device, always ending with CPU."""
    match settings.device:
        case "cuda":
            cuda_opts: dict[str, object] = {
                "device_id": 0,
                "gpu_mem_limit": settings.gpu_mem_limit,
                "arena_extend_strategy": "kSameAsRequested",
            }
            return [("CUDAExecutionProvider", cuda_opts), "CPUExecutionProvider"]
        case "openvino":
            return [("OpenVINOExecutionProvider", {"device_type": "CPU"}), "CPUExecutionProvider"]
        case _:
            return ["CPUExecutionProvider"]


def build_session_options(settings: Settings) -> SessionOptions:
    opts = SessionOptions()
    opts.intra_op_num_threads = settings.intra_op_threads
    opts.inter_op_num_threads = settings.inter_op_threads
    opts.execution_mode = ExecutionMode.ORT_SEQUENTIAL
    opts.enable_mem_pattern = True
    opts.enable_mem_reuse = True
    if settings.device == "openvino":
        # OpenVINO optimizes the graph itself.
        opts.graph_optimization_level = GraphOptimizationLevel.ORT_DISABLE_ALL
    return opts


@dataclass
class _Entry:
    session: InferenceSession
    last_used: float


class OnnxModelManager:
    """Thread-safe cache of ONNX sessions and label lists, keyed by model name."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._models_dir = Path(settings.models_dir)
        self._models_dir.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}
        self._files: dict[tuple[str, str], Path] = {}
        self._labels: dict[str, list[str]] = {}

        self._providers = build_providers(settings)
        self._session_options = build_session_options(settings)

    def get_spec(self, model_name: str) -> ModelSpec:
        spec = MODEL_REGISTRY.get(model_name)
        if spec is None:
            raise KeyError(f"Unknown model: {model_name}")
        return spec

    def ensure_downloaded(self, model_name: str) -> Path:
        """Return the local path of a model's weights, downloading them once."""
        spec = self.get_spec(model_name)
        return self._fetch(spec.repo_id, spec.filename)

    def get_session(self, model_name: str) -> InferenceSession:
        """Return the model's session, creating it on first use or after eviction."""
        with self._lock:
            entry = self._entries.get(model_name)
            if entry is not None:
                entry.last_used = time.monotonic()
                return entry.session

        # Session creation is slow; build outside the lock and let the first writer win.
        session = InferenceSession(
            str(self.ensure_downloaded(model_name)),
            sess_options=self._session_options,
            providers=self._providers,
        )
        with self._lock:
            entry = self._entries.setdefault(model_name, _Entry(session, time.monotonic()))
            entry.last_used = time.monotonic()
        if entry.session is session:
            logger.info("Loaded %s with providers %s", model_name, self._providers)
        return entry.session

    def get_labels(self, model_name: str) -> list[str]:
        """Return class names in output order. Blank lines are skipped."""
        with self._lock:
            cached = self._labels.get(model_name)
        if cached is not None:
            return cached

        spec = self.get_spec(model_name)
        text = self._fetch(spec.repo_id, spec.labels_filename).read_text(encoding="utf-8")
        labels = [line.strip() for line in text.splitlines() if line.strip()]
        if not labels:
            raise ValueError(f"Labels file for '{model_name}' is empty")

        with self._lock:
            labels = self._labels.setdefault(model_name, labels)
        logger.info("Loaded %d labels for %s", len(labels), model_name)
        return labels

    def get_loaded_models(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def unload_idle_models(self) -> None:
        """Drop sessions unused for longer than ``model_ttl``. A TTL of 0 keeps them forever."""
        ttl = self._settings.model_ttl
        if ttl == 0:
            return

        cutoff = time.monotonic() - ttl
        with self._lock:
            idle = [name for name, entry in self._entries.items() if entry.last_used < cutoff]
            for name in idle:
                del self._entries[name]
        for name in idle:
            logger.info("Unloaded idle model %s", name)

    def shutdown(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("All model sessions released")

    def _fetch(self, repo_id: str, filename: str) -> Path:
        key = (repo_id, filename)
        known = self._files.get(key)
        if known is not None and known.exists():
            return known

        path = Path(hf_hub_download(repo_id=repo_id, filename=filename, local_dir=str(self._models_dir)))
        self._files[key] = path
        logger.info("Downloaded %s/%s to %s", repo_id, filename, path)
        return path
