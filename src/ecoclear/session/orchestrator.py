"""Classification session: model lifecycle plus per-image orchestration.

One session owns its state and its previews. All transitions happen on the
event loop, so no locking is needed. The only suspension points are the
two collaborator calls, ``load_model()`` and ``classify()``.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import TYPE_CHECKING

from ecoclear.session.previews import PreviewStore
from ecoclear.session.state import (
    ANALYSIS_FAILED_MESSAGE,
    MODEL_OFFLINE_MESSAGE,
    Analyzing,
    Failed,
    Idle,
    Loading,
    Offline,
    Ready,
    SessionState,
    Showing,
    current_preview,
)

if TYPE_CHECKING:
    from ecoclear.ml.waste_classifier import ImageUpload, WasteClassifier
    from ecoclear.session.previews import Preview

logger = logging.getLogger(__name__)


class ClassificationSession:
    """State owner for one client's classification flow."""

    def __init__(self, classifier: WasteClassifier, session_id: str | None = None) -> None:
        self.id = session_id or uuid.uuid4().hex
        self._classifier = classifier
        self._previews = PreviewStore()
        self._state: SessionState = Loading()
        self._load_task: asyncio.Task[None] | None = None
        self._classify_task: asyncio.Task[None] | None = None
        self._closed = False
        self.last_active = time.monotonic()

    # -- Read side ------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def previews(self) -> PreviewStore:
        return self._previews

    @property
    def is_ready(self) -> bool:
        return isinstance(self._state, Ready)

    @property
    def is_busy(self) -> bool:
        return isinstance(self._state, Ready) and isinstance(self._state.activity, Analyzing)

    # -- Model lifecycle ------------------------------------------------------

    async def start(self) -> None:
        """Load the model once. Ready and Offline are both final for this session."""
        self._set(Loading())
        try:
            await self._classifier.load_model()
        except Exception:
            logger.warning("Session %s offline: model load failed", self.id, exc_info=True)
            self._set(Offline(MODEL_OFFLINE_MESSAGE))
            return
        self._set(Ready(Idle()))

    def launch(self) -> asyncio.Task[None]:
        """Run ``start()`` in the background. A load still in flight is reused."""
        if self._load_task is None or self._load_task.done():
            self._load_task = asyncio.create_task(self.start(), name=f"load-{self.id}")
        return self._load_task

    def relaunch(self) -> asyncio.Task[None]:
        """Release the current preview and load the model again in the background.

        While a load is already running there is nothing to redo, so that load
        is returned and the session is left as it is.
        """
        if self._load_task is not None and not self._load_task.done():
            return self._load_task
        self._release_preview()
        self._set(Loading())
        return self.launch()

    async def restart(self, *, wait: bool = True) -> None:
        """Discard all state and load the model from scratch.

        An in-flight classification is allowed to finish first. With
        ``wait=False`` this returns once the new load has started.
        """
        if self._classify_task is not None and not self._classify_task.done():
            await asyncio.wait({self._classify_task})
        if self._closed:
            logger.debug("Session %s closed while waiting, not restarting", self.id)
            return
        task = self.relaunch()
        if wait:
            await task

    # -- Classification -------------------------------------------------------

    async def select_file(self, upload: ImageUpload) -> bool:
        """Classify one image. Returns False if the selection was dropped."""
        analyzing = self._accept(upload)
        if analyzing is None:
            return False
        await self._run(analyzing, upload)
        return True

    def submit(self, upload: ImageUpload) -> bool:
        """Accept a selection now and classify it in the background."""
        analyzing = self._accept(upload)
        if analyzing is None:
            return False
        self._classify_task = asyncio.create_task(self._run(analyzing, upload), name=f"classify-{self.id}")
        return True

    async def join(self) -> None:
        """Wait for any background load or classification to finish."""
        await self._wait_pending()

    def close(self) -> None:
        """Release the current preview. The session must not be used afterwards."""
        for task in (self._load_task, self._classify_task):
            if task is not None and not task.done():
                task.cancel()
        self._closed = True
        self._previews.revoke_all()
        logger.debug("Session %s closed", self.id)

    # -- Internal -------------------------------------------------------------

    def _accept(self, upload: ImageUpload) -> Analyzing | None:
        self.touch()
        if not isinstance(self._state, Ready):
            logger.debug("Session %s: selection dropped, model not ready", self.id)
            return None
        if isinstance(self._state.activity, Analyzing):
            logger.debug("Session %s: selection dropped, analysis in progress", self.id)
            return None

        # Clear the previous result and preview before the new preview exists.
        self._release_preview()
        self._set(Ready(Idle()))

        preview = self._previews.create(upload.data, upload.content_type)
        analyzing = Analyzing(preview)
        self._set(Ready(analyzing))
        return analyzing

    async def _run(self, analyzing: Analyzing, upload: ImageUpload) -> None:
        try:
            result = await self._classifier.classify(upload)
        except Exception:
            logger.exception("Session %s: classification of %s failed", self.id, upload.filename)
            self._finish(analyzing, Failed(analyzing.preview, ANALYSIS_FAILED_MESSAGE))
            return
        self._finish(analyzing, Showing(analyzing.preview, result))

    def _finish(self, analyzing: Analyzing, outcome: Showing | Failed) -> None:
        # A restart while classifying leaves a different state behind; keep it.
        if not (isinstance(self._state, Ready) and self._state.activity is analyzing):
            logger.debug("Session %s: discarding stale classification outcome", self.id)
            return
        self._set(Ready(outcome))

    def _release_preview(self) -> None:
        preview: Preview | None = current_preview(self._state)
        if preview is not None:
            self._previews.revoke(preview.token)

    async def _wait_pending(self) -> None:
        for task in (self._load_task, self._classify_task):
            if task is not None and not task.done():
                await task

    def _set(self, state: SessionState) -> None:
        logger.debug("Session %s: %s -> %s", self.id, type(self._state).__name__, _describe(state))
        self._state = state
        self.touch()

    def touch(self) -> None:
        self.last_active = time.monotonic()


def _describe(state: SessionState) -> str:
    if isinstance(state, Ready):
        return f"Ready({type(state.activity).__name__})"
    return type(state).__name__
