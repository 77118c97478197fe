"""Session state as explicit variants.

A session is in exactly one model phase. Only the Ready phase carries an
activity, so combinations like "error while analyzing" or "result while
offline" cannot be constructed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecoclear.ml.waste_classifier import ClassificationResult
    from ecoclear.session.previews import Preview

MODEL_OFFLINE_MESSAGE = "AI System Offline. Check your connection to load the neural network."
ANALYSIS_FAILED_MESSAGE = "Analysis failed. Try another angle or lighting."


# -- Activities (only meaningful while the model is ready) -------------------


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Analyzing:
    preview: Preview


@dataclass(frozen=True)
class Showing:
    preview: Preview
    result: ClassificationResult


@dataclass(frozen=True)
class Failed:
    preview: Preview
    message: str = ANALYSIS_FAILED_MESSAGE


Activity = Idle | Analyzing | Showing | Failed


# -- Model phases ------------------------------------------------------------


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Ready:
    activity: Activity = field(default_factory=Idle)


@dataclass(frozen=True)
class Offline:
    message: str = MODEL_OFFLINE_MESSAGE


SessionState = Loading | Ready | Offline


def current_preview(state: SessionState) -> Preview | None:
    """Return the preview owned by a state, if any."""
    if isinstance(state, Ready) and isinstance(state.activity, (Analyzing, Showing, Failed)):
        return state.activity.preview
    return None
