"""Map session state to what the client renders."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ecoclear.api.schemas import (
    CategoryStyleSchema,
    ClassificationResponse,
    IntakeStatus,
    IntakeView,
    ResultPanel,
    SessionView,
)
from ecoclear.categories import category_style
from ecoclear.session.state import Analyzing, Failed, Idle, Loading, Offline, Ready, Showing

if TYPE_CHECKING:
    from ecoclear.ml.waste_classifier import ClassificationResult
    from ecoclear.session.orchestrator import ClassificationSession
    from ecoclear.session.previews import Preview

API_PREFIX = "/api/v1"


def preview_url(session_id: str, preview: Preview, prefix: str = API_PREFIX) -> str:
    return f"{prefix}/sessions/{session_id}/preview/{preview.token}"


def present_result(result: ClassificationResult) -> ClassificationResponse:
    """Render a result with its category theme. Unknown categories get the fallback theme."""
    confidence = min(max(result.confidence, 0.0), 1.0)
    return ClassificationResponse(
        category=str(result.category),
        confidence=confidence,
        confidence_percent=round(confidence * 100),
        label=result.label,
        disposal_instructions=result.disposal_instructions,
        reasoning=result.reasoning,
        style=CategoryStyleSchema.model_validate(category_style(result.category)),
    )


def present(session: ClassificationSession, prefix: str = API_PREFIX) -> SessionView:
    """Build the view for a session's current state."""
    sid = session.id

    match session.state:
        case Loading():
            return SessionView(
                session_id=sid,
                intake=IntakeView(status=IntakeStatus.LOADING, disabled=True),
                panel=ResultPanel.AWAITING_INPUT,
            )
        case Offline(message):
            return SessionView(
                session_id=sid,
                intake=IntakeView(status=IntakeStatus.OFFLINE, disabled=True, error=message),
                panel=ResultPanel.AWAITING_INPUT,
            )
        case Ready(Idle()):
            return SessionView(
                session_id=sid,
                intake=IntakeView(status=IntakeStatus.READY, disabled=False),
                panel=ResultPanel.AWAITING_INPUT,
            )
        case Ready(Analyzing(preview)):
            return SessionView(
                session_id=sid,
                intake=IntakeView(status=IntakeStatus.READY, disabled=True),
                panel=ResultPanel.ANALYZING,
                preview_url=preview_url(sid, preview, prefix),
            )
        case Ready(Showing(preview, result)):
            return SessionView(
                session_id=sid,
                intake=IntakeView(status=IntakeStatus.READY, disabled=False),
                panel=ResultPanel.RESULT,
                preview_url=preview_url(sid, preview, prefix),
                result=present_result(result),
            )
        case Ready(Failed(preview, message)):
            return SessionView(
                session_id=sid,
                intake=IntakeView(status=IntakeStatus.READY, disabled=False, error=message),
                panel=ResultPanel.PREVIEW,
                preview_url=preview_url(sid, preview, prefix),
            )
    raise TypeError(f"Unhandled session state: {session.state!r}")
