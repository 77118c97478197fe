"""Tests for mapping session state to the rendered view."""

from __future__ import annotations

import asyncio

from conftest import PLASTIC_RESULT, FakeClassifier, make_upload

from ecoclear.api.schemas import IntakeStatus, ResultPanel
from ecoclear.categories import CATEGORY_STYLES, FALLBACK_STYLE, WasteCategory
from ecoclear.ml.waste_classifier import ClassificationResult
from ecoclear.session.orchestrator import ClassificationSession
from ecoclear.session.presenter import present, present_result
from ecoclear.session.state import ANALYSIS_FAILED_MESSAGE, MODEL_OFFLINE_MESSAGE


class TestPresent:
    def test_loading(self, fake_classifier: FakeClassifier) -> None:
        view = present(ClassificationSession(fake_classifier, session_id="s1"))
        assert view.session_id == "s1"
        assert view.intake.status == IntakeStatus.LOADING
        assert view.intake.disabled is True
        assert view.panel == ResultPanel.AWAITING_INPUT
        assert view.preview_url is None
        assert view.result is None

    async def test_offline(self, failing_loader: FakeClassifier) -> None:
        session = ClassificationSession(failing_loader)
        await session.start()
        view = present(session)
        assert view.intake.status == IntakeStatus.OFFLINE
        assert view.intake.error == MODEL_OFFLINE_MESSAGE
        assert view.panel == ResultPanel.AWAITING_INPUT

    async def test_ready_awaiting_input(self, fake_classifier: FakeClassifier) -> None:
        session = ClassificationSession(fake_classifier)
        await session.start()
        view = present(session)
        assert view.intake.status == IntakeStatus.READY
        assert view.intake.disabled is False
        assert view.panel == ResultPanel.AWAITING_INPUT

    async def test_analyzing_disables_intake(self, fake_classifier: FakeClassifier) -> None:
        session = ClassificationSession(fake_classifier, session_id="s2")
        await session.start()
        fake_classifier.gate = asyncio.Event()
        session.submit(make_upload())

        view = present(session)

        assert view.panel == ResultPanel.ANALYZING
        assert view.intake.disabled is True
        assert view.preview_url is not None
        assert view.preview_url.startswith("/api/v1/sessions/s2/preview/")
        assert view.result is None

        fake_classifier.gate.set()
        await session.join()

    async def test_result(self, fake_classifier: FakeClassifier) -> None:
        session = ClassificationSession(fake_classifier)
        await session.start()
        await session.select_file(make_upload())

        view = present(session)

        assert view.panel == ResultPanel.RESULT
        assert view.intake.disabled is False
        assert view.result is not None
        assert view.result.category == "plastic"
        assert view.result.confidence == PLASTIC_RESULT.confidence
        assert view.result.confidence_percent == 87
        assert view.result.label == PLASTIC_RESULT.label
        assert view.result.disposal_instructions == PLASTIC_RESULT.disposal_instructions
        assert view.result.reasoning == PLASTIC_RESULT.reasoning
        assert view.result.style.bg == CATEGORY_STYLES[WasteCategory.PLASTIC].bg

    async def test_failure_keeps_preview(self, failing_classifier: FakeClassifier) -> None:
        session = ClassificationSession(failing_classifier)
        await session.start()
        await session.select_file(make_upload())

        view = present(session)

        assert view.panel == ResultPanel.PREVIEW
        assert view.intake.error == ANALYSIS_FAILED_MESSAGE
        assert view.intake.disabled is False
        assert view.preview_url is not None
        assert view.result is None


class TestPresentResult:
    def test_unknown_category_renders_with_fallback(self) -> None:
        result = ClassificationResult(
            category="styrofoam",
            confidence=0.4,
            label="packing peanut",
            disposal_instructions="Ask locally.",
            reasoning="Synthetic.",
        )
        rendered = present_result(result)
        assert rendered.category == "styrofoam"
        assert rendered.style.bg == FALLBACK_STYLE.bg
        assert rendered.confidence_percent == 40

    def test_confidence_rounds_to_nearest_percent(self) -> None:
        result = ClassificationResult(
            category=WasteCategory.GLASS,
            confidence=0.666,
            label="beer bottle",
            disposal_instructions="Glass bank.",
            reasoning="Matched.",
        )
        assert present_result(result).confidence_percent == 67
