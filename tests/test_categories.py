"""Tests for category themes, disposal text, and label mapping."""

from __future__ import annotations

import pytest

from ecoclear.categories import (
    CATEGORY_STYLES,
    FALLBACK_INSTRUCTIONS,
    FALLBACK_STYLE,
    WasteCategory,
    categorize_label,
    category_style,
    disposal_instructions,
)


class TestCategoryStyle:
    @pytest.mark.parametrize("category", list(WasteCategory))
    def test_every_category_has_a_complete_style(self, category: WasteCategory) -> None:
        style = category_style(category)
        assert style.bg and style.text and style.light and style.border and style.icon

    @pytest.mark.parametrize("value", ["styrofoam", "", "ORGANIC", "🦄"])
    def test_unknown_values_get_fallback(self, value: str) -> None:
        assert category_style(value) == FALLBACK_STYLE

    def test_raw_string_of_known_category(self) -> None:
        assert category_style("glass") == CATEGORY_STYLES[WasteCategory.GLASS]

    def test_other_uses_fallback(self) -> None:
        assert category_style(WasteCategory.OTHER) == FALLBACK_STYLE

    def test_known_categories_have_distinct_colors(self) -> None:
        colors = {style.bg for style in CATEGORY_STYLES.values()}
        assert len(colors) == len(CATEGORY_STYLES)
        assert FALLBACK_STYLE.bg not in colors


class TestDisposalInstructions:
    def test_known_category(self) -> None:
        assert "e-waste" in disposal_instructions(WasteCategory.E_WASTE).lower()

    def test_unknown_category(self) -> None:
        assert disposal_instructions("styrofoam") == FALLBACK_INSTRUCTIONS
        assert disposal_instructions(WasteCategory.OTHER) == FALLBACK_INSTRUCTIONS


class TestCategorizeLabel:
    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("banana", WasteCategory.ORGANIC),
            ("Granny Smith", WasteCategory.ORGANIC),
            ("water bottle", WasteCategory.PLASTIC),
            ("pop bottle, soda bottle", WasteCategory.PLASTIC),
            ("envelope", WasteCategory.PAPER),
            ("carton", WasteCategory.PAPER),
            ("can opener, tin opener", WasteCategory.METAL),
            ("frying pan, frypan, skillet", WasteCategory.METAL),
            ("beer bottle", WasteCategory.GLASS),
            ("wine bottle", WasteCategory.GLASS),
            ("cellular telephone, cellular phone, cellphone, cell, mobile phone", WasteCategory.E_WASTE),
            ("notebook, notebook computer", WasteCategory.E_WASTE),
        ],
    )
    def test_known_labels(self, label: str, expected: WasteCategory) -> None:
        category, keyword = categorize_label(label)
        assert category == expected
        assert keyword is not None

    def test_unmatched_label_is_other(self) -> None:
        assert categorize_label("tabby, tabby cat") == (WasteCategory.OTHER, None)

    def test_matches_whole_synonyms_only(self) -> None:
        # "canoe" must not match the "can" keyword.
        assert categorize_label("canoe")[0] == WasteCategory.OTHER

    def test_returns_matching_synonym(self) -> None:
        assert categorize_label("hotdog, hot dog, red hot") == (WasteCategory.ORGANIC, "hotdog")
