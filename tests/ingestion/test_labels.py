"""Tests for label normalization and lookup."""

import pytest

from pnl_kernel.domain.line_items import is_field
from pnl_ingestion.mapping.labels import LABEL_TABLE, normalize_label, resolve_label


class TestNormalizeLabel:
    @pytest.mark.parametrize(
        "raw",
        [
            "44500 · Practice Income",
            "44500 \ufffd Practice Income",
            "44500· Practice Income",
            "44500·Practice Income",
            "44500 Â· Practice Income",
            "  44500 · Practice Income  ",
            "44500 ∙ Practice Income",
        ],
    )
    def test_separator_variants(self, raw):
        assert normalize_label(raw) == "44500 · Practice Income"

    def test_plain_label_is_trimmed(self):
        assert normalize_label("  Total Income ") == "Total Income"

    def test_none_is_empty(self):
        assert normalize_label(None) == ""


class TestResolveLabel:
    def test_known_label(self):
        assert resolve_label("44500 · Practice Income") == "practice_income"

    def test_corrupted_separator_resolves(self):
        assert resolve_label("44500 \ufffd Practice Income") == "practice_income"

    def test_total_label(self):
        assert resolve_label("Net Ordinary Income") == "net_ordinary_income"

    def test_alias_labels_share_a_field(self):
        assert resolve_label("Cost of Goods Sold") == resolve_label("Total COGS") == "total_cogs"

    def test_matching_is_case_sensitive(self):
        assert resolve_label("44500 · practice income") is None

    def test_unmapped_label(self):
        assert resolve_label("99999 · Something New") is None
        assert resolve_label("") is None

    def test_every_target_is_a_catalogue_field(self):
        assert all(is_field(f) for f in LABEL_TABLE.values())
