"""Tests for the currency list and icon catalogue."""

import pytest

from subscription_tracker.catalog import (
    DEFAULT_GLYPH,
    PRESET_CATEGORY_ORDER,
    PRESET_ICONS,
    category_glyph,
    currency_symbol,
    get_currency,
    get_preset,
    is_custom_icon,
    is_known_currency,
    list_currencies,
    presets_by_category,
    resolve_icon,
)
from subscription_tracker.models import IconKind, SubscriptionCategory


class TestCurrencies:

    def test_list_is_complete_and_unique(self):
        codes = [c.code for c in list_currencies()]
        assert len(codes) == 21
        assert len(set(codes)) == len(codes)
        assert codes[0] == "USD"

    def test_lookup_is_case_insensitive(self):
        assert get_currency("eur").symbol == "€"

    @pytest.mark.parametrize("code", [None, "", "XYZ"])
    def test_unknown_codes(self, code):
        assert get_currency(code) is None
        assert is_known_currency(code) is False
        assert currency_symbol(code) == "$"

    def test_symbols(self):
        assert currency_symbol("GBP") == "£"
        assert currency_symbol("INR") == "₹"
        assert currency_symbol("CHF") == "CHF"

    def test_option_label(self):
        assert get_currency("EUR").option_label == "€ Euro (EUR)"


class TestIcons:
    """Tests for icon references and rendering directives."""

    def test_preset_ids_are_unique(self):
        ids = [p.id for p in PRESET_ICONS]
        assert len(ids) == len(set(ids))

    def test_get_preset(self):
        assert get_preset("netflix").name == "Netflix"
        assert get_preset("unknown") is None
        assert get_preset(None) is None

    def test_custom_icon_detection(self):
        assert is_custom_icon("https://res.cloudinary.com/x/icon.png")
        assert is_custom_icon("http://example.com/i.png")
        assert not is_custom_icon("netflix")
        assert not is_custom_icon(None)

    def test_resolve_empty(self):
        directive = resolve_icon(None)
        assert directive.kind == IconKind.DEFAULT
        assert directive.glyph == DEFAULT_GLYPH

    def test_resolve_custom_url(self):
        url = "https://res.cloudinary.com/x/icon.png"
        directive = resolve_icon(url)
        assert directive.kind == IconKind.CUSTOM
        assert directive.url == url

    def test_resolve_preset(self):
        directive = resolve_icon("spotify")
        assert directive.kind == IconKind.PRESET
        assert directive.glyph == "🎵"
        assert directive.label == "Spotify"

    def test_resolve_unknown_preset_falls_back(self):
        directive = resolve_icon("not-a-preset")
        assert directive.kind == IconKind.DEFAULT
        assert directive.glyph == DEFAULT_GLYPH

    def test_presets_grouped_in_tab_order(self):
        groups = presets_by_category()
        assert list(groups) == PRESET_CATEGORY_ORDER
        assert all(
            preset.category == category
            for category, presets in groups.items()
            for preset in presets
        )
        assert sum(len(p) for p in groups.values()) == len(PRESET_ICONS)

    def test_category_glyph(self):
        assert category_glyph(SubscriptionCategory.GAMING) == "🎮"
        assert category_glyph("news") == "📰"
        assert category_glyph("bogus") == category_glyph(SubscriptionCategory.OTHER)
