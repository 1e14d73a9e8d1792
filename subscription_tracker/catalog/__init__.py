"""Currency and icon catalogues."""

from subscription_tracker.catalog.currencies import (
    DEFAULT_SYMBOL,
    Currency,
    currency_symbol,
    get_currency,
    is_known_currency,
    list_currencies,
)
from subscription_tracker.catalog.icons import (
    DEFAULT_GLYPH,
    PRESET_CATEGORY_ORDER,
    PRESET_ICONS,
    IconDirective,
    PresetIcon,
    category_glyph,
    get_preset,
    is_custom_icon,
    presets_by_category,
    resolve_icon,
)

__all__ = [
    # Currencies
    "DEFAULT_SYMBOL",
    "Currency",
    "currency_symbol",
    "get_currency",
    "is_known_currency",
    "list_currencies",
    # Icons
    "DEFAULT_GLYPH",
    "PRESET_CATEGORY_ORDER",
    "PRESET_ICONS",
    "IconDirective",
    "PresetIcon",
    "category_glyph",
    "get_preset",
    "is_custom_icon",
    "presets_by_category",
    "resolve_icon",
]
