"""
Preset subscription icons and category glyphs.

A subscription's ``icon_url`` holds either a preset id from this
catalogue or the URL of an uploaded image. Resolution is a plain table
lookup; anything unrecognised falls back to the default glyph.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from subscription_tracker.models.subscription import IconKind, SubscriptionCategory

DEFAULT_GLYPH = "💳"


class PresetIcon(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: SubscriptionCategory
    glyph: str


class IconDirective(BaseModel):
    """How to draw a subscription icon."""
    model_config = ConfigDict(frozen=True)

    kind: IconKind
    glyph: Optional[str] = None
    url: Optional[str] = None
    label: str = ""


PRESET_ICONS = [
    PresetIcon(id="netflix", name="Netflix", category=SubscriptionCategory.STREAMING, glyph="📺"),
    PresetIcon(id="spotify", name="Spotify", category=SubscriptionCategory.MUSIC, glyph="🎵"),
    PresetIcon(id="youtube", name="YouTube", category=SubscriptionCategory.STREAMING, glyph="🎬"),
    PresetIcon(id="prime", name="Prime Video", category=SubscriptionCategory.STREAMING, glyph="📺"),
    PresetIcon(id="disney", name="Disney+", category=SubscriptionCategory.STREAMING, glyph="📺"),
    PresetIcon(id="hulu", name="Hulu", category=SubscriptionCategory.STREAMING, glyph="📺"),
    PresetIcon(id="apple-music", name="Apple Music", category=SubscriptionCategory.MUSIC, glyph="🎧"),
    PresetIcon(id="dropbox", name="Dropbox", category=SubscriptionCategory.STORAGE, glyph="☁️"),
    PresetIcon(id="google-drive", name="Google Drive", category=SubscriptionCategory.STORAGE, glyph="☁️"),
    PresetIcon(id="adobe", name="Adobe CC", category=SubscriptionCategory.SOFTWARE, glyph="💻"),
    PresetIcon(id="figma", name="Figma", category=SubscriptionCategory.SOFTWARE, glyph="💻"),
    PresetIcon(id="github", name="GitHub", category=SubscriptionCategory.SOFTWARE, glyph="💻"),
    PresetIcon(id="slack", name="Slack", category=SubscriptionCategory.COMMUNICATION, glyph="✉️"),
    PresetIcon(id="zoom", name="Zoom", category=SubscriptionCategory.COMMUNICATION, glyph="🎬"),
    PresetIcon(id="office365", name="Office 365", category=SubscriptionCategory.PRODUCTIVITY, glyph="📄"),
    PresetIcon(id="notion", name="Notion", category=SubscriptionCategory.PRODUCTIVITY, glyph="📄"),
    PresetIcon(id="trello", name="Trello", category=SubscriptionCategory.PRODUCTIVITY, glyph="📅"),
    PresetIcon(id="steam", name="Steam", category=SubscriptionCategory.GAMING, glyph="🎮"),
    PresetIcon(id="xbox", name="Xbox Game Pass", category=SubscriptionCategory.GAMING, glyph="🎮"),
    PresetIcon(id="playstation", name="PlayStation Plus", category=SubscriptionCategory.GAMING, glyph="🎮"),
    PresetIcon(id="aws", name="AWS", category=SubscriptionCategory.SOFTWARE, glyph="🗄️"),
    PresetIcon(id="vercel", name="Vercel", category=SubscriptionCategory.SOFTWARE, glyph="🌐"),
    PresetIcon(id="mailchimp", name="Mailchimp", category=SubscriptionCategory.COMMUNICATION, glyph="✉️"),
    PresetIcon(id="canva", name="Canva", category=SubscriptionCategory.SOFTWARE, glyph="📷"),
]

_PRESETS_BY_ID = {preset.id: preset for preset in PRESET_ICONS}

# Order of the tabs in the icon picker
PRESET_CATEGORY_ORDER = [
    SubscriptionCategory.STREAMING,
    SubscriptionCategory.MUSIC,
    SubscriptionCategory.SOFTWARE,
    SubscriptionCategory.STORAGE,
    SubscriptionCategory.COMMUNICATION,
    SubscriptionCategory.PRODUCTIVITY,
    SubscriptionCategory.GAMING,
]

_CATEGORY_GLYPHS = {
    SubscriptionCategory.STREAMING: "📺",
    SubscriptionCategory.MUSIC: "🎧",
    SubscriptionCategory.SOFTWARE: "💻",
    SubscriptionCategory.COMMUNICATION: "✉️",
    SubscriptionCategory.GAMING: "🎮",
    SubscriptionCategory.STORAGE: "☁️",
    SubscriptionCategory.PRODUCTIVITY: "📄",
    SubscriptionCategory.UTILITIES: "🔧",
    SubscriptionCategory.FITNESS: "🏋️",
    SubscriptionCategory.NEWS: "📰",
    SubscriptionCategory.OTHER: "🌐",
}


def get_preset(icon_id: Optional[str]) -> Optional[PresetIcon]:
    if not icon_id:
        return None
    return _PRESETS_BY_ID.get(icon_id)


def is_custom_icon(icon_ref: Optional[str]) -> bool:
    return bool(icon_ref) and icon_ref.startswith("http")


def resolve_icon(icon_ref: Optional[str]) -> IconDirective:
    """
    Turn a stored icon reference into a rendering directive.

    - empty                -> default glyph
    - starts with 'http'   -> custom image at that URL
    - known preset id      -> preset glyph
    - anything else        -> default glyph
    """
    if not icon_ref:
        return IconDirective(kind=IconKind.DEFAULT, glyph=DEFAULT_GLYPH)

    if is_custom_icon(icon_ref):
        return IconDirective(kind=IconKind.CUSTOM, url=icon_ref, label="Custom icon")

    preset = get_preset(icon_ref)
    if preset is None:
        return IconDirective(kind=IconKind.DEFAULT, glyph=DEFAULT_GLYPH)

    return IconDirective(kind=IconKind.PRESET, glyph=preset.glyph, label=preset.name)


def presets_by_category() -> dict[SubscriptionCategory, list[PresetIcon]]:
    return {
        category: [p for p in PRESET_ICONS if p.category == category]
        for category in PRESET_CATEGORY_ORDER
    }


def category_glyph(category) -> str:
    try:
        category = SubscriptionCategory(category)
    except ValueError:
        category = SubscriptionCategory.OTHER
    return _CATEGORY_GLYPHS.get(category, _CATEGORY_GLYPHS[SubscriptionCategory.OTHER])
