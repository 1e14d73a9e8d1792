"""
Streamlit Frontend for Subscription Tracker

Pages:
1. Home - what the app does
2. Dashboard - totals, upcoming renewals, category breakdown, report export
3. Subscriptions - add, edit and delete, with preset or uploaded icons
4. Settings - profile, default currency, avatar cropper, connection status

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Clear error messages in simple language
3. Visual feedback for all operations
4. No hidden actions

Sign-in is handled outside this app; the sidebar only asks which
account to show.
"""

import asyncio
import logging
from datetime import date, timedelta
from decimal import Decimal

import streamlit as st

from subscription_tracker.catalog import (
    PRESET_ICONS,
    get_currency,
    list_currencies,
    presets_by_category,
    resolve_icon,
)
from subscription_tracker.config import validate_all_settings
from subscription_tracker.cropper import CropperError, ExportError, ImageLoadError
from subscription_tracker.models import (
    BillingCycle,
    IconKind,
    Profile,
    Subscription,
    SubscriptionCategory,
    SubscriptionDraft,
)
from subscription_tracker.orchestrator import (
    DashboardFlow,
    ProfileFlow,
    SubscriptionFlow,
    SubscriptionValidationError,
    create_app_components,
)
from subscription_tracker.services.image import ImageServiceError
from subscription_tracker.services.storage import StorageError


logging.basicConfig(format="%(message)s", level=logging.INFO)

# Page configuration
st.set_page_config(
    page_title="Subscription Tracker",
    page_icon="💳",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
        color: #2c3e50;
    }
    .muted {
        color: #6b7280;
    }
</style>
""", unsafe_allow_html=True)


NAV_HOME = "🏠 Home"
NAV_DASHBOARD = "📊 Dashboard"
NAV_SUBSCRIPTIONS = "💳 Subscriptions"
NAV_SETTINGS = "⚙️ Settings"

# Pixels moved per nudge of the avatar position
NUDGE_STEP = 10


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components(use_storage=True)


def main():
    """Main application entry point."""
    subscription_flow, profile_flow, dashboard_flow, sheets_client = get_components()

    st.sidebar.title("💳 Subscription Tracker")
    st.sidebar.markdown("---")

    user_id = st.sidebar.text_input(
        "Account email",
        value=st.session_state.get("user_id", ""),
        help="Your data is stored under this address",
    ).strip().lower()
    st.session_state.user_id = user_id

    page = st.sidebar.radio(
        "Navigate to:",
        [NAV_HOME, NAV_DASHBOARD, NAV_SUBSCRIPTIONS, NAV_SETTINGS],
        index=0,
    )

    if user_id:
        profile = run_async(profile_flow.get_profile(user_id, email=user_id))
        render_sidebar_profile(profile)

    if sheets_client is None:
        st.sidebar.caption("Storage: in memory (Google Sheets not configured)")

    if page == NAV_HOME:
        render_home_page()
        return

    if not user_id:
        st.info("Enter your account email in the sidebar to continue.")
        return

    if page == NAV_DASHBOARD:
        render_dashboard_page(dashboard_flow, subscription_flow, user_id)
    elif page == NAV_SUBSCRIPTIONS:
        render_subscriptions_page(subscription_flow, user_id)
    elif page == NAV_SETTINGS:
        render_settings_page(profile_flow, user_id)


def render_sidebar_profile(profile: Profile):
    st.sidebar.markdown("---")
    col1, col2 = st.sidebar.columns([1, 3])
    with col1:
        if profile.avatar_url:
            st.image(profile.avatar_url, width=48)
        else:
            st.markdown(f"### {profile.initial}")
    with col2:
        st.markdown(f"**{profile.display_name}**")
        currency = get_currency(profile.default_currency)
        if currency:
            st.caption(f"{currency.symbol} {currency.code}")


def render_icon(icon_url, size: int = 32):
    directive = resolve_icon(icon_url)
    if directive.kind == IconKind.CUSTOM:
        st.image(directive.url, width=size)
    else:
        st.markdown(f"### {directive.glyph}")


# =============================================================================
# HOME
# =============================================================================

def render_home_page():
    st.title("Never miss a renewal again")
    st.markdown(
        "Keep every subscription in one place, see what you really spend "
        "each month, and get a heads-up before the next payment."
    )

    col1, col2, col3 = st.columns(3)
    with col1:
        st.markdown("#### 📊 Spending at a glance")
        st.markdown("Monthly and yearly totals, whatever the billing cycle.")
    with col2:
        st.markdown("#### 📅 Upcoming renewals")
        st.markdown("Everything due in the next 30 days, soonest first.")
    with col3:
        st.markdown("#### 🗂️ Categories")
        st.markdown("See which kind of service takes the biggest share.")

    st.markdown("---")
    st.markdown("Popular services you can track:")
    st.markdown(" ".join(f"{p.glyph} {p.name}" for p in PRESET_ICONS[:12]))


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard_page(
    dashboard_flow: DashboardFlow,
    subscription_flow: SubscriptionFlow,
    user_id: str,
):
    st.title("📊 Dashboard")

    try:
        summary = run_async(dashboard_flow.summary(user_id))
    except StorageError as e:
        st.error(f"❌ Could not load your subscriptions: {e}")
        return

    col1, col2, col3 = st.columns(3)
    with col1:
        st.markdown("Monthly spend")
        st.markdown(
            f'<div class="big-number">{summary.format_amount(summary.monthly_equivalent)}</div>',
            unsafe_allow_html=True,
        )
    with col2:
        st.markdown("Yearly spend")
        st.markdown(
            f'<div class="big-number">{summary.format_amount(summary.yearly_equivalent)}</div>',
            unsafe_allow_html=True,
        )
    with col3:
        st.markdown("Active subscriptions")
        st.markdown(
            f'<div class="big-number">{summary.active_count}</div>',
            unsafe_allow_html=True,
        )

    if summary.active_count == 0:
        st.info("You are not tracking any subscriptions yet. Add one on the Subscriptions page.")
        return

    st.markdown("---")
    left, right = st.columns(2)

    with left:
        st.subheader("📅 Upcoming payments")
        if not summary.upcoming:
            st.markdown("Nothing due in the next 30 days.")
        for payment in summary.upcoming:
            sub = payment.subscription
            c1, c2, c3 = st.columns([1, 4, 2])
            with c1:
                render_icon(sub.icon_url)
            with c2:
                st.markdown(f"**{sub.name}**")
                st.caption(f"{sub.next_payment_date.isoformat()} · {payment.label}")
            with c3:
                st.markdown(f"**{summary.currency_symbol}{sub.cost:.2f}**")

    with right:
        st.subheader("🗂️ By category")
        for spend in summary.categories:
            st.markdown(
                f"{spend.glyph} **{spend.category.value.title()}** "
                f"{summary.format_amount(spend.monthly_amount)}/mo"
            )
            st.progress(min(spend.percentage / 100, 1.0))

    st.markdown("---")
    st.subheader("📄 Export")
    report = run_async(dashboard_flow.report(user_id))
    st.download_button(
        "Download report (CSV)",
        data=report.to_csv(),
        file_name=report.csv_filename,
        mime="text/csv",
    )


# =============================================================================
# SUBSCRIPTIONS
# =============================================================================

def render_icon_selector(subscription_flow: SubscriptionFlow, user_id: str, key: str):
    """Preset picker plus custom upload; the choice is kept in session state."""
    state_key = f"{key}_icon"
    current = st.session_state.get(state_key)

    st.markdown("**Icon**")
    render_icon(current, size=40)

    tabs = st.tabs(["Presets", "Upload"])
    with tabs[0]:
        for category, presets in presets_by_category().items():
            st.caption(category.value.title())
            cols = st.columns(6)
            for idx, preset in enumerate(presets):
                with cols[idx % 6]:
                    if st.button(f"{preset.glyph} {preset.name}", key=f"{key}_{preset.id}"):
                        st.session_state[state_key] = preset.id
                        st.rerun()

    with tabs[1]:
        uploaded = st.file_uploader(
            "Upload an icon",
            type=["png", "jpg", "jpeg", "webp", "svg"],
            key=f"{key}_upload",
        )
        if uploaded and st.button("Use this icon", key=f"{key}_upload_btn"):
            try:
                url = run_async(subscription_flow.upload_custom_icon(
                    user_id,
                    uploaded.getvalue(),
                    uploaded.name,
                    uploaded.type,
                ))
            except ImageServiceError as e:
                st.error(f"❌ Upload failed: {e}")
            else:
                st.session_state[state_key] = url
                st.success("✅ Icon uploaded")
                st.rerun()

    return st.session_state.get(state_key)


def render_subscription_form(
    subscription_flow: SubscriptionFlow,
    user_id: str,
    key: str,
    existing: Subscription = None,
) -> SubscriptionDraft:
    if existing is not None:
        defaults = SubscriptionDraft(**existing.model_dump(exclude={"id", "user_id"}))
        st.session_state.setdefault(f"{key}_icon", existing.icon_url)
    else:
        defaults = run_async(subscription_flow.new_draft(user_id))

    icon_url = render_icon_selector(subscription_flow, user_id, key)

    with st.form(key=f"{key}_form"):
        name = st.text_input("Service name", value=defaults.name or "")
        description = st.text_area("Description", value=defaults.description or "")

        col1, col2, col3 = st.columns(3)
        with col1:
            cost = st.number_input(
                "Cost",
                min_value=0.0,
                step=0.01,
                value=float(defaults.cost or 0),
                format="%.2f",
            )
        with col2:
            codes = [c.code for c in list_currencies()]
            currency = st.selectbox(
                "Currency",
                options=codes,
                index=codes.index(defaults.currency) if defaults.currency in codes else 0,
                format_func=lambda code: get_currency(code).option_label,
            )
        with col3:
            cycles = list(BillingCycle)
            billing_cycle = st.selectbox(
                "Billing cycle",
                options=cycles,
                index=cycles.index(defaults.billing_cycle),
                format_func=lambda c: c.label,
            )

        col4, col5 = st.columns(2)
        with col4:
            categories = list(SubscriptionCategory)
            category = st.selectbox(
                "Category",
                options=categories,
                index=categories.index(defaults.category),
                format_func=lambda c: c.value.title(),
            )
        with col5:
            next_payment_date = st.date_input(
                "Next payment",
                value=defaults.next_payment_date or date.today() + timedelta(days=30),
            )

        website_url = st.text_input("Website", value=defaults.website_url or "")

        submitted = st.form_submit_button("💾 Save", type="primary")

    if not submitted:
        return None

    return SubscriptionDraft(
        name=name,
        description=description or None,
        cost=Decimal(str(cost)).quantize(Decimal("0.01")),
        currency=currency,
        billing_cycle=billing_cycle,
        category=category,
        next_payment_date=next_payment_date,
        website_url=website_url or None,
        icon_url=icon_url,
    )


def render_subscriptions_page(subscription_flow: SubscriptionFlow, user_id: str):
    st.title("💳 Subscriptions")

    with st.expander("➕ Add subscription", expanded=False):
        draft = render_subscription_form(subscription_flow, user_id, key="new")
        if draft is not None:
            try:
                saved = run_async(subscription_flow.add_subscription(user_id, draft))
            except SubscriptionValidationError as e:
                st.error(e.message)
            except StorageError as e:
                st.error(f"❌ Could not save: {e}")
            else:
                st.session_state.pop("new_icon", None)
                st.success(f"✅ Added {saved.name}")
                st.rerun()

    st.markdown("---")

    try:
        subscriptions = run_async(subscription_flow.list_subscriptions(user_id))
    except StorageError as e:
        st.error(f"❌ Could not load your subscriptions: {e}")
        return

    if not subscriptions:
        st.info("No subscriptions yet.")
        return

    for sub in subscriptions:
        c1, c2, c3, c4 = st.columns([1, 5, 2, 2])
        with c1:
            render_icon(sub.icon_url)
        with c2:
            st.markdown(f"**{sub.name}**")
            st.caption(
                f"{sub.category.value.title()} · {sub.billing_cycle.label} · "
                f"next {sub.next_payment_date.isoformat()}"
            )
        with c3:
            currency = get_currency(sub.currency)
            symbol = currency.symbol if currency else "$"
            st.markdown(f"**{symbol}{sub.cost:.2f}**")
        with c4:
            if st.button("🗑️ Delete", key=f"delete_{sub.id}"):
                run_async(subscription_flow.delete_subscription(sub.id))
                st.success(f"Deleted {sub.name}")
                st.rerun()

        with st.expander(f"✏️ Edit {sub.name}"):
            key = f"edit_{sub.id}"
            draft = render_subscription_form(subscription_flow, user_id, key=key, existing=sub)
            if draft is not None:
                try:
                    run_async(subscription_flow.update_subscription(sub.id, draft))
                except SubscriptionValidationError as e:
                    st.error(e.message)
                except StorageError as e:
                    st.error(f"❌ Could not save: {e}")
                else:
                    st.success("✅ Saved")
                    st.rerun()


# =============================================================================
# SETTINGS
# =============================================================================

def render_avatar_cropper(profile_flow: ProfileFlow, user_id: str):
    st.markdown("### Profile picture")

    uploaded = st.file_uploader(
        "Choose a photo",
        type=["jpg", "jpeg", "png", "webp"],
        key="avatar_upload",
    )

    if uploaded and st.session_state.get("avatar_file") != uploaded.file_id:
        try:
            engine = run_async(profile_flow.open_cropper(
                user_id,
                uploaded.getvalue(),
                filename=uploaded.name,
            ))
        except ImageLoadError as e:
            st.error(f"❌ {e}. Please pick a different image.")
            return
        st.session_state.avatar_file = uploaded.file_id
        st.session_state.cropper = engine

    engine = st.session_state.get("cropper")
    if engine is None or not engine.is_loaded:
        return

    center = engine.settings.canvas_size / 2
    col1, col2 = st.columns([2, 1])

    with col2:
        low, high, step = engine.slider_range()
        scale = st.slider(
            "Zoom",
            min_value=float(low),
            max_value=float(high),
            value=float(engine.view.scale),
            step=float(step),
        )
        if scale != engine.view.scale:
            engine.set_scale(scale)

        st.caption("Move")
        up, left, right, down = st.columns(4)
        moves = {
            "⬆️": (0, -NUDGE_STEP),
            "⬅️": (-NUDGE_STEP, 0),
            "➡️": (NUDGE_STEP, 0),
            "⬇️": (0, NUDGE_STEP),
        }
        for column, (label, (dx, dy)) in zip((up, left, right, down), moves.items()):
            with column:
                if st.button(label, key=f"nudge_{label}"):
                    engine.drag_to((center, center), (center + dx, center + dy))

        c1, c2 = st.columns(2)
        with c1:
            if st.button("Save", type="primary"):
                try:
                    run_async(profile_flow.confirm_avatar_crop(engine, user_id))
                except ExportError:
                    st.error("❌ Could not create the picture. Please try again.")
                except (CropperError, ImageServiceError, StorageError) as e:
                    st.error(f"❌ Upload failed: {e}")
                else:
                    engine.close()
                    st.session_state.pop("cropper", None)
                    st.success("✅ Profile picture updated")
                    st.rerun()
        with c2:
            if st.button("Cancel"):
                engine.close()
                st.session_state.pop("cropper", None)
                st.rerun()

    with col1:
        st.image(engine.render_preview(), caption="Drag with the arrows, zoom with the slider")


def render_settings_page(profile_flow: ProfileFlow, user_id: str):
    """Render the settings page."""
    st.title("⚙️ Settings")

    profile = run_async(profile_flow.get_profile(user_id, email=user_id))

    st.markdown("### Profile")
    with st.form("profile_form"):
        full_name = st.text_input("Full name", value=profile.full_name or "")
        st.text_input("Email", value=profile.email or "", disabled=True)

        codes = [c.code for c in list_currencies()]
        currency = st.selectbox(
            "Default currency",
            options=codes,
            index=codes.index(profile.default_currency) if profile.default_currency in codes else 0,
            format_func=lambda code: get_currency(code).option_label,
        )
        if st.form_submit_button("💾 Save profile", type="primary"):
            try:
                if (full_name or None) != profile.full_name:
                    run_async(profile_flow.update_full_name(user_id, full_name))
                if currency != profile.default_currency:
                    run_async(profile_flow.set_default_currency(user_id, currency))
            except (StorageError, ValueError) as e:
                st.error(f"❌ Could not save: {e}")
            else:
                st.success("✅ Profile saved")

    st.markdown("---")
    render_avatar_cropper(profile_flow, user_id)

    st.markdown("---")
    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Cloudinary (Image uploads)", "cloudinary"),
        ("Google Sheets (Storage)", "google_sheets"),
        ("Avatar cropper", "cropper"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown(
        "To configure the application, create a `.env` file with your keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
