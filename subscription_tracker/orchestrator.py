"""
Main Orchestrator for Subscription Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Subscriptions (draft → validate → save, icon upload, delete)
2. Profile (name, default currency, avatar crop → upload → save → notify)
3. Dashboard (summary figures and the exportable report)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is stored unless validation passes
- Avatars are only replaced after the crop has been uploaded
- Every step is audited

The UI only talks to these flows; it never calls storage or the
upload sink directly.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

import structlog

from subscription_tracker.audit import AuditLogger, create_correlation_id
from subscription_tracker.catalog import is_known_currency
from subscription_tracker.config import CropperSettings, get_settings
from subscription_tracker.cropper import (
    CircularCropEngine,
    ImageLoadError,
    ImageSourceProvider,
    SourceImage,
)
from subscription_tracker.dashboard import build_report, build_summary
from subscription_tracker.events import ProfileEvents
from subscription_tracker.models import (
    DashboardSummary,
    Profile,
    Subscription,
    SubscriptionDraft,
    SubscriptionReport,
    ValidationResult,
)
from subscription_tracker.services.image import (
    CloudinaryUploadService,
    ImageUploadError,
    UploadSinkInterface,
)
from subscription_tracker.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsProfileStorage,
    GoogleSheetsSubscriptionStorage,
    InMemoryAuditStorage,
    InMemoryProfileStorage,
    InMemorySubscriptionStorage,
    NotFoundError,
    ProfileStorageInterface,
    SubscriptionStorageInterface,
)
from subscription_tracker.validation import SubscriptionValidator

logger = structlog.get_logger()

# Fields a draft can change on an existing subscription
EDITABLE_FIELDS = [
    "name",
    "description",
    "cost",
    "currency",
    "billing_cycle",
    "category",
    "next_payment_date",
    "website_url",
    "icon_url",
]


class SubscriptionValidationError(Exception):
    """A subscription draft failed validation."""

    def __init__(self, result: ValidationResult, message: str):
        super().__init__(message)
        self.result = result
        self.message = message


class UploadsNotConfiguredError(ImageUploadError):
    """No upload sink is available (Cloudinary settings missing)."""
    pass


async def _load_profile_or_default(
    storage: ProfileStorageInterface,
    user_id: str,
) -> Profile:
    profile = await storage.get_profile(user_id)
    if profile is None:
        profile = Profile(
            user_id=user_id,
            default_currency=get_settings().app.default_currency,
        )
    return profile


class SubscriptionFlow:
    """
    Orchestrates adding, editing and removing subscriptions.

    Flow:
    1. Draft → prefilled with the user's default currency
    2. Validate → two-stage validation
    3. Save → only when validation passes
    """

    def __init__(
        self,
        subscription_storage: SubscriptionStorageInterface,
        profile_storage: ProfileStorageInterface,
        upload_sink: Optional[UploadSinkInterface] = None,
        validator: Optional[SubscriptionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = subscription_storage
        self._profiles = profile_storage
        self._upload_sink = upload_sink
        self._validator = validator or SubscriptionValidator(subscription_storage)
        self._audit_logger = audit_logger

    async def new_draft(self, user_id: str) -> SubscriptionDraft:
        """Empty form, with the currency preset from the user's profile."""
        profile = await _load_profile_or_default(self._profiles, user_id)
        return SubscriptionDraft(currency=profile.default_currency)

    async def validate_draft(
        self,
        draft: SubscriptionDraft,
        user_id: str,
        exclude_id: Optional[UUID] = None,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[ValidationResult, str]:
        """
        Validate a draft.

        Returns:
            (validation_result, user_message)
        """
        correlation_id = correlation_id or create_correlation_id()

        result = await self._validator.validate(
            draft,
            user_id=user_id,
            today=today,
            exclude_id=exclude_id,
        )
        message = self._validator.get_user_friendly_summary(result)

        if self._audit_logger and not result.is_valid:
            issues = [
                {"field": i.field, "type": i.issue_type, "message": i.message}
                for i in result.issues
            ]
            await self._audit_logger.log_validation_failed(
                user_id=user_id,
                issues=issues,
                correlation_id=correlation_id,
            )

        return result, message

    async def _require_valid(
        self,
        draft: SubscriptionDraft,
        user_id: str,
        exclude_id: Optional[UUID],
        today: Optional[date],
        correlation_id: UUID,
    ) -> None:
        result, message = await self.validate_draft(
            draft,
            user_id,
            exclude_id=exclude_id,
            today=today,
            correlation_id=correlation_id,
        )
        if not result.is_valid:
            raise SubscriptionValidationError(result, message)

    async def add_subscription(
        self,
        user_id: str,
        draft: SubscriptionDraft,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Subscription:
        """
        Validate and store a new subscription.

        Raises:
            SubscriptionValidationError: If the draft has errors
            StorageError: If the write fails
        """
        correlation_id = correlation_id or create_correlation_id()
        await self._require_valid(draft, user_id, None, today, correlation_id)

        subscription = Subscription(
            user_id=user_id,
            **draft.model_dump(include=set(EDITABLE_FIELDS)),
        )
        saved = await self._storage.create_subscription(subscription)

        if self._audit_logger:
            await self._audit_logger.log_subscription_created(
                subscription_id=saved.id,
                name=saved.name,
                user_id=user_id,
                correlation_id=correlation_id,
            )

        return saved

    async def update_subscription(
        self,
        subscription_id: UUID,
        draft: SubscriptionDraft,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Subscription:
        """
        Apply an edited draft to an existing subscription.

        Raises:
            NotFoundError: If the subscription doesn't exist
            SubscriptionValidationError: If the draft has errors
        """
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._storage.get_subscription(subscription_id)
        if existing is None:
            raise NotFoundError(f"Subscription not found: {subscription_id}")

        await self._require_valid(
            draft,
            existing.user_id,
            subscription_id,
            today,
            correlation_id,
        )

        changes = draft.model_dump(include=set(EDITABLE_FIELDS))
        changed_fields = [
            field for field in EDITABLE_FIELDS
            if getattr(existing, field) != changes[field]
        ]
        updated = await self._storage.update_subscription(
            existing.model_copy(update=changes)
        )

        if self._audit_logger:
            await self._audit_logger.log_subscription_updated(
                subscription_id=subscription_id,
                changed_fields=changed_fields,
                correlation_id=correlation_id,
            )

        return updated

    async def delete_subscription(
        self,
        subscription_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        correlation_id = correlation_id or create_correlation_id()

        deleted = await self._storage.delete_subscription(subscription_id)

        if deleted and self._audit_logger:
            await self._audit_logger.log_subscription_deleted(
                subscription_id=subscription_id,
                correlation_id=correlation_id,
            )

        return deleted

    async def list_subscriptions(
        self,
        user_id: str,
        active_only: bool = True,
    ) -> list[Subscription]:
        return await self._storage.list_subscriptions(user_id, active_only=active_only)

    async def upload_custom_icon(
        self,
        user_id: str,
        data: bytes,
        filename: str,
        mime_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """
        Upload a custom icon and return its URL for the draft's ``icon_url``.

        Raises:
            InvalidImageError: Unsupported type or too large
            ImageUploadError: If the upload fails
        """
        correlation_id = correlation_id or create_correlation_id()

        if self._upload_sink is None:
            raise UploadsNotConfiguredError("Image uploads are not configured")

        try:
            url = await self._upload_sink.upload_icon(data, filename, mime_type, user_id)
        except ImageUploadError as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="cloudinary",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_icon_uploaded(
                user_id=user_id,
                url=url,
                correlation_id=correlation_id,
            )

        return url


class ProfileFlow:
    """
    Orchestrates profile settings and avatar replacement.

    Avatar flow:
    1. Open → decode the picked image into a cropper engine
    2. Adjust → the UI drives zoom and drag on the engine
    3. Confirm → crop, upload, store the URL, notify listeners

    A failure at any step leaves the stored profile unchanged.
    """

    def __init__(
        self,
        profile_storage: ProfileStorageInterface,
        upload_sink: Optional[UploadSinkInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        events: Optional[ProfileEvents] = None,
        image_provider: Optional[ImageSourceProvider] = None,
        cropper_settings: Optional[CropperSettings] = None,
    ):
        self._storage = profile_storage
        self._upload_sink = upload_sink
        self._audit_logger = audit_logger
        self._events = events or ProfileEvents()
        self._image_provider = image_provider or ImageSourceProvider()
        self._cropper_settings = cropper_settings

    @property
    def events(self) -> ProfileEvents:
        return self._events

    async def get_profile(
        self,
        user_id: str,
        email: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Profile:
        """Return the user's profile, creating a default one on first access."""
        profile = await self._storage.get_profile(user_id)
        if profile is not None:
            return profile

        correlation_id = correlation_id or create_correlation_id()
        profile = await self._storage.save_profile(Profile(
            user_id=user_id,
            email=email,
            default_currency=get_settings().app.default_currency,
        ))

        if self._audit_logger:
            await self._audit_logger.log_profile_updated(
                user_id=user_id,
                changed_fields=["user_id", "email", "default_currency"],
                correlation_id=correlation_id,
                created=True,
            )

        return profile

    async def _save_changes(
        self,
        user_id: str,
        changes: dict,
        correlation_id: Optional[UUID],
    ) -> Profile:
        correlation_id = correlation_id or create_correlation_id()
        profile = await self.get_profile(user_id, correlation_id=correlation_id)

        saved = await self._storage.save_profile(profile.model_copy(update=changes))

        if self._audit_logger:
            await self._audit_logger.log_profile_updated(
                user_id=user_id,
                changed_fields=sorted(changes),
                correlation_id=correlation_id,
            )

        self._events.publish(saved)
        return saved

    async def update_full_name(
        self,
        user_id: str,
        full_name: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> Profile:
        return await self._save_changes(
            user_id,
            {"full_name": (full_name or "").strip() or None},
            correlation_id,
        )

    async def set_default_currency(
        self,
        user_id: str,
        currency: str,
        correlation_id: Optional[UUID] = None,
    ) -> Profile:
        """
        Change the currency used for new subscriptions and dashboard totals.

        Raises:
            ValueError: If the currency code is unknown
        """
        if not is_known_currency(currency):
            raise ValueError(f"Unknown currency code: {currency}")
        return await self._save_changes(
            user_id,
            {"default_currency": currency.upper()},
            correlation_id,
        )

    async def _open_engine(
        self,
        user_id: str,
        decode,
        correlation_id: UUID,
    ) -> CircularCropEngine:
        try:
            source: SourceImage = decode()
        except ImageLoadError as e:
            if self._audit_logger:
                await self._audit_logger.log_avatar_image_rejected(
                    user_id=user_id,
                    reason=str(e),
                    correlation_id=correlation_id,
                )
            raise

        engine = CircularCropEngine(self._cropper_settings)
        engine.load(source)

        if self._audit_logger:
            await self._audit_logger.log_avatar_image_loaded(
                user_id=user_id,
                width=source.natural_width,
                height=source.natural_height,
                correlation_id=correlation_id,
            )

        return engine

    async def open_cropper(
        self,
        user_id: str,
        image_bytes: bytes,
        filename: str = "upload",
        correlation_id: Optional[UUID] = None,
    ) -> CircularCropEngine:
        """
        Decode a picked file into a ready-to-use cropper.

        Raises:
            ImageLoadError: If the file is not a usable image
        """
        correlation_id = correlation_id or create_correlation_id()
        return await self._open_engine(
            user_id,
            lambda: self._image_provider.from_bytes(image_bytes, label=filename),
            correlation_id,
        )

    async def open_cropper_from_url(
        self,
        user_id: str,
        url: str,
        correlation_id: Optional[UUID] = None,
    ) -> CircularCropEngine:
        """Re-crop an image that is already hosted (e.g. the current avatar)."""
        correlation_id = correlation_id or create_correlation_id()
        return await self._open_engine(
            user_id,
            lambda: self._image_provider.from_url(url),
            correlation_id,
        )

    async def confirm_avatar_crop(
        self,
        engine: CircularCropEngine,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Profile:
        """
        Crop, upload and store the new avatar, then notify listeners.

        Raises:
            NotLoadedError: The engine has no image
            ExportError: Encoding failed (retry is safe)
            ImageUploadError: If the upload fails
        """
        correlation_id = correlation_id or create_correlation_id()

        if self._upload_sink is None:
            raise UploadsNotConfiguredError("Image uploads are not configured")

        crop = engine.crop()
        view = engine.view

        if self._audit_logger:
            await self._audit_logger.log_avatar_cropped(
                user_id=user_id,
                scale=view.scale,
                offset=view.offset,
                size_bytes=crop.size_bytes,
                correlation_id=correlation_id,
            )

        try:
            url = await self._upload_sink.upload_avatar(crop, user_id)
        except ImageUploadError as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="cloudinary",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_avatar_uploaded(
                user_id=user_id,
                url=url,
                correlation_id=correlation_id,
            )

        return await self._save_changes(user_id, {"avatar_url": url}, correlation_id)


class DashboardFlow:
    """Read-only figures for the dashboard page and the report export."""

    def __init__(
        self,
        subscription_storage: SubscriptionStorageInterface,
        profile_storage: ProfileStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._subscriptions = subscription_storage
        self._profiles = profile_storage
        self._audit_logger = audit_logger

    async def summary(
        self,
        user_id: str,
        today: Optional[date] = None,
    ) -> DashboardSummary:
        profile = await _load_profile_or_default(self._profiles, user_id)
        subscriptions = await self._subscriptions.list_subscriptions(user_id)
        return build_summary(
            subscriptions,
            profile.default_currency,
            today=today or date.today(),
            window_days=get_settings().app.upcoming_window_days,
        )

    async def report(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> SubscriptionReport:
        correlation_id = correlation_id or create_correlation_id()

        profile = await self._profiles.get_profile(user_id)
        subscriptions = await self._subscriptions.list_subscriptions(user_id)
        report = build_report(subscriptions, profile, now=now)

        if self._audit_logger:
            await self._audit_logger.log_report_generated(
                user_id=user_id,
                row_count=len(report.rows),
                correlation_id=correlation_id,
            )

        return report


def create_app_components(
    use_storage: bool = True,
) -> tuple[SubscriptionFlow, ProfileFlow, DashboardFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to try Google Sheets storage.
                    Falls back to in-memory storage when False or
                    when Sheets is not configured.

    Returns:
        (subscription_flow, profile_flow, dashboard_flow, sheets_client)
    """
    sheets_client = None
    subscription_storage = None
    profile_storage = None
    audit_storage = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            subscription_storage = GoogleSheetsSubscriptionStorage(sheets_client)
            profile_storage = GoogleSheetsProfileStorage(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("sheets_storage_unavailable", error=str(e))
            sheets_client = None

    if sheets_client is None:
        subscription_storage = InMemorySubscriptionStorage()
        profile_storage = InMemoryProfileStorage()
        audit_storage = InMemoryAuditStorage()

    audit_logger = AuditLogger(audit_storage)

    upload_sink = None
    try:
        upload_sink = CloudinaryUploadService()
    except Exception as e:
        logger.warning("cloudinary_unavailable", error=str(e))

    subscription_flow = SubscriptionFlow(
        subscription_storage=subscription_storage,
        profile_storage=profile_storage,
        upload_sink=upload_sink,
        audit_logger=audit_logger,
    )

    profile_flow = ProfileFlow(
        profile_storage=profile_storage,
        upload_sink=upload_sink,
        audit_logger=audit_logger,
    )

    dashboard_flow = DashboardFlow(
        subscription_storage=subscription_storage,
        profile_storage=profile_storage,
        audit_logger=audit_logger,
    )

    return subscription_flow, profile_flow, dashboard_flow, sheets_client
