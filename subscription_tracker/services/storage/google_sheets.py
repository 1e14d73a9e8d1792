"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the hosted backend because:
1. Users can view and fix their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (fine for personal subscriptions)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python)

Three worksheets are used, each created with a header row on first use:
Subscriptions, Profiles and AuditLog.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from subscription_tracker.config import get_settings
from subscription_tracker.models import (
    AuditEvent,
    AuditEventType,
    AuditSeverity,
    BillingCycle,
    Profile,
    Subscription,
    SubscriptionCategory,
)
from subscription_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    ProfileStorageInterface,
    StorageError,
    SubscriptionStorageInterface,
)


SUBSCRIPTION_COLUMNS = [
    "id",
    "user_id",
    "created_at",
    "updated_at",
    "name",
    "description",
    "cost",
    "currency",
    "billing_cycle",
    "category",
    "next_payment_date",
    "website_url",
    "icon_url",
    "is_active",
]

PROFILE_COLUMNS = [
    "user_id",
    "full_name",
    "email",
    "avatar_url",
    "default_currency",
    "updated_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows and empty cells."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError as e:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}") from e

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound as e:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_subscriptions_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.subscriptions_sheet_name,
            SUBSCRIPTION_COLUMNS,
            rows=1000,
        )

    def get_profiles_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.profiles_sheet_name,
            PROFILE_COLUMNS,
            rows=200,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


class GoogleSheetsSubscriptionStorage(SubscriptionStorageInterface):
    """
    Google Sheets implementation of subscription storage.

    One subscription per row, every user in the same worksheet.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._logger = structlog.get_logger()

    def _subscription_to_row(self, subscription: Subscription) -> list:
        return [
            str(subscription.id),
            subscription.user_id,
            subscription.created_at.isoformat(),
            subscription.updated_at.isoformat(),
            subscription.name,
            subscription.description or "",
            str(subscription.cost),
            subscription.currency,
            subscription.billing_cycle.value,
            subscription.category.value,
            subscription.next_payment_date.isoformat(),
            subscription.website_url or "",
            subscription.icon_url or "",
            str(subscription.is_active),
        ]

    def _row_to_subscription(self, row: list) -> Subscription:
        return Subscription(
            id=UUID(_cell(row, 0)),
            user_id=_cell(row, 1),
            created_at=datetime.fromisoformat(_cell(row, 2)),
            updated_at=datetime.fromisoformat(_cell(row, 3)),
            name=_cell(row, 4),
            description=_cell(row, 5) or None,
            cost=Decimal(_cell(row, 6)),
            currency=_cell(row, 7, "USD"),
            billing_cycle=BillingCycle(_cell(row, 8, "monthly")),
            category=SubscriptionCategory(_cell(row, 9, "other")),
            next_payment_date=date.fromisoformat(_cell(row, 10)),
            website_url=_cell(row, 11) or None,
            icon_url=_cell(row, 12) or None,
            is_active=_cell(row, 13, "True").lower() == "true",
        )

    def _find_row(self, rows: list[list], subscription_id: UUID) -> Optional[int]:
        """1-based sheet row index of the subscription, header included."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == str(subscription_id):
                return idx
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(DuplicateError),
        reraise=True,
    )
    async def create_subscription(self, subscription: Subscription) -> Subscription:
        try:
            sheet = self._client.get_subscriptions_sheet()
            if self._find_row(sheet.get_all_values(), subscription.id) is not None:
                raise DuplicateError(f"Subscription already exists: {subscription.id}")
            sheet.append_row(
                self._subscription_to_row(subscription),
                value_input_option="RAW",
            )
            return subscription
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save subscription: {e}") from e

    async def get_subscription(self, subscription_id: UUID) -> Optional[Subscription]:
        try:
            sheet = self._client.get_subscriptions_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == str(subscription_id):
                    return self._row_to_subscription(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get subscription: {e}") from e

    async def update_subscription(self, subscription: Subscription) -> Subscription:
        try:
            sheet = self._client.get_subscriptions_sheet()
            idx = self._find_row(sheet.get_all_values(), subscription.id)
            if idx is None:
                raise NotFoundError(f"Subscription not found: {subscription.id}")

            updated = subscription.model_copy(update={"updated_at": datetime.utcnow()})
            sheet.update(
                values=[self._subscription_to_row(updated)],
                range_name=f"A{idx}",
                value_input_option="RAW",
            )
            return updated
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update subscription: {e}") from e

    async def delete_subscription(self, subscription_id: UUID) -> bool:
        try:
            sheet = self._client.get_subscriptions_sheet()
            idx = self._find_row(sheet.get_all_values(), subscription_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete subscription: {e}") from e

    async def list_subscriptions(
        self,
        user_id: str,
        active_only: bool = True,
    ) -> list[Subscription]:
        try:
            sheet = self._client.get_subscriptions_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list subscriptions: {e}") from e

        subscriptions = []
        for row in all_rows:
            if not row or not row[0] or _cell(row, 1) != user_id:
                continue

            try:
                subscription = self._row_to_subscription(row)
            except (ValueError, ArithmeticError) as e:
                self._logger.warning("malformed_subscription_row", row_id=row[0], error=str(e))
                continue

            if active_only and not subscription.is_active:
                continue

            subscriptions.append(subscription)

        subscriptions.sort(key=lambda s: s.next_payment_date)
        return subscriptions


class GoogleSheetsProfileStorage(ProfileStorageInterface):
    """Google Sheets implementation of profile storage (one row per user)."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _profile_to_row(self, profile: Profile) -> list:
        return [
            profile.user_id,
            profile.full_name or "",
            profile.email or "",
            profile.avatar_url or "",
            profile.default_currency,
            profile.updated_at.isoformat(),
        ]

    def _row_to_profile(self, row: list) -> Profile:
        updated_at = _cell(row, 5)
        return Profile(
            user_id=_cell(row, 0),
            full_name=_cell(row, 1) or None,
            email=_cell(row, 2) or None,
            avatar_url=_cell(row, 3) or None,
            default_currency=_cell(row, 4, "USD"),
            updated_at=datetime.fromisoformat(updated_at) if updated_at else datetime.utcnow(),
        )

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        try:
            sheet = self._client.get_profiles_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == user_id:
                    return self._row_to_profile(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get profile: {e}") from e

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_profile(self, profile: Profile) -> Profile:
        try:
            sheet = self._client.get_profiles_sheet()
            saved = profile.model_copy(update={"updated_at": datetime.utcnow()})
            row = self._profile_to_row(saved)

            for idx, existing in enumerate(sheet.get_all_values()[1:], start=2):
                if existing and existing[0] == profile.user_id:
                    sheet.update(values=[row], range_name=f"A{idx}", value_input_option="RAW")
                    return saved

            sheet.append_row(row, value_input_option="RAW")
            return saved
        except Exception as e:
            raise StorageError(f"Failed to save profile: {e}") from e


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._logger = structlog.get_logger()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            entity_type=_cell(row, 4) or None,
            entity_id=_cell(row, 5) or None,
            correlation_id=UUID(_cell(row, 6)) if _cell(row, 6) else None,
            description=_cell(row, 7),
            details=json.loads(_cell(row, 8)) if _cell(row, 8) else {},
            error_message=_cell(row, 9) or None,
            is_user_action=_cell(row, 10).lower() == "true",
        )

    def _read_events(self, predicate) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

        events = []
        for row in all_rows:
            if not row or not row[0] or not predicate(row):
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError as e:
                self._logger.warning("malformed_audit_row", row_id=row[0], error=str(e))
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            self._logger.warning(
                "audit_sheet_write_failed",
                event_id=str(event.event_id),
                error=str(e),
            )
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = self._read_events(lambda row: _cell(row, 6) == str(correlation_id))
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: Union[str, UUID],
    ) -> list[AuditEvent]:
        events = self._read_events(
            lambda row: _cell(row, 4) == entity_type and _cell(row, 5) == str(entity_id)
        )
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = self._read_events(lambda row: True)
        # Newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
