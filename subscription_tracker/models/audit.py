"""
Audit Models for Subscription Tracker

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of changes to subscriptions and profiles
2. Debugging information when uploads or storage calls fail
3. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Subscriptions
    SUBSCRIPTION_CREATED = "subscription_created"
    SUBSCRIPTION_UPDATED = "subscription_updated"
    SUBSCRIPTION_DELETED = "subscription_deleted"
    SUBSCRIPTION_VALIDATION_FAILED = "subscription_validation_failed"

    # Icons
    ICON_UPLOADED = "icon_uploaded"

    # Profile
    PROFILE_CREATED = "profile_created"
    PROFILE_UPDATED = "profile_updated"

    # Avatar cropping
    AVATAR_IMAGE_LOADED = "avatar_image_loaded"
    AVATAR_IMAGE_REJECTED = "avatar_image_rejected"
    AVATAR_CROPPED = "avatar_cropped"
    AVATAR_UPLOADED = "avatar_uploaded"

    # Reports
    REPORT_GENERATED = "report_generated"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'subscription', 'profile', 'avatar')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., crop then upload then profile update)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.subscription_created(sub_id, name, user_id, correlation_id)
        event = AuditEventBuilder.avatar_uploaded(user_id, url, correlation_id)
    """

    @staticmethod
    def subscription_created(
        subscription_id: UUID,
        name: str,
        user_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_CREATED,
            entity_type="subscription",
            entity_id=str(subscription_id),
            correlation_id=correlation_id,
            description=f"Subscription added: {name}",
            details={
                "name": name,
                "user_id": user_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def subscription_updated(
        subscription_id: UUID,
        changed_fields: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_UPDATED,
            entity_type="subscription",
            entity_id=str(subscription_id),
            correlation_id=correlation_id,
            description=f"Subscription updated ({len(changed_fields)} fields)",
            details={
                "changed_fields": changed_fields,
            },
            is_user_action=True,
        )

    @staticmethod
    def subscription_deleted(
        subscription_id: UUID,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_DELETED,
            entity_type="subscription",
            entity_id=str(subscription_id),
            correlation_id=correlation_id,
            description="Subscription deleted",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        user_id: str,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="profile",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Subscription form rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
        )

    @staticmethod
    def icon_uploaded(
        user_id: str,
        url: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ICON_UPLOADED,
            entity_type="profile",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Custom subscription icon uploaded",
            details={
                "url": url,
            },
            is_user_action=True,
        )

    @staticmethod
    def profile_updated(
        user_id: str,
        changed_fields: list[str],
        correlation_id: UUID,
        created: bool = False,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.PROFILE_CREATED
                if created
                else AuditEventType.PROFILE_UPDATED
            ),
            entity_type="profile",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Profile created" if created else "Profile updated",
            details={
                "changed_fields": changed_fields,
            },
            is_user_action=not created,
        )

    @staticmethod
    def avatar_image_loaded(
        user_id: str,
        width: int,
        height: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AVATAR_IMAGE_LOADED,
            entity_type="avatar",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Avatar source loaded ({width}x{height})",
            details={
                "width": width,
                "height": height,
            },
            is_user_action=True,
        )

    @staticmethod
    def avatar_image_rejected(
        user_id: str,
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AVATAR_IMAGE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="avatar",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Avatar source image could not be loaded",
            error_message=reason,
        )

    @staticmethod
    def avatar_cropped(
        user_id: str,
        scale: float,
        offset: tuple[float, float],
        size_bytes: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AVATAR_CROPPED,
            entity_type="avatar",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Avatar cropped at scale {scale:.2f}",
            details={
                "scale": scale,
                "offset": list(offset),
                "size_bytes": size_bytes,
            },
            is_user_action=True,
        )

    @staticmethod
    def avatar_uploaded(
        user_id: str,
        url: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AVATAR_UPLOADED,
            entity_type="avatar",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Avatar uploaded",
            details={
                "url": url,
            },
        )

    @staticmethod
    def report_generated(
        user_id: str,
        row_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            entity_type="profile",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Report generated with {row_count} rows",
            details={
                "row_count": row_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
