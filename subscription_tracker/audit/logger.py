"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Complete traceability of subscription and profile changes
2. Debugging capability when uploads or storage calls fail
3. History the user can inspect in the AuditLog sheet

The audit logger:
- Is async to match the storage interface
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from subscription_tracker.models import AuditEvent, AuditEventBuilder, AuditSeverity
from subscription_tracker.services.storage import AuditStorageInterface

# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger()

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_subscription_created(
        self,
        subscription_id: UUID,
        name: str,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.subscription_created(
            subscription_id=subscription_id,
            name=name,
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    async def log_subscription_updated(
        self,
        subscription_id: UUID,
        changed_fields: list[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.subscription_updated(
            subscription_id=subscription_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        ))

    async def log_subscription_deleted(
        self,
        subscription_id: UUID,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.subscription_deleted(
            subscription_id=subscription_id,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        user_id: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log a rejected subscription form."""
        await self.log(AuditEventBuilder.validation_failed(
            user_id=user_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_icon_uploaded(
        self,
        user_id: str,
        url: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.icon_uploaded(
            user_id=user_id,
            url=url,
            correlation_id=correlation_id,
        ))

    async def log_profile_updated(
        self,
        user_id: str,
        changed_fields: list[str],
        correlation_id: UUID,
        created: bool = False,
    ) -> None:
        await self.log(AuditEventBuilder.profile_updated(
            user_id=user_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
            created=created,
        ))

    async def log_avatar_image_loaded(
        self,
        user_id: str,
        width: int,
        height: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.avatar_image_loaded(
            user_id=user_id,
            width=width,
            height=height,
            correlation_id=correlation_id,
        ))

    async def log_avatar_image_rejected(
        self,
        user_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.avatar_image_rejected(
            user_id=user_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_avatar_cropped(
        self,
        user_id: str,
        scale: float,
        offset: tuple[float, float],
        size_bytes: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.avatar_cropped(
            user_id=user_id,
            scale=scale,
            offset=offset,
            size_bytes=size_bytes,
            correlation_id=correlation_id,
        ))

    async def log_avatar_uploaded(
        self,
        user_id: str,
        url: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.avatar_uploaded(
            user_id=user_id,
            url=url,
            correlation_id=correlation_id,
        ))

    async def log_report_generated(
        self,
        user_id: str,
        row_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.report_generated(
            user_id=user_id,
            row_count=row_count,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Log an error. Returns the result of `log`."""
        return await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., saving an avatar).
    Pass it through all subsequent operations.
    """
    return uuid4()
