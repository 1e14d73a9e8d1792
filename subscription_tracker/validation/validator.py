"""
Two-Stage Subscription Validation

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (name, cost, next payment date)
- Length and range limits
- Known currency code

STAGE 2 - SEMANTIC VALIDATION:
- Renewal date already in the past
- Unusually high cost
- Website and icon references that cannot be rendered
- Same service already tracked

Stage 2 only runs when stage 1 passes.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the form can show them next to the fields.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from subscription_tracker.catalog import currency_symbol, get_preset, is_known_currency
from subscription_tracker.config import get_settings
from subscription_tracker.models import (
    SubscriptionDraft,
    ValidationIssue,
    ValidationResult,
)
from subscription_tracker.services.storage import SubscriptionStorageInterface

NAME_MAX_LENGTH = 100


def _is_web_url(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")


class SubscriptionValidator:
    """
    Validates subscription form drafts.

    Stage 1: Schema validation (no storage needed)
    Stage 2: Semantic validation (storage only for the duplicate check)
    """

    def __init__(
        self,
        subscription_storage: Optional[SubscriptionStorageInterface] = None,
    ):
        """
        Initialize validator.

        Args:
            subscription_storage: Used to look for an existing subscription
                         with the same name. If None, the check is skipped.
        """
        self._storage = subscription_storage
        self._settings = get_settings().app
        self._logger = structlog.get_logger()

    def _validate_schema(
        self,
        draft: SubscriptionDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not draft.name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Service name is required",
                severity="error",
                suggested_fix="Enter the name of the service, e.g. Netflix",
            ))
        elif len(draft.name) > NAME_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Service name must be at most {NAME_MAX_LENGTH} characters",
                severity="error",
            ))

        if draft.cost is None:
            issues.append(ValidationIssue(
                field="cost",
                issue_type="missing",
                message="Cost is required",
                severity="error",
            ))
        elif not draft.cost.is_finite() or draft.cost <= 0:
            issues.append(ValidationIssue(
                field="cost",
                issue_type="invalid_value",
                message="Cost must be greater than zero",
                severity="error",
            ))
        elif draft.cost.as_tuple().exponent < -2:
            issues.append(ValidationIssue(
                field="cost",
                issue_type="invalid_format",
                message="Cost can have at most 2 decimal places",
                severity="error",
                suggested_fix=f"Did you mean {draft.cost:.2f}?",
            ))

        if draft.next_payment_date is None:
            issues.append(ValidationIssue(
                field="next_payment_date",
                issue_type="missing",
                message="Next payment date is required",
                severity="error",
                suggested_fix="Pick the date of the next renewal",
            ))

        if not is_known_currency(draft.currency):
            issues.append(ValidationIssue(
                field="currency",
                issue_type="invalid_value",
                message=f"Unknown currency code: {draft.currency}",
                severity="error",
            ))

        if draft.description and len(draft.description) > 500:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message="Description must be at most 500 characters",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_semantic(
        self,
        draft: SubscriptionDraft,
        today: date,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if draft.next_payment_date and draft.next_payment_date < today:
            issues.append(ValidationIssue(
                field="next_payment_date",
                issue_type="past_date",
                message=f"Next payment date ({draft.next_payment_date}) is in the past",
                severity="warning",
                suggested_fix="Use the date of the upcoming renewal",
            ))

        max_cost = Decimal(str(self._settings.max_subscription_cost))
        if draft.cost and draft.cost > max_cost:
            symbol = currency_symbol(draft.currency)
            issues.append(ValidationIssue(
                field="cost",
                issue_type="suspicious_value",
                message=f"Cost ({symbol}{draft.cost:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if draft.website_url and not _is_web_url(draft.website_url):
            issues.append(ValidationIssue(
                field="website_url",
                issue_type="invalid_format",
                message="Website must start with http:// or https://",
                severity="error",
            ))

        if draft.icon_url and not (
            _is_web_url(draft.icon_url) or get_preset(draft.icon_url)
        ):
            issues.append(ValidationIssue(
                field="icon_url",
                issue_type="invalid_value",
                message=f"Unknown icon: {draft.icon_url}",
                severity="error",
                suggested_fix="Choose a preset icon or upload an image",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    async def _check_duplicates(
        self,
        draft: SubscriptionDraft,
        user_id: str,
        exclude_id: Optional[UUID],
    ) -> list[ValidationIssue]:
        """Warn when the user already tracks a service with this name."""
        issues = []

        if self._storage is None or not draft.name:
            return issues

        try:
            existing = await self._storage.list_subscriptions(user_id, active_only=True)
        except Exception as e:
            # Don't fail validation due to storage errors
            self._logger.warning(
                "duplicate_check_failed",
                user_id=user_id,
                error=str(e),
            )
            return issues

        name = draft.name.casefold()
        if any(s.name.casefold() == name and s.id != exclude_id for s in existing):
            issues.append(ValidationIssue(
                field="name",
                issue_type="potential_duplicate",
                message=f"You already track a subscription named {draft.name}",
                severity="warning",
                suggested_fix="Edit the existing subscription instead",
            ))

        return issues

    async def validate(
        self,
        draft: SubscriptionDraft,
        user_id: Optional[str] = None,
        today: Optional[date] = None,
        exclude_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            draft: The form data to validate
            user_id: Owner, needed for the duplicate check
            today: Reference date for the past-date check
            exclude_id: Subscription being edited (not a duplicate of itself)

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []
        warnings = []

        schema_valid, schema_issues = self._validate_schema(draft)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(
                draft,
                today or date.today(),
            )
            all_issues.extend(semantic_issues)

            if user_id:
                all_issues.extend(
                    await self._check_duplicates(draft, user_id, exclude_id)
                )

        for issue in all_issues:
            if issue.severity == "warning":
                warnings.append(issue.message)

        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what the subscription form shows above the fields.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        if result.is_valid:
            lines.append("")
            lines.append("You can still save, but please double-check.")

        return "\n".join(lines)
