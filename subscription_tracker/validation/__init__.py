"""Subscription form validation."""

from subscription_tracker.validation.validator import SubscriptionValidator

__all__ = ["SubscriptionValidator"]
