"""Shared fixtures: subscriptions, images and cropper settings."""

from datetime import date
from decimal import Decimal
from io import BytesIO

import pytest
from PIL import Image

from subscription_tracker.config import CropperSettings
from subscription_tracker.cropper import SourceImage
from subscription_tracker.models import BillingCycle, Subscription, SubscriptionCategory


@pytest.fixture
def cropper_settings():
    return CropperSettings(
        canvas_size=300,
        crop_diameter=250,
        zoom_min=0.5,
        zoom_max=3.0,
        zoom_step=0.1,
        background_color="#f3f4f6",
    )


@pytest.fixture
def make_subscription():
    def _make(
        name="Netflix",
        cost="10.00",
        cycle=BillingCycle.MONTHLY,
        category=SubscriptionCategory.STREAMING,
        next_payment=date(2024, 3, 10),
        user_id="u1",
        **extra,
    ):
        return Subscription(
            user_id=user_id,
            name=name,
            cost=Decimal(cost),
            billing_cycle=cycle,
            category=category,
            next_payment_date=next_payment,
            **extra,
        )
    return _make


@pytest.fixture
def solid_image():
    def _make(width=800, height=400, color=(255, 0, 0)):
        return SourceImage.from_image(
            Image.new("RGB", (width, height), color),
            label="solid",
        )
    return _make


@pytest.fixture
def png_bytes():
    def _make(width=64, height=32, color=(0, 128, 255), mode="RGB"):
        buffer = BytesIO()
        Image.new(mode, (width, height), color).save(buffer, format="PNG")
        return buffer.getvalue()
    return _make
