"""
Subscription Tracker - Source Package

Tracks recurring subscription payments: spend summaries, upcoming
renewals, subscription management with icons, and a profile page with
a circular avatar cropper.

DESIGN PRINCIPLES:
1. Validate before storing
2. Fail early, fail visibly
3. No silent corrections
4. Every step must be auditable
5. Storage and uploads are swappable
"""

__version__ = "1.0.0"
__author__ = "Subscription Tracker Team"
