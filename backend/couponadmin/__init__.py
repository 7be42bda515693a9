"""Coupon admin backend: Strapi coupon catalogue management API."""

__version__ = "1.0.0"
