"""Pydantic models for the coupon admin API."""
