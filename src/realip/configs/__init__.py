"""Typed configuration (pydantic-settings)."""
