"""Database models."""

from doctor_registry.models.doctors import doctors, metadata

__all__ = [
    "doctors",
    "metadata",
]
