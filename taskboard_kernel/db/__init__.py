"""Database infrastructure: declarative base and engine/session management."""

from taskboard_kernel.db.base import Base, TimestampedBase, UUIDString

__all__ = [
    "Base",
    "TimestampedBase",
    "UUIDString",
]
