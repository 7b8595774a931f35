"""Infrastructure layer implementations."""

from ranch_inventory.infrastructure import notifications, storage

__all__ = ["storage", "notifications"]
