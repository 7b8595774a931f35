"""Abstract interface for alert storage."""

from abc import ABC, abstractmethod

from ranch_inventory.core.entities.alert import Alert, AlertType


class IAlertStore(ABC):
    """Interface for persisted inventory alerts."""

    @abstractmethod
    async def create(self, alert: Alert) -> Alert:
        """Create a new alert."""
        pass

    @abstractmethod
    async def update(self, alert: Alert) -> Alert:
        """Update an existing alert."""
        pass

    @abstractmethod
    async def get(self, alert_id: int) -> Alert | None:
        """Get alert by ID."""
        pass

    @abstractmethod
    async def find_open(self, item_id: int, alert_type: AlertType) -> Alert | None:
        """Get the unresolved alert of a type for an item, if any."""
        pass

    @abstractmethod
    async def list_open(
        self,
        item_id: int | None = None,
        farm_id: str | None = None,
        limit: int = 500,
    ) -> list[Alert]:
        """List unresolved alerts, most severe first."""
        pass
