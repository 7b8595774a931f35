"""Abstract interfaces for notification delivery and time."""

from abc import ABC, abstractmethod
from datetime import datetime

from ranch_inventory.core.entities.alert import Alert
from ranch_inventory.core.entities.purchase_order import PurchaseOrder


class INotificationSink(ABC):
    """
    Outbound notification channel.

    Callers treat delivery as best effort: failures raise
    NotificationError and are logged, never propagated further.
    """

    @abstractmethod
    async def send_alert(self, alert: Alert) -> None:
        """Deliver an inventory alert."""
        pass

    @abstractmethod
    async def send_purchase_order(self, order: PurchaseOrder) -> None:
        """Announce an automatically created purchase order."""
        pass


class IClock(ABC):
    """Injectable source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """Current timezone-aware datetime."""
        pass
