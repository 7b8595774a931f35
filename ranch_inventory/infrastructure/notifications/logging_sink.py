"""Notification sink that writes alerts and orders to the structured log."""

from ranch_inventory.config import get_logger, get_settings
from ranch_inventory.core.entities.alert import Alert
from ranch_inventory.core.entities.purchase_order import PurchaseOrder
from ranch_inventory.core.interfaces.notification import INotificationSink

logger = get_logger(__name__)


class LoggingNotificationSink(INotificationSink):
    """Default sink when no webhook is configured."""

    async def send_alert(self, alert: Alert) -> None:
        logger.warning(
            "inventory_alert",
            alert_id=alert.id,
            item_id=alert.inventory_item_id,
            farm_id=alert.farm_id,
            alert_type=alert.alert_type.value,
            priority=alert.priority.value,
            message=alert.message,
        )

    async def send_purchase_order(self, order: PurchaseOrder) -> None:
        logger.info(
            "purchase_order_notice",
            order_id=order.id,
            order_number=order.order_number,
            recipient=get_settings().notifications.purchasing_recipient,
            supplier_id=order.supplier_id,
            total=str(order.total),
            currency=order.currency,
            items=[line.item_name for line in order.lines],
        )
