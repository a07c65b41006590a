"""
Low stock policy applied after a split has shrunk the source asset.

When the remaining quantity is at or below the threshold the admin gets an
alert through the notification API and an ``asset.low_stock`` event is
published. Neither action can fail the transfer that triggered it: both
report an outcome, and the caller only logs the resulting alert.
"""

from dataclasses import dataclass
from typing import Optional

from shared.core import EventBus, PublishOutcome, get_logger
from shared.core.events import ASSET_LOW_STOCK, utc_timestamp
from ..domain.models import Asset
from ..infrastructure.notification import NotificationClient, NotificationOutcome

logger = get_logger(__name__)

LOW_STOCK_THRESHOLD = 5


@dataclass
class LowStockAlert:
    custom_id: str
    remaining_quantity: int
    threshold: int
    notification: NotificationOutcome
    published: PublishOutcome


class LowStockPolicy:
    def __init__(
        self,
        notifier: NotificationClient,
        bus: EventBus,
        threshold: int = LOW_STOCK_THRESHOLD,
        admin_id: str = "admin1",
        admin_email: str = "admin@email.com",
    ):
        self.notifier = notifier
        self.bus = bus
        self.threshold = threshold
        self.admin_id = admin_id
        self.admin_email = admin_email

    def is_low(self, quantity: int) -> bool:
        return quantity <= self.threshold

    def evaluate(self, asset: Asset) -> Optional[LowStockAlert]:
        remaining = asset.quantity
        if not self.is_low(remaining):
            return None

        logger.warning(
            f"Low stock on {asset.custom_id}: {remaining} remaining",
            extra={'extra_fields': {'custom_id': asset.custom_id, 'threshold': self.threshold}}
        )

        notification = self.notifier.notify_low_stock(
            asset_id=asset.custom_id,
            asset_name=asset.name,
            remaining_quantity=remaining,
            admin_id=self.admin_id,
            admin_email=self.admin_email,
        )
        published = self.bus.publish(ASSET_LOW_STOCK, {
            "customId": asset.custom_id,
            "name": asset.name,
            "remainingQuantity": remaining,
            "threshold": self.threshold,
            "adminId": self.admin_id,
            "adminEmail": self.admin_email,
            "timestamp": utc_timestamp(),
        })

        return LowStockAlert(
            custom_id=asset.custom_id,
            remaining_quantity=remaining,
            threshold=self.threshold,
            notification=notification,
            published=published,
        )
