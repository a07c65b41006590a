"""Client for the external notification API (low stock alerts)."""

from enum import Enum
from typing import Optional

import httpx

from shared.core import get_logger

logger = get_logger(__name__)


class NotificationOutcome(str, Enum):
    DELIVERED = "delivered"
    FAILED = "failed"


class NotificationClient:
    def __init__(
        self,
        url: str,
        internal_secret: str,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url
        self.internal_secret = internal_secret
        self.timeout = timeout
        self._transport = transport

    def notify_low_stock(
        self,
        asset_id: str,
        asset_name: str,
        remaining_quantity: int,
        admin_id: str,
        admin_email: str,
    ) -> NotificationOutcome:
        """POST a LOW_STOCK alert. Network errors and non-2xx answers are logged, never raised."""
        payload = {
            "type": "LOW_STOCK",
            "payload": {
                "item": {"id": asset_id, "name": asset_name},
                "remainingQuantity": remaining_quantity,
                "admin": {"id": admin_id, "email": admin_email},
            },
        }
        headers = {
            "Content-Type": "application/json",
            "x-internal-secret": self.internal_secret,
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Low stock notification for {asset_name} ({asset_id}) rejected",
                extra={'extra_fields': {'status_code': e.response.status_code}}
            )
            return NotificationOutcome.FAILED
        except httpx.HTTPError as e:
            logger.error(f"Failed to send low stock notification for {asset_name} ({asset_id}): {e}")
            return NotificationOutcome.FAILED

        logger.info(
            f"Low stock alert sent for {asset_name} ({asset_id})",
            extra={'extra_fields': {'status_code': response.status_code}}
        )
        return NotificationOutcome.DELIVERED
