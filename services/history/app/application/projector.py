"""
History projector.

Subscribes to every asset topic and appends one ledger row per delivery,
plus a RECEIVED row for the new batch of a split, in the same commit.
The ledger trails the asset store: rows appear only after the bus hands an
event over, and events lost on the bus never appear at all.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.core import EventBus, asset_context, get_logger
from shared.core.events import (
    ASSET_CREATED,
    ASSET_DELETED,
    ASSET_LOW_STOCK,
    ASSET_TRANSFERRED,
    ASSET_UPDATED,
    SPLIT_DISTRIBUTION,
    TOPICS,
)
from ..domain.models import HistoryEntry

logger = get_logger(__name__)

UNKNOWN = "unknown"


class ProjectionOutcome(str, Enum):
    RECORDED = "recorded"
    SKIPPED = "skipped"   # payload unusable, no row written
    FAILED = "failed"     # storage error, event dropped


def _field(data: Dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        return UNKNOWN
    return value


def describe(topic: str, data: Dict[str, Any]) -> Tuple[str, str]:
    """Map an event to the (action, details) pair stored in the ledger."""
    if topic == ASSET_CREATED:
        return "CREATED", f"Initial batch of {_field(data, 'quantity')} created at {_field(data, 'location')}"

    if topic == ASSET_DELETED:
        return "DELETED", "Permanently removed from database"

    if topic == ASSET_TRANSFERRED:
        if data.get("type") == SPLIT_DISTRIBUTION:
            return "DISTRIBUTED", (
                f"Sent {_field(data, 'quantity')} units to {_field(data, 'destination')} "
                f"as {_field(data, 'newBatchId')}"
            )
        return "TRANSFERRED", (
            f"Moved {_field(data, 'quantity')} units to "
            f"{_field(data, 'destinationType')}: {_field(data, 'destination')}"
        )

    if topic == ASSET_UPDATED:
        fields = data.get("fields")
        if isinstance(fields, dict):
            fields = list(fields)
        if isinstance(fields, list) and fields:
            return "UPDATED", "Updated fields: " + ", ".join(str(f) for f in fields)
        return "UPDATED", "Asset details updated"

    if topic == ASSET_LOW_STOCK:
        return "LOW_STOCK", f"Stock low: {_field(data, 'remainingQuantity')} remaining"

    return topic.rsplit(".", 1)[-1].upper(), "Event received"


def related_rows(topic: str, data: Dict[str, Any]) -> List[Tuple[str, str, str]]:
    """Extra (asset_id, action, details) rows for other assets named by the event.

    A split also opens the new batch's ledger, so its history does not start empty.
    """
    if topic == ASSET_TRANSFERRED and data.get("type") == SPLIT_DISTRIBUTION:
        new_batch = data.get("newBatchId")
        if isinstance(new_batch, str) and new_batch.strip():
            source = data.get("originalId") or data.get("customId")
            return [(new_batch, "RECEIVED", (
                f"Received {_field(data, 'quantity')} units from {source} "
                f"at {_field(data, 'destination')}"
            ))]
    return []


def parse_timestamp(value: Any, received_at: Optional[datetime] = None) -> datetime:
    """Event time when the payload carries a readable one, receipt time otherwise."""
    fallback = received_at or datetime.now(timezone.utc)
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return fallback
    else:
        return fallback

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class HistoryProjector:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        bus: EventBus,
        topics: Iterable[str] = TOPICS,
    ):
        self.session_factory = session_factory
        self.bus = bus
        self.topics = tuple(topics)

    def start(self) -> None:
        for topic in self.topics:
            self.bus.subscribe(topic, self._handler_for(topic))
        logger.info(f"History projector listening on {len(self.topics)} topics")

    def _handler_for(self, topic: str) -> Callable[[Dict[str, Any]], ProjectionOutcome]:
        def handle(data: Dict[str, Any]) -> ProjectionOutcome:
            return self.project(topic, data)
        return handle

    def project(self, topic: str, data: Any) -> ProjectionOutcome:
        if not isinstance(data, dict):
            logger.warning(f"Ignoring {topic}: payload is not an object")
            return ProjectionOutcome.SKIPPED

        asset_id = data.get("customId")
        if not isinstance(asset_id, str) or not asset_id.strip():
            logger.warning(
                f"Ignoring {topic}: payload has no customId",
                extra={'extra_fields': {'keys': sorted(data)}}
            )
            return ProjectionOutcome.SKIPPED

        with asset_context(asset_id):
            return self._record(topic, asset_id, data)

    def _record(self, topic: str, asset_id: str, data: Dict[str, Any]) -> ProjectionOutcome:
        action, details = describe(topic, data)
        timestamp = parse_timestamp(data.get("timestamp"))
        rows = [(asset_id, action, details), *related_rows(topic, data)]

        session = self.session_factory()
        try:
            session.add_all([
                HistoryEntry(asset_id=row_id, action=row_action, details=row_details, timestamp=timestamp)
                for row_id, row_action, row_details in rows
            ])
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.error(f"Failed to record {topic} for {asset_id}; event dropped", exc_info=True)
            return ProjectionOutcome.FAILED
        finally:
            session.close()

        logger.info(
            f"Recorded {action} for {asset_id}",
            extra={'extra_fields': {'asset_id': asset_id, 'action': action}}
        )
        return ProjectionOutcome.RECORDED
