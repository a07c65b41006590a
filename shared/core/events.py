"""Domain event topics and the envelope published on the bus."""

from datetime import datetime, timezone
from typing import Any, Dict
from pydantic import BaseModel, Field

ASSET_CREATED = "asset.created"
ASSET_UPDATED = "asset.updated"
ASSET_DELETED = "asset.deleted"
ASSET_TRANSFERRED = "asset.transferred"
ASSET_LOW_STOCK = "asset.low_stock"

TOPICS = (
    ASSET_CREATED,
    ASSET_UPDATED,
    ASSET_DELETED,
    ASSET_TRANSFERRED,
    ASSET_LOW_STOCK,
)

# asset.transferred discriminators
FULL_TRANSFER = "FULL_TRANSFER"
SPLIT_DISTRIBUTION = "SPLIT_DISTRIBUTION"


class DomainEvent(BaseModel):
    """Wire envelope: {"topic": ..., "data": {...}}. The data shape is not enforced."""
    topic: str
    data: Dict[str, Any] = Field(default_factory=dict)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()
