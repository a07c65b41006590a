from typing import List
from shared.core import EventBus, asset_context, get_logger
from shared.core.events import ASSET_CREATED, ASSET_DELETED, ASSET_UPDATED, utc_timestamp
from ..domain.errors import AssetNotFoundError
from ..domain.models import Asset, AssetStatus, HistoryEvent
from ..infrastructure.asset_store import AssetStore
from .schemas import AssetCreate, DetailsUpdate, StatusUpdate

logger = get_logger(__name__)

class AssetService:
    """Lifecycle operations around transfers: create, read, status and detail updates, delete."""

    def __init__(self, store: AssetStore, bus: EventBus):
        self.store = store
        self.bus = bus

    def list(self) -> List[Asset]:
        return self.store.list_assets()

    def get(self, custom_id: str) -> Asset:
        asset = self.store.find_by_custom_id(custom_id)
        if asset is None:
            raise AssetNotFoundError(custom_id)
        return asset

    def create(self, data: AssetCreate) -> Asset:
        asset = Asset(
            custom_id=data.custom_id,
            name=data.name,
            type=data.type,
            value=data.value,
            quantity=data.quantity,
            location=data.location,
            department=data.department,
            status=AssetStatus.ACTIVE.value,
            assigned_user=None,
            specifications=dict(data.specifications),
            history=[],
        )
        asset.record(HistoryEvent.CREATED, f"Initial batch of {data.quantity} created at {data.location}")
        self.store.create_asset(asset)
        self.store.commit(asset.custom_id)

        self.bus.publish(ASSET_CREATED, {
            "customId": asset.custom_id,
            "name": asset.name,
            "location": asset.location,
            "quantity": asset.quantity,
            "timestamp": utc_timestamp(),
        })
        logger.info(f"Asset {asset.custom_id} created with quantity {asset.quantity}")
        return asset

    def update_status(self, custom_id: str, data: StatusUpdate) -> Asset:
        with asset_context(custom_id):
            asset = self.get(custom_id)
            fields = ["status"]
            asset.status = data.status

            if data.status == AssetStatus.ASSIGNED.value:
                asset.assigned_user = data.assigned_user
                fields.append("assignedUser")
                asset.record(HistoryEvent.ASSET_ASSIGNED, f"Assigned to {data.assigned_user}")
            elif data.status == AssetStatus.REPAIR.value:
                asset.record(HistoryEvent.ASSET_FAULT_REPORTED, "Fault reported, sent for repair")
            else:
                asset.record(HistoryEvent.STATUS_CHANGE, f"Status changed to {data.status}")

            self.store.save_asset(asset)
            self.store.commit(custom_id)
            self._publish_update(asset, fields)
            return asset

    def update_details(self, custom_id: str, data: DetailsUpdate) -> Asset:
        with asset_context(custom_id):
            asset = self.get(custom_id)
            changes = data.model_dump(exclude_none=True)
            fields = [name for name, value in changes.items() if getattr(asset, name) != value]
            if not fields:
                return asset

            for name in fields:
                setattr(asset, name, changes[name])
            asset.record(HistoryEvent.INFO_UPDATE, "Updated " + ", ".join(fields))

            self.store.save_asset(asset)
            self.store.commit(custom_id)
            self._publish_update(asset, fields)
            return asset

    def _publish_update(self, asset: Asset, fields: List[str]) -> None:
        outcome = self.bus.publish(ASSET_UPDATED, {
            "customId": asset.custom_id,
            "fields": fields,
            "status": asset.status,
            "timestamp": utc_timestamp(),
        })
        logger.info(f"Asset {asset.custom_id} updated: {', '.join(fields)} ({outcome.value})")

    def delete(self, custom_id: str) -> None:
        asset = self.get(custom_id)
        self.store.delete_asset(asset)
        self.store.commit(custom_id)

        self.bus.publish(ASSET_DELETED, {"customId": custom_id, "timestamp": utc_timestamp()})
        logger.info(f"Asset {custom_id} deleted")
