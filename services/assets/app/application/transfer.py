"""
Transfer/Split engine.

A transfer either moves the whole asset (the record is updated in place)
or distributes part of it: the source shrinks and a sibling record named
``<parent>-SPLIT-<NNNN>`` is created for the moved units. Quantity is
conserved in both cases.

The sibling id is reserved before the source is touched, and the source
update and sibling insert are committed together, so a failed split never
leaves units missing. Events and the low stock alert are sent only after
the commit and cannot change the outcome.
"""

import copy
import math
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from shared.core import EventBus, PublishOutcome, asset_context, get_logger
from shared.core.events import ASSET_TRANSFERRED, FULL_TRANSFER, SPLIT_DISTRIBUTION, utc_timestamp
from ..domain.catalog import canonical_building, canonical_department
from ..domain.errors import (
    AssetConflictError,
    AssetNotFoundError,
    InvalidDestinationError,
    InvalidQuantityError,
)
from ..domain.models import Asset, AssetStatus, HistoryEvent
from ..infrastructure.asset_store import AssetStore
from .low_stock import LowStockAlert, LowStockPolicy

logger = get_logger(__name__)

SPLIT_ID_ATTEMPTS = 5


@dataclass
class TransferResult:
    kind: str
    source: Asset
    moved_quantity: int
    new_batch: Optional[Asset] = None
    published: PublishOutcome = PublishOutcome.SKIPPED
    low_stock: Optional[LowStockAlert] = None

    @property
    def is_split(self) -> bool:
        return self.kind == SPLIT_DISTRIBUTION


def build_update(destination_type: str, destination: Any) -> Dict[str, Any]:
    """Fields a transfer of the given type sets on the receiving record."""
    kind = destination_type.strip().lower() if isinstance(destination_type, str) else None

    if kind == "building":
        location = canonical_building(destination)
        if location is None:
            raise InvalidDestinationError(kind, destination)
        return {"location": location, "status": AssetStatus.ACTIVE.value, "assigned_user": None}

    if kind == "department":
        department = canonical_department(destination)
        if department is None:
            raise InvalidDestinationError(kind, destination)
        return {"department": department}

    if kind == "user":
        if not isinstance(destination, str) or not destination.strip():
            raise InvalidDestinationError(kind, destination, "User destination must not be blank")
        return {"assigned_user": destination.strip(), "status": AssetStatus.ASSIGNED.value}

    raise InvalidDestinationError(
        destination_type, destination,
        f"Unknown destination type: {destination_type!r} (expected building, department or user)"
    )


def resolve_move_quantity(requested: Any, available: int, custom_id: Optional[str] = None) -> int:
    """Units to move.

    Absent, zero, negative and non-numeric requests mean the full quantity.
    Fractions and requests above the available stock are rejected.
    """
    if requested is None or isinstance(requested, bool):
        return available

    if isinstance(requested, int):
        number = requested
    else:
        try:
            number = float(requested.strip() if isinstance(requested, str) else requested)
        except (TypeError, ValueError):
            return available
        if math.isnan(number):
            return available
        if math.isinf(number) and number > 0:
            raise InvalidQuantityError(
                "Not enough quantity.", custom_id, requested=requested, available=available
            )
        if number > 0 and not number.is_integer():
            raise InvalidQuantityError(
                f"Quantity to move must be a whole number, got {requested}", custom_id,
                requested=requested, available=available
            )

    if number <= 0:
        return available

    move_qty = int(number)
    if move_qty > available:
        raise InvalidQuantityError(
            f"Not enough quantity. Requested {move_qty}, available {available}", custom_id,
            requested=requested, available=available
        )
    return move_qty


class TransferService:
    def __init__(
        self,
        store: AssetStore,
        bus: EventBus,
        low_stock: LowStockPolicy,
        split_id_attempts: int = SPLIT_ID_ATTEMPTS,
        suffix_factory: Optional[Callable[[], int]] = None,
    ):
        self.store = store
        self.bus = bus
        self.low_stock = low_stock
        self.split_id_attempts = split_id_attempts
        self._suffix = suffix_factory or (lambda: random.randint(1000, 9999))

    def transfer(
        self,
        custom_id: str,
        destination_type: str,
        destination: Any,
        quantity_to_move: Any = None,
    ) -> TransferResult:
        with asset_context(custom_id):
            return self._transfer(custom_id, destination_type, destination, quantity_to_move)

    def _transfer(self, custom_id: str, destination_type: str, destination: Any, quantity_to_move: Any) -> TransferResult:
        asset = self.store.find_by_custom_id(custom_id)
        if asset is None:
            raise AssetNotFoundError(custom_id)

        update = build_update(destination_type, destination)
        kind = destination_type.strip().lower()
        # Canonical spelling of what was asked for, e.g. "k building" -> "K Building"
        target = update.get("location") or update.get("department") or update.get("assigned_user")
        move_qty = resolve_move_quantity(quantity_to_move, asset.quantity, custom_id)

        if move_qty == asset.quantity:
            result = self._full_move(asset, kind, target, update, move_qty)
        else:
            result = self._split(asset, target, update, move_qty)

        payload = {
            "customId": asset.custom_id,
            "destinationType": kind,
            "destination": target,
            "quantity": move_qty,
            "type": result.kind,
            "timestamp": utc_timestamp(),
        }
        if result.is_split:
            payload["newBatchId"] = result.new_batch.custom_id
            payload["originalId"] = asset.custom_id
            payload["remainingQuantity"] = asset.quantity
        result.published = self.bus.publish(ASSET_TRANSFERRED, payload)

        if result.is_split:
            result.low_stock = self.low_stock.evaluate(asset)

        logger.info(
            f"Transfer of {custom_id} completed",
            extra={'extra_fields': {
                'custom_id': custom_id,
                'type': result.kind,
                'quantity': move_qty,
                'destination_type': kind,
                'destination': target,
                'new_batch_id': result.new_batch.custom_id if result.new_batch else None,
                'published': result.published.value,
                'low_stock': result.low_stock is not None,
            }}
        )
        return result

    def _full_move(self, asset: Asset, kind: str, target: str, update: Dict[str, Any], move_qty: int) -> TransferResult:
        for field, value in update.items():
            setattr(asset, field, value)
        asset.record(HistoryEvent.TRANSFER, f"Moved to {kind}: {target}")
        self.store.save_asset(asset)
        self.store.commit(asset.custom_id)
        return TransferResult(kind=FULL_TRANSFER, source=asset, moved_quantity=move_qty)

    def _split(self, asset: Asset, target: str, update: Dict[str, Any], move_qty: int) -> TransferResult:
        new_id = self._reserve_split_id(asset.custom_id)

        asset.quantity -= move_qty
        asset.record(HistoryEvent.DISTRIBUTED, f"Sent {move_qty} units to {target}")
        self.store.save_asset(asset)

        new_batch = Asset(
            custom_id=new_id,
            name=asset.name,
            type=asset.type,
            value=asset.value,
            quantity=move_qty,
            location=update.get("location", asset.location),
            department=update.get("department", asset.department),
            status=update.get("status", asset.status),
            assigned_user=update.get("assigned_user"),
            specifications=copy.deepcopy(asset.specifications or {}),
            history=[],
        )
        new_batch.record(HistoryEvent.RECEIVED_DISTRIBUTION, f"Split from {asset.custom_id}")
        self.store.create_asset(new_batch)

        # Decrement and sibling insert commit (or roll back) together
        self.store.commit(new_id)
        return TransferResult(kind=SPLIT_DISTRIBUTION, source=asset, moved_quantity=move_qty, new_batch=new_batch)

    def _reserve_split_id(self, parent_id: str) -> str:
        for _ in range(self.split_id_attempts):
            candidate = f"{parent_id}-SPLIT-{self._suffix()}"
            if not self.store.exists(candidate):
                return candidate
            logger.info(f"Split id {candidate} already taken, drawing another")
        raise AssetConflictError(
            f"Could not derive a free split id for {parent_id} after {self.split_id_attempts} attempts",
            parent_id,
        )
