from functools import lru_cache
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from shared.core import EventBus, RedisEventBus
from ..core_settings import get_settings
from ..infrastructure.db import get_db
from ..infrastructure.asset_store import AssetStore
from ..infrastructure.notification import NotificationClient
from ..application.low_stock import LowStockPolicy
from ..application.service import AssetService
from ..application.transfer import TransferService

def get_event_bus(request: Request) -> EventBus:
    bus = getattr(request.app.state, "event_bus", None)
    if bus is None:
        # Lifespan did not run: behave like a broker outage, publishes become no-ops
        settings = get_settings()
        bus = RedisEventBus(settings.REDIS_URL, settings.EVENT_CHANNEL_PREFIX)
        request.app.state.event_bus = bus
    return bus

@lru_cache
def get_notification_client() -> NotificationClient:
    settings = get_settings()
    return NotificationClient(
        url=settings.NOTIFICATION_API_URL,
        internal_secret=settings.INTERNAL_SECRET,
        timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
    )

def get_asset_store(db: Session = Depends(get_db)) -> AssetStore:
    return AssetStore(db)

def get_low_stock_policy(
    notifier: NotificationClient = Depends(get_notification_client),
    bus: EventBus = Depends(get_event_bus),
) -> LowStockPolicy:
    settings = get_settings()
    return LowStockPolicy(
        notifier=notifier,
        bus=bus,
        threshold=settings.LOW_STOCK_THRESHOLD,
        admin_id=settings.ADMIN_ID,
        admin_email=settings.ADMIN_EMAIL,
    )

def get_transfer_service(
    store: AssetStore = Depends(get_asset_store),
    bus: EventBus = Depends(get_event_bus),
    low_stock: LowStockPolicy = Depends(get_low_stock_policy),
) -> TransferService:
    return TransferService(store, bus, low_stock, split_id_attempts=get_settings().SPLIT_ID_ATTEMPTS)

def get_asset_service(
    store: AssetStore = Depends(get_asset_store),
    bus: EventBus = Depends(get_event_bus),
) -> AssetService:
    return AssetService(store, bus)
