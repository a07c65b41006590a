"""
History worker.

Run with ``python -m services.history.app.worker``. Refuses to start
without the broker; once running it rides out broker restarts.
"""

import signal
import sys
import threading

from shared.core import RedisEventBus, EventBusUnavailable, setup_logging, get_logger, wait_for_broker
from .application.projector import HistoryProjector
from .core_settings import get_settings
from .infrastructure.db import get_engine, get_session_factory, init_models

SERVICE_NAME = "history-worker"

logger = get_logger(__name__)


def main() -> int:
    settings = get_settings()
    setup_logging(service_name=SERVICE_NAME, level=settings.LOG_LEVEL, secrets=[settings.POSTGRES_PASSWORD])

    bus = RedisEventBus(
        settings.REDIS_URL,
        settings.EVENT_CHANNEL_PREFIX,
        reconnect_delay=settings.RECONNECT_DELAY_SECONDS,
    )
    try:
        wait_for_broker(bus, settings.BROKER_WAIT_ATTEMPTS, settings.BROKER_WAIT_DELAY_SECONDS)
    except EventBusUnavailable as e:
        logger.critical(f"{SERVICE_NAME} cannot start: {e}")
        return 1

    init_models()

    projector = HistoryProjector(get_session_factory(), bus)
    projector.start()

    stop = threading.Event()

    def shutdown(signum, frame):
        logger.info(f"Received signal {signum}, stopping")
        stop.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    logger.info(f"{SERVICE_NAME} consuming events")
    try:
        bus.listen(stop)
    finally:
        bus.close()
        get_engine().dispose()
        logger.info(f"{SERVICE_NAME} stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
