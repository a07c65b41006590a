"""
SQLAlchemy backed Asset Store.

create_asset/save_asset/delete_asset only flush; commit() ends the unit of
work so that a split's source update and sibling insert land together.
Every UPDATE is guarded by the mapper's version column, so a concurrent
writer on the same row makes the later commit fail instead of overdrawing.
"""

from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from shared.core import get_logger
from ..domain.errors import AssetConflictError, StorageFailureError
from ..domain.models import Asset

logger = get_logger(__name__)


class AssetStore:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, action: str, custom_id: Optional[str] = None):
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Integrity error while trying to {action} {custom_id}: {e.orig}")
            message = f"Asset ID already exists: {custom_id}" if custom_id else "Asset write conflicts with an existing record"
            raise AssetConflictError(message, custom_id) from e
        except StaleDataError as e:
            self.db.rollback()
            logger.warning(f"Concurrent modification while trying to {action} {custom_id}")
            raise AssetConflictError(
                f"Asset {custom_id} was modified concurrently, retry the request", custom_id
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Storage failure while trying to {action} {custom_id}", exc_info=True)
            raise StorageFailureError(f"Could not {action} asset", custom_id) from e

    def find_by_custom_id(self, custom_id: str) -> Optional[Asset]:
        with self._guard("load", custom_id):
            return self.db.execute(
                select(Asset).where(Asset.custom_id == custom_id)
            ).scalar_one_or_none()

    def exists(self, custom_id: str) -> bool:
        with self._guard("look up", custom_id):
            return self.db.execute(
                select(Asset.id).where(Asset.custom_id == custom_id)
            ).first() is not None

    def list_assets(self) -> List[Asset]:
        with self._guard("list"):
            return list(self.db.execute(
                select(Asset).order_by(Asset.created_at.desc(), Asset.id.desc())
            ).scalars())

    def create_asset(self, asset: Asset) -> Asset:
        with self._guard("create", asset.custom_id):
            self.db.add(asset)
            self.db.flush()
        return asset

    def save_asset(self, asset: Asset) -> Asset:
        with self._guard("save", asset.custom_id):
            self.db.add(asset)
            self.db.flush()
        return asset

    def delete_asset(self, asset: Asset) -> None:
        with self._guard("delete", asset.custom_id):
            self.db.delete(asset)
            self.db.flush()

    def commit(self, custom_id: Optional[str] = None) -> None:
        """custom_id names the record a constraint failure is reported against."""
        with self._guard("commit", custom_id):
            self.db.commit()
