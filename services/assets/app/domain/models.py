from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Integer, Float, JSON, DateTime, CheckConstraint, func
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from enum import Enum

from .catalog import DEFAULT_DEPARTMENT, DEFAULT_LOCATION

class Base(DeclarativeBase):
    pass

class AssetStatus(str, Enum):
    ACTIVE = "active"
    REPAIR = "repair"
    RETIRED = "retired"
    ASSIGNED = "assigned"
    MAINTENANCE = "maintenance"

class HistoryEvent(str, Enum):
    CREATED = "Created"
    TRANSFER = "Transfer"
    DISTRIBUTED = "Distributed"
    RECEIVED_DISTRIBUTION = "Received_Distribution"
    STATUS_CHANGE = "StatusChange"
    ASSET_ASSIGNED = "AssetAssigned"
    ASSET_FAULT_REPORTED = "AssetFaultReported"
    INFO_UPDATE = "InfoUpdate"

class Asset(Base):
    __tablename__ = "assets"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_assets_quantity_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    # External identity; split siblings derive theirs from the parent's
    custom_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    type: Mapped[str] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(20), default=AssetStatus.ACTIVE.value)
    value: Mapped[float] = mapped_column(Float, default=0)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    location: Mapped[str] = mapped_column(String(50), default=DEFAULT_LOCATION)
    department: Mapped[str] = mapped_column(String(50), default=DEFAULT_DEPARTMENT)
    assigned_user: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    specifications: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    # Embedded audit trail: [{"event", "details", "date"}], append only
    history: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}

    def record(self, event: HistoryEvent, details: str) -> None:
        """Append a history entry. The list is replaced so the JSON column is flagged dirty."""
        entry = {
            "event": event.value,
            "details": details,
            "date": datetime.now(timezone.utc).isoformat(),
        }
        self.history = [*(self.history or []), entry]
