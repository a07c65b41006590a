from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Text, DateTime
import datetime

class Base(DeclarativeBase):
    pass

class HistoryEntry(Base):
    """One ledger row per delivered domain event. Never updated or deleted."""
    __tablename__ = "history"
    id: Mapped[int] = mapped_column(primary_key=True)
    # customId of the asset; no foreign key, the asset may already be gone
    asset_id: Mapped[str] = mapped_column(String(255), index=True)
    action: Mapped[str] = mapped_column(String(50))
    details: Mapped[str] = mapped_column(Text)
    timestamp: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), index=True)
