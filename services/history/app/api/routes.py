from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..application.schemas import HistoryRead
from ..domain.models import HistoryEntry
from ..infrastructure.db import get_db

router = APIRouter(prefix="/history", tags=["history"])

@router.get("/", response_model=List[HistoryRead])
def list_history(limit: int = Query(100, ge=1, le=1000), db: Session = Depends(get_db)):
    stmt = select(HistoryEntry).order_by(HistoryEntry.timestamp.desc(), HistoryEntry.id.desc()).limit(limit)
    return db.scalars(stmt).all()

@router.get("/{asset_id}", response_model=List[HistoryRead])
def asset_history(asset_id: str, db: Session = Depends(get_db)):
    # An unknown asset, or one whose events never arrived, is an empty ledger
    stmt = (
        select(HistoryEntry)
        .where(HistoryEntry.asset_id == asset_id)
        .order_by(HistoryEntry.timestamp.desc(), HistoryEntry.id.desc())
    )
    return db.scalars(stmt).all()
