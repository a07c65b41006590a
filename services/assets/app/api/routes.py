from typing import Union
from fastapi import APIRouter, Depends
from ..application.schemas import (
    AssetCreate,
    AssetRead,
    ConfigRead,
    DetailsUpdate,
    SplitRead,
    StatusUpdate,
    TransferCommand,
    TransferRequest,
)
from ..application.service import AssetService
from ..application.transfer import TransferResult, TransferService
from ..domain.catalog import ASSET_TYPES, BUILDINGS, DEPARTMENTS
from .dependencies import get_asset_service, get_transfer_service

router = APIRouter(prefix="/assets", tags=["assets"])
config_router = APIRouter(tags=["config"])

TransferResponse = Union[SplitRead, AssetRead]

def _transfer_response(result: TransferResult) -> TransferResponse:
    if result.is_split:
        return SplitRead(
            original=AssetRead.model_validate(result.source),
            new_batch=AssetRead.model_validate(result.new_batch),
        )
    return AssetRead.model_validate(result.source)

@router.get("/", response_model=list[AssetRead])
def list_assets(service: AssetService = Depends(get_asset_service)):
    return service.list()

@router.post("/", response_model=AssetRead, status_code=201)
def create_asset(payload: AssetCreate, service: AssetService = Depends(get_asset_service)):
    return service.create(payload)

@router.post("/transfer", response_model=TransferResponse)
def transfer(payload: TransferCommand, service: TransferService = Depends(get_transfer_service)):
    """Transfer by body. Returns the asset (full move) or {original, newBatch} (split)."""
    result = service.transfer(
        payload.custom_id, payload.destination_type, payload.destination, payload.quantity_to_move
    )
    return _transfer_response(result)

@router.get("/{custom_id}", response_model=AssetRead)
def get_asset(custom_id: str, service: AssetService = Depends(get_asset_service)):
    return service.get(custom_id)

@router.patch("/{custom_id}/transfer", response_model=TransferResponse)
def transfer_asset(
    custom_id: str,
    payload: TransferRequest,
    service: TransferService = Depends(get_transfer_service),
):
    result = service.transfer(
        custom_id, payload.destination_type, payload.destination, payload.quantity_to_move
    )
    return _transfer_response(result)

@router.patch("/{custom_id}/status", response_model=AssetRead)
def update_status(custom_id: str, payload: StatusUpdate, service: AssetService = Depends(get_asset_service)):
    return service.update_status(custom_id, payload)

@router.patch("/{custom_id}/details", response_model=AssetRead)
def update_details(custom_id: str, payload: DetailsUpdate, service: AssetService = Depends(get_asset_service)):
    return service.update_details(custom_id, payload)

@router.delete("/{custom_id}", status_code=204)
def delete_asset(custom_id: str, service: AssetService = Depends(get_asset_service)):
    service.delete(custom_id)
    return None

@config_router.get("/config", response_model=ConfigRead)
def get_config():
    return ConfigRead(buildings=BUILDINGS, departments=DEPARTMENTS, asset_types=ASSET_TYPES)
