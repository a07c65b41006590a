from pydantic import BaseModel, Field, AliasChoices, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from ..domain.catalog import (
    DEFAULT_DEPARTMENT,
    DEFAULT_LOCATION,
    canonical_asset_type,
    canonical_building,
    canonical_department,
)

DestinationType = Literal["building", "department", "user"]
StatusValue = Literal["active", "repair", "retired", "assigned", "maintenance"]

class AssetCreate(BaseModel):
    custom_id: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1)
    type: str
    value: float = Field(0, ge=0)
    quantity: int = Field(1, ge=1)
    location: str = DEFAULT_LOCATION
    department: str = DEFAULT_DEPARTMENT
    specifications: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("type")
    @classmethod
    def _canonical_type(cls, value: str) -> str:
        canonical = canonical_asset_type(value)
        if canonical is None:
            raise ValueError(f"Unknown asset type: {value}")
        return canonical

    @field_validator("location")
    @classmethod
    def _canonical_location(cls, value: str) -> str:
        canonical = canonical_building(value)
        if canonical is None:
            raise ValueError(f"Unknown location: {value}")
        return canonical

    @field_validator("department")
    @classmethod
    def _canonical_department(cls, value: str) -> str:
        canonical = canonical_department(value)
        if canonical is None:
            raise ValueError(f"Unknown department: {value}")
        return canonical

class HistoryEntryRead(BaseModel):
    event: str
    details: str
    date: Optional[str] = None

class AssetRead(BaseModel):
    custom_id: str
    name: str
    type: str
    status: str
    value: float
    quantity: int
    location: str
    department: str
    assigned_user: Optional[str] = None
    specifications: Dict[str, Any] = Field(default_factory=dict)
    history: List[HistoryEntryRead] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True

class TransferRequest(BaseModel):
    destination_type: DestinationType = Field(
        validation_alias=AliasChoices("destinationType", "destType", "destination_type")
    )
    destination: str
    # Loosely typed on purpose: absent, zero or non-numeric means "move everything"
    quantity_to_move: Optional[Any] = Field(
        None, validation_alias=AliasChoices("quantityToMove", "quantity_to_move")
    )

    @field_validator("destination_type", mode="before")
    @classmethod
    def _lower_destination_type(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

class TransferCommand(TransferRequest):
    custom_id: str = Field(validation_alias=AliasChoices("customId", "custom_id"))

class StatusUpdate(BaseModel):
    status: StatusValue
    assigned_user: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("status", mode="before")
    @classmethod
    def _lower_status(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _assignee_required(self) -> "StatusUpdate":
        if self.assigned_user is not None:
            self.assigned_user = self.assigned_user.strip() or None
        if self.status == "assigned" and not self.assigned_user:
            raise ValueError("assignedUser is required when status is assigned")
        return self

class DetailsUpdate(BaseModel):
    """Descriptive fields only. Quantity and placement change through transfers."""
    name: Optional[str] = Field(None, min_length=1)
    type: Optional[str] = None
    department: Optional[str] = None
    value: Optional[float] = Field(None, ge=0)
    specifications: Optional[Dict[str, Any]] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "forbid"

    @field_validator("type")
    @classmethod
    def _canonical_type(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        canonical = canonical_asset_type(value)
        if canonical is None:
            raise ValueError(f"Unknown asset type: {value}")
        return canonical

    @field_validator("department")
    @classmethod
    def _canonical_department(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        canonical = canonical_department(value)
        if canonical is None:
            raise ValueError(f"Unknown department: {value}")
        return canonical

class SplitRead(BaseModel):
    original: AssetRead
    new_batch: AssetRead

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class ConfigRead(BaseModel):
    buildings: List[str]
    departments: List[str]
    asset_types: List[Dict[str, str]]

    class Config:
        alias_generator = to_camel
        populate_by_name = True
