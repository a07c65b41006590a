from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from datetime import datetime

class HistoryRead(BaseModel):
    id: int
    asset_id: str
    action: str
    details: str
    timestamp: datetime

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
