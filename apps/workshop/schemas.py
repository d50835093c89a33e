from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class WorkshopSettingsUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=50)
    thank_you_message: Optional[str] = None


class WorkshopSettingsResponse(BaseModel):
    id: str
    name: str
    address: str
    phone: str
    thank_you_message: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
