from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class BrandCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Brand name")


class BrandUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class BrandResponse(BaseModel):
    id: str
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


class DeviceModelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Model name")
    brand_id: str = Field(..., min_length=1)


class DeviceModelUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    brand_id: Optional[str] = Field(None, min_length=1)


class DeviceModelResponse(BaseModel):
    id: str
    name: str
    brand_id: str
    created_at: datetime
    brand: Optional[BrandResponse] = None

    class Config:
        from_attributes = True


class BrandWithModels(BrandResponse):
    models: List[DeviceModelResponse] = []
