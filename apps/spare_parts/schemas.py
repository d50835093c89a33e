from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime


class SparePartBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Spare part name")
    part_type: str = Field(..., min_length=1, max_length=100, description="Kind of part, e.g. screen")
    screen_quality: Optional[str] = Field(None, max_length=100, description="Screen grade, for screens")
    brand_id: str = Field(..., min_length=1)
    model_id: str = Field(..., min_length=1)
    quantity: int = Field(0, ge=0, description="Quantity cannot be negative")
    purchase_price: float = Field(0.0, ge=0)
    selling_price: float = Field(0.0, ge=0)
    low_stock_alert: int = Field(0, ge=0, description="Stock level that triggers an alert")

    @field_validator("part_type")
    @classmethod
    def part_type_lowercase(cls, v):
        return v.strip().lower()


class SparePartCreate(SparePartBase):
    pass


class SparePartUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    part_type: Optional[str] = Field(None, min_length=1, max_length=100)
    screen_quality: Optional[str] = Field(None, max_length=100)
    brand_id: Optional[str] = Field(None, min_length=1)
    model_id: Optional[str] = Field(None, min_length=1)
    quantity: Optional[int] = Field(None, ge=0)
    purchase_price: Optional[float] = Field(None, ge=0)
    selling_price: Optional[float] = Field(None, ge=0)
    low_stock_alert: Optional[int] = Field(None, ge=0)

    @field_validator("part_type")
    @classmethod
    def part_type_lowercase(cls, v):
        if v is not None:
            return v.strip().lower()
        return v


class BrandSummary(BaseModel):
    id: str
    name: str


class ModelSummary(BaseModel):
    id: str
    name: str
    brand_id: str


class SparePartResponse(SparePartBase):
    id: str
    created_at: datetime
    updated_at: datetime
    brand: Optional[BrandSummary] = None
    model: Optional[ModelSummary] = None

    class Config:
        from_attributes = True


class SparePartStockUpdate(BaseModel):
    quantity_change: int = Field(..., description="Positive to add stock, negative to remove")
    reason: Optional[str] = Field(None, description="Reason for stock change")


class SparePartListResponse(BaseModel):
    items: List[SparePartResponse]
    total: int
    page: int
    size: int
    total_pages: int


class LowStockAlert(BaseModel):
    spare_part: SparePartResponse
    current_stock: int
    minimum_level: int
    needs_reorder: bool
