from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from apps.repairs.models import RepairStatus


class RepairPartIn(BaseModel):
    spare_part_id: str = Field(..., min_length=1)
    quantity_used: int = Field(..., gt=0, description="Units taken from stock")
    price_at_time: Optional[float] = Field(
        None, ge=0, description="Unit price charged; defaults to the part's selling price"
    )


class RepairBase(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field(..., min_length=1, max_length=50)
    device_brand_id: str = Field(..., min_length=1)
    device_model_id: str = Field(..., min_length=1)
    issue_type: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    labor_cost: float = Field(0.0, ge=0)


class RepairCreate(RepairBase):
    total_cost: Optional[float] = Field(None, ge=0, description="Defaults to labor plus parts")
    profit: Optional[float] = Field(None, description="Defaults to total cost minus parts purchase price")
    status: RepairStatus = RepairStatus.PENDING
    used_parts: List[RepairPartIn] = []


class RepairUpdate(BaseModel):
    customer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    customer_phone: Optional[str] = Field(None, min_length=1, max_length=50)
    device_brand_id: Optional[str] = Field(None, min_length=1)
    device_model_id: Optional[str] = Field(None, min_length=1)
    issue_type: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    labor_cost: Optional[float] = Field(None, ge=0)
    total_cost: Optional[float] = Field(None, ge=0)
    profit: Optional[float] = None


class RepairStatusUpdate(BaseModel):
    status: RepairStatus


class RepairPartsUpdate(BaseModel):
    used_parts: List[RepairPartIn] = []
    total_cost: Optional[float] = Field(None, ge=0)
    profit: Optional[float] = None


class SparePartSummary(BaseModel):
    id: str
    name: str
    part_type: str
    screen_quality: Optional[str] = None


class BrandSummary(BaseModel):
    id: str
    name: str


class ModelSummary(BaseModel):
    id: str
    name: str
    brand_id: str


class RepairPartResponse(BaseModel):
    id: str
    repair_id: str
    spare_part_id: str
    quantity_used: int
    price_at_time: float
    created_at: datetime
    spare_part: Optional[SparePartSummary] = None


class RepairResponse(RepairBase):
    id: str
    description: Optional[str] = None
    total_cost: float
    profit: float
    status: RepairStatus
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    brand: Optional[BrandSummary] = None
    model: Optional[ModelSummary] = None
    repair_parts: List[RepairPartResponse] = []

    class Config:
        from_attributes = True


class RepairListResponse(BaseModel):
    items: List[RepairResponse]
    total: int
    page: int
    size: int
    total_pages: int
