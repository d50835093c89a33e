from fastapi import APIRouter, Depends, status, Query
from typing import List, Optional
from apps.spare_parts.schemas import (
    SparePartCreate,
    SparePartUpdate,
    SparePartResponse,
    SparePartStockUpdate,
    SparePartListResponse,
    LowStockAlert
)
from apps.spare_parts.services import SparePartService, get_spare_part_service
import math

router = APIRouter()

# ============ STATIC ROUTES FIRST (before /{spare_part_id}) ============

@router.get(
    "/alerts/low-stock",
    response_model=List[LowStockAlert],
    summary="Get low stock alerts",
    description="Get all spare parts at or below their low stock alert level"
)
def get_low_stock_alerts(
    service: SparePartService = Depends(get_spare_part_service)
):
    """Get low stock alerts"""
    return service.get_low_stock_items()

@router.get(
    "/types/all",
    response_model=List[str],
    summary="Get all part types",
    description="Get all unique spare part types"
)
def get_part_types(
    service: SparePartService = Depends(get_spare_part_service)
):
    """Get all unique part types"""
    return service.get_part_types()

@router.get(
    "/search/quick",
    response_model=List[SparePartResponse],
    summary="Quick search",
    description="Quick search for spare parts by name, type or screen quality"
)
def quick_search(
    q: str = Query(..., min_length=1, description="Search query"),
    limit: int = Query(10, ge=1, le=50, description="Number of results"),
    service: SparePartService = Depends(get_spare_part_service)
):
    """Quick search for spare parts"""
    spare_parts, _ = service.get_spare_parts(skip=0, limit=limit, search=q)
    return spare_parts

# ============ CRUD ROUTES ============

@router.post(
    "/",
    response_model=SparePartResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new spare part",
    description="Create a new spare part in the inventory"
)
def create_spare_part(
    spare_part: SparePartCreate,
    service: SparePartService = Depends(get_spare_part_service)
):
    """Create a new spare part"""
    return service.create_spare_part(spare_part)

@router.get(
    "/",
    response_model=SparePartListResponse,
    summary="Get all spare parts",
    description="Retrieve spare parts with filtering and pagination"
)
def get_spare_parts(
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Number of items to return"),
    search: Optional[str] = Query(None, description="Search in name, type or screen quality"),
    part_type: Optional[str] = Query(None, description="Filter by part type"),
    brand_id: Optional[str] = Query(None, description="Filter by brand"),
    model_id: Optional[str] = Query(None, description="Filter by device model"),
    low_stock_only: bool = Query(False, description="Show only low stock items"),
    service: SparePartService = Depends(get_spare_part_service)
):
    """Get spare parts with filtering and pagination"""
    spare_parts, total = service.get_spare_parts(
        skip=skip,
        limit=limit,
        search=search,
        part_type=part_type,
        brand_id=brand_id,
        model_id=model_id,
        low_stock_only=low_stock_only
    )

    total_pages = math.ceil(total / limit) if limit > 0 else 1
    current_page = (skip // limit) + 1 if limit > 0 else 1

    return SparePartListResponse(
        items=spare_parts,
        total=total,
        page=current_page,
        size=limit,
        total_pages=total_pages
    )

# ============ DYNAMIC ROUTES (must come after static routes) ============

@router.get(
    "/{spare_part_id}",
    response_model=SparePartResponse,
    summary="Get spare part by ID",
    description="Retrieve a specific spare part by its ID"
)
def get_spare_part(
    spare_part_id: str,
    service: SparePartService = Depends(get_spare_part_service)
):
    """Get a specific spare part by ID"""
    return service.get_spare_part(spare_part_id)

@router.put(
    "/{spare_part_id}",
    response_model=SparePartResponse,
    summary="Update spare part",
    description="Update an existing spare part; only the fields sent are changed"
)
def update_spare_part(
    spare_part_id: str,
    spare_part_update: SparePartUpdate,
    service: SparePartService = Depends(get_spare_part_service)
):
    """Update a spare part"""
    return service.update_spare_part(spare_part_id, spare_part_update)

@router.delete(
    "/{spare_part_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete spare part",
    description="Delete a spare part; repairs that used it keep their records"
)
def delete_spare_part(
    spare_part_id: str,
    service: SparePartService = Depends(get_spare_part_service)
):
    """Delete a spare part"""
    service.delete_spare_part(spare_part_id)
    return {"message": "Spare part deleted successfully"}

@router.patch(
    "/{spare_part_id}/stock",
    response_model=SparePartResponse,
    summary="Update stock quantity",
    description="Add or remove stock for a spare part"
)
def update_stock(
    spare_part_id: str,
    stock_update: SparePartStockUpdate,
    service: SparePartService = Depends(get_spare_part_service)
):
    """Update stock quantity"""
    return service.update_stock(spare_part_id, stock_update)
