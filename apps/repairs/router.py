from fastapi import APIRouter, Depends, status, Query
from typing import Optional
import math

from apps.repairs.schemas import (
    RepairCreate, RepairUpdate, RepairStatusUpdate, RepairPartsUpdate,
    RepairResponse, RepairListResponse
)
from apps.repairs.services import RepairService, get_repair_service
from apps.repairs.models import RepairStatus

router = APIRouter()

# ============ CRUD ROUTES ============

@router.post(
    "/",
    response_model=RepairResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new repair",
    description="Create a repair ticket. Parts listed in used_parts are taken out of stock."
)
def create_repair(
    repair: RepairCreate,
    service: RepairService = Depends(get_repair_service)
):
    """
    Create a new repair.
    - Stock of every used part is reduced, never below zero
    - Part prices are captured at the time of the repair
    """
    return service.create_repair(repair)

@router.get(
    "/",
    response_model=RepairListResponse,
    summary="Get all repairs",
    description="Retrieve repairs, newest first, with filtering and pagination"
)
def get_repairs(
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Number of items to return"),
    status_filter: Optional[RepairStatus] = Query(None, alias="status", description="Filter by status"),
    search: Optional[str] = Query(None, description="Search in customer, phone, issue, model"),
    service: RepairService = Depends(get_repair_service)
):
    """Get repairs with filtering and pagination"""
    repairs, total = service.get_repairs(
        skip=skip,
        limit=limit,
        status=status_filter,
        search=search
    )

    total_pages = math.ceil(total / limit) if limit > 0 else 1
    current_page = (skip // limit) + 1 if limit > 0 else 1

    return RepairListResponse(
        items=repairs,
        total=total,
        page=current_page,
        size=limit,
        total_pages=total_pages
    )

# ============ DYNAMIC ROUTES ============

@router.get(
    "/{repair_id}",
    response_model=RepairResponse,
    summary="Get repair by ID",
    description="Retrieve a repair with its parts, brand and model"
)
def get_repair(
    repair_id: str,
    service: RepairService = Depends(get_repair_service)
):
    """Get a specific repair by ID"""
    return service.get_repair(repair_id)

@router.put(
    "/{repair_id}",
    response_model=RepairResponse,
    summary="Update repair details",
    description="Update customer, device, issue and cost details. Stock is not touched."
)
def update_repair(
    repair_id: str,
    repair_update: RepairUpdate,
    service: RepairService = Depends(get_repair_service)
):
    """Update repair details"""
    return service.update_repair(repair_id, repair_update)

@router.patch(
    "/{repair_id}/status",
    response_model=RepairResponse,
    summary="Update repair status"
)
def update_repair_status(
    repair_id: str,
    status_update: RepairStatusUpdate,
    service: RepairService = Depends(get_repair_service)
):
    """Update repair status"""
    return service.update_repair_status(repair_id, status_update)

@router.put(
    "/{repair_id}/parts",
    response_model=RepairResponse,
    summary="Replace repair parts",
    description="Return the current parts of the repair to stock and take the new list out"
)
def update_repair_parts(
    repair_id: str,
    parts_update: RepairPartsUpdate,
    service: RepairService = Depends(get_repair_service)
):
    """Replace the parts used by a repair"""
    return service.update_repair_parts(repair_id, parts_update)

@router.delete(
    "/{repair_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete repair",
    description="Delete a repair; the parts it used go back to stock"
)
def delete_repair(
    repair_id: str,
    service: RepairService = Depends(get_repair_service)
):
    """Delete a repair"""
    service.delete_repair(repair_id)
    return {"message": "Repair deleted successfully"}
