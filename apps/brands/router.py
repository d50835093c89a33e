from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from apps.brands.schemas import (
    BrandCreate,
    BrandUpdate,
    BrandResponse,
    BrandWithModels,
    DeviceModelCreate,
    DeviceModelUpdate,
    DeviceModelResponse,
)
from apps.brands.services import CatalogService, get_catalog_service

router = APIRouter()

# ============ DEVICE MODEL ROUTES FIRST (before /{brand_id}) ============

@router.get(
    "/models",
    response_model=List[DeviceModelResponse],
    summary="Get device models",
    description="Retrieve device models, optionally only those of one brand"
)
def get_models(
    brand_id: Optional[str] = Query(None, description="Filter by brand"),
    service: CatalogService = Depends(get_catalog_service)
):
    return service.get_models(brand_id=brand_id)

@router.post(
    "/models",
    response_model=DeviceModelResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a device model"
)
def create_model(
    model: DeviceModelCreate,
    service: CatalogService = Depends(get_catalog_service)
):
    return service.create_model(model)

@router.get(
    "/models/{model_id}",
    response_model=DeviceModelResponse,
    summary="Get device model by ID"
)
def get_model(
    model_id: str,
    service: CatalogService = Depends(get_catalog_service)
):
    return service.get_model(model_id)

@router.patch(
    "/models/{model_id}",
    response_model=DeviceModelResponse,
    summary="Rename a device model or move it to another brand"
)
def update_model(
    model_id: str,
    model_update: DeviceModelUpdate,
    service: CatalogService = Depends(get_catalog_service)
):
    return service.update_model(model_id, model_update)

@router.delete(
    "/models/{model_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete a device model"
)
def delete_model(
    model_id: str,
    service: CatalogService = Depends(get_catalog_service)
):
    service.delete_model(model_id)
    return {"message": "Model deleted successfully"}

# ============ BRAND ROUTES ============

@router.get(
    "/",
    response_model=List[BrandResponse],
    summary="Get all brands"
)
def get_brands(service: CatalogService = Depends(get_catalog_service)):
    return service.get_brands()

@router.post(
    "/",
    response_model=BrandResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new brand"
)
def create_brand(
    brand: BrandCreate,
    service: CatalogService = Depends(get_catalog_service)
):
    return service.create_brand(brand)

@router.get(
    "/{brand_id}",
    response_model=BrandWithModels,
    summary="Get brand by ID",
    description="Retrieve a brand together with its device models"
)
def get_brand(
    brand_id: str,
    service: CatalogService = Depends(get_catalog_service)
):
    return service.get_brand_with_models(brand_id)

@router.put(
    "/{brand_id}",
    response_model=BrandResponse,
    summary="Rename brand"
)
def rename_brand(
    brand_id: str,
    brand_update: BrandUpdate,
    service: CatalogService = Depends(get_catalog_service)
):
    return service.rename_brand(brand_id, brand_update)

@router.delete(
    "/{brand_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete brand",
    description="Delete a brand; refused while device models still belong to it"
)
def delete_brand(
    brand_id: str,
    service: CatalogService = Depends(get_catalog_service)
):
    service.delete_brand(brand_id)
    return {"message": "Brand deleted successfully"}
