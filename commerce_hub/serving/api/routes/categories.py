"""
Categories API Endpoints
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from commerce_hub.broadcast import EntityType
from commerce_hub.schemas import CategoryIn, CategoryOut
from commerce_hub.serving.api.dependencies import get_catalog
from commerce_hub.services import CatalogService

router = APIRouter()


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category(body: CategoryIn, catalog: CatalogService = Depends(get_catalog)):
    return await catalog.create(EntityType.CATEGORY, body.model_dump())


@router.get("", response_model=List[CategoryOut])
async def list_categories(catalog: CatalogService = Depends(get_catalog)):
    return await catalog.list_all(EntityType.CATEGORY)


@router.get("/{category_id}", response_model=CategoryOut)
async def get_category(category_id: str, catalog: CatalogService = Depends(get_catalog)):
    return await catalog.get(EntityType.CATEGORY, category_id)


@router.put("/{category_id}", response_model=CategoryOut)
async def replace_category(
    category_id: str,
    body: CategoryIn,
    catalog: CatalogService = Depends(get_catalog),
):
    return await catalog.update(EntityType.CATEGORY, category_id, body.model_dump())


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: str, catalog: CatalogService = Depends(get_catalog)) -> Response:
    await catalog.delete(EntityType.CATEGORY, category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
