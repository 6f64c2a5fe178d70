"""
Products API Endpoints

Catalog product CRUD. Every acknowledged write is broadcast on the live
channel; reads resolve category references.
"""

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from commerce_hub.broadcast import EntityType
from commerce_hub.schemas import ProductIn, ProductOut, ProductWithCategories, ReviewOut
from commerce_hub.serving.api.dependencies import get_catalog, get_lookups, get_reviews
from commerce_hub.services import CatalogService, LookupResolver, ReviewService

router = APIRouter()


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
async def create_product(
    body: ProductIn,
    catalog: CatalogService = Depends(get_catalog),
):
    return await catalog.create(EntityType.PRODUCT, body.to_record())


@router.get("", response_model=List[ProductWithCategories])
async def list_products(
    name: Optional[str] = None,
    about: Optional[str] = None,
    max_price: Optional[Decimal] = Query(None, alias="maxPrice", gt=0),
    lookups: LookupResolver = Depends(get_lookups),
):
    """
    List products with their categories.

    `name` and `about` match case-insensitively anywhere in the field;
    `maxPrice` is inclusive.
    """
    return await lookups.products(name=name, about=about, max_price=max_price, with_categories=True)


@router.get("/with-categories", response_model=List[ProductWithCategories])
async def list_products_with_categories(lookups: LookupResolver = Depends(get_lookups)):
    return await lookups.products(with_categories=True)


@router.get("/{product_id}", response_model=ProductWithCategories)
async def get_product(product_id: str, lookups: LookupResolver = Depends(get_lookups)):
    return await lookups.product(product_id)


@router.get("/{product_id}/reviews", response_model=List[ReviewOut])
async def list_product_reviews(product_id: str, reviews: ReviewService = Depends(get_reviews)):
    return await reviews.list_for_product(product_id)


@router.put("/{product_id}", response_model=ProductOut)
async def replace_product(
    product_id: str,
    body: ProductIn,
    catalog: CatalogService = Depends(get_catalog),
):
    return await catalog.update(EntityType.PRODUCT, product_id, body.to_record())


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: str, catalog: CatalogService = Depends(get_catalog)) -> Response:
    await catalog.delete(EntityType.PRODUCT, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
