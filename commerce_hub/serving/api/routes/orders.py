"""
Orders API Endpoints

Orders are priced once at creation (subtotal plus 20%). Reads embed the
ordering user's public profile and the current state of each referenced
product.
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from commerce_hub.schemas import OrderDetail, OrderIn, OrderOut, PaymentUpdate
from commerce_hub.serving.api.dependencies import get_lookups, get_orders
from commerce_hub.services import LookupResolver, OrderPricingEngine

router = APIRouter()


@router.post("", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
async def create_order(body: OrderIn, orders: OrderPricingEngine = Depends(get_orders)):
    return await orders.create_order(str(body.user_id), body.product_ids)


@router.get("", response_model=List[OrderDetail])
async def list_orders(lookups: LookupResolver = Depends(get_lookups)):
    return await lookups.orders()


@router.get("/{order_id}", response_model=OrderDetail)
async def get_order(order_id: str, lookups: LookupResolver = Depends(get_lookups)):
    return await lookups.order(order_id)


@router.patch("/{order_id}", response_model=OrderOut)
async def update_order_payment(
    order_id: str,
    body: PaymentUpdate,
    orders: OrderPricingEngine = Depends(get_orders),
):
    """Mark an order paid or unpaid. Nothing else about an order can change."""
    return await orders.update_payment(order_id, body.payment)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(order_id: str, orders: OrderPricingEngine = Depends(get_orders)) -> Response:
    await orders.delete_order(order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
