from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from order_mgt.core.database import get_db
from order_mgt.core.exceptions import InfrastructureFailure
from order_mgt.models.schemas import OrderDetail, OrderPlacementResult, OrderRequest, OrderSummary
from order_mgt.services.order_query_service import OrderQueryService
from order_mgt.services.order_service import OrderPlacementService

router = APIRouter()

@router.post("/", response_model=OrderPlacementResult, response_model_exclude_none=True)
async def create_order(order_request: OrderRequest, db: Session = Depends(get_db)):
    """
    Place an order.

    Missing products and insufficient stock are reported in the body with
    success=false; only infrastructure failures produce a 500.
    """
    try:
        service = OrderPlacementService(db)
        return await service.place_order(order_request)
    except InfrastructureFailure:
        raise HTTPException(status_code=500, detail="Internal server error")

@router.get("/", response_model=List[OrderSummary])
async def get_orders(db: Session = Depends(get_db)):
    """Get all orders with their customers"""
    try:
        return OrderQueryService(db).list_orders(include_customer=True)
    except InfrastructureFailure:
        raise HTTPException(status_code=500, detail="Internal server error")

@router.get("/{order_id}", response_model=OrderDetail)
async def get_order(order_id: int, db: Session = Depends(get_db)):
    """Get an order with its customer, items and products"""
    try:
        order = OrderQueryService(db).get_order_details(order_id)
    except InfrastructureFailure:
        raise HTTPException(status_code=500, detail="Internal server error")
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order
