from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session
from typing import List
from order_mgt.core.database import get_db
from order_mgt.core.exceptions import EntityInUse, InfrastructureFailure
from order_mgt.models.schemas import Product, ProductCreate, ProductUpdate
from order_mgt.services.product_service import ProductService

router = APIRouter()

@router.get("/", response_model=List[Product])
async def list_products(in_stock: bool = False, db: Session = Depends(get_db)):
    """List products, newest first"""
    try:
        return ProductService(db).list_products(in_stock_only=in_stock)
    except InfrastructureFailure:
        raise HTTPException(status_code=500, detail="Internal server error")

@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: int, db: Session = Depends(get_db)):
    """Get a specific product"""
    try:
        product = ProductService(db).get_product(product_id)
    except InfrastructureFailure:
        raise HTTPException(status_code=500, detail="Internal server error")
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

@router.post("/", response_model=Product, status_code=201)
async def create_product(product_data: ProductCreate, db: Session = Depends(get_db)):
    """Create a new product"""
    try:
        return ProductService(db).create_product(product_data)
    except InfrastructureFailure:
        raise HTTPException(status_code=500, detail="Internal server error")

@router.put("/{product_id}", response_model=Product)
async def update_product(
    product_id: int,
    product_data: ProductUpdate,
    db: Session = Depends(get_db)
):
    """Replace a product's name, description, price and stock"""
    try:
        product = ProductService(db).update_product(product_id, product_data)
    except InfrastructureFailure:
        raise HTTPException(status_code=500, detail="Internal server error")
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

@router.delete("/{product_id}", status_code=204)
async def delete_product(product_id: int, db: Session = Depends(get_db)):
    """Delete a product; deleting an unknown product is a no-op"""
    try:
        ProductService(db).delete_product(product_id)
    except EntityInUse as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InfrastructureFailure:
        raise HTTPException(status_code=500, detail="Internal server error")
    return Response(status_code=204)
