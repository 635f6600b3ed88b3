from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from order_mgt.core.database import get_db
from order_mgt.core.exceptions import DuplicateEmail, InfrastructureFailure, OperationNotSupported
from order_mgt.models.schemas import Customer, CustomerCreate, CustomerUpdate
from order_mgt.services.customer_service import CustomerService

router = APIRouter()

@router.get("/", response_model=List[Customer])
async def list_customers(db: Session = Depends(get_db)):
    """List customers, newest first"""
    try:
        return CustomerService(db).list_customers()
    except InfrastructureFailure:
        raise HTTPException(status_code=500, detail="Internal server error")

@router.get("/{customer_id}", response_model=Customer)
async def get_customer(customer_id: int, db: Session = Depends(get_db)):
    """Get a specific customer"""
    try:
        customer = CustomerService(db).get_customer(customer_id)
    except InfrastructureFailure:
        raise HTTPException(status_code=500, detail="Internal server error")
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer

@router.post("/", response_model=Customer, status_code=201)
async def create_customer(customer_data: CustomerCreate, db: Session = Depends(get_db)):
    """Register a new customer; the email must not be registered yet"""
    try:
        return CustomerService(db).create_customer(customer_data)
    except DuplicateEmail as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InfrastructureFailure:
        raise HTTPException(status_code=500, detail="Internal server error")

@router.put("/{customer_id}", response_model=Customer)
async def update_customer(
    customer_id: int,
    customer_data: CustomerUpdate,
    db: Session = Depends(get_db)
):
    """Update a customer's name, email and phone"""
    try:
        customer = CustomerService(db).update_customer(customer_id, customer_data)
    except DuplicateEmail as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InfrastructureFailure:
        raise HTTPException(status_code=500, detail="Internal server error")
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer

@router.delete("/{customer_id}")
async def delete_customer(customer_id: int, db: Session = Depends(get_db)):
    try:
        CustomerService(db).delete_customer(customer_id)
    except OperationNotSupported as e:
        raise HTTPException(status_code=405, detail=str(e))
