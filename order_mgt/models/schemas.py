from decimal import Decimal
from pydantic import BaseModel, EmailStr, Field, PlainSerializer, ValidationError
from pydantic.alias_generators import to_camel
from typing import Annotated, List, Optional
from datetime import datetime

from order_mgt.core.exceptions import ValidationFailed
from order_mgt.models.database import OrderStatus

# Numeric(10, 2) values go over the wire as JSON numbers. Ten significant
# digits round-trip through a float, so this only suits scale-2 columns:
# Money for prices and totals, Quantity for stock and ordered quantities.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
Quantity = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

PHONE_PATTERN = r"^[0-9\-\+]{10,13}$"


class CustomerBase(BaseModel):
    first_name: str = Field(min_length=2, max_length=100)
    last_name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field(pattern=PHONE_PATTERN)

class CustomerCreate(CustomerBase):
    pass

class CustomerUpdate(CustomerBase):
    pass

class Customer(CustomerBase):
    id: int
    created_date: datetime

    class Config:
        from_attributes = True


class ProductBase(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=200)
    price: Money = Field(ge=0, max_digits=10, decimal_places=2)
    stock_quantity: Quantity = Field(ge=0, max_digits=10, decimal_places=2)

class ProductCreate(ProductBase):
    pass

class ProductUpdate(ProductBase):
    pass

class Product(ProductBase):
    id: int
    created_date: datetime

    class Config:
        from_attributes = True


class OrderItem(BaseModel):
    id: int
    product_id: int
    quantity: Quantity
    unit_price: Money
    line_total: Money
    product: Optional[Product] = None

    class Config:
        from_attributes = True

class OrderSummary(BaseModel):
    id: int
    customer_id: int
    order_date: datetime
    total_amount: Money
    status: OrderStatus
    customer: Optional[Customer] = None

    class Config:
        from_attributes = True

class OrderDetail(OrderSummary):
    order_items: List[OrderItem] = []


class OrderItemRequest(BaseModel):
    product_id: int
    quantity: Decimal = Field(gt=0, max_digits=10, decimal_places=2)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class OrderRequest(BaseModel):
    """Order placement request: {customerId, orderItems: [{productId, quantity}]}"""
    customer_id: int
    order_items: List[OrderItemRequest] = []

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class OrderPlacementResult(BaseModel):
    success: bool
    message: str
    order_id: Optional[int] = None
    # Failure kind for in-process callers; not part of the wire format
    error_code: Optional[str] = Field(default=None, exclude=True)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


def coerce(schema_cls, data):
    """Accept a schema instance or a plain mapping; mappings are validated"""
    if isinstance(data, schema_cls):
        return data
    try:
        return schema_cls.model_validate(data)
    except ValidationError as e:
        errors = {}
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"]) or "__root__"
            errors.setdefault(field, []).append(error["msg"])
        raise ValidationFailed(errors) from e
