import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from order_mgt.core.database import storage_guard, unit_of_work
from order_mgt.core.exceptions import EntityInUse
from order_mgt.models.database import OrderItem, Product
from order_mgt.models.schemas import ProductCreate, ProductUpdate, coerce

logger = logging.getLogger(__name__)


class ProductService:
    """CRUD over the product catalog"""

    def __init__(self, db: Session):
        self.db = db

    def list_products(self, in_stock_only: bool = False) -> List[Product]:
        """Products newest first; optionally only those with stock left"""
        query = select(Product).order_by(Product.created_date.desc(), Product.id.desc())
        if in_stock_only:
            query = query.where(Product.stock_quantity > 0)

        with storage_guard("list products"):
            return list(self.db.scalars(query))

    def get_product(self, product_id: int) -> Optional[Product]:
        with storage_guard("get product"):
            return self.db.get(Product, product_id)

    def create_product(self, data) -> Product:
        data = coerce(ProductCreate, data)
        product = Product(**data.model_dump(), created_date=datetime.utcnow())

        with unit_of_work(self.db, "create product"):
            self.db.add(product)

        self.db.refresh(product)
        logger.info(f"Created product {product.id} ({product.name})")
        return product

    def update_product(self, product_id: int, data) -> Optional[Product]:
        """Overwrite the editable fields; a missing product is left alone"""
        data = coerce(ProductUpdate, data)

        with unit_of_work(self.db, "update product"):
            product = self.db.get(Product, product_id)
            if product is None:
                logger.info(f"Product {product_id} not found, nothing to update")
                return None

            product.name = data.name
            product.description = data.description
            product.price = data.price
            product.stock_quantity = data.stock_quantity
            product.version = (product.version or 0) + 1

        self.db.refresh(product)
        logger.info(f"Updated product {product_id}")
        return product

    def delete_product(self, product_id: int) -> None:
        with unit_of_work(self.db, "delete product"):
            product = self.db.get(Product, product_id)
            if product is None:
                return

            referenced = self.db.scalar(
                select(exists().where(OrderItem.product_id == product_id))
            )
            if referenced:
                raise EntityInUse(
                    f"Product {product.name} is referenced by existing orders and cannot be deleted"
                )

            self.db.delete(product)

        logger.info(f"Deleted product {product_id}")
