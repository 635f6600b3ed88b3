from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from order_mgt.core.database import storage_guard
from order_mgt.models.database import Order, OrderItem


class OrderQueryService:
    """Read-only access to orders; related rows are loaded only on request"""

    def __init__(self, db: Session):
        self.db = db

    def list_orders(self, include_customer: bool = False) -> List[Order]:
        """All orders, newest first"""
        query = select(Order).order_by(Order.order_date.desc(), Order.id.desc())
        if include_customer:
            query = query.options(selectinload(Order.customer))

        with storage_guard("list orders"):
            return list(
                self.db.scalars(query.execution_options(populate_existing=True))
            )

    def get_order(
        self,
        order_id: int,
        include_customer: bool = False,
        include_items: bool = False,
    ) -> Optional[Order]:
        query = select(Order).where(Order.id == order_id)
        if include_customer:
            query = query.options(selectinload(Order.customer))
        if include_items:
            query = query.options(
                selectinload(Order.order_items).selectinload(OrderItem.product)
            )

        with storage_guard("get order"):
            return self.db.scalars(
                query.execution_options(populate_existing=True)
            ).first()

    def get_order_details(self, order_id: int) -> Optional[Order]:
        """Order with its customer and every item's product attached"""
        return self.get_order(order_id, include_customer=True, include_items=True)
