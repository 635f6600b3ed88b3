import asyncio
import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import update
from sqlalchemy.orm import Session

from order_mgt.core.database import unit_of_work
from order_mgt.core.exceptions import (
    ConcurrentModification,
    InsufficientStock,
    InvalidRequest,
    OrderPlacementError,
    ProductNotFound,
)
from order_mgt.models.database import Customer, Order, OrderItem, OrderStatus, Product
from order_mgt.models.schemas import OrderPlacementResult, OrderRequest, coerce

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def line_total(unit_price: Decimal, quantity: Decimal) -> Decimal:
    """unit_price * quantity, rounded half-up to cents"""
    return (Decimal(unit_price) * Decimal(quantity)).quantize(CENTS, rounding=ROUND_HALF_UP)


class OrderPlacementService:
    """
    Places orders as a single unit of work.

    Stock is checked in Decimal against a fresh read and written with an
    UPDATE that only matches while the product row still carries the version
    that was read. A placement that loses a race to another write fails
    instead of overselling. The product row is also locked on read where the
    database supports SELECT ... FOR UPDATE.
    """

    def __init__(self, db: Session):
        self.db = db

    async def place_order(self, request) -> OrderPlacementResult:
        """
        Validate and persist an order, its items and the stock changes.

        Business-rule failures come back as ``success=False`` with the
        reason in ``message``; nothing is persisted in that case.
        InfrastructureFailure propagates to the caller.
        """
        request = coerce(OrderRequest, request)

        if not request.order_items:
            return self._failure(InvalidRequest("No items provided."))

        logger.info(
            f"Processing order for customer {request.customer_id} "
            f"({len(request.order_items)} items)"
        )

        try:
            # The blocking database work runs off the event loop
            order_id = await asyncio.to_thread(self._place_order_transaction, request)
        except OrderPlacementError as e:
            return self._failure(e)

        logger.info(f"Order {order_id} placed successfully")
        return OrderPlacementResult(
            success=True,
            message="Order placed successfully!",
            order_id=order_id,
        )

    def _place_order_transaction(self, request: OrderRequest) -> int:
        with unit_of_work(self.db, "place order"):
            if self.db.get(Customer, request.customer_id) is None:
                raise InvalidRequest(f"Customer {request.customer_id} not found.")

            # Step 1: create the order to obtain its id
            order = Order(
                customer_id=request.customer_id,
                order_date=datetime.utcnow(),
                status=OrderStatus.COMPLETED,
                total_amount=Decimal("0"),
            )
            self.db.add(order)
            self.db.flush()

            # Step 2: items in request order
            running_total = Decimal("0")
            for item_request in request.order_items:
                product = self.db.get(
                    Product,
                    item_request.product_id,
                    with_for_update=True,
                    populate_existing=True,
                )
                if product is None:
                    raise ProductNotFound(item_request.product_id)

                if product.stock_quantity < item_request.quantity:
                    raise InsufficientStock(
                        product.name, product.stock_quantity, item_request.quantity
                    )

                unit_price = product.price
                total = line_total(unit_price, item_request.quantity)
                self.db.add(OrderItem(
                    order_id=order.id,
                    product_id=product.id,
                    quantity=item_request.quantity,
                    unit_price=unit_price,
                    line_total=total,
                ))

                self._decrement_stock(product, item_request.quantity)
                running_total += total

            # Step 3: back-fill the total and commit everything together
            order.total_amount = running_total
            self.db.flush()
            return order.id

    def _decrement_stock(self, product: Product, quantity: Decimal) -> None:
        # Stock arithmetic stays in Decimal; the row must still carry the version we read
        new_quantity = product.stock_quantity - Decimal(quantity)
        new_version = product.version + 1

        result = self.db.execute(
            update(Product)
            .where(Product.id == product.id, Product.version == product.version)
            .values(stock_quantity=new_quantity, version=new_version)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConcurrentModification(product.name)

        logger.info(
            f"Updated stock for {product.name}: "
            f"new quantity = {new_quantity} (version {new_version})"
        )

    def _failure(self, error: OrderPlacementError) -> OrderPlacementResult:
        logger.warning(f"Order placement failed: {error}")
        return OrderPlacementResult(
            success=False,
            message=str(error),
            error_code=type(error).__name__,
        )
