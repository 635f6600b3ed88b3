import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from order_mgt.core.database import storage_guard, unit_of_work
from order_mgt.core.exceptions import DuplicateEmail, OperationNotSupported
from order_mgt.models.database import Customer, Order
from order_mgt.models.schemas import CustomerCreate, CustomerUpdate, coerce

logger = logging.getLogger(__name__)


class CustomerService:
    """
    Customer directory.

    Emails are unique across customers, checked on both create and update.
    Deleting customers is not supported yet.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_customers(self) -> List[Customer]:
        query = select(Customer).order_by(Customer.created_date.desc(), Customer.id.desc())
        with storage_guard("list customers"):
            return list(self.db.scalars(query))

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        with storage_guard("get customer"):
            return self.db.get(Customer, customer_id)

    def create_customer(self, data) -> Customer:
        data = coerce(CustomerCreate, data)

        with unit_of_work(self.db, "create customer"):
            if self._email_taken(data.email):
                raise DuplicateEmail(data.email)

            customer = Customer(**data.model_dump(), created_date=datetime.utcnow())
            self.db.add(customer)
            self._flush_or_duplicate(data.email)

        self.db.refresh(customer)
        logger.info(f"Created customer {customer.id} <{customer.email}>")
        return customer

    def update_customer(self, customer_id: int, data) -> Optional[Customer]:
        """Overwrite name, email and phone; a missing customer is left alone"""
        data = coerce(CustomerUpdate, data)

        with unit_of_work(self.db, "update customer"):
            customer = self.db.get(Customer, customer_id)
            if customer is None:
                logger.info(f"Customer {customer_id} not found, nothing to update")
                return None

            if self._email_taken(data.email, exclude_id=customer_id):
                raise DuplicateEmail(data.email)

            customer.first_name = data.first_name
            customer.last_name = data.last_name
            customer.email = data.email
            customer.phone = data.phone
            self._flush_or_duplicate(data.email)

        self.db.refresh(customer)
        logger.info(f"Updated customer {customer_id}")
        return customer

    def delete_customer(self, customer_id: int) -> None:
        raise OperationNotSupported("Deleting customers is not supported")

    def customer_has_orders(self, customer_id: int) -> bool:
        with storage_guard("check customer orders"):
            return bool(self.db.scalar(
                select(exists().where(Order.customer_id == customer_id))
            ))

    def _email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        condition = Customer.email == email
        if exclude_id is not None:
            condition = condition & (Customer.id != exclude_id)
        return bool(self.db.scalar(select(exists().where(condition))))

    def _flush_or_duplicate(self, email: str) -> None:
        # A concurrent insert can still hit the unique index
        try:
            self.db.flush()
        except IntegrityError as e:
            raise DuplicateEmail(email) from e
