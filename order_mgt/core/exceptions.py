from typing import Dict, List, Optional


class OrderMgtError(Exception):
    """Base class for errors raised by the order management services"""
    pass


class ValidationFailed(OrderMgtError):
    """One or more fields violate their constraints"""

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        details = "; ".join(
            f"{field}: {', '.join(messages)}" for field, messages in errors.items()
        )
        super().__init__(f"Validation failed - {details}")


class DuplicateEmail(OrderMgtError):
    """Customer email collides with another customer's email"""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"This email address is already registered: {email}")


class OperationNotSupported(OrderMgtError):
    pass


class EntityInUse(OrderMgtError):
    """Entity cannot be removed while other records reference it"""
    pass


class OrderPlacementError(OrderMgtError):
    """Business-rule failure during order placement; always rolls back"""
    pass


class InvalidRequest(OrderPlacementError):
    pass


class ProductNotFound(OrderPlacementError):
    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found.")


class InsufficientStock(OrderPlacementError):
    def __init__(self, product_name: str, available=None, requested=None):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        message = f"Insufficient stock for {product_name}."
        if available is not None and requested is not None:
            message += f" Available: {available}, Requested: {requested}"
        super().__init__(message)


class ConcurrentModification(OrderPlacementError):
    """Product row changed between the stock check and the stock update"""

    def __init__(self, product_name: str):
        self.product_name = product_name
        super().__init__(
            f"Stock for {product_name} was modified by another order. Please try again."
        )


class InfrastructureFailure(OrderMgtError):
    """Storage unavailable or an unexpected database fault"""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Storage failure during {operation}")
