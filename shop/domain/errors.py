# shop/domain/errors.py
"""Domain exceptions raised by the services.

Routers translate them into HTTP responses. Messages are written for the
caller; driver and database details never go into them.
"""


class ShopError(Exception):
    message = "Request failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)

    @property
    def detail(self) -> str:
        return str(self)


# lookup

class NotFound(ShopError):
    message = "Not found"


class UserNotFound(NotFound):
    message = "User not found"


class CartNotFound(NotFound):
    message = "Cart not found"


class ProductNotFound(NotFound):
    message = "Product not found"


class OrderNotFound(NotFound):
    message = "Order not found"


# validation

class InvalidInput(ShopError):
    message = "Invalid input"


class EmptyCart(InvalidInput):
    message = "Cart is empty"


class ProductInUse(InvalidInput):
    message = "Product is in use in carts or orders"


# inventory

class ProductUnavailable(ShopError):
    message = "Product not available in requested quantity"

    def __init__(self, product_id=None, message: str | None = None):
        super().__init__(message)
        self.product_id = product_id


class InsufficientStock(ProductUnavailable):
    message = "Insufficient stock"


# concurrency and storage

class Conflict(ShopError):
    message = "Concurrent modification, try again"


class Transient(ShopError):
    """Storage timed out or is unavailable and nothing was committed."""

    message = "Storage temporarily unavailable, try again"


class InternalInconsistency(ShopError):
    message = "Internal inconsistency detected"


class CheckoutInDoubt(InternalInconsistency):
    """The order was written but completing the checkout failed.

    The order stays PENDING until a retry of the checkout or the reconciler
    finishes it; the caller should confirm its state instead of assuming
    failure.
    """

    message = "Order accepted, completion pending"

    def __init__(self, order_id, message: str | None = None):
        super().__init__(message)
        self.order_id = order_id
