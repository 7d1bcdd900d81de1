# shop/services/checkout_service.py
"""Checkout: turns a user's cart into an order.

Two commit points:

1. reservation, one transaction:
   - cart ACTIVE@v -> CHECKING_OUT@v+1 (compare-and-set)
   - order inserted as PENDING under checkout_key = cart id (unique)
   - per line, in product id order:
     UPDATE products SET stock = stock - q WHERE id = ? AND stock >= q
   any failure rolls all of it back, nothing happened.

2. completion, one transaction:
   - cart and its lines deleted
   - order PENDING -> COMMITTED
   idempotent, so it is retried on storage errors and can be run again by a
   later checkout call for the same cart or by the reconciler.

A cart left in CHECKING_OUT always has a PENDING order with its key. A caller
that loses the connection after the reservation commit must treat the
checkout as in doubt and look the order up.
"""
import uuid
from decimal import Decimal
from typing import Any, Dict, List

from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shop.data.models.cart import CartModel, CHECKING_OUT
from shop.data.models.order import OrderModel
from shop.data.models.order_item import OrderItemModel
from shop.domain.errors import (
    CartNotFound,
    CheckoutInDoubt,
    Conflict,
    EmptyCart,
    InsufficientStock,
    InternalInconsistency,
    ProductUnavailable,
    ShopError,
    Transient,
)
from shop.repos.cart_repo import CartRepo
from shop.repos.order_repo import OrderRepo
from shop.repos.product_repo import ProductRepo
from shop.services.lock_service import LockService
from shop.services.order_service import order_to_dict
from shop.utils.retry import db_retry, STORAGE_ERRORS
from shop.utils.settings import CHECKOUT_LOCK_TTL_SECONDS
from shop.utils.logging import get_logger

logger = get_logger(__name__)


def complete_checkout(db: Session, order: OrderModel) -> None:
    """Deletes the consumed cart and commits the order. Safe to repeat."""
    try:
        CartRepo(db).delete_cart(uuid.UUID(order.checkout_key), status=CHECKING_OUT)
        OrderRepo(db).mark_committed(order.id)
        db.commit()
    except Exception:
        db.rollback()
        raise


class CheckoutService:
    def __init__(self, db: Session, lock_service: LockService):
        self.db = db
        self.carts = CartRepo(db)
        self.products = ProductRepo(db)
        self.orders = OrderRepo(db)
        self.lock_service = lock_service

    def checkout(self, user_id) -> Dict[str, Any]:
        """
        Converts the user's cart into an order, all or nothing.

        Raises CartNotFound, EmptyCart, ProductUnavailable/InsufficientStock,
        Conflict and Transient when nothing was written, and CheckoutInDoubt
        when the order exists, or may exist, but could not be completed yet.
        """
        token = self._acquire_lock(user_id)
        try:
            return self._checkout(user_id)
        finally:
            self._release_lock(user_id, token)

    def _checkout(self, user_id) -> Dict[str, Any]:
        cart = self._read(self.carts.get_cart_by_user, user_id)
        if cart is None:
            raise CartNotFound()

        if cart.status == CHECKING_OUT:
            return self._resume(cart)

        items = self._read(self.carts.get_cart_items, cart.id)
        if not items:
            raise EmptyCart()

        lines = self._price_lines(items)
        total = sum((line["price"] for line in lines), Decimal("0.00"))

        order = self._reserve(cart, lines, total)
        logger.info(
            "Order reserved",
            order_id=str(order.id),
            cart_id=str(cart.id),
            lines=len(lines),
            total=str(total),
        )
        return self._complete(order)

    def _price_lines(self, items) -> List[Dict[str, Any]]:
        # advisory read, the conditional decrement decides
        lines = []
        for item in items:
            product = self._read(self.products.get_product, item.product_id)

            if product is None:
                raise ProductUnavailable(item.product_id, f"Product {item.product_id} no longer exists")

            if product.stock < item.quantity:
                raise InsufficientStock(
                    item.product_id,
                    f"Insufficient stock for product {item.product_id}",
                )

            lines.append(
                {
                    "product_id": item.product_id,
                    "name": product.name,
                    "quantity": item.quantity,
                    # frozen into the order
                    "price": product.price * item.quantity,
                }
            )
        return lines

    def _reserve(self, cart: CartModel, lines, total: Decimal) -> OrderModel:
        try:
            if not self.carts.mark_checking_out(cart.id, cart.version):
                raise Conflict("Cart was modified by another operation")

            order = self.orders.add_pending_order(
                OrderModel(
                    user_id=cart.user_id,
                    checkout_key=str(cart.id),
                    total=total,
                    items=[OrderItemModel(**line) for line in lines],
                )
            )

            # rows are locked in product id order so crossed carts cannot deadlock
            for line in sorted(lines, key=lambda l: str(l["product_id"])):
                if not self.products.decrement_stock(line["product_id"], line["quantity"]):
                    raise InsufficientStock(
                        line["product_id"],
                        f"Insufficient stock for product {line['product_id']}",
                    )
        except ShopError as e:
            self.db.rollback()
            logger.info("Checkout rejected", cart_id=str(cart.id), reason=str(e))
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Cart {cart.id} already has an order: {e}")
            raise Conflict("Cart already checked out") from e
        except STORAGE_ERRORS as e:
            # nothing committed, a retry starts over
            self.db.rollback()
            logger.error(f"Storage failure reserving cart {cart.id}: {e}")
            raise Transient() from e

        order_id = order.id
        try:
            self.db.commit()
        except STORAGE_ERRORS as e:
            self.db.rollback()
            return self._after_failed_commit(cart, order_id, e)

        return order

    def _after_failed_commit(self, cart: CartModel, order_id, error) -> OrderModel:
        # the server may have committed before the connection dropped
        try:
            order = self._read_with_retry(self.orders.get_by_checkout_key, str(cart.id))
        except STORAGE_ERRORS:
            logger.error(
                "Reservation commit outcome unknown",
                cart_id=str(cart.id),
                order_id=str(order_id),
                error=str(error),
            )
            raise CheckoutInDoubt(order_id) from error

        if order is None:
            logger.error(f"Reservation commit of cart {cart.id} failed: {error}")
            raise Transient() from error

        logger.warning(
            "Reservation committed despite commit error",
            cart_id=str(cart.id),
            order_id=str(order.id),
        )
        return order

    def _complete(self, order: OrderModel) -> Dict[str, Any]:
        try:
            self._finish(order)
            self.db.refresh(order)
        except STORAGE_ERRORS as e:
            logger.error(f"Order {order.id} left PENDING, completion failed: {e}")
            raise CheckoutInDoubt(order.id) from e

        logger.info(f"Order {order.id} committed for user {order.user_id}")
        return order_to_dict(order)

    def _resume(self, cart: CartModel) -> Dict[str, Any]:
        order = self._read(self.orders.get_by_checkout_key, str(cart.id))
        if order is None:
            logger.error(f"Cart {cart.id} is CHECKING_OUT without an order")
            raise InternalInconsistency("Cart is locked for checkout without an order")

        logger.info(f"Resuming checkout of order {order.id} from cart {cart.id}")
        return self._complete(order)

    @db_retry()
    def _finish(self, order: OrderModel) -> None:
        complete_checkout(self.db, order)

    def _read(self, fn, *args):
        try:
            return self._read_with_retry(fn, *args)
        except STORAGE_ERRORS as e:
            logger.error(f"Storage unavailable during checkout read: {e}")
            raise Transient() from e

    @db_retry()
    def _read_with_retry(self, fn, *args):
        try:
            return fn(*args)
        except STORAGE_ERRORS:
            self.db.rollback()
            raise

    def _acquire_lock(self, user_id) -> str:
        try:
            token = self.lock_service.acquire_checkout_lock(user_id, ttl=CHECKOUT_LOCK_TTL_SECONDS)
        except RedisError as e:
            logger.error(f"Checkout lock unavailable for user {user_id}: {e}")
            raise Transient() from e

        if token is None:
            raise Conflict("Checkout already in progress for this cart")
        return token

    def _release_lock(self, user_id, token: str) -> None:
        try:
            self.lock_service.release_checkout_lock(user_id, token)
        except RedisError as e:
            # the lock expires after its ttl
            logger.warning(f"Failed to release checkout lock for user {user_id}: {e}")
