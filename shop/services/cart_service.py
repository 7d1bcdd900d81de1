from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shop.data.models.cart import CartModel, ACTIVE
from shop.data.models.cart_item import CartItemModel
from shop.domain.errors import (
    CartNotFound,
    Conflict,
    InsufficientStock,
    InvalidInput,
    NotFound,
    ProductUnavailable,
    UserNotFound,
)
from shop.repos.cart_repo import CartRepo
from shop.repos.product_repo import ProductRepo
from shop.repos.user_repo import UserRepo
from shop.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Cart use cases
    commands (add, remove, clear) change state under an optimistic lock on version
    query (get) read only
    a cart that is being checked out cannot be modified
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.users = UserRepo(db)

    #query
    def get_cart(self, user_id) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise CartNotFound()
        return self._view(cart)

    def _view(self, cart: CartModel) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id)
        products = self.products.get_products(i.product_id for i in items)

        lines = []
        for i in items:
            product = products.get(i.product_id)
            lines.append(
                {
                    "product_id": i.product_id,
                    "name": product.name if product else str(i.product_id),
                    "quantity": i.quantity,
                    "price": product.price * i.quantity if product else Decimal("0.00"),
                }
            )

        return {
            "id": cart.id,
            "user_id": cart.user_id,
            "status": cart.status,
            "products": lines,
            "total": sum((line["price"] for line in lines), Decimal("0.00")),
        }

    #commands
    def add_product(self, user_id, product_id, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise InvalidInput("Quantity must be greater than 0")

        if not self.users.get_user(user_id):
            raise UserNotFound()

        product = self.products.get_product(product_id)
        if not product:
            raise ProductUnavailable(product_id)

        cart = self.repo.get_cart_by_user(user_id) or self._create_cart(user_id)

        if cart.status != ACTIVE:
            raise Conflict("Cart is being checked out")

        # same product twice merges into one line
        existing_item = self.repo.get_cart_item(cart.id, product_id)
        wanted = quantity + (existing_item.quantity if existing_item else 0)

        if product.stock < wanted:
            self.repo.rollback()
            raise InsufficientStock(product_id, "Product not available in requested quantity")

        if existing_item:
            logger.info(
                f"Product {product_id} already in cart {cart.id}, quantity "
                f"{existing_item.quantity} -> {wanted}"
            )
            existing_item.quantity = wanted
        else:
            logger.info(f"Adding product {product_id} to cart {cart.id}")
            self.repo.add_cart_item(
                CartItemModel(cart_id=cart.id, product_id=product_id, quantity=quantity)
            )

        self._bump_version(cart)
        return self._view(cart)

    def remove_product(self, user_id, product_id) -> None:
        cart = self._modifiable_cart(user_id)

        if not self.repo.delete_cart_item(cart.id, product_id):
            self.repo.rollback()
            raise NotFound("Product not found in cart")

        self._bump_version(cart)
        logger.info(f"Product {product_id} removed from cart {cart.id}")

    def clear_cart(self, user_id) -> None:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            return

        if cart.status != ACTIVE:
            raise Conflict("Cart is being checked out")

        if not self.repo.delete_cart(cart.id, status=ACTIVE):
            self.repo.rollback()
            raise Conflict("Cart is being checked out")

        self.repo.commit()
        logger.info(f"Cart {cart.id} of user {user_id} emptied")

    def _modifiable_cart(self, user_id) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise CartNotFound()
        if cart.status != ACTIVE:
            raise Conflict("Cart is being checked out")
        return cart

    def _create_cart(self, user_id) -> CartModel:
        try:
            cart = self.repo.create_cart(CartModel(user_id=user_id, status=ACTIVE, version=1))
        except IntegrityError:
            # another request created it first
            self.repo.rollback()
            cart = self.repo.get_cart_by_user(user_id)
            if not cart:
                raise Conflict()
            return cart

        logger.info(f"Created cart {cart.id} for user {user_id}")
        return cart

    def _bump_version(self, cart: CartModel) -> None:
        # UPDATE carts SET version = v + 1 WHERE id = :id AND version = v
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={"version": cart.version + 1},
        )

        if rowcount == 0:
            self.repo.rollback()
            raise Conflict("Cart was modified by another operation")

        self.repo.commit()
        self.db.refresh(cart)
