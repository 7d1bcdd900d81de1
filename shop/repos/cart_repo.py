# shop/repos/cart_repo.py
from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session

from shop.data.models.cart import CartModel, ACTIVE, CHECKING_OUT
from shop.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_user(self, user_id) -> CartModel | None:
        return self.db.execute(
            select(CartModel)
            .where(CartModel.user_id == user_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_cart_items(self, cart_id) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
                .execution_options(populate_existing=True)
            ).scalars()
        )

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.flush()
        return cart

    def get_cart_item(self, cart_id, product_id) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, cart_id, product_id) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id, CartItemModel.product_id == product_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def update_cart_version(self, cart_id, old_version: int, new_data: dict) -> int:
        """Optimistic lock: UPDATE ... WHERE id = :id AND version = :old_version."""
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def mark_checking_out(self, cart_id, old_version: int) -> bool:
        # compare-and-set, only an ACTIVE cart at the expected version moves
        result = self.db.execute(
            update(CartModel)
            .where(
                CartModel.id == cart_id,
                CartModel.version == old_version,
                CartModel.status == ACTIVE,
            )
            .values(status=CHECKING_OUT, version=old_version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def delete_cart(self, cart_id, status: str | None = None) -> int:
        """Deletes the cart and its lines, does not commit. Missing cart is a no-op."""
        query = delete(CartModel).where(CartModel.id == cart_id)
        if status is not None:
            query = query.where(CartModel.status == status)

        self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(query.execution_options(synchronize_session=False))
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
