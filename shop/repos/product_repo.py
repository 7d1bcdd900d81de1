# shop/repos/product_repo.py
from sqlalchemy import select, update, exists
from sqlalchemy.orm import Session

from shop.data.models.product import ProductModel
from shop.data.models.cart_item import CartItemModel
from shop.data.models.order_item import OrderItemModel


class ProductRepo:
    """Product ledger: price and stock per product."""

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id) -> ProductModel | None:
        return self.db.get(ProductModel, product_id, populate_existing=True)

    def get_products(self, product_ids) -> dict:
        rows = self.db.execute(
            select(ProductModel).where(ProductModel.id.in_(list(product_ids)))
        ).scalars()
        return {p.id: p for p in rows}

    def list_products(self) -> list[ProductModel]:
        return list(self.db.execute(select(ProductModel).order_by(ProductModel.name)).scalars())

    def add_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def save(self, product: ProductModel) -> ProductModel:
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product: ProductModel) -> None:
        self.db.delete(product)
        self.db.commit()

    def decrement_stock(self, product_id, amount: int) -> bool:
        """Atomic conditional decrement, does not commit.

        UPDATE products SET stock = stock - :amount
        WHERE id = :id AND stock >= :amount

        False when the product is gone or has less than amount in stock.
        """
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock >= amount)
            .values(stock=ProductModel.stock - amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def is_referenced(self, product_id) -> bool:
        in_cart = select(exists().where(CartItemModel.product_id == product_id))
        if self.db.execute(in_cart).scalar():
            return True
        in_order = select(exists().where(OrderItemModel.product_id == product_id))
        return bool(self.db.execute(in_order).scalar())
