# shop/repos/order_repo.py
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from shop.data.models.order import OrderModel, PENDING, COMMITTED


class OrderRepo:
    """Append-only order ledger. Order content is never updated or deleted."""

    def __init__(self, db: Session):
        self.db = db

    def add_pending_order(self, order: OrderModel) -> OrderModel:
        # flushed, committed by the caller together with the stock decrements
        order.status = PENDING
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_by_checkout_key(self, checkout_key: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.checkout_key == checkout_key)
        ).scalar_one_or_none()

    def list_orders(self, user_id) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .options(selectinload(OrderModel.items))
                .order_by(OrderModel.created_at)
            ).scalars()
        )

    def list_pending(self, older_than: datetime) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.status == PENDING, OrderModel.created_at < older_than)
                .order_by(OrderModel.created_at)
            ).scalars()
        )

    def mark_committed(self, order_id) -> int:
        # status marker only; PENDING -> COMMITTED, never back
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == PENDING)
            .values(status=COMMITTED, committed_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
