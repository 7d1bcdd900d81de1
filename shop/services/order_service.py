# shop/services/order_service.py
from typing import Any, Dict

from sqlalchemy.orm import Session

from shop.data.models.order import OrderModel
from shop.domain.errors import OrderNotFound
from shop.repos.order_repo import OrderRepo


def order_to_dict(order: OrderModel) -> Dict[str, Any]:
    """Durable order shape, line names come from the purchase-time snapshot."""
    return {
        "id": order.id,
        "user_id": order.user_id,
        "status": order.status,
        "products": [
            {
                "product_id": i.product_id,
                "name": i.name,
                "quantity": i.quantity,
                "price": i.price,
            }
            for i in order.items
        ],
        "total": order.total,
        "order_date": order.created_at,
    }


class OrderService:
    """Read side of the order ledger. Orders are written only by checkout."""

    def __init__(self, db: Session):
        self.repo = OrderRepo(db)

    def list_orders(self, user_id) -> list[Dict[str, Any]]:
        return [order_to_dict(o) for o in self.repo.list_orders(user_id)]

    def get_order(self, order_id) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound()
        return order_to_dict(order)
