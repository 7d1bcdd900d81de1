import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, String, DateTime, Numeric, Uuid
from sqlalchemy.orm import relationship

from shop.data.database import Base

PENDING = "PENDING"
COMMITTED = "COMMITTED"


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    # id of the cart the order was made from; a cart is consumed at most once
    checkout_key = Column(String(64), nullable=False, unique=True)

    status = Column(String(20), nullable=False, default=PENDING)  # PENDING, COMMITTED
    total = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    committed_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
