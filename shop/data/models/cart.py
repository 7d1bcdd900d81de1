# shop/data/models/cart.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Uuid

from shop.data.database import Base

ACTIVE = "ACTIVE"
CHECKING_OUT = "CHECKING_OUT"


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # one live cart per user
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, unique=True)

    status = Column(String(20), nullable=False, default=ACTIVE)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
