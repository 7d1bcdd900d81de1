# shop/api/routers/orders.py
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from shop.data.database import get_db
from shop.data.models.order import PENDING
from shop.domain.errors import (
    CheckoutInDoubt,
    Conflict,
    InternalInconsistency,
    InvalidInput,
    NotFound,
    ProductUnavailable,
    Transient,
)
from shop.domain.schemas import OrderOut, OrderPendingOut
from shop.services.checkout_service import CheckoutService
from shop.services.lock_service import LockService, get_lock_service
from shop.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "",
    response_model=OrderOut,
    status_code=201,
    responses={202: {"model": OrderPendingOut}},
)
def create_order(
    user_id: UUID = Query(..., alias="userId"),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    """
    Checks out the user's cart.
    202 means the order was written but is not confirmed yet; look it up
    with GET /orders/{orderId} instead of retrying blindly.
    """
    svc = CheckoutService(db, lock_service)
    try:
        return svc.checkout(user_id)
    except CheckoutInDoubt as e:
        body = OrderPendingOut(order_id=e.order_id, status=PENDING, detail=e.detail)
        return JSONResponse(status_code=202, content=body.model_dump(mode="json", by_alias=True))
    except (NotFound, InvalidInput, ProductUnavailable) as e:
        raise HTTPException(status_code=400, detail=e.detail)
    except Conflict as e:
        raise HTTPException(status_code=409, detail=e.detail)
    except Transient as e:
        raise HTTPException(status_code=503, detail=e.detail, headers={"Retry-After": "1"})
    except InternalInconsistency as e:
        raise HTTPException(status_code=500, detail=e.detail)


@router.get("", response_model=List[OrderOut])
def list_orders(
    user_id: UUID = Query(..., alias="userId"),
    db: Session = Depends(get_db),
):
    return OrderService(db).list_orders(user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: UUID, db: Session = Depends(get_db)):
    try:
        return OrderService(db).get_order(order_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.detail)
