#shop/api/routers/carts.py
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from shop.data.database import get_db
from shop.domain.errors import Conflict, InvalidInput, NotFound, ProductUnavailable
from shop.domain.schemas import CartOut, ItemIn, MessageOut
from shop.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session):
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(
    user_id: UUID = Query(..., alias="userId"),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.get_cart(user_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.detail)


@router.post("", response_model=CartOut, status_code=201)
def add_item(
    payload: ItemIn,
    user_id: UUID = Query(..., alias="userId"),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.add_product(
            user_id=user_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
        )
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.detail)
    except (InvalidInput, ProductUnavailable) as e:
        raise HTTPException(status_code=400, detail=e.detail)
    except Conflict as e:
        raise HTTPException(status_code=409, detail=e.detail)


@router.delete("", response_model=MessageOut)
def remove_items(
    user_id: UUID = Query(..., alias="userId"),
    product_id: Optional[UUID] = Query(None, alias="productId"),
    db: Session = Depends(get_db),
):
    """Removes one product line, or empties the cart when productId is omitted."""
    svc = get_service(db)
    try:
        if product_id:
            svc.remove_product(user_id, product_id)
            return {"message": "Product removed from cart"}
        svc.clear_cart(user_id)
        return {"message": "Cart emptied"}
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.detail)
    except Conflict as e:
        raise HTTPException(status_code=409, detail=e.detail)
