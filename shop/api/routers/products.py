# shop/api/routers/products.py
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from shop.data.database import get_db
from shop.domain.errors import ProductInUse, ProductNotFound
from shop.domain.schemas import MessageOut, ProductCreate, ProductOut, ProductUpdate
from shop.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


def get_service(db: Session):
    return ProductService(db)


@router.get("", response_model=List[ProductOut])
def list_products(db: Session = Depends(get_db)):
    return get_service(db).list_products()


@router.post("", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    return get_service(db).create_product(payload)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(product_id: UUID, payload: ProductUpdate, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.update_product(product_id, payload)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=e.detail)


@router.delete("/{product_id}", response_model=MessageOut)
def delete_product(product_id: UUID, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        svc.delete_product(product_id)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=e.detail)
    except ProductInUse as e:
        raise HTTPException(status_code=400, detail=e.detail)
    return {"message": "Product deleted successfully"}
