from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from shop.data.database import get_db
from shop.domain.errors import Conflict, UserNotFound
from shop.domain.schemas import UserCreate, UserRead
from shop.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserRead, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.create_user(payload)
    except Conflict as e:
        raise HTTPException(status_code=409, detail=e.detail)


@router.get("", response_model=List[UserRead])
def list_users(db: Session = Depends(get_db)):
    return UserService(db).list_users()


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: UUID, db: Session = Depends(get_db)):
    try:
        return UserService(db).get_user(user_id)
    except UserNotFound as e:
        raise HTTPException(status_code=404, detail=e.detail)
