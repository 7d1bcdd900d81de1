import os

# before any shop import: settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["LOG_LEVEL"] = "WARNING"

import uuid
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

import shop.data.models  # noqa: F401
from shop.api import create_app
from shop.data.database import Base, get_db, make_engine
from shop.data.models import CartItemModel, CartModel, OrderModel, ProductModel, UserModel
from shop.services.lock_service import LockService, get_lock_service


@pytest.fixture()
def engine(tmp_path):
    # file backed so separate sessions really are separate connections
    engine = make_engine(f"sqlite:///{tmp_path / 'shop.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def redis_client():
    client = MagicMock()
    client.set.return_value = True
    client.eval.return_value = 1
    return client


@pytest.fixture()
def lock_service(redis_client):
    return LockService(client=redis_client)


@pytest.fixture()
def client(session_factory, lock_service):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lock_service] = lambda: lock_service

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def make_user(db):
    def _make(name="Alice", email=None):
        user = UserModel(name=name, email=email or f"{uuid.uuid4().hex[:8]}@example.com")
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture()
def make_product(db):
    def _make(name="Keyboard", price="10.00", stock=5, description=None):
        product = ProductModel(
            name=name,
            description=description,
            price=Decimal(price),
            stock=stock,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture()
def make_cart(db):
    def _make(user, lines=()):
        cart = CartModel(user_id=user.id, status="ACTIVE", version=1)
        db.add(cart)
        db.flush()
        for product, quantity in lines:
            product_id = product.id if hasattr(product, "id") else product
            db.add(CartItemModel(cart_id=cart.id, product_id=product_id, quantity=quantity))
        db.commit()
        return cart

    return _make


@pytest.fixture()
def snapshot(session_factory):
    """Reads state through a separate session."""

    class Snapshot:
        def stock(self, product_id):
            with session_factory() as s:
                return s.get(ProductModel, product_id).stock

        def cart(self, user_id):
            with session_factory() as s:
                return s.execute(
                    select(CartModel).where(CartModel.user_id == user_id)
                ).scalar_one_or_none()

        def cart_lines(self, cart_id):
            with session_factory() as s:
                return s.execute(
                    select(func.count()).select_from(CartItemModel).where(CartItemModel.cart_id == cart_id)
                ).scalar()

        def orders(self, user_id=None):
            with session_factory() as s:
                query = select(OrderModel)
                if user_id is not None:
                    query = query.where(OrderModel.user_id == user_id)
                return list(s.execute(query).scalars())

    return Snapshot()
