import uuid
from decimal import Decimal

from redis.exceptions import RedisError
from sqlalchemy.exc import OperationalError

from shop.services import checkout_service


def storage_down(*args, **kwargs):
    raise OperationalError("COMMIT", {}, Exception("connection lost"))


def create_user(client, name="Alice", email="alice@example.com"):
    r = client.post("/users", json={"name": name, "email": email})
    assert r.status_code == 201
    return r.json()


def create_product(client, name="Keyboard", price="10.00", stock=5):
    r = client.post("/products", json={"name": name, "price": price, "stock": stock})
    assert r.status_code == 201
    return r.json()


def add_to_cart(client, user_id, product_id, quantity):
    return client.post(
        "/carts",
        params={"userId": user_id},
        json={"productId": product_id, "quantity": quantity},
    )


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok"}


class TestUsersApi:
    def test_create_and_list(self, client):
        user = create_user(client)
        assert user["name"] == "Alice"

        r = client.get("/users")
        assert r.status_code == 200
        assert [u["id"] for u in r.json()] == [user["id"]]

    def test_duplicate_email(self, client):
        create_user(client)
        r = client.post("/users", json={"name": "Other", "email": "alice@example.com"})
        assert r.status_code == 409

    def test_get_by_id(self, client):
        user = create_user(client)

        r = client.get(f"/users/{user['id']}")

        assert r.status_code == 200
        assert r.json()["email"] == "alice@example.com"

    def test_get_unknown(self, client):
        assert client.get(f"/users/{uuid.uuid4()}").status_code == 404

    def test_invalid_email(self, client):
        r = client.post("/users", json={"name": "Alice", "email": "not-an-email"})
        assert r.status_code == 400


class TestProductsApi:
    def test_create(self, client):
        product = create_product(client, price="199.99", stock=3)

        assert Decimal(product["price"]) == Decimal("199.99")
        assert product["stock"] == 3

    def test_negative_stock_rejected(self, client):
        r = client.post("/products", json={"name": "Broken", "price": "1.00", "stock": -1})
        assert r.status_code == 400

    def test_update(self, client):
        product = create_product(client)

        r = client.put(f"/products/{product['id']}", json={"stock": 50})

        assert r.status_code == 200
        assert r.json()["stock"] == 50
        assert r.json()["name"] == "Keyboard"

    def test_update_unknown(self, client):
        r = client.put(f"/products/{uuid.uuid4()}", json={"stock": 1})
        assert r.status_code == 404

    def test_delete(self, client):
        product = create_product(client)

        r = client.delete(f"/products/{product['id']}")

        assert r.status_code == 200
        assert client.get("/products").json() == []

    def test_delete_in_cart(self, client):
        user = create_user(client)
        product = create_product(client)
        add_to_cart(client, user["id"], product["id"], 1)

        r = client.delete(f"/products/{product['id']}")

        assert r.status_code == 400


class TestCartsApi:
    def test_add_uses_camel_case(self, client):
        user = create_user(client)
        product = create_product(client, price="25.00")

        r = add_to_cart(client, user["id"], product["id"], 2)

        assert r.status_code == 201
        body = r.json()
        assert body["userId"] == user["id"]
        assert body["products"][0]["productId"] == product["id"]
        assert body["products"][0]["quantity"] == 2
        assert Decimal(body["total"]) == Decimal("50.00")

    def test_get(self, client):
        user = create_user(client)
        product = create_product(client)
        add_to_cart(client, user["id"], product["id"], 1)

        r = client.get("/carts", params={"userId": user["id"]})

        assert r.status_code == 200
        assert len(r.json()["products"]) == 1

    def test_get_missing(self, client):
        user = create_user(client)
        r = client.get("/carts", params={"userId": user["id"]})
        assert r.status_code == 404

    def test_add_beyond_stock(self, client):
        user = create_user(client)
        product = create_product(client, stock=1)

        r = add_to_cart(client, user["id"], product["id"], 2)

        assert r.status_code == 400

    def test_add_zero_quantity(self, client):
        user = create_user(client)
        product = create_product(client)

        r = add_to_cart(client, user["id"], product["id"], 0)

        assert r.status_code == 400

    def test_remove_line(self, client):
        user = create_user(client)
        first = create_product(client, name="A")
        second = create_product(client, name="B")
        add_to_cart(client, user["id"], first["id"], 1)
        add_to_cart(client, user["id"], second["id"], 1)

        r = client.delete("/carts", params={"userId": user["id"], "productId": first["id"]})

        assert r.status_code == 200
        lines = client.get("/carts", params={"userId": user["id"]}).json()["products"]
        assert [line["productId"] for line in lines] == [second["id"]]

    def test_empty_cart(self, client):
        user = create_user(client)
        product = create_product(client)
        add_to_cart(client, user["id"], product["id"], 1)

        r = client.delete("/carts", params={"userId": user["id"]})

        assert r.status_code == 200
        assert r.json() == {"message": "Cart emptied"}
        assert client.get("/carts", params={"userId": user["id"]}).status_code == 404

    def test_invalid_user_id(self, client):
        r = client.get("/carts", params={"userId": "not-a-uuid"})
        assert r.status_code == 400


class TestOrdersApi:
    def test_checkout(self, client):
        user = create_user(client)
        product = create_product(client, price="10.00", stock=5)
        add_to_cart(client, user["id"], product["id"], 2)

        r = client.post("/orders", params={"userId": user["id"]})

        assert r.status_code == 201
        order = r.json()
        assert order["status"] == "COMMITTED"
        assert Decimal(order["total"]) == Decimal("20.00")
        assert "orderDate" in order
        assert client.get("/products").json()[0]["stock"] == 3
        assert client.get("/carts", params={"userId": user["id"]}).status_code == 404

    def test_list_and_get(self, client):
        user = create_user(client)
        product = create_product(client)
        add_to_cart(client, user["id"], product["id"], 1)
        order = client.post("/orders", params={"userId": user["id"]}).json()

        listed = client.get("/orders", params={"userId": user["id"]})
        fetched = client.get(f"/orders/{order['id']}")

        assert [o["id"] for o in listed.json()] == [order["id"]]
        assert fetched.status_code == 200
        assert fetched.json()["products"][0]["name"] == "Keyboard"

    def test_get_unknown(self, client):
        assert client.get(f"/orders/{uuid.uuid4()}").status_code == 404

    def test_second_checkout_has_no_cart(self, client):
        user = create_user(client)
        product = create_product(client)
        add_to_cart(client, user["id"], product["id"], 1)
        client.post("/orders", params={"userId": user["id"]})

        r = client.post("/orders", params={"userId": user["id"]})

        assert r.status_code == 400
        assert len(client.get("/orders", params={"userId": user["id"]}).json()) == 1

    def test_empty_cart(self, client):
        user = create_user(client)
        product = create_product(client)
        add_to_cart(client, user["id"], product["id"], 1)
        client.delete("/carts", params={"userId": user["id"], "productId": product["id"]})

        r = client.post("/orders", params={"userId": user["id"]})

        assert r.status_code == 400

    def test_insufficient_stock(self, client):
        user = create_user(client)
        product = create_product(client, stock=2)
        add_to_cart(client, user["id"], product["id"], 2)
        client.put(f"/products/{product['id']}", json={"stock": 1})

        r = client.post("/orders", params={"userId": user["id"]})

        assert r.status_code == 400
        assert client.get("/products").json()[0]["stock"] == 1
        assert client.get("/orders", params={"userId": user["id"]}).json() == []

    def test_checkout_in_progress(self, client, redis_client):
        user = create_user(client)
        product = create_product(client)
        add_to_cart(client, user["id"], product["id"], 1)
        redis_client.set.return_value = None
        redis_client.get.return_value = "someone-else"

        r = client.post("/orders", params={"userId": user["id"]})

        assert r.status_code == 409

    def test_lock_backend_down(self, client, redis_client):
        user = create_user(client)
        product = create_product(client)
        add_to_cart(client, user["id"], product["id"], 1)
        redis_client.set.side_effect = RedisError("connection refused")

        r = client.post("/orders", params={"userId": user["id"]})

        assert r.status_code == 503
        assert r.headers["retry-after"] == "1"

    def test_in_doubt_returns_order_id(self, client, monkeypatch):
        user = create_user(client)
        product = create_product(client)
        add_to_cart(client, user["id"], product["id"], 1)
        monkeypatch.setattr(checkout_service, "complete_checkout", storage_down)

        r = client.post("/orders", params={"userId": user["id"]})

        assert r.status_code == 202
        body = r.json()
        assert body["status"] == "PENDING"
        pending = client.get(f"/orders/{body['orderId']}")
        assert pending.json()["status"] == "PENDING"

        monkeypatch.undo()
        r = client.post("/orders", params={"userId": user["id"]})

        assert r.status_code == 201
        assert r.json()["id"] == body["orderId"]

    def test_missing_user_id(self, client):
        assert client.post("/orders").status_code == 400
