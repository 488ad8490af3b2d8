"""
HTTP tests for the auth, product, sales and health routes.

Verifies:
- Every protected route answers 401 without a valid bearer token
- Login / me / change-password request and response shapes
- Checkout status codes: 201, 400, 404, 409
- Cashiers can read products but not write them
"""

from datetime import timedelta

import pytest

from webpos.errors import InvalidToken, TokenExpired
from webpos.routes import auth as auth_routes
from webpos.time_utils import utcnow
from tests.conftest import (
    ADMIN_PASSWORD,
    CASHIER_PASSWORD,
    auth_headers,
    get_auth_token,
    sale_count,
    stock_of,
)


PROTECTED_ROUTES = [
    ("get", "/auth/me"),
    ("post", "/auth/change-password"),
    ("get", "/products"),
    ("post", "/products"),
    ("get", "/products/1"),
    ("put", "/products/1"),
    ("delete", "/products/1"),
    ("post", "/sales"),
    ("get", "/sales"),
    ("get", "/sales/1"),
]


class TestAccessGate:
    @pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
    def test_missing_token(self, client, db_session, method, path):
        response = getattr(client, method)(path, json={})
        assert response.status_code == 401
        assert response.json["error"] == "unauthorized"

    @pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
    def test_garbage_token(self, client, db_session, method, path):
        response = getattr(client, method)(path, json={}, headers=auth_headers("not.a.token"))
        assert response.status_code == 401
        assert response.json["error"] == "invalid_token"

    def test_non_bearer_scheme(self, client, admin_user):
        token = get_auth_token(client, "admin", ADMIN_PASSWORD)
        response = client.get("/sales", headers={"Authorization": f"Basic {token}"})
        assert response.status_code == 401

    def test_expired_token(self, client, services, admin_user):
        issued = services.authority.issue_token(
            admin_user, issued_at=utcnow() - timedelta(hours=12, seconds=1)
        )

        response = client.get("/sales", headers=auth_headers(issued.token))

        assert response.status_code == 401
        assert response.json["error"] == "token_expired"

    def test_expired_token_error_is_an_invalid_token(self):
        error = TokenExpired("Token expired")
        assert isinstance(error, InvalidToken)
        assert error.to_dict()["error"] == "token_expired"
        assert error.status_code == 401
        assert InvalidToken("Invalid token").code == "invalid_token"

    def test_rejected_sale_has_no_side_effects(self, client, db_session, make_product):
        product = make_product(stock=10)

        response = client.post("/sales", json={"items": [{"productId": product.id, "qty": 1}]})

        assert response.status_code == 401
        assert stock_of(db_session, product.id) == 10
        assert sale_count(db_session) == 0


class TestAuthRoutes:
    def test_login(self, client, admin_user):
        response = client.post("/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD})

        assert response.status_code == 200
        body = response.json
        assert body["token"]
        assert body["user"] == {"id": admin_user.id, "username": "admin", "role": "admin"}
        assert body["expires_at"].endswith("Z")

    def test_login_wrong_password(self, client, admin_user):
        response = client.post("/auth/login", json={"username": "admin", "password": "nope"})
        assert response.status_code == 401
        assert response.json["error"] == "invalid_credentials"

    def test_login_unknown_user_same_answer(self, client, admin_user):
        wrong_password = client.post("/auth/login", json={"username": "admin", "password": "nope"})
        unknown_user = client.post("/auth/login", json={"username": "ghost", "password": "nope"})
        assert unknown_user.status_code == wrong_password.status_code
        assert unknown_user.json == wrong_password.json

    @pytest.mark.parametrize("body", [
        {},
        {"username": "admin"},
        {"password": "x"},
        ["admin", ADMIN_PASSWORD],
        "admin",
        {"username": "admin", "password": 123456},
        {"username": ["admin"], "password": ADMIN_PASSWORD},
        {"username": "admin", "password": None},
    ])
    def test_login_malformed_body(self, client, db_session, body):
        response = client.post("/auth/login", json=body)
        assert response.status_code == 400

    def test_me(self, client, cashier_user, cashier_headers):
        response = client.get("/auth/me", headers=cashier_headers)
        assert response.status_code == 200
        assert response.json["user"] == {"id": cashier_user.id, "username": "cashier", "role": "cashier"}

    def test_change_password(self, client, cashier_user, cashier_headers):
        response = client.post(
            "/auth/change-password",
            json={"oldPassword": CASHIER_PASSWORD, "newPassword": "Brand-New-1"},
            headers=cashier_headers,
        )

        assert response.status_code == 200
        assert get_auth_token(client, "cashier", CASHIER_PASSWORD) is None
        assert get_auth_token(client, "cashier", "Brand-New-1")

    def test_change_password_wrong_old(self, client, cashier_user, cashier_headers):
        response = client.post(
            "/auth/change-password",
            json={"old_password": "wrong", "new_password": "Brand-New-1"},
            headers=cashier_headers,
        )

        assert response.status_code == 400
        assert get_auth_token(client, "cashier", CASHIER_PASSWORD)

    @pytest.mark.parametrize("body", [
        {},
        [CASHIER_PASSWORD, "Brand-New-1"],
        {"oldPassword": CASHIER_PASSWORD, "newPassword": 99999999},
        {"oldPassword": 12345, "newPassword": "Brand-New-1"},
        {"oldPassword": CASHIER_PASSWORD, "newPassword": "x" * 73},
    ])
    def test_change_password_malformed_body(self, client, cashier_user, cashier_headers, body):
        response = client.post("/auth/change-password", json=body, headers=cashier_headers)

        assert response.status_code == 400
        assert response.json["error"] == "validation_error"
        assert get_auth_token(client, "cashier", CASHIER_PASSWORD)


class TestSalesRoutes:
    def test_process_sale(self, client, db_session, make_product, cashier_user, cashier_headers):
        product = make_product(stock=10, price=1000)

        response = client.post(
            "/sales",
            json={"subtotal": 4000, "paymentAmount": 4000, "items": [{"productId": product.id, "qty": 4}]},
            headers=cashier_headers,
        )

        assert response.status_code == 201
        sale_id = response.json["id"]
        assert stock_of(db_session, product.id) == 6

        detail = client.get(f"/sales/{sale_id}", headers=cashier_headers)
        assert detail.status_code == 200
        assert detail.json["created_by_user_id"] == cashier_user.id
        assert detail.json["items"] == [{"product_id": product.id, "qty": 4, "unit_price": 1000}]

    def test_unknown_product(self, client, db_session, cashier_headers):
        response = client.post(
            "/sales", json={"items": [{"productId": 999, "qty": 1}]}, headers=cashier_headers
        )
        assert response.status_code == 404
        assert response.json["error"] == "not_found"
        assert sale_count(db_session) == 0

    def test_insufficient_stock(self, client, db_session, make_product, cashier_headers):
        product = make_product(stock=2)

        response = client.post(
            "/sales", json={"items": [{"productId": product.id, "qty": 3}]}, headers=cashier_headers
        )

        assert response.status_code == 409
        assert response.json["error"] == "insufficient_stock"
        assert response.json["details"]["on_hand"] == 2
        assert stock_of(db_session, product.id) == 2

    @pytest.mark.parametrize("body", [
        {},
        {"items": []},
        {"items": [{"productId": 1, "qty": 0}]},
        {"items": [{"productId": 1, "qty": 2.5}]},
        {"items": [{"productId": 10**20, "qty": 1}]},
        {"items": [{"productId": "100000000000000000000", "qty": 1}]},
    ])
    def test_invalid_body(self, client, db_session, cashier_headers, body):
        response = client.post("/sales", json=body, headers=cashier_headers)
        assert response.status_code == 400
        assert response.json["error"] == "validation_error"

    def test_non_json_body(self, client, db_session, cashier_headers):
        response = client.post("/sales", data="items=1", headers=cashier_headers)
        assert response.status_code == 400

    def test_list_newest_first(self, client, make_product, cashier_headers):
        product = make_product(stock=10)
        ids = [
            client.post(
                "/sales", json={"items": [{"productId": product.id, "qty": 1}]}, headers=cashier_headers
            ).json["id"]
            for _ in range(3)
        ]

        response = client.get("/sales", headers=cashier_headers)

        assert response.status_code == 200
        assert [s["id"] for s in response.json] == list(reversed(ids))

    def test_missing_sale(self, client, db_session, cashier_headers):
        response = client.get("/sales/4040", headers=cashier_headers)
        assert response.status_code == 404

    def test_out_of_range_ids_are_not_found(self, client, db_session, cashier_headers):
        huge = 10**20
        assert client.get(f"/sales/{huge}", headers=cashier_headers).status_code == 404
        assert client.get(f"/products/{huge}", headers=cashier_headers).status_code == 404

    def test_no_update_or_delete_routes(self, client, make_product, cashier_headers):
        product = make_product(stock=10)
        sale_id = client.post(
            "/sales", json={"items": [{"productId": product.id, "qty": 1}]}, headers=cashier_headers
        ).json["id"]

        assert client.put(f"/sales/{sale_id}", json={}, headers=cashier_headers).status_code == 405
        assert client.delete(f"/sales/{sale_id}", headers=cashier_headers).status_code == 405


class TestProductRoutes:
    def test_cashier_can_read(self, client, make_product, cashier_headers):
        product = make_product(stock=3)

        listing = client.get("/products", headers=cashier_headers)
        detail = client.get(f"/products/{product.id}", headers=cashier_headers)

        assert listing.status_code == 200
        assert [p["id"] for p in listing.json] == [product.id]
        assert detail.json["stock"] == 3

    def test_cashier_cannot_write(self, client, db_session, make_product, cashier_headers):
        product = make_product()

        created = client.post("/products", json={"name": "X"}, headers=cashier_headers)
        updated = client.put(f"/products/{product.id}", json={"stock": 99}, headers=cashier_headers)
        deleted = client.delete(f"/products/{product.id}", headers=cashier_headers)

        assert [created.status_code, updated.status_code, deleted.status_code] == [403, 403, 403]
        assert created.json["error"] == "forbidden"
        assert stock_of(db_session, product.id) == 10

    def test_admin_crud(self, client, db_session, admin_headers):
        created = client.post(
            "/products",
            json={"sku": "PS-01", "name": "Controller", "price": 1000, "cost": 600, "stock": 5},
            headers=admin_headers,
        )
        assert created.status_code == 201
        product_id = created.json["id"]

        updated = client.put(f"/products/{product_id}", json={"stock": 8}, headers=admin_headers)
        assert updated.status_code == 200
        assert updated.json["stock"] == 8

        deleted = client.delete(f"/products/{product_id}", headers=admin_headers)
        assert deleted.status_code == 200
        assert client.get(f"/products/{product_id}", headers=admin_headers).status_code == 404

    def test_admin_invalid_product(self, client, db_session, admin_headers):
        response = client.post("/products", json={"name": "X", "price": -5}, headers=admin_headers)
        assert response.status_code == 400

    def test_update_missing_product(self, client, db_session, admin_headers):
        response = client.put("/products/999", json={"stock": 1}, headers=admin_headers)
        assert response.status_code == 404


class TestHealth:
    def test_root(self, client, db_session):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json["ok"] is True
        assert response.json["name"] == "WebPOS Backend"
        assert response.json["database"]["status"] == "healthy"

    def test_cors_allowed_origin(self, client, db_session):
        response = client.get("/", headers={"Origin": "http://localhost:5173"})
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    def test_cors_other_origin(self, client, db_session):
        response = client.get("/", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in response.headers


class TestUnexpectedErrors:
    """Unexpected failures answer a JSON 500, never Flask's HTML page."""

    @pytest.fixture
    def broken(self, services, monkeypatch):
        def _break(target, name):
            def boom(*args, **kwargs):
                raise RuntimeError("storage fault")
            monkeypatch.setattr(target, name, boom)
        return _break

    @pytest.mark.parametrize("component,method,path", [
        ("ledger", "list_products", "/products"),
        ("ledger", "require_product", "/products/1"),
        ("sales", "list_sales", "/sales"),
        ("sales", "get_sale", "/sales/1"),
    ])
    def test_read_routes(self, client, services, broken, cashier_headers, component, method, path):
        broken(getattr(services, component), method)

        response = client.get(path, headers=cashier_headers)

        assert response.status_code == 500
        assert response.is_json
        assert response.json["error"] == "internal_error"

    def test_me(self, client, broken, cashier_headers):
        broken(auth_routes, "to_utc_z")

        response = client.get("/auth/me", headers=cashier_headers)

        assert response.status_code == 500
        assert response.json["error"] == "internal_error"
