"""HTTP API tests: registration, login, bearer gate and orders."""

from __future__ import annotations

import time
import uuid
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from conftest import TEST_SECRET
from storefront.core.tokens import TokenService
from storefront.repositories.record_store import ORDER_ITEMS, ORDERS

API = "/api/v1"
PASSWORD = "correct-horse-battery"


def _register(client: TestClient, email: str = "ann@example.com", name: str = "Ann") -> dict:
    response = client.post(f"{API}/users", json={"name": name, "email": email, "password": PASSWORD})
    assert response.status_code == 201, response.text
    return response.json()


def _login(client: TestClient, email: str = "ann@example.com") -> str:
    response = client.post(f"{API}/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token(client: TestClient) -> str:
    _register(client)
    return _login(client)


class TestHealth:
    def test_root(self, client: TestClient) -> None:
        assert client.get("/").json() == {"status": "ok", "service": "storefront"}


class TestRegistration:
    def test_register(self, client: TestClient, sql_store) -> None:
        body = _register(client)

        assert body["email"] == "ann@example.com"
        assert body["name"] == "Ann"
        assert "password" not in body
        assert "password_hash" not in body

        stored = sql_store.find_one("users", {"email": "ann@example.com"})
        assert stored.password_hash != PASSWORD
        assert stored.password_hash.startswith("$2")

    def test_duplicate_email(self, client: TestClient) -> None:
        _register(client)
        response = client.post(
            f"{API}/users",
            json={"name": "Other", "email": "ANN@example.com", "password": PASSWORD},
        )
        assert response.status_code == 409

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "Ann", "email": "not-an-email", "password": PASSWORD},
            {"name": "Ann", "email": "ann@example.com"},
            {"name": "  ", "email": "ann@example.com", "password": PASSWORD},
            {"name": "Ann", "email": "ann@example.com", "password": "short"},
            {"name": "Ann", "email": "ann@example.com", "password": PASSWORD, "role": "admin"},
        ],
    )
    def test_invalid_payload(self, client: TestClient, payload: dict) -> None:
        assert client.post(f"{API}/users", json=payload).status_code == 422


class TestLogin:
    def test_token_identifies_user(self, client: TestClient) -> None:
        user = _register(client)
        response = client.post(f"{API}/login", json={"email": "ann@example.com", "password": PASSWORD})

        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["expires_in"] == 3600

        me = client.get(f"{API}/users/me", headers=_auth(body["token"]))
        assert me.status_code == 200
        assert me.json()["id"] == user["id"]

    @pytest.mark.parametrize(
        ("email", "password"),
        [("ann@example.com", "wrong-password"), ("nobody@example.com", PASSWORD)],
    )
    def test_bad_credentials_same_response(self, client: TestClient, email: str, password: str) -> None:
        _register(client)
        response = client.post(f"{API}/login", json={"email": email, "password": password})

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid credentials"}


class TestAuthGate:
    """The bearer gate rejects without touching the store."""

    def _assert_denied(self, client: TestClient, sql_store, headers: dict, status_code: int) -> None:
        response = client.post(
            f"{API}/orders",
            json={"items": [{"product_id": "p-1", "quantity": 1, "unit_price": "1.00"}]},
            headers=headers,
        )
        assert response.status_code == status_code
        assert sql_store.find_many(ORDERS, {}) == []
        assert sql_store.find_many(ORDER_ITEMS, {}) == []

    def test_no_header(self, client: TestClient, sql_store) -> None:
        self._assert_denied(client, sql_store, {}, 401)

    @pytest.mark.parametrize("value", ["Basic abc", "Bearer", "token-without-scheme", ""])
    def test_malformed_header(self, client: TestClient, sql_store, value: str) -> None:
        self._assert_denied(client, sql_store, {"Authorization": value}, 401)

    def test_unauthenticated_advertises_bearer(self, client: TestClient) -> None:
        response = client.get(f"{API}/orders/me")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_garbage_token(self, client: TestClient, sql_store) -> None:
        self._assert_denied(client, sql_store, _auth("not.a.jwt"), 403)

    def test_expired_token(self, client: TestClient, sql_store, token: str) -> None:
        user_id = client.get(f"{API}/users/me", headers=_auth(token)).json()["id"]
        two_hours_ago = TokenService(TEST_SECRET, clock=lambda: time.time() - 7200)
        expired = two_hours_ago.issue(user_id, ttl=timedelta(hours=1))

        self._assert_denied(client, sql_store, _auth(expired), 403)

    def test_foreign_secret(self, client: TestClient, sql_store, token: str) -> None:
        user_id = client.get(f"{API}/users/me", headers=_auth(token)).json()["id"]
        forged = TokenService("another-secret").issue(user_id)

        self._assert_denied(client, sql_store, _auth(forged), 403)

    def test_non_uuid_subject(self, client: TestClient, sql_store) -> None:
        token = TokenService(TEST_SECRET).issue("admin")
        self._assert_denied(client, sql_store, _auth(token), 403)

    def test_valid_token_for_unknown_user(self, client: TestClient) -> None:
        token = TokenService(TEST_SECRET).issue(str(uuid.uuid4()))
        assert client.get(f"{API}/users/me", headers=_auth(token)).status_code == 404


class TestOrders:
    def test_place_and_read_back(self, client: TestClient, token: str) -> None:
        response = client.post(
            f"{API}/orders",
            json={
                "items": [
                    {"product_id": "p-1", "quantity": 2, "unit_price": 3.00},
                    {"product_id": "p-2", "quantity": 1, "unit_price": "5.50"},
                ]
            },
            headers=_auth(token),
        )
        assert response.status_code == 201, response.text

        order = response.json()
        assert order["total"] == "11.50"
        assert len(order["items"]) == 2
        assert {item["order_id"] for item in order["items"]} == {order["id"]}

        listed = client.get(f"{API}/orders/me", headers=_auth(token)).json()
        assert [o["id"] for o in listed] == [order["id"]]
        assert listed[0]["total"] == "11.50"

        detail = client.get(f"{API}/orders/me/{order['id']}", headers=_auth(token)).json()
        assert detail["id"] == order["id"]
        assert sorted(item["line_total"] for item in detail["items"]) == ["5.50", "6.00"]

    @pytest.mark.parametrize(
        "items",
        [
            [],
            [{"product_id": "p-1", "quantity": 0, "unit_price": "1.00"}],
            [{"product_id": "p-1", "quantity": 1, "unit_price": "-1.00"}],
        ],
    )
    def test_invalid_order(self, client: TestClient, sql_store, token: str, items: list) -> None:
        response = client.post(f"{API}/orders", json={"items": items}, headers=_auth(token))

        assert response.status_code == 400
        assert sql_store.find_many(ORDERS, {}) == []

    def test_unknown_field_rejected(self, client: TestClient, token: str) -> None:
        response = client.post(
            f"{API}/orders",
            json={"items": [{"product_id": "p", "quantity": 1, "unit_price": "1.00", "discount": 5}]},
            headers=_auth(token),
        )
        assert response.status_code == 422

    def test_user_id_comes_from_token(self, client: TestClient, token: str) -> None:
        response = client.post(
            f"{API}/orders",
            json={"user_id": str(uuid.uuid4()), "items": [{"product_id": "p", "quantity": 1, "unit_price": "1"}]},
            headers=_auth(token),
        )
        assert response.status_code == 422

    def test_other_users_order_hidden(self, client: TestClient, token: str) -> None:
        order = client.post(
            f"{API}/orders",
            json={"items": [{"product_id": "p", "quantity": 1, "unit_price": "1.00"}]},
            headers=_auth(token),
        ).json()

        _register(client, email="bob@example.com", name="Bob")
        bob = _login(client, email="bob@example.com")

        assert client.get(f"{API}/orders/me", headers=_auth(bob)).json() == []
        assert client.get(f"{API}/orders/me/{order['id']}", headers=_auth(bob)).status_code == 404

    def test_store_outage_is_503(self, client: TestClient, sql_store, token: str, monkeypatch) -> None:
        from storefront.core.errors import StoreUnavailable

        def down(*args, **kwargs):
            raise StoreUnavailable()

        monkeypatch.setattr(sql_store, "insert", down)
        response = client.post(
            f"{API}/orders",
            json={"items": [{"product_id": "p", "quantity": 1, "unit_price": "1.00"}]},
            headers=_auth(token),
        )
        assert response.status_code == 503
        assert response.json() == {"detail": "Record store unavailable"}
