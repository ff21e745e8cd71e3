# Overview: Pytest coverage for role-gated routes in strict and bypass auth modes.

"""
Role gate tests.

Verifies:
- Unauthenticated requests return 401 in strict mode
- A session with the wrong role gets 403
- Bypass mode only fabricates callers when explicitly configured
"""

import logging

import pytest

from voucherdesk.storage import get_storage
from voucherdesk.services.auth_service import ensure_demo_users

from conftest import auth_headers, make_app


OWNER_ROUTES = [
    ("GET", "/api/vouchers"),
    ("POST", "/api/vouchers"),
    ("GET", "/api/vouchers/1"),
    ("PATCH", "/api/vouchers/1"),
    ("DELETE", "/api/vouchers/1"),
    ("GET", "/api/employees"),
    ("GET", "/api/customers"),
    ("POST", "/api/users"),
    ("PATCH", "/api/users/2"),
    ("DELETE", "/api/users/2"),
    ("POST", "/api/distributions"),
    ("GET", "/api/distributions"),
]

EMPLOYEE_ROUTES = [
    ("GET", "/api/employee-stock"),
    ("POST", "/api/sales"),
    ("GET", "/api/sales"),
]

CUSTOMER_ROUTES = [
    ("GET", "/api/customer-vouchers"),
    ("PATCH", "/api/customer-vouchers/1/use"),
    ("GET", "/api/customer-transactions"),
]


class TestStrictMode:

    @pytest.mark.parametrize("method,path", OWNER_ROUTES + EMPLOYEE_ROUTES + CUSTOMER_ROUTES)
    def test_requires_auth(self, client, users, method, path):
        resp = client.open(path, method=method, json={})
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    @pytest.mark.parametrize("method,path", OWNER_ROUTES)
    def test_employee_denied_owner_routes(self, employee_client, method, path):
        resp = employee_client.open(path, method=method, json={})
        assert resp.status_code == 403
        assert resp.get_json()["required_role"] == "owner"

    @pytest.mark.parametrize("method,path", EMPLOYEE_ROUTES)
    def test_customer_denied_employee_routes(self, customer_client, method, path):
        resp = customer_client.open(path, method=method, json={})
        assert resp.status_code == 403

    @pytest.mark.parametrize("method,path", CUSTOMER_ROUTES)
    def test_owner_denied_customer_routes(self, owner_client, method, path):
        resp = owner_client.open(path, method=method, json={})
        assert resp.status_code == 403

    def test_owner_allowed(self, owner_client):
        assert owner_client.get("/api/vouchers").status_code == 200

    def test_bearer_token_accepted(self, app, client, users):
        login = client.post("/api/login", json={"username": "employee", "password": "Password123!"})
        token = login.get_json()["token"]

        fresh = app.test_client()
        resp = fresh.get("/api/employee-stock", headers=auth_headers(token))
        assert resp.status_code == 200

    def test_garbage_token_is_anonymous(self, client, users):
        resp = client.get("/api/vouchers", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401

    def test_current_user_requires_session(self, client):
        assert client.get("/api/user").status_code == 401


class TestBypassMode:

    @pytest.fixture
    def bypass_client(self, bypass_app):
        storage = get_storage()
        with storage.transaction():
            ensure_demo_users(storage)
        return bypass_app.test_client()

    def test_anonymous_owner_route_runs_as_fabricated_owner(self, bypass_client):
        resp = bypass_client.post("/api/vouchers", json={
            "code": "DEV-1",
            "type": "food",
            "value": "5.00",
            "initial_stock": 3,
            "expiry_date": "2030-01-01T00:00:00Z",
        })
        assert resp.status_code == 201
        assert resp.get_json()["created_by"] == 1

    def test_anonymous_employee_route(self, bypass_client):
        assert bypass_client.get("/api/employee-stock").status_code == 200

    @pytest.mark.parametrize("referer,role,user_id", [
        ("http://localhost:5173/employee/dashboard", "employee", 2),
        ("http://localhost:5173/customer/dashboard", "customer", 3),
        ("http://localhost:5173/owner/reports", "owner", 1),
        (None, "owner", 1),
    ])
    def test_current_user_follows_referer(self, bypass_client, referer, role, user_id):
        headers = {"Referer": referer} if referer else {}
        body = bypass_client.get("/api/user", headers=headers).get_json()
        assert body["role"] == role
        assert body["id"] == user_id
        assert body["fabricated"] is True

    def test_authenticated_caller_still_role_checked(self, bypass_client):
        bypass_client.post("/api/login", json={"username": "customer", "password": "Password123!"})
        assert bypass_client.get("/api/vouchers").status_code == 403


class TestAuthModeConfig:

    def test_default_is_strict(self, app):
        assert app.config["AUTH_MODE"] == "strict"

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            make_app(AUTH_MODE="development")

    def test_bypass_seeds_users_behind_fabricated_ids(self, bypass_app):
        storage = get_storage()
        for role, user_id in bypass_app.config["BYPASS_USER_IDS"].items():
            assert storage.users.get(user_id).role == role

    def test_bypass_warns_about_ids_without_users(self, caplog):
        with caplog.at_level(logging.WARNING):
            make_app(AUTH_MODE="bypass", BYPASS_USER_IDS={"owner": 1, "employee": 2, "customer": 99})
        assert "no customer user with id 99" in caplog.text
        assert "no owner user" not in caplog.text

    def test_strict_mode_does_not_seed(self, app, storage):
        assert storage.users.count() == 0
