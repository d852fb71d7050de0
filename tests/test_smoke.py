from conftest import CSRF

from app.dashboard.db import session_scope
from app.dashboard.models import User


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True

    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_dashboard_requires_login(client):
    r = client.get("/dashboard/invoices?query=abc")
    assert r.status_code == 302
    assert "/login" in r.headers["Location"]
    assert "next=" in r.headers["Location"]


def test_root_redirects_to_login(client):
    r = client.get("/")
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/login")


def test_login_invalid_credentials(client):
    r = client.post("/login", data={"email": "admin@example.com", "password": "nope"})
    assert r.status_code == 401
    assert b"Invalid credentials." in r.data

    r = client.post("/login", data={"email": "nobody@example.com", "password": "pw"})
    assert r.status_code == 401
    assert b"Invalid credentials." in r.data


def test_login_inactive_user_rejected(app, client):
    with session_scope(app) as s:
        user = s.query(User).filter_by(email="admin@example.com").one()
        user.is_active = False

    r = client.post("/login", data={"email": "admin@example.com", "password": "pw"})
    assert r.status_code == 401


def test_login_redirects_to_dashboard(client):
    r = client.post("/login", data={"email": "Admin@Example.com ", "password": "pw"})
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/dashboard")

    r = client.get("/dashboard")
    assert r.status_code == 200
    assert b"Total Customers" in r.data


def test_login_honors_local_next_only(client):
    r = client.post("/login", data={"email": "admin@example.com", "password": "pw", "next": "/dashboard/customers"})
    assert r.headers["Location"].endswith("/dashboard/customers")

    r = client.post("/login", data={"email": "admin@example.com", "password": "pw", "next": "//evil.example"})
    assert r.headers["Location"].endswith("/dashboard")


def test_logout_clears_session(admin_client):
    r = admin_client.post("/logout", data={"csrf_token": CSRF})
    assert r.status_code == 302

    r = admin_client.get("/dashboard")
    assert r.status_code == 302


def test_mutation_without_csrf_token_rejected(admin_client):
    r = admin_client.post("/dashboard/invoices/create", data={"amount": "10", "status": "paid"})
    assert r.status_code == 400
    assert b"CSRF" in r.data


def test_unknown_page_404(admin_client):
    r = admin_client.get("/dashboard/invoices/00000000-0000-0000-0000-000000000000/edit")
    assert r.status_code == 404
