import io
import uuid
from datetime import date

import pytest
from werkzeug.security import generate_password_hash

from app.dashboard import create_app
from app.dashboard.db import session_scope
from app.dashboard.models import Base, Customer, Invoice, User
from app.dashboard.storage import Storage, StorageError

CSRF = "test-csrf-token"
PLACEHOLDER = "/static/customers/default.svg"


class RecordingStorage(Storage):
    """In-memory blob store that records every put/delete in order."""

    base_url = "https://blobs.test"

    def __init__(self, fail_delete: bool = False) -> None:
        self.objects: dict[str, bytes] = {}
        self.events: list[tuple[str, str]] = []
        self.fail_delete = fail_delete

    def put_bytes(self, key, data, *, content_type=None):
        self.objects[key] = data
        self.events.append(("put", key))
        return self.url_for(key)

    def delete(self, key):
        if self.fail_delete:
            raise StorageError(f"delete failed: {key}")
        self.objects.pop(key, None)
        self.events.append(("delete", key))

    def open(self, key):
        return io.BytesIO(self.objects[key])

    def exists(self, key):
        return key in self.objects

    def url_for(self, key):
        return f"{self.base_url}/{key}"

    def key_from_url(self, url):
        prefix = self.base_url + "/"
        if not url or not url.startswith(prefix):
            return None
        return url[len(prefix):]


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("LOCAL_STORAGE_ROOT", str(tmp_path / "storage"))
    monkeypatch.setenv("PLACEHOLDER_IMAGE_URL", PLACEHOLDER)
    monkeypatch.delenv("VIEW_CACHE_ENABLED", raising=False)
    for k in ("S3_ENDPOINT", "S3_REGION", "S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY"):
        monkeypatch.delenv(k, raising=False)

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        s.add(User(name="Admin", email="admin@example.com", password_hash=generate_password_hash("pw"), is_active=True))

    return app


@pytest.fixture()
def storage(app):
    fake = RecordingStorage()
    app.extensions["storage"] = fake
    return fake


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def admin_client(client):
    """Logged-in client whose session carries a known CSRF token."""
    r = client.post("/login", data={"email": "admin@example.com", "password": "pw"})
    assert r.status_code == 302
    with client.session_transaction() as sess:
        sess["csrf_token"] = CSRF
    return client


def add_customer(app, name="Evil Rabbit", email="evil@rabbit.com", image_url=PLACEHOLDER) -> uuid.UUID:
    customer_id = uuid.uuid4()
    with session_scope(app) as s:
        s.add(Customer(id=customer_id, name=name, email=email, image_url=image_url))
    return customer_id


def add_invoice(app, customer_id, amount=1000, status="pending", on=None) -> uuid.UUID:
    invoice_id = uuid.uuid4()
    with session_scope(app) as s:
        s.add(Invoice(id=invoice_id, customer_id=customer_id, amount=amount, status=status, date=on or date.today()))
    return invoice_id
