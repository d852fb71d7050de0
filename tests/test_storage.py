import pytest

from app.dashboard.modules.customers.service import build_avatar_key, remove_avatar
from app.dashboard.storage import LocalStorage, S3Storage, StorageError, storage_from_config


def test_local_put_returns_url_and_delete_by_url(tmp_path):
    st = LocalStorage(root=tmp_path)
    url = st.put_bytes("customers/a.png", b"data", content_type="image/png")

    assert url == "/uploads/customers/a.png"
    assert (tmp_path / "customers" / "a.png").read_bytes() == b"data"
    assert st.key_from_url(url) == "customers/a.png"

    assert st.delete_url(url) is True
    assert not st.exists("customers/a.png")
    # Deleting again is a no-op.
    st.delete("customers/a.png")


def test_local_open_missing_raises(tmp_path):
    st = LocalStorage(root=tmp_path)
    with pytest.raises(StorageError):
        st.open("customers/nope.png")


@pytest.mark.parametrize("key", ["", "/", "../etc/passwd", "customers/../../x", "a//b"])
def test_local_rejects_bad_keys(tmp_path, key):
    st = LocalStorage(root=tmp_path)
    with pytest.raises(StorageError):
        st.put_bytes(key, b"x")


def test_foreign_urls_are_not_deleted(tmp_path):
    st = LocalStorage(root=tmp_path)
    assert st.key_from_url("https://cdn.example.com/customers/a.png") is None
    assert st.delete_url("https://cdn.example.com/customers/a.png") is False
    assert st.delete_url("/static/customers/default.svg") is False


def test_s3_url_mapping_without_network():
    st = S3Storage(
        endpoint="nyc3.digitaloceanspaces.com",
        region="nyc3",
        bucket="avatars",
        access_key_id="k",
        secret_access_key="s",
    )
    url = st.url_for("customers/a.png")
    assert url == "https://avatars.nyc3.digitaloceanspaces.com/customers/a.png"
    assert st.key_from_url(url) == "customers/a.png"
    assert st.key_from_url("/uploads/customers/a.png") is None

    cdn = S3Storage("e", "r", "b", "k", "s", public_base_url="https://cdn.example.com/")
    assert cdn.url_for("customers/a.png") == "https://cdn.example.com/customers/a.png"


def test_storage_from_config():
    assert isinstance(storage_from_config({"STORAGE_BACKEND": "local", "LOCAL_STORAGE_ROOT": "/tmp/x"}), LocalStorage)
    assert isinstance(storage_from_config({"STORAGE_BACKEND": "S3", "S3_BUCKET": "b"}), S3Storage)
    with pytest.raises(StorageError):
        storage_from_config({"STORAGE_BACKEND": "ftp"})


def test_avatar_keys_are_unique_and_sanitized():
    a = build_avatar_key("../My Photo.png")
    b = build_avatar_key("../My Photo.png")
    assert a != b
    assert a.startswith("customers/")
    assert a.endswith("-My_Photo.png")
    assert build_avatar_key("???").endswith("-avatar")


def test_remove_avatar_skips_placeholder_and_empty(tmp_path):
    st = LocalStorage(root=tmp_path)
    placeholder = "/static/customers/default.svg"
    assert remove_avatar(st, placeholder, placeholder) is False
    assert remove_avatar(st, None, placeholder) is False

    url = st.put_bytes("customers/x.png", b"x")
    assert remove_avatar(st, url, placeholder) is True
    assert not st.exists("customers/x.png")
