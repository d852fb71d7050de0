from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO


class StorageError(RuntimeError):
    pass


class Storage:
    """
    Blob store for uploaded files.

    Objects are addressed by key; every stored object also has a public URL,
    which is what gets persisted on rows (e.g. customers.image_url).
    """

    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> str:
        """Store data under key and return its public URL."""
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def open(self, key: str) -> BinaryIO:
        raise NotImplementedError

    def exists(self, key: str) -> bool:
        raise NotImplementedError

    def url_for(self, key: str) -> str:
        raise NotImplementedError

    def key_from_url(self, url: str) -> str | None:
        """Map a public URL back to a key; None if this backend does not own the URL."""
        raise NotImplementedError

    def delete_url(self, url: str) -> bool:
        """Delete the object behind a public URL. Returns False for foreign URLs."""
        key = self.key_from_url(url)
        if not key:
            return False
        self.delete(key)
        return True


def _clean_key(key: str) -> str:
    safe_key = key.lstrip("/").replace("\\", "/")
    if not safe_key or any(part in ("", ".", "..") for part in safe_key.split("/")):
        raise StorageError(f"Invalid storage key: {key!r}")
    return safe_key


@dataclass(frozen=True)
class LocalStorage(Storage):
    root: Path
    url_prefix: str = "/uploads"

    def _path(self, key: str) -> Path:
        return self.root / _clean_key(key)

    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> str:
        p = self._path(key)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)
        return self.url_for(key)

    def delete(self, key: str) -> None:
        # Same semantics as S3 DeleteObject: deleting a missing object is not an error.
        self._path(key).unlink(missing_ok=True)

    def open(self, key: str) -> BinaryIO:
        p = self._path(key)
        if not p.is_file():
            raise StorageError(f"Object not found: {key}")
        return p.open("rb")

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def url_for(self, key: str) -> str:
        return f"{self.url_prefix.rstrip('/')}/{_clean_key(key)}"

    def key_from_url(self, url: str) -> str | None:
        prefix = self.url_prefix.rstrip("/") + "/"
        if not url or not url.startswith(prefix):
            return None
        return url[len(prefix):] or None


@dataclass(frozen=True)
class S3Storage(Storage):
    endpoint: str
    region: str
    bucket: str
    access_key_id: str
    secret_access_key: str
    public_base_url: str = ""

    def _client(self):
        import boto3

        return boto3.client(
            "s3",
            endpoint_url=f"https://{self.endpoint}" if self.endpoint else None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
        )

    def _base_url(self) -> str:
        if self.public_base_url:
            return self.public_base_url.rstrip("/")
        if self.endpoint:
            return f"https://{self.bucket}.{self.endpoint}"
        return f"https://{self.bucket}.s3.amazonaws.com"

    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> str:
        key = _clean_key(key)
        extra: dict[str, object] = {"ACL": "public-read"}
        if content_type:
            extra["ContentType"] = content_type
        self._client().put_object(Bucket=self.bucket, Key=key, Body=data, **extra)
        return self.url_for(key)

    def delete(self, key: str) -> None:
        self._client().delete_object(Bucket=self.bucket, Key=_clean_key(key))

    def open(self, key: str) -> BinaryIO:
        obj = self._client().get_object(Bucket=self.bucket, Key=_clean_key(key))
        return obj["Body"]  # type: ignore[return-value]

    def exists(self, key: str) -> bool:
        from botocore.exceptions import ClientError

        try:
            self._client().head_object(Bucket=self.bucket, Key=_clean_key(key))
            return True
        except ClientError:
            return False

    def url_for(self, key: str) -> str:
        return f"{self._base_url()}/{_clean_key(key)}"

    def key_from_url(self, url: str) -> str | None:
        prefix = self._base_url() + "/"
        if not url or not url.startswith(prefix):
            return None
        return url[len(prefix):] or None


def storage_from_config(config: dict) -> Storage:
    backend = (config.get("STORAGE_BACKEND") or "local").strip().lower()
    if backend == "s3":
        return S3Storage(
            endpoint=(config.get("S3_ENDPOINT") or "").strip(),
            region=(config.get("S3_REGION") or "nyc3").strip(),
            bucket=(config.get("S3_BUCKET") or "").strip(),
            access_key_id=(config.get("S3_ACCESS_KEY_ID") or "").strip(),
            secret_access_key=(config.get("S3_SECRET_ACCESS_KEY") or "").strip(),
            public_base_url=(config.get("S3_PUBLIC_BASE_URL") or "").strip(),
        )
    if backend != "local":
        raise StorageError(f"Unknown STORAGE_BACKEND: {backend!r}")
    root = Path(config.get("LOCAL_STORAGE_ROOT") or "storage")
    return LocalStorage(root=root)


def current_storage() -> Storage:
    """The storage backend configured for the running app."""
    from flask import current_app

    storage = current_app.extensions.get("storage")
    if storage is None:
        storage = storage_from_config(current_app.config)
        current_app.extensions["storage"] = storage
    return storage
