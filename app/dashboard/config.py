import os
from dataclasses import dataclass

_PRODUCTION_ENVS = ("prod", "production")


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    log_level: str

    storage_backend: str
    local_storage_root: str
    s3_endpoint: str
    s3_region: str
    s3_bucket: str
    s3_access_key_id: str
    s3_secret_access_key: str
    s3_public_base_url: str

    placeholder_image_url: str
    view_cache_enabled: bool
    view_cache_ttl: float

    @property
    def is_production(self) -> bool:
        return self.env.lower() in _PRODUCTION_ENVS


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getflag(name: str, default: bool) -> bool:
    raw = _getenv(name).lower()
    if not raw:
        return default
    return raw not in ("0", "false", "no", "off")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///dashboard.db"),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        storage_backend=_getenv("STORAGE_BACKEND", "local").lower(),
        local_storage_root=_getenv("LOCAL_STORAGE_ROOT", os.path.join(os.getcwd(), "storage")),
        s3_endpoint=_getenv("S3_ENDPOINT"),
        s3_region=_getenv("S3_REGION", "nyc3"),
        s3_bucket=_getenv("S3_BUCKET"),
        s3_access_key_id=_getenv("S3_ACCESS_KEY_ID"),
        s3_secret_access_key=_getenv("S3_SECRET_ACCESS_KEY"),
        s3_public_base_url=_getenv("S3_PUBLIC_BASE_URL"),
        placeholder_image_url=_getenv("PLACEHOLDER_IMAGE_URL", "/static/customers/default.svg"),
        view_cache_enabled=_getflag("VIEW_CACHE_ENABLED", True),
        view_cache_ttl=float(_getenv("VIEW_CACHE_TTL", "60")),
    )


def production_problems(config) -> list[str]:
    """Settings that must not reach production. Empty outside production."""
    if str(config.get("ENV") or "").strip().lower() not in _PRODUCTION_ENVS:
        return []
    problems = []
    db_url = str(config.get("DATABASE_URL") or "").strip()
    if not db_url:
        problems.append("DATABASE_URL is required in production.")
    elif db_url.startswith("sqlite"):
        problems.append("DATABASE_URL must be Postgres in production (not sqlite).")
    if str(config.get("SECRET_KEY") or "") in ("", "change-me"):
        problems.append("SECRET_KEY must be set to a strong value in production (not default).")
    return problems


def missing_s3_settings(config) -> list[str]:
    if str(config.get("STORAGE_BACKEND") or "").lower() != "s3":
        return []
    required = ("S3_ENDPOINT", "S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY")
    return [key for key in required if not config.get(key)]


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "LOG_LEVEL": s.log_level,
        "STORAGE_BACKEND": s.storage_backend,
        "LOCAL_STORAGE_ROOT": s.local_storage_root,
        "S3_ENDPOINT": s.s3_endpoint,
        "S3_REGION": s.s3_region,
        "S3_BUCKET": s.s3_bucket,
        "S3_ACCESS_KEY_ID": s.s3_access_key_id,
        "S3_SECRET_ACCESS_KEY": s.s3_secret_access_key,
        "S3_PUBLIC_BASE_URL": s.s3_public_base_url,
        "PLACEHOLDER_IMAGE_URL": s.placeholder_image_url,
        "VIEW_CACHE_ENABLED": s.view_cache_enabled,
        "VIEW_CACHE_TTL": s.view_cache_ttl,
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": s.is_production,
        # avatar uploads
        "MAX_CONTENT_LENGTH": 5 * 1024 * 1024,
    }
