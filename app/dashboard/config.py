import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    upload_dir: str
    upload_url_prefix: str
    default_customer_image_url: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///dashboard.db"),
        upload_dir=_getenv("UPLOAD_DIR", os.path.join(os.getcwd(), "public", "customers")),
        upload_url_prefix=_getenv("UPLOAD_URL_PREFIX", "/customers"),
        default_customer_image_url=_getenv("DEFAULT_CUSTOMER_IMAGE_URL", "/customers/default-avatar.png"),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "UPLOAD_DIR": s.upload_dir,
        "UPLOAD_URL_PREFIX": s.upload_url_prefix.rstrip("/"),
        "DEFAULT_CUSTOMER_IMAGE_URL": s.default_customer_image_url,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,  # Require HTTPS in production
        # image uploads are capped at 5MB by validation; the request limit sits above
        # it so oversized images get a field error instead of a 413
        "MAX_IMAGE_BYTES": 5 * 1024 * 1024,
        "MAX_CONTENT_LENGTH": 16 * 1024 * 1024,
    }
