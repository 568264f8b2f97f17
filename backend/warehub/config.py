from __future__ import annotations
import os


def _split_csv(raw: str | None, *, default: list[str]) -> list[str]:
    parts = [p.strip() for p in (raw or "").split(",")]
    return [p for p in parts if p] or default


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/warehub.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///warehub.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Absolute bearer session lifetime
    SESSION_TTL_DAYS = int(os.environ.get("SESSION_TTL_DAYS", "7"))

    # bcrypt cost factor; tests lower it
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Inventory CSV uploads are small, single-sheet files
    CSV_UPLOAD_MAX_BYTES = int(os.environ.get("CSV_UPLOAD_MAX_BYTES", str(1024 * 1024)))

    CORS_ALLOWED_ORIGINS = _split_csv(
        os.environ.get("CORS_ALLOWED_ORIGINS"),
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
    )

    # External AI advice provider (Gemini REST API)
    GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "").strip()
    GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.0-flash").strip()
    GEMINI_BASE_URL = os.environ.get(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com"
    ).strip().rstrip("/")
    AI_ADVICE_TIMEOUT_SECONDS = float(os.environ.get("AI_ADVICE_TIMEOUT_SECONDS", "30"))

    # Used by `flask system init` to seed the first admin account
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@warehub.local")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "")
    ADMIN_NAME = os.environ.get("ADMIN_NAME", "Admin")
