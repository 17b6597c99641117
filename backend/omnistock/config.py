# backend/omnistock/config.py
from __future__ import annotations
import os


def _csv_env(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/omnistock.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///omnistock.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Product categories offered by the product form
    PRODUCT_CATEGORIES = _csv_env(
        "PRODUCT_CATEGORIES",
        "Eletrônicos,Periféricos,Monitores,Hardware,Acessórios",
    )

    # Organization created by `flask system seed-demo`
    DEMO_ORG_CODE = os.environ.get("DEMO_ORG_CODE", "OMNI-DEMO")

    # Pricing advisor (Gemini generateContent REST endpoint)
    GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
    GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-3-flash-preview")
    GEMINI_API_URL = os.environ.get(
        "GEMINI_API_URL",
        "https://generativelanguage.googleapis.com/v1beta",
    )
    ADVISOR_TIMEOUT_SECONDS = float(os.environ.get("ADVISOR_TIMEOUT_SECONDS", "10"))

    CORS_ALLOWED_ORIGINS = set(_csv_env(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
    ))
