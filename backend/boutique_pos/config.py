# backend/boutique_pos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/boutique_pos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///boutique_pos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Opening float assumed for a day that has no DailyClosing row yet (1000.00)
    DEFAULT_OPENING_FLOAT_CENTS = int(os.environ.get("DEFAULT_OPENING_FLOAT_CENTS", "100000"))

    # Scanner classifier tuning
    SCANNER_MIN_LENGTH = int(os.environ.get("SCANNER_MIN_LENGTH", "3"))
    SCANNER_TIME_THRESHOLD_MS = int(os.environ.get("SCANNER_TIME_THRESHOLD_MS", "100"))

    # Auto-generated SKU length
    SKU_LENGTH = int(os.environ.get("SKU_LENGTH", "8"))

    # Products with stock below this show up in the restock list
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "3"))

    # Browser origins allowed to call the API (comma separated)
    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if o.strip()
    ]
