"""Application configuration via environment variables."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite+aiosqlite:///{BASE_DIR / 'buildings.db'}")

# Place indexer (token metadata holding each place's boundary)
PLACES_API_URL = os.getenv("PLACES_API_URL", "https://api.tzkt.io/v1/tokens")
PLACES_CONTRACT = os.getenv("PLACES_CONTRACT", "KT1G6bH9NVDp8tSSz7FzDUnCgbJwQikxtUog")
PLACES_TIMEOUT = float(os.getenv("PLACES_TIMEOUT", "10"))
DEFAULT_PLACE_ID = os.getenv("DEFAULT_PLACE_ID", "1")

# Building
BUILDING_COLOR = os.getenv("BUILDING_COLOR", "200,170,140")

# File Storage
EXPORT_DIR = Path(os.getenv("EXPORT_DIR", str(BASE_DIR / "exports")))
STATIC_DIR = Path(os.getenv("STATIC_DIR", str(BASE_DIR.parent / "dist")))
EXPORT_DIR.mkdir(parents=True, exist_ok=True)

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "9053"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# CORS
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
