"""Application configuration via environment variables."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

# File Storage
EXPORT_DIR = Path(os.getenv("EXPORT_DIR", str(BASE_DIR / "exports")))

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")

# Design synthesis
SYNTHESIS_DELAY_SECONDS = float(os.getenv("SYNTHESIS_DELAY_SECONDS", "2.0"))
_seed = os.getenv("RANDOM_SEED", "")
RANDOM_SEED = int(_seed) if _seed else None

# Plot visualization
VIEWPORT_WIDTH = int(os.getenv("VIEWPORT_WIDTH", "500"))
VIEWPORT_HEIGHT = int(os.getenv("VIEWPORT_HEIGHT", "300"))
VIEWPORT_PADDING = int(os.getenv("VIEWPORT_PADDING", "40"))

# House model asset placed on the 3D plot (optional)
HOUSE_MODEL_PATH = os.getenv("HOUSE_MODEL_PATH", str(BASE_DIR / "assets" / "house.glb"))
