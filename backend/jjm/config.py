"""
Runtime settings for the JJM dashboard backend.
Values come from the environment (.env for local, host env for production).
"""

import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[2]

# Load environment variables (.env at the project root)
load_dotenv(BASE_DIR / ".env")

DATA_DIR = BASE_DIR / "data"

# First try environment variable, else local fallback
DB_PATH = os.getenv("DB_PATH", str(DATA_DIR / "jjm_dashboard.duckdb"))
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(DATA_DIR / "uploads")))
MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "10"))

# Groq (optional, chatbot fallback + translation)
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")

# PI Vision host serving the scheme / village / ESR displays
PI_VISION_BASE_URL = os.getenv("PI_VISION_BASE_URL", "https://14.99.99.166:18099/PIVision")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://127.0.0.1:5173,http://localhost:5173,http://127.0.0.1:3000,http://localhost:3000",
    ).split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "8000"))


def groq_configured() -> bool:
    """True when a Groq API key is available."""
    return bool(GROQ_API_KEY)
