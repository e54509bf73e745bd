import os
from typing import Dict

# --- URLs & API ---
API_BASE_URL = os.environ.get("VILLA_API_URL", "http://localhost:5000/api").rstrip("/")
REQUEST_TIMEOUT = int(os.environ.get("VILLA_REQUEST_TIMEOUT", "10"))

# --- Calendar ---
# Business calendar offset from UTC in hours (Asia/Bangkok).
BUSINESS_UTC_OFFSET_HOURS = int(os.environ.get("BUSINESS_UTC_OFFSET_HOURS", "7"))

# --- Search ---
DEFAULT_NIGHTS = 3
DEFAULT_SLOT_LIMIT = int(os.environ.get("DEFAULT_SLOT_LIMIT", "10"))
NEAREST_SLOTS_LIMIT = int(os.environ.get("NEAREST_SLOTS_LIMIT", "3"))
ALTERNATIVES_MAX_WORKERS = int(os.environ.get("ALTERNATIVES_MAX_WORKERS", "4"))

COMMON_HEADERS: Dict[str, str] = {
    "User-Agent": os.environ.get("VILLA_USER_AGENT", "villa-availability/0.1"),
    "Accept": "application/json, text/plain, */*",
    "Content-Type": "application/json",
    "Accept-Language": os.environ.get("VILLA_ACCEPT_LANGUAGE", "ru-RU,ru;q=0.9,en;q=0.8"),
}

API_TOKEN = os.environ.get("VILLA_API_TOKEN")
if API_TOKEN:
    COMMON_HEADERS["Authorization"] = f"Bearer {API_TOKEN}"
