"""Infrastructure and technical constants."""

from typing import Final

APP_NAME: Final = "HeartSmiles Backend API"
APP_VERSION: Final = "1.0.0"
APP_DESCRIPTION: Final = "HeartSmiles Youth Success App Backend API"

DEFAULT_PORT: Final = 5000
HEALTH_PATH: Final = "/api/health"

# Rate limiting defaults (15 minute window)
RATE_LIMIT_WINDOW_SECONDS: Final = 15 * 60
RATE_LIMIT_MAX_REQUESTS: Final = 100
RATE_LIMIT_MESSAGE: Final = (
    "Too many requests from this IP, please try again after 15 minutes"
)

MAX_BODY_BYTES: Final = 10 * 1024 * 1024
MAX_UPLOAD_BYTES: Final = 10 * 1024 * 1024

# Origins that are always allowed to make credentialed cross-origin requests
STATIC_ALLOWED_ORIGINS: Final = (
    "http://localhost:3000",
    "http://localhost:3002",
    "http://localhost:3003",
    "https://heart-smiles-frontend-ri7gn79hh-sara-devis-projects.vercel.app",
)
FALLBACK_ALLOWED_ORIGINS: Final = ("http://localhost:3000", "http://localhost:3002")

CORS_ALLOWED_METHODS: Final = ("GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS")
CORS_ALLOWED_HEADERS: Final = ("Content-Type", "Authorization", "X-Requested-With")

# Settings that must be present for every feature to work
REQUIRED_SETTINGS: Final = ("jwt_secret",)
