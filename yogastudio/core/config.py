import os

# PostgreSQL settings
POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
POSTGRES_DB = os.getenv("POSTGRES_DB", "balance")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "db")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}",
)

# Telegram relay for the admin chat
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
TELEGRAM_ADMIN_CHAT_ID = os.getenv("TELEGRAM_ADMIN_CHAT_ID")
WEBHOOK_SECRET = os.getenv("WEBHOOK_SECRET")

# JWT
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = "HS256"
JWT_ACCESS_TOKEN_EXPIRE_MINUTES = int(
    os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7))
)

# Environment
ENVIRONMENT = os.getenv("ENVIRONMENT", "production").lower()
DEBUG = ENVIRONMENT in ["development", "dev"]

# Database retry settings
DB_RETRY_ATTEMPTS = int(os.getenv("DB_RETRY_ATTEMPTS", "3"))
DB_RETRY_DELAY = float(os.getenv("DB_RETRY_DELAY", "1.0"))
DB_RETRY_BACKOFF_FACTOR = float(os.getenv("DB_RETRY_BACKOFF_FACTOR", "2.0"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if not DEBUG else "DEBUG")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json" if not DEBUG else "text")

# Rate limiting
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# Studio rules
DEFAULT_CANCELLATION_WINDOW_MINUTES = int(
    os.getenv("DEFAULT_CANCELLATION_WINDOW_MINUTES", "60")
)
DEFAULT_PLAN_DURATION_DAYS = 30
DEFAULT_LEAD_PASSWORD = os.getenv("DEFAULT_LEAD_PASSWORD", "default-password")

# Application
APP_NAME = os.getenv("APP_NAME", "Balance Studio API")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS", "http://localhost:5173,http://localhost:8080"
    ).split(",")
    if origin.strip()
]


def validate_config():
    """Validate critical settings at startup"""
    errors = []

    if not DATABASE_URL:
        errors.append("DATABASE_URL is required")

    if ENVIRONMENT not in ["development", "dev", "test"] and JWT_SECRET_KEY == "change-me":
        errors.append("JWT_SECRET_KEY must be set in production")

    if JWT_ACCESS_TOKEN_EXPIRE_MINUTES < 1:
        errors.append("JWT_ACCESS_TOKEN_EXPIRE_MINUTES must be >= 1")

    if DB_RETRY_ATTEMPTS < 1:
        errors.append("DB_RETRY_ATTEMPTS must be >= 1")

    if DB_RETRY_DELAY < 0:
        errors.append("DB_RETRY_DELAY must be >= 0")

    if DEFAULT_CANCELLATION_WINDOW_MINUTES < 0:
        errors.append("DEFAULT_CANCELLATION_WINDOW_MINUTES must be >= 0")

    if errors:
        raise ValueError(f"Configuration errors: {'; '.join(errors)}")
