import logging
import os

# --- Configuration ---
GATEWAY_API_KEY = os.environ.get("GATEWAY_API_KEY", "")
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///gsheets_gateway.db")

GOOGLE_SERVICE_ACCOUNT_FILE = os.environ.get("GOOGLE_SERVICE_ACCOUNT_FILE", "")
GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID", "")
GOOGLE_CLIENT_SECRET = os.environ.get("GOOGLE_CLIENT_SECRET", "")  # !!! STORE SECRET SECURELY !!!
GOOGLE_REFRESH_TOKEN = os.environ.get("GOOGLE_REFRESH_TOKEN", "")
GOOGLE_SCOPES = [
    s.strip() for s in os.environ.get(
        "GOOGLE_SCOPES",
        "https://www.googleapis.com/auth/spreadsheets,"
        "https://www.googleapis.com/auth/documents,"
        "https://www.googleapis.com/auth/drive,"
        "https://www.googleapis.com/auth/analytics.readonly",
    ).split(",") if s.strip()
]
TOKEN_URL = "https://oauth2.googleapis.com/token"
REQUEST_TIMEOUT_SECONDS = int(os.environ.get("REQUEST_TIMEOUT_SECONDS", "30"))

DEFAULT_SPREADSHEET_ID = os.environ.get("DEFAULT_SPREADSHEET_ID", "")
DEFAULT_SHEET_NAME = "Sheet1"
DEFAULT_RANGE = "A1:Z1"

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(module)s:%(lineno)d - %(message)s'
PORT = int(os.environ.get("PORT", 5000))


class ConfigurationError(ValueError):
    """Raised when the server is missing configuration it needs to serve a request."""


class Config:
    """Flask settings, loaded with ``app.config.from_object``."""

    GATEWAY_API_KEY = GATEWAY_API_KEY
    DATABASE_URL = DATABASE_URL
    GOOGLE_SERVICE_ACCOUNT_FILE = GOOGLE_SERVICE_ACCOUNT_FILE
    GOOGLE_CLIENT_ID = GOOGLE_CLIENT_ID
    GOOGLE_CLIENT_SECRET = GOOGLE_CLIENT_SECRET
    GOOGLE_REFRESH_TOKEN = GOOGLE_REFRESH_TOKEN
    GOOGLE_SCOPES = GOOGLE_SCOPES
    DEFAULT_SPREADSHEET_ID = DEFAULT_SPREADSHEET_ID
    # Tests inject a prebuilt GoogleServices here.
    GOOGLE_SERVICES = None


def configure_logging(level=None):
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format=LOG_FORMAT,
        datefmt='%Y-%m-%d %H:%M:%S'
    )
