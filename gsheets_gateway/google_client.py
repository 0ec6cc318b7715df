"""Credentials and service objects for the Google APIs the gateway fronts."""

import logging
import threading
import time

import requests
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials as OAuthCredentials
from googleapiclient.discovery import build

from .config import REQUEST_TIMEOUT_SECONDS, TOKEN_URL, ConfigurationError

logger = logging.getLogger(__name__)

# (api name, version) per service attribute
SERVICE_VERSIONS = {
    "sheets": ("sheets", "v4"),
    "docs": ("docs", "v1"),
    "drive": ("drive", "v3"),
    "analytics": ("analyticsreporting", "v4"),
}


def get_access_token(client_id, client_secret, refresh_token):
    logger.info(f"Attempting to get new access token using refresh token (starts with: {refresh_token[:6]}...).")
    start_time = time.time()
    if not client_secret:
        logger.error("CRITICAL: GOOGLE_CLIENT_SECRET not configured for token refresh.")
        raise ConfigurationError("GOOGLE_CLIENT_SECRET not configured.")
    payload = {
        "client_id": client_id, "client_secret": client_secret,
        "refresh_token": refresh_token, "grant_type": "refresh_token"
    }
    try:
        response = requests.post(TOKEN_URL, data=payload, timeout=REQUEST_TIMEOUT_SECONDS)
        response.raise_for_status()
        token_data = response.json()
        access_token = token_data.get("access_token")
        duration = time.time() - start_time
        if access_token:
            logger.info(f"Obtained new access token via refresh in {duration:.2f} seconds. Expires in: {token_data.get('expires_in')}s")
            return access_token
        logger.error(f"Token refresh response missing access_token after {duration:.2f}s.")
        raise ConfigurationError("Access token not found in refresh response.")
    except requests.exceptions.Timeout:
        duration = time.time() - start_time
        logger.error(f"Timeout ({REQUEST_TIMEOUT_SECONDS}s) during token refresh after {duration:.2f} seconds.")
        raise
    except requests.exceptions.HTTPError as e:
        duration = time.time() - start_time
        body = e.response.text if e.response is not None else str(e)
        logger.error(f"HTTPError during token refresh after {duration:.2f} seconds: {body}")
        if "invalid_grant" in (body or ""):
            logger.warning("Token refresh failed with 'invalid_grant'. Refresh token may be expired or revoked.")
        raise


def get_credentials(config):
    """Service-account credentials when a key file is configured, else OAuth refresh-token credentials."""
    key_file = config.get("GOOGLE_SERVICE_ACCOUNT_FILE")
    scopes = config.get("GOOGLE_SCOPES")
    if key_file:
        logger.info(f"Loading service account credentials from '{key_file}'.")
        try:
            return service_account.Credentials.from_service_account_file(key_file, scopes=scopes)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load service account file '{key_file}': {e}", exc_info=True)
            raise ConfigurationError(f"Service account file could not be loaded: {e}") from e

    refresh_token = config.get("GOOGLE_REFRESH_TOKEN")
    if refresh_token:
        client_id, client_secret = config.get("GOOGLE_CLIENT_ID"), config.get("GOOGLE_CLIENT_SECRET")
        access_token = get_access_token(client_id, client_secret, refresh_token)
        # Carries the refresh token so the client library renews the access token once it expires.
        return OAuthCredentials(
            token=access_token, refresh_token=refresh_token, token_uri=TOKEN_URL,
            client_id=client_id, client_secret=client_secret, scopes=scopes
        )

    logger.error("CRITICAL: No Google credentials configured.")
    raise ConfigurationError("Google credentials not configured: set GOOGLE_SERVICE_ACCOUNT_FILE or GOOGLE_REFRESH_TOKEN.")


def build_service(name, credentials):
    api_name, version = SERVICE_VERSIONS[name]
    logger.info(f"Building Google {api_name} {version} service object...")
    try:
        service = build(api_name, version, credentials=credentials, cache_discovery=False)
        logger.info(f"Google {api_name} service object built successfully.")
        return service
    except Exception as e:
        logger.error(f"Failed to build Google {api_name} service object: {str(e)}", exc_info=True)
        raise


class GoogleServices:
    """Lazily built Sheets, Docs, Drive and Analytics Reporting clients sharing one credential."""

    def __init__(self, credentials):
        self.credentials = credentials
        self._services = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config):
        return cls(get_credentials(config))

    def _get(self, name):
        with self._lock:
            if name not in self._services:
                self._services[name] = build_service(name, self.credentials)
            return self._services[name]

    @property
    def sheets(self):
        return self._get("sheets")

    @property
    def docs(self):
        return self._get("docs")

    @property
    def drive(self):
        return self._get("drive")

    @property
    def analytics(self):
        return self._get("analytics")
