#!/usr/bin/env python3
"""
Google Authentication - Credential bootstrap for the Drive API.

Credential sources, first match wins:
1. GOOGLE_SERVICE_ACCOUNT_JSON - inline service-account JSON
2. GOOGLE_SERVICE_ACCOUNT_FILE - service-account key file
3. OAuth user credentials - client ID/secret plus a stored refresh token

When none is available, has_credentials() is False and callers fall
back to local storage.
"""

import os
import json
import logging
from typing import Optional, List, Any, Dict

from google.auth.credentials import Credentials as BaseCredentials
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build

from config import DriveConfig, get_config

logger = logging.getLogger(__name__)

SCOPES = {
    "drive": [
        "https://www.googleapis.com/auth/drive",
    ],
}

SERVICE_VERSIONS = {
    "drive": ("drive", "v3"),
}

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class GoogleAuth:
    """
    Google credential handler.

    Usage:
        auth = GoogleAuth()
        if auth.has_credentials():
            drive = auth.get_service("drive")
    """

    def __init__(
        self,
        drive_config: Optional[DriveConfig] = None,
        scopes: Optional[List[str]] = None,
    ):
        """
        Initialize Google authentication.

        Args:
            drive_config: Drive section of the app config (global config if omitted)
            scopes: OAuth scopes to request (Drive full access by default)
        """
        self.config = drive_config or get_config().drive
        self.scopes = scopes or SCOPES["drive"]
        self._credentials: Optional[BaseCredentials] = None
        self._loaded = False
        self._service_account_info: Optional[Dict[str, Any]] = None
        self._services: dict = {}

    @property
    def credentials(self) -> Optional[BaseCredentials]:
        """Get current credentials (lazy load)."""
        if not self._loaded:
            self._credentials = self._load_credentials()
            self._loaded = True
        return self._credentials

    def _load_credentials(self) -> Optional[BaseCredentials]:
        """Load credentials from the first configured source."""
        if self.config.service_account_json:
            try:
                info = json.loads(self.config.service_account_json)
                creds = service_account.Credentials.from_service_account_info(
                    info, scopes=self.scopes
                )
                self._service_account_info = info
                logger.info("Loaded service account credentials from environment")
                return creds
            except (ValueError, KeyError) as e:
                logger.error(f"Invalid GOOGLE_SERVICE_ACCOUNT_JSON: {e}")

        key_file = self.config.service_account_file
        if key_file and os.path.exists(key_file):
            try:
                with open(key_file, "r", encoding="utf-8") as f:
                    info = json.load(f)
                creds = service_account.Credentials.from_service_account_info(
                    info, scopes=self.scopes
                )
                self._service_account_info = info
                logger.info(f"Loaded service account credentials from {key_file}")
                return creds
            except (OSError, ValueError, KeyError) as e:
                logger.error(f"Invalid service account file {key_file}: {e}")

        if self.config.has_oauth_client() and self.config.refresh_token:
            logger.info("Using OAuth refresh token credentials")
            return Credentials(
                token=None,
                refresh_token=self.config.refresh_token,
                client_id=self.config.client_id,
                client_secret=self.config.client_secret,
                token_uri=GOOGLE_TOKEN_URI,
                scopes=self.scopes,
            )

        logger.warning("No Google credentials found")
        return None

    def has_credentials(self) -> bool:
        """Check whether any credential source is configured and loadable."""
        return self.credentials is not None

    @property
    def service_account_email(self) -> Optional[str]:
        """Email to share Drive folders with (service accounts only)."""
        if self.credentials is None or self._service_account_info is None:
            return None
        return self._service_account_info.get("client_email")

    def get_service(self, service_name: str) -> Any:
        """
        Get an authenticated Google API service.

        Args:
            service_name: Currently only 'drive'

        Returns:
            Google API service object

        Raises:
            ValueError: If service_name is not recognized
            RuntimeError: If no credentials are available
        """
        if service_name not in SERVICE_VERSIONS:
            raise ValueError(
                f"Unknown service: {service_name}. "
                f"Valid services: {list(SERVICE_VERSIONS.keys())}"
            )

        if service_name in self._services:
            return self._services[service_name]

        if not self.credentials:
            raise RuntimeError(
                "No Google credentials configured. Set GOOGLE_SERVICE_ACCOUNT_JSON, "
                "GOOGLE_SERVICE_ACCOUNT_FILE, or GOOGLE_CLIENT_ID/SECRET + GOOGLE_REFRESH_TOKEN."
            )

        api_name, api_version = SERVICE_VERSIONS[service_name]
        service = build(api_name, api_version, credentials=self.credentials, cache_discovery=False)
        self._services[service_name] = service
        return service

    # -------------------------------------------------------------------------
    # OAuth web flow (obtain a refresh token once, then store it in .env)
    # -------------------------------------------------------------------------

    def _build_flow(self) -> Flow:
        if not self.config.has_oauth_client():
            raise RuntimeError(
                "OAuth client not configured. Set GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET."
            )

        client_config = {
            "web": {
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "auth_uri": GOOGLE_AUTH_URI,
                "token_uri": GOOGLE_TOKEN_URI,
                "redirect_uris": [self.config.redirect_uri],
            }
        }
        return Flow.from_client_config(
            client_config,
            scopes=self.scopes,
            redirect_uri=self.config.redirect_uri,
            autogenerate_code_verifier=False,
        )

    def get_authorization_url(self) -> str:
        """Build the consent URL for the OAuth web flow."""
        flow = self._build_flow()
        auth_url, _ = flow.authorization_url(access_type="offline", prompt="consent")
        return auth_url

    def exchange_code(self, code: str) -> Dict[str, Any]:
        """
        Exchange an authorization code for tokens.

        Returns:
            Dict with access_token, refresh_token, expiry and scopes
        """
        flow = self._build_flow()
        flow.fetch_token(code=code)
        creds = flow.credentials
        return {
            "access_token": creds.token,
            "refresh_token": creds.refresh_token,
            "expiry": creds.expiry.isoformat() if creds.expiry else None,
            "scopes": list(creds.scopes or []),
        }


# =============================================================================
# MAIN (for testing)
# =============================================================================

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    print("Google Authentication Test")
    print("=" * 50)

    auth = GoogleAuth()
    if not auth.has_credentials():
        print("\nNo credentials found. The app will run with local storage.")
        print("Set GOOGLE_SERVICE_ACCOUNT_JSON or place a key at config/service-account.json")
        raise SystemExit(1)

    email = auth.service_account_email
    print(f"\nService account: {email or 'n/a (OAuth user)'}")
    try:
        auth.get_service("drive")
        print("  drive: OK")
    except Exception as e:
        print(f"  drive: FAILED - {e}")
