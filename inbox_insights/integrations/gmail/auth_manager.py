"""
Gmail Authentication Manager

OAuth2 handling for the installed-application flow: cached token loading,
automatic refresh, an interactive local-server consent flow when no usable
token exists, and safe token persistence with a backup of the previous
token.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from inbox_insights.config.analyzer_config import ANALYZER_CONFIG

logger = logging.getLogger(__name__)


class GmailAuthenticationManager:
    """
    Manages Gmail OAuth2 credentials for a single local user.

    Attributes:
        token_path: Cached token location
        credentials_path: OAuth client secrets file
        scopes: Requested Gmail API scopes
    """

    def __init__(self,
                 token_path: str = 'token.json',
                 credentials_path: str = 'credentials.json',
                 scopes: Optional[List[str]] = None):
        self.token_path = Path(token_path)
        self.credentials_path = Path(credentials_path)
        self.scopes = scopes or list(ANALYZER_CONFIG["mailbox"]["scopes"])

    def authenticate(self) -> Optional[Credentials]:
        """
        Obtain valid credentials, refreshing or re-consenting as needed.

        Returns:
            Valid credentials or None if authentication fails
        """
        try:
            credentials = self._load_credentials()

            if credentials and credentials.valid:
                logger.info("Using valid existing credentials")
                return credentials

            if credentials and credentials.expired and credentials.refresh_token:
                logger.info("Attempting to refresh expired credentials")
                return self._refresh_credentials(credentials)

            logger.info("No valid credentials found, starting new authentication flow")
            return self._authenticate_new_installed()

        except Exception as e:
            logger.error(f"Authentication error: {str(e)}", exc_info=True)
            return None

    def _load_credentials(self) -> Optional[Credentials]:
        if not self.token_path.exists():
            logger.debug("No token file found")
            return None

        try:
            with open(self.token_path, 'r') as token_file:
                token_data = json.load(token_file)

            if not self._validate_token_data(token_data):
                logger.warning("Invalid token data structure")
                return None

            credentials = Credentials.from_authorized_user_info(token_data, self.scopes)
            logger.debug("Successfully loaded credentials from storage")
            return credentials

        except (OSError, ValueError) as e:
            logger.error(f"Error loading credentials: {str(e)}")
            self._handle_invalid_token()
            return None

    def _validate_token_data(self, token_data: Dict) -> bool:
        required_fields = {'token', 'refresh_token', 'token_uri', 'client_id', 'client_secret'}
        return isinstance(token_data, dict) and all(field in token_data for field in required_fields)

    def _refresh_credentials(self, credentials: Credentials) -> Optional[Credentials]:
        """
        Refresh expired credentials once.

        A revoked or scope-changed refresh token falls through to a new
        consent flow.
        """
        try:
            credentials.refresh(Request())
            self._save_credentials(credentials)
            logger.info("Successfully refreshed credentials")
            return credentials

        except RefreshError as e:
            logger.warning(f"Refresh token expired or revoked, re-authenticating: {str(e)}")
            self._handle_invalid_token()
            return self._authenticate_new_installed()

    def _authenticate_new_installed(self) -> Optional[Credentials]:
        if not self.credentials_path.exists():
            logger.error(f"Client secrets file not found: {self.credentials_path}")
            return None

        flow = InstalledAppFlow.from_client_secrets_file(
            str(self.credentials_path),
            self.scopes
        )
        credentials = flow.run_local_server(port=0)

        granted = set(credentials.scopes or [])
        missing = set(self.scopes) - granted
        if missing:
            logger.warning(f"Missing requested scopes: {', '.join(sorted(missing))}")

        self._save_credentials(credentials)
        logger.info("Successfully completed new authentication flow")
        return credentials

    def _save_credentials(self, credentials: Credentials):
        """Write the token file, restoring the previous one if the write fails."""
        backup_path = None
        if self.token_path.exists():
            backup_path = self.token_path.with_suffix('.backup')
            self.token_path.rename(backup_path)

        try:
            self.token_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.token_path, 'w') as token_file:
                token_file.write(credentials.to_json())
            logger.debug("Successfully saved credentials")

            if backup_path and backup_path.exists():
                backup_path.unlink()

        except OSError as e:
            logger.error(f"Error saving credentials: {str(e)}")
            if backup_path and backup_path.exists():
                backup_path.rename(self.token_path)

    def _handle_invalid_token(self):
        try:
            if self.token_path.exists():
                self.token_path.unlink()
            logger.info("Removed invalid token file")
        except OSError as e:
            logger.error(f"Error removing invalid token: {str(e)}")

    def create_gmail_service(self) -> Optional[Any]:
        """
        Create an authenticated Gmail API service.

        Returns:
            Gmail service object or None if authentication failed
        """
        credentials = self.authenticate()
        if not credentials:
            logger.error("Failed to obtain valid credentials")
            return None

        service = build('gmail', 'v1', credentials=credentials, cache_discovery=False)
        logger.info("Successfully created Gmail service")
        return service
