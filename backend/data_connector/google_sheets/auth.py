"""
Google Sheets Connector - Authentication Module

Two ways to authorize Sheets API calls:
- ServiceAccountAuth: service account JSON (base64 env var in production,
  credentials.json in development), bearer token refreshed through google-auth
- APIKeyAuth: API key query parameter (public sheets only)
"""

import asyncio
import base64
import binascii
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import google.auth.transport.requests
from google.oauth2 import service_account

from shared.config.settings import GoogleSheetsSettings
from shared.exceptions import CredentialsError

logger = logging.getLogger(__name__)


class SheetsAuth(ABC):
    """Base class: contributes query params and headers to a Sheets request."""

    @abstractmethod
    async def apply(self, params: Dict[str, Any], headers: Dict[str, str]) -> None:
        raise NotImplementedError


class ServiceAccountAuth(SheetsAuth):
    """
    Service account 인증 (read-only scope)
    """

    SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]

    def __init__(self, info: Dict[str, Any]):
        try:
            self._credentials = service_account.Credentials.from_service_account_info(
                info, scopes=self.SCOPES
            )
        except (ValueError, KeyError) as e:
            raise CredentialsError(f"Invalid service account info: {e}") from e
        self._lock = asyncio.Lock()

    @classmethod
    def from_base64(cls, encoded: str) -> "ServiceAccountAuth":
        try:
            info = json.loads(base64.b64decode(encoded).decode("utf-8"))
        except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CredentialsError("GOOGLE_CREDENTIALS_BASE64 is not valid base64 JSON") from e
        return cls(info)

    @classmethod
    def from_file(cls, path: Path) -> "ServiceAccountAuth":
        try:
            info = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise CredentialsError(f"Cannot read credentials file {path}", {"path": str(path)}) from e
        return cls(info)

    async def get_access_token(self) -> str:
        async with self._lock:
            if not self._credentials.valid:
                request = google.auth.transport.requests.Request()
                await asyncio.to_thread(self._credentials.refresh, request)
            return self._credentials.token

    async def apply(self, params: Dict[str, Any], headers: Dict[str, str]) -> None:
        headers["Authorization"] = f"Bearer {await self.get_access_token()}"


class APIKeyAuth(SheetsAuth):
    """
    API Key 기반 인증
    """

    def __init__(self, api_key: str):
        self.api_key = api_key

    async def apply(self, params: Dict[str, Any], headers: Dict[str, str]) -> None:
        params["key"] = self.api_key


def build_auth(settings: GoogleSheetsSettings) -> SheetsAuth:
    """
    Pick credentials in priority order: base64 env var, credentials file, API key.

    Raises:
        CredentialsError: nothing usable is configured
    """
    if settings.google_credentials_base64:
        logger.info("Using service account credentials from GOOGLE_CREDENTIALS_BASE64")
        return ServiceAccountAuth.from_base64(settings.google_credentials_base64)

    path = Path(settings.google_credentials_path)
    if path.exists():
        logger.info(f"Using service account credentials from {path}")
        return ServiceAccountAuth.from_file(path)

    if settings.google_sheets_api_key:
        logger.warning("No service account configured; using API key (public sheets only)")
        return APIKeyAuth(settings.google_sheets_api_key)

    raise CredentialsError(
        "Google credentials not found. Set GOOGLE_CREDENTIALS_BASE64, add credentials.json "
        "or set GOOGLE_SHEETS_API_KEY"
    )


def describe_auth(auth: Optional[SheetsAuth]) -> str:
    if isinstance(auth, ServiceAccountAuth):
        return "service_account"
    if isinstance(auth, APIKeyAuth):
        return "api_key"
    return "none"
