"""
Public session tokens for the booking API.

Tokens are issued anonymously by ``POST /public/session`` and cached in the OS
keyring, falling back to a plaintext file when no keyring backend works.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import keyring
import requests
from keyring.errors import KeyringError
from pydantic import ValidationError

from ..domain.exceptions import AuthenticationError
from ..schemas import SessionPayload

logger = logging.getLogger(__name__)


KEYRING_SERVICE_NAME = "slotly"


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    SESSION_READY = "session_ready"


class SessionAuthenticator:
    """
    Obtains and caches the bearer token used for every booking API call.

    State machine: ``UNINITIALIZED`` until a token is restored or issued, then
    ``SESSION_READY``. ``get_session_token(force_refresh=True)`` discards the
    cached token and asks the server for a new one.
    """

    SESSION_PATH = "/public/session"

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        cache_file: Path | None = None,
        use_keyring: bool = True,
        http: requests.Session | None = None
    ):
        """
        Initialize the authenticator.

        Args:
            base_url: Booking API base URL
            timeout: Request timeout in seconds
            cache_file: Optional path to the plaintext token cache
            use_keyring: Try the OS keyring before the plaintext cache
            http: Optional requests session (shared with the API client)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache_file = cache_file or Path.home() / ".slotly_session_token"
        self.http = http or requests.Session()
        self._key_identifier = self.base_url
        self._keyring_supported = use_keyring
        self._token: Optional[str] = None
        self._state = SessionState.UNINITIALIZED

    @property
    def state(self) -> SessionState:
        return self._state

    def get_session_token(self, force_refresh: bool = False) -> str:
        """
        Get a valid session token, using the cache or requesting a new one.

        Args:
            force_refresh: Drop any cached token and request a new one

        Returns:
            Session token string

        Raises:
            AuthenticationError: If no token can be obtained
        """
        if force_refresh:
            self._forget_token()
        else:
            if self._token is None:
                self._token = self._load_token()
            if self._token:
                self._state = SessionState.SESSION_READY
                return self._token

        token = self._request_new_token()
        self._token = token
        self._state = SessionState.SESSION_READY
        self._save_token(token)
        return token

    def _request_new_token(self) -> str:
        url = f"{self.base_url}{self.SESSION_PATH}"
        try:
            response = self.http.post(url, timeout=self.timeout)
            response.raise_for_status()
            payload = SessionPayload.model_validate(response.json())
        except requests.exceptions.RequestException as exc:
            raise AuthenticationError(f"Failed to obtain a booking session: {exc}") from exc
        except (ValueError, ValidationError) as exc:
            raise AuthenticationError(f"Malformed session response: {exc}") from exc

        logger.debug("Obtained new booking session from %s", url)
        return payload.token

    def _load_token(self) -> Optional[str]:
        token = self._load_token_from_keyring()
        if token is None:
            token = self._load_token_from_file()
        return token or None

    def _load_token_from_keyring(self) -> Optional[str]:
        if not self._keyring_supported:
            return None

        try:
            return keyring.get_password(KEYRING_SERVICE_NAME, self._key_identifier)
        except KeyringError as exc:  # pragma: no cover - environment dependent
            self._handle_keyring_failure(f"reading credentials failed: {exc}")
            return None

    def _load_token_from_file(self) -> Optional[str]:
        if self.cache_file.exists():
            try:
                with open(self.cache_file, "r", encoding="utf-8") as file_handle:
                    return file_handle.read().strip()
            except OSError as exc:
                logger.warning("Could not load session cache file %s: %s", self.cache_file, exc)
        return None

    def _save_token(self, token: str) -> None:
        if self._keyring_supported and self._save_token_to_keyring(token):
            return

        self._save_token_to_file(token)

    def _save_token_to_keyring(self, token: str) -> bool:
        try:
            keyring.set_password(KEYRING_SERVICE_NAME, self._key_identifier, token)
            return True
        except KeyringError as exc:  # pragma: no cover - environment dependent
            self._handle_keyring_failure(f"writing credentials failed: {exc}")
            return False

    def _save_token_to_file(self, token: str) -> None:
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_file, "w", encoding="utf-8") as file_handle:
                file_handle.write(token)
            self.cache_file.chmod(0o600)
        except OSError as exc:
            logger.warning("Could not save session cache to %s: %s", self.cache_file, exc)

    def _handle_keyring_failure(self, reason: str) -> None:
        if self._keyring_supported:
            logger.warning(
                "Secure credential storage unavailable (%s). Falling back to plaintext cache at %s.",
                reason,
                self.cache_file,
            )
        self._keyring_supported = False

    def _forget_token(self) -> None:
        self._token = None
        self._state = SessionState.UNINITIALIZED
        if self.cache_file.exists():
            self.cache_file.unlink()
        if self._keyring_supported:
            try:
                keyring.delete_password(KEYRING_SERVICE_NAME, self._key_identifier)
            except KeyringError as exc:  # pragma: no cover - environment dependent
                logger.debug("No keyring entry removed: %s", exc)

    def clear_cache(self) -> None:
        """Clear the token cache (a new session is requested next time)."""
        self._forget_token()
        logger.info("Session cache cleared")
