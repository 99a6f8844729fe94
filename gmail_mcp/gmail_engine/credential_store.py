"""
Credential store module
Persists the delegated Gmail token set and re-saves it whenever it is refreshed
"""
import json
import os
import tempfile
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional
from gmail_mcp.errors import CredentialFileError
from gmail_mcp.utils.logger import logger

@dataclass(frozen=True)
class CredentialSet:
    """Delegated access token set, stored as a JSON object"""
    access_token: Optional[str]
    refresh_token: Optional[str] = None
    expiry_date: Optional[int] = None  # epoch milliseconds
    token_type: str = "Bearer"
    scope: Optional[str] = None

    @property
    def expiry(self) -> Optional[datetime]:
        """Expiry as a naive UTC datetime, the form google-auth expects"""
        if not self.expiry_date:
            return None
        return datetime.fromtimestamp(self.expiry_date / 1000, tz=timezone.utc).replace(tzinfo=None)

    @classmethod
    def from_dict(cls, data: Dict) -> "CredentialSet":
        """
        Parse a stored token object

        Also accepts the field names written by google-auth's
        Credentials.to_json() ('token', ISO 'expiry', 'scopes').

        Args:
            data: Decoded JSON object

        Returns:
            CredentialSet
        """
        if not isinstance(data, dict):
            raise ValueError("token file must contain a JSON object")

        expiry_date = data.get('expiry_date')
        if expiry_date is None and data.get('expiry'):
            expiry = datetime.fromisoformat(data['expiry'].replace('Z', '+00:00'))
            if expiry.tzinfo is None:
                expiry = expiry.replace(tzinfo=timezone.utc)
            expiry_date = int(expiry.timestamp() * 1000)

        scope = data.get('scope')
        if scope is None and data.get('scopes'):
            scope = ' '.join(data['scopes'])

        return cls(
            access_token=data.get('access_token') or data.get('token'),
            refresh_token=data.get('refresh_token'),
            expiry_date=int(expiry_date) if expiry_date is not None else None,
            token_type=data.get('token_type') or "Bearer",
            scope=scope,
        )

    @classmethod
    def from_credentials(cls, credentials) -> "CredentialSet":
        """Snapshot a google.oauth2.credentials.Credentials object"""
        expiry_date = None
        if credentials.expiry is not None:
            expiry_date = int(credentials.expiry.replace(tzinfo=timezone.utc).timestamp() * 1000)
        scopes = getattr(credentials, "granted_scopes", None) or credentials.scopes
        return cls(
            access_token=credentials.token,
            refresh_token=credentials.refresh_token,
            expiry_date=expiry_date,
            scope=' '.join(scopes) if scopes else None,
        )

    def to_dict(self) -> Dict:
        data = {
            'access_token': self.access_token,
            'refresh_token': self.refresh_token,
            'expiry_date': self.expiry_date,
            'token_type': self.token_type,
        }
        if self.scope:
            data['scope'] = self.scope
        return data

    def __repr__(self) -> str:
        # Token values must never end up in logs
        return f"CredentialSet(token_type={self.token_type!r}, expiry_date={self.expiry_date!r})"

RefreshHandler = Callable[[CredentialSet], None]

class CredentialStore:
    """File-backed store for the Gmail token set"""

    def __init__(self, token_path: Path):
        self.token_path = Path(token_path)
        self._lock = threading.Lock()
        self._refresh_handlers: List[RefreshHandler] = []

    def load(self) -> Optional[CredentialSet]:
        """
        Load the stored token set

        Returns:
            CredentialSet, or None when nothing has been stored yet

        Raises:
            CredentialFileError: if the file exists but cannot be read or parsed
        """
        with self._lock:
            return self._read()

    def save(self, credentials: CredentialSet) -> None:
        """
        Persist a token set, replacing the stored one

        A refresh token already on file is kept when the new set has none.

        Args:
            credentials: Token set to store

        Raises:
            CredentialFileError: if the file cannot be written
        """
        with self._lock:
            if not credentials.refresh_token:
                try:
                    previous = self._read()
                except CredentialFileError:
                    previous = None
                if previous and previous.refresh_token:
                    credentials = replace(credentials, refresh_token=previous.refresh_token)
            self._write(credentials)

    def on_refresh(self, handler: RefreshHandler) -> None:
        """Register a callback run after each refreshed token set is saved"""
        self._refresh_handlers.append(handler)

    def bind(self, credentials) -> None:
        """
        Persist every token the client obtains on its own from now on

        Args:
            credentials: Object exposing add_refresh_listener(callback)
        """
        credentials.add_refresh_listener(self.handle_refresh)

    def handle_refresh(self, credentials: CredentialSet) -> None:
        try:
            self.save(credentials)
            logger.info("Refreshed Gmail access token saved")
        except CredentialFileError as e:
            logger.error(f"Could not persist refreshed token: {e}")
            return

        # Runs inside the client's refresh; a failing handler must not fail the request
        for handler in self._refresh_handlers:
            try:
                handler(credentials)
            except Exception as e:
                logger.error(f"Refresh handler failed: {e}")

    def _read(self) -> Optional[CredentialSet]:
        if not self.token_path.exists():
            return None
        try:
            with open(self.token_path, 'r', encoding='utf-8') as f:
                return CredentialSet.from_dict(json.load(f))
        except (OSError, ValueError) as e:
            # Message names the file only, never its contents
            raise CredentialFileError(
                f"Token file {self.token_path} is unreadable ({type(e).__name__})"
            ) from e

    def _write(self, credentials: CredentialSet) -> None:
        try:
            self.token_path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=self.token_path.parent, prefix='.tokens-', suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(credentials.to_dict(), f, indent=2)
                os.replace(temp_path, self.token_path)
            except BaseException:
                if os.path.exists(temp_path):
                    os.unlink(temp_path)
                raise
        except OSError as e:
            raise CredentialFileError(f"Cannot write token file {self.token_path}: {e}") from e
