"""
Gmail authorization module
Client secrets loading and credentials that announce their own refreshes
"""
import json
from pathlib import Path
from typing import Callable, Dict, List
from google.oauth2.credentials import Credentials
from gmail_mcp import config
from gmail_mcp.errors import ConfigurationError
from gmail_mcp.gmail_engine.credential_store import CredentialSet

class GmailCredentials(Credentials):
    """
    OAuth2 user credentials that notify listeners after every refresh

    The API client refreshes an expired token on its own while executing a
    request. Listeners run synchronously inside refresh(), on the thread of
    that request, once per refresh and before the request returns.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._refresh_listeners: List[Callable[[CredentialSet], None]] = []

    def add_refresh_listener(self, listener: Callable[[CredentialSet], None]) -> None:
        self._refresh_listeners.append(listener)

    def refresh(self, request):
        super().refresh(request)
        token_set = CredentialSet.from_credentials(self)
        for listener in getattr(self, '_refresh_listeners', []):
            listener(token_set)

    @classmethod
    def from_credential_set(cls, token_set: CredentialSet, client_config: Dict) -> "GmailCredentials":
        """
        Build credentials from a stored token set and the OAuth client config

        Args:
            token_set: Stored tokens
            client_config: Output of load_client_config()

        Returns:
            GmailCredentials instance
        """
        credentials = cls(
            token=token_set.access_token,
            refresh_token=token_set.refresh_token,
            token_uri=client_config.get('token_uri', config.GMAIL_TOKEN_URI),
            client_id=client_config['client_id'],
            client_secret=client_config['client_secret'],
            scopes=token_set.scope.split() if token_set.scope else None,
        )
        credentials.expiry = token_set.expiry
        return credentials

def load_client_config(credentials_path: Path) -> Dict:
    """
    Read OAuth client secrets

    Accepts the file downloaded from Google Cloud Console
    ({"installed": {...}} or {"web": {...}}) or a flat object.

    Args:
        credentials_path: Path to the client secrets JSON

    Returns:
        Dict with client_id, client_secret, redirect_uris and token_uri

    Raises:
        ConfigurationError: if the file is unreadable or lacks client fields
    """
    try:
        with open(credentials_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot read credentials file {credentials_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Credentials file {credentials_path} must contain a JSON object")

    client = data.get('installed') or data.get('web') or data
    if not client.get('client_id') or not client.get('client_secret'):
        raise ConfigurationError(
            f"Credentials file {credentials_path} is missing client_id or client_secret"
        )

    return {
        'client_id': client['client_id'],
        'client_secret': client['client_secret'],
        'redirect_uris': client.get('redirect_uris') or [config.DEFAULT_REDIRECT_URI],
        'auth_uri': client.get('auth_uri', 'https://accounts.google.com/o/oauth2/auth'),
        'token_uri': client.get('token_uri', config.GMAIL_TOKEN_URI),
    }
