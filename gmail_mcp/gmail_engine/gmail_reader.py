"""
Gmail reader module
Connects to Gmail API with stored credentials and wraps the calls the tools need
"""
from pathlib import Path
from typing import Dict, List, Optional
import httplib2
from google.auth.exceptions import RefreshError
from google.auth.exceptions import TransportError as AuthTransportError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from gmail_mcp import config
from gmail_mcp.errors import AuthorizationRequiredError, GmailTransportError
from gmail_mcp.gmail_engine.credential_store import CredentialStore
from gmail_mcp.gmail_engine.gmail_auth import GmailCredentials, load_client_config
from gmail_mcp.utils.logger import logger

class GmailReader:
    """Gmail API client for the authenticated user ('me')"""

    def __init__(self, credential_store: CredentialStore, credentials_path: Optional[Path] = None,
                 service=None):
        self.credential_store = credential_store
        self.credentials_path = credentials_path
        self.credentials = None
        self.service = service
        if self.service is None:
            self._authenticate()

    def _authenticate(self):
        """
        Authenticate with Gmail API using the stored token set

        Raises:
            ConfigurationError: if the client secrets are missing or invalid
            AuthorizationRequiredError: if no token set has been stored
        """
        credentials_path = self.credentials_path or config.validate_config()
        client_config = load_client_config(credentials_path)

        token_set = self.credential_store.load()
        if token_set is None:
            logger.error("No existing tokens found. Please run authentication first.")
            raise AuthorizationRequiredError()

        creds = GmailCredentials.from_credential_set(token_set, client_config)
        # Tokens the client refreshes on its own are written back immediately
        self.credential_store.bind(creds)

        self.credentials = creds
        self.service = build('gmail', 'v1', credentials=creds, cache_discovery=False)
        logger.info("Successfully authenticated with Gmail API")

    def _execute(self, request, action: str) -> Dict:
        """
        Execute an API request, translating failures into server errors

        Args:
            request: googleapiclient HttpRequest
            action: Short description used in error messages

        Returns:
            Decoded JSON response
        """
        try:
            return request.execute()
        except HttpError as e:
            status = e.resp.status if e.resp is not None else None
            reason = getattr(e, 'reason', None) or str(e)
            logger.error(f"Gmail API error while {action}: {status} {reason}")
            raise GmailTransportError(f"Gmail API error while {action} ({status}): {reason}", status=status) from e
        except RefreshError as e:
            logger.error(f"Stored Gmail credentials were rejected while {action}")
            raise AuthorizationRequiredError(
                "Stored Gmail credentials were rejected. Run: python run_auth.py"
            ) from e
        except (AuthTransportError, httplib2.HttpLib2Error, ConnectionError, OSError) as e:
            logger.error(f"Network error while {action}: {e}")
            raise GmailTransportError(f"Network error while {action}: {e}") from e

    def search_messages(self, query: str, max_results: int = config.DEFAULT_SEARCH_RESULTS,
                        page_token: Optional[str] = None) -> Dict:
        """
        Search messages with Gmail query syntax

        Args:
            query: Gmail search query (e.g., "from:a@b.com has:attachment")
            max_results: Page size
            page_token: Token of the page to fetch

        Returns:
            Gmail list response
        """
        params = {'userId': 'me', 'q': query, 'maxResults': max_results}
        if page_token:
            params['pageToken'] = page_token
        return self._execute(
            self.service.users().messages().list(**params),
            "searching messages",
        )

    def get_message(self, message_id: str, format: str = 'full',
                    metadata_headers: Optional[List[str]] = None) -> Dict:
        params = {'userId': 'me', 'id': message_id, 'format': format}
        if metadata_headers:
            params['metadataHeaders'] = metadata_headers
        return self._execute(
            self.service.users().messages().get(**params),
            f"reading message {message_id}",
        )

    def get_thread(self, thread_id: str, format: str = 'full') -> Dict:
        return self._execute(
            self.service.users().threads().get(userId='me', id=thread_id, format=format),
            f"reading thread {thread_id}",
        )

    def get_attachment(self, message_id: str, attachment_id: str) -> Dict:
        """
        Fetch an attachment body

        Args:
            message_id: Gmail message ID
            attachment_id: Attachment ID

        Returns:
            Dict whose 'data' holds the URL-safe base64 payload
        """
        return self._execute(
            self.service.users().messages().attachments().get(
                userId='me', messageId=message_id, id=attachment_id
            ),
            f"downloading attachment of message {message_id}",
        )

    def get_profile(self) -> Dict:
        return self._execute(
            self.service.users().getProfile(userId='me'),
            "reading profile",
        )

    @staticmethod
    def get_header(message: Dict, name: str) -> Optional[str]:
        """
        Find a header value, case-insensitively

        Args:
            message: Gmail message dictionary
            name: Header name

        Returns:
            Header value or None
        """
        headers = (message.get('payload') or {}).get('headers') or []
        for header in headers:
            if header.get('name', '').lower() == name.lower():
                return header.get('value')
        return None

    def get_message_sender(self, message: Dict) -> str:
        """
        Extract the sender's mailbox name, for use as a folder name

        'Jane Doe <jane@example.com>' gives 'Jane Doe jane'.

        Args:
            message: Gmail message dictionary

        Returns:
            Sender text before the '@', or 'Unknown'
        """
        sender = self.get_header(message, 'From')
        if not sender:
            return config.UNKNOWN_SENDER
        return sender.replace('<', '').replace('>', '').split('@')[0]
