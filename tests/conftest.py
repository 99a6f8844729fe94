"""
Shared fixtures for the Gmail MCP tests

The Gmail API is replaced by a MagicMock service whose request objects
return canned responses, so no network or OAuth is involved.
"""
import base64
import json
import pytest
from unittest.mock import MagicMock

import httplib2
from googleapiclient.errors import HttpError

from gmail_mcp.gmail_engine.attachment_downloader import AttachmentDownloader
from gmail_mcp.gmail_engine.credential_store import CredentialStore
from gmail_mcp.gmail_engine.gmail_reader import GmailReader


def encode(data: bytes) -> str:
    """Gmail-style URL-safe base64 payload"""
    return base64.urlsafe_b64encode(data).decode()


def make_http_error(status: int = 404, message: str = "Requested entity was not found.") -> HttpError:
    resp = httplib2.Response({'status': status})
    content = json.dumps({'error': {'code': status, 'message': message}}).encode()
    return HttpError(resp, content)


def make_request(result=None, error=None):
    request = MagicMock()
    if error is not None:
        request.execute.side_effect = error
    else:
        request.execute.return_value = result
    return request


class FakeGmail:
    """Canned Gmail responses keyed by id"""

    def __init__(self):
        self.attachments = {}
        self.messages = {}
        self.threads = {}
        self.profile = {'emailAddress': 'me@example.com', 'messagesTotal': 42, 'threadsTotal': 17}
        self.service = MagicMock()
        users = self.service.users.return_value
        users.messages.return_value.attachments.return_value.get.side_effect = self._get_attachment
        users.messages.return_value.get.side_effect = self._get_message
        users.messages.return_value.list.side_effect = self._list_messages
        users.threads.return_value.get.side_effect = self._get_thread
        users.getProfile.side_effect = lambda userId: make_request(self.profile)

    @staticmethod
    def _respond(value):
        if isinstance(value, Exception):
            return make_request(error=value)
        return make_request(value)

    def _get_attachment(self, userId, messageId, id):
        return self._respond(self.attachments.get((messageId, id), make_http_error()))

    def _get_message(self, userId, id, format='full', metadataHeaders=None):
        return self._respond(self.messages.get(id, make_http_error()))

    def _get_thread(self, userId, id, format='full'):
        return self._respond(self.threads.get(id, make_http_error()))

    def _list_messages(self, userId, q, maxResults, pageToken=None):
        messages = [{'id': m, 'threadId': m} for m in self.messages][:maxResults]
        return make_request({'messages': messages, 'resultSizeEstimate': len(messages)})


@pytest.fixture
def fake_gmail():
    return FakeGmail()


@pytest.fixture
def credential_store(tmp_path):
    return CredentialStore(tmp_path / "auth" / "tokens.json")


@pytest.fixture
def gmail_reader(fake_gmail, credential_store):
    return GmailReader(credential_store, service=fake_gmail.service)


@pytest.fixture
def download_dir(tmp_path):
    return tmp_path / "downloads"


@pytest.fixture
def downloader(gmail_reader, download_dir):
    return AttachmentDownloader(gmail_reader, download_dir)


@pytest.fixture
def client_secrets(tmp_path):
    path = tmp_path / "client_secret.json"
    path.write_text(json.dumps({
        'installed': {
            'client_id': 'client-123.apps.googleusercontent.com',
            'client_secret': 'not-a-real-secret',
            'redirect_uris': ['http://localhost'],
            'auth_uri': 'https://accounts.google.com/o/oauth2/auth',
            'token_uri': 'https://oauth2.googleapis.com/token',
        }
    }))
    return path


@pytest.fixture
def nested_message():
    """multipart/mixed with an attachment inside multipart/alternative"""
    return {
        'id': 'msg-1',
        'payload': {
            'mimeType': 'multipart/mixed',
            'filename': '',
            'body': {'size': 0},
            'headers': [{'name': 'From', 'value': 'Jane Doe <jane@example.com>'}],
            'parts': [
                {
                    'mimeType': 'multipart/alternative',
                    'filename': '',
                    'body': {'size': 0},
                    'parts': [
                        {'mimeType': 'text/plain', 'filename': '', 'body': {'size': 12, 'data': encode(b'hello there!')}},
                        {'mimeType': 'text/html', 'filename': '', 'body': {'size': 90000, 'attachmentId': 'big-html'}},
                    ],
                },
                {
                    'mimeType': 'multipart/mixed',
                    'filename': '',
                    'body': {'size': 0},
                    'parts': [
                        {'mimeType': 'application/pdf', 'filename': 'report.pdf',
                         'body': {'size': 2048, 'attachmentId': 'att-pdf'}},
                        {'mimeType': 'image/png', 'filename': 'logo.png',
                         'body': {'size': 0, 'attachmentId': 'att-png'}},
                    ],
                },
                {'mimeType': 'text/csv', 'filename': 'data.csv', 'body': {'attachmentId': 'att-csv'}},
                {'mimeType': 'text/plain', 'filename': 'notes.txt', 'body': {'size': 10, 'data': encode(b'inline!!!!')}},
            ],
        },
    }
