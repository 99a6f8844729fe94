"""
Main service module
Implements the Gmail tools on top of the reader, locator and downloader
"""
from pathlib import Path
from typing import Dict, List, Optional
from gmail_mcp import config
from gmail_mcp.errors import GmailMCPError
from gmail_mcp.gmail_engine.attachment_downloader import AttachmentDownloader
from gmail_mcp.gmail_engine.attachment_locator import locate_attachments
from gmail_mcp.gmail_engine.credential_store import CredentialStore
from gmail_mcp.gmail_engine.gmail_reader import GmailReader
from gmail_mcp.gmail_engine.models import DownloadRequest
from gmail_mcp.utils.logger import logger

MESSAGE_FORMATS = ('full', 'minimal', 'raw', 'metadata')

class GmailService:
    """Gmail operations exposed to the agent"""

    def __init__(self, credential_store: Optional[CredentialStore] = None,
                 gmail_reader: Optional[GmailReader] = None,
                 download_dir: Optional[Path] = None):
        self.credential_store = credential_store or CredentialStore(config.GMAIL_TOKEN_FILE)
        self.gmail_reader = gmail_reader
        self.download_dir = Path(download_dir or config.DEFAULT_DOWNLOAD_DIR)
        self._downloader = None

    def initialize_gmail(self) -> GmailReader:
        """
        Authenticate on first use

        Raises:
            ConfigurationError, AuthorizationRequiredError
        """
        if self.gmail_reader is None:
            self.gmail_reader = GmailReader(self.credential_store)
        return self.gmail_reader

    @property
    def downloader(self) -> AttachmentDownloader:
        if self._downloader is None:
            self._downloader = AttachmentDownloader(self.initialize_gmail(), self.download_dir)
        return self._downloader

    def search_messages(self, q: str, max_results: int = config.DEFAULT_SEARCH_RESULTS,
                        page_token: Optional[str] = None) -> Dict:
        max_results = max(1, min(int(max_results), config.MAX_SEARCH_RESULTS))
        response = self.initialize_gmail().search_messages(q, max_results, page_token)
        logger.info(f"Search '{q}' returned {len(response.get('messages', []))} messages")
        return {
            'messages': response.get('messages', []),
            'nextPageToken': response.get('nextPageToken'),
            'resultSizeEstimate': response.get('resultSizeEstimate'),
        }

    def read_message(self, message_id: str, format: str = 'full') -> Dict:
        if format not in MESSAGE_FORMATS:
            raise GmailMCPError(f"Unsupported message format: {format}")
        return self.initialize_gmail().get_message(message_id, format=format)

    def read_thread(self, thread_id: str, include_full_messages: bool = True) -> Dict:
        return self.initialize_gmail().get_thread(
            thread_id, format='full' if include_full_messages else 'minimal'
        )

    def list_attachments(self, message_id: str) -> Dict:
        message = self.initialize_gmail().get_message(message_id, format='full')
        attachments = [a.to_dict() for a in locate_attachments(message)]
        return {
            'messageId': message_id,
            'attachments': attachments,
            'attachmentCount': len(attachments),
        }

    def download_attachment(self, message_id: str, attachment_id: str, filename: str,
                            save_path: Optional[str] = None,
                            custom_filename: Optional[str] = None) -> Dict:
        request = DownloadRequest(
            message_id=message_id,
            attachment_id=attachment_id,
            filename=filename,
            save_path=save_path,
            custom_filename=custom_filename,
        )
        return self.downloader.download(request).to_dict()

    def batch_download_attachments(self, downloads: List[Dict], save_path: Optional[str] = None,
                                   create_subfolders: bool = False) -> Dict:
        requests = [DownloadRequest.from_dict(spec) for spec in downloads]
        summary = self.downloader.run_batch(requests, save_path, create_subfolders)
        return summary.to_dict()

    def read_profile(self) -> Dict:
        return self.initialize_gmail().get_profile()
