"""
Attachment downloader module
Saves Gmail attachments to disk, one at a time or as a batch
"""
import base64
import binascii
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from gmail_mcp import config
from gmail_mcp.errors import (
    AttachmentDecodeError,
    InvalidFilenameError,
    NoAttachmentDataError,
)
from gmail_mcp.gmail_engine.gmail_reader import GmailReader
from gmail_mcp.gmail_engine.models import BatchSummary, DownloadRequest, DownloadResult
from gmail_mcp.utils.file_ops import ensure_directory, format_file_size, sanitize_filename, save_bytes
from gmail_mcp.utils.logger import logger

def decode_attachment_data(data: str) -> bytes:
    """
    Decode a Gmail attachment payload (URL-safe base64, padding optional)

    Args:
        data: Encoded payload

    Returns:
        Raw bytes
    """
    try:
        return base64.urlsafe_b64decode(data + '=' * (-len(data) % 4))
    except (binascii.Error, ValueError) as e:
        raise AttachmentDecodeError(f"Attachment data is not valid base64url: {e}") from e

def message_year(message: dict) -> int:
    """
    Year a message was received, from internalDate (epoch ms, UTC)

    Missing or unparsable timestamps count as the epoch.
    """
    try:
        millis = int(message.get('internalDate') or 0)
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).year
    except (TypeError, ValueError, OverflowError, OSError):
        return 1970

class AttachmentDownloader:
    """Downloads Gmail attachments into local folders"""

    def __init__(self, gmail_reader: GmailReader, default_download_dir: Optional[Path] = None):
        self.gmail_reader = gmail_reader
        self.default_download_dir = Path(default_download_dir or config.DEFAULT_DOWNLOAD_DIR)

    def resolve_filename(self, request: DownloadRequest) -> str:
        """
        Pick the on-disk name: the custom name as given, else the sanitized original

        Raises:
            InvalidFilenameError: if the custom name is not a bare file name
        """
        if request.custom_filename:
            name = request.custom_filename
            if name in ('.', '..') or '/' in name or '\\' in name or '\x00' in name:
                raise InvalidFilenameError(f"Custom filename must be a plain file name: {name!r}")
            return name
        return sanitize_filename(request.filename)

    def download(self, request: DownloadRequest) -> DownloadResult:
        """
        Download one attachment

        Args:
            request: What to download and where

        Returns:
            Successful DownloadResult

        Raises:
            GmailMCPError: transport, data or filesystem failure
        """
        download_dir = ensure_directory(Path(request.save_path).expanduser() if request.save_path
                                        else self.default_download_dir)

        logger.info(f"Downloading attachment: {request.filename}")
        attachment = self.gmail_reader.get_attachment(request.message_id, request.attachment_id)
        data = (attachment or {}).get('data')
        if not data:
            raise NoAttachmentDataError()

        content = decode_attachment_data(data)
        saved_file = save_bytes(content, download_dir, self.resolve_filename(request))

        # Trust the file on disk over the size Gmail declared
        size = saved_file.stat().st_size
        return DownloadResult(
            success=True,
            message_id=request.message_id,
            attachment_id=request.attachment_id,
            filename=request.filename,
            saved_as=saved_file.name,
            full_path=str(saved_file),
            size=size,
            size_formatted=format_file_size(size),
            downloaded_at=datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        )

    def subfolder_for(self, message_id: str, base_dir: Path) -> Path:
        """
        Folder for a message's attachments: <base>/<sender>/<year>

        Args:
            message_id: Gmail message ID
            base_dir: Batch destination directory

        Returns:
            Created subfolder path
        """
        message = self.gmail_reader.get_message(message_id, format='metadata', metadata_headers=['From'])
        sender = sanitize_filename(self.gmail_reader.get_message_sender(message))
        return ensure_directory(base_dir / sender / str(message_year(message)))

    def run_batch(self, requests: List[DownloadRequest], save_path: Optional[str] = None,
                  create_subfolders: bool = False) -> BatchSummary:
        """
        Download several attachments, one after another, in the given order

        A failing item is recorded as a failed result and the batch goes on.

        Args:
            requests: Download requests
            save_path: Base directory for all items (default download dir if None)
            create_subfolders: Sort into <sender>/<year> folders below save_path

        Returns:
            BatchSummary with one result per request, in input order
        """
        base_dir = Path(save_path).expanduser() if save_path else self.default_download_dir
        summary = BatchSummary(download_path=str(base_dir))

        for request in requests:
            try:
                destination = base_dir
                if create_subfolders:
                    destination = self.subfolder_for(request.message_id, base_dir)
                item = DownloadRequest(
                    message_id=request.message_id,
                    attachment_id=request.attachment_id,
                    filename=request.filename,
                    save_path=str(destination),
                    custom_filename=request.custom_filename,
                )
                result = self.download(item)
            except Exception as e:
                logger.error(f"Error downloading attachment {request.filename}: {e}")
                result = DownloadResult.failure(request, str(e) or type(e).__name__)
            summary.results.append(result)

        logger.info(f"Batch finished: {summary.successful}/{summary.total} attachments saved, "
                     f"{summary.failed} failed")
        return summary
