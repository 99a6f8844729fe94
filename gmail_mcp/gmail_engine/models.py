"""
Data models for attachment handling
Part tree nodes, attachment descriptors, download requests and results
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

@dataclass
class PartBody:
    """Body of a message part; attachments carry an attachment id"""
    attachment_id: Optional[str] = None
    size: Optional[int] = None

@dataclass
class PartNode:
    """One node of a message's MIME part tree"""
    mime_type: str = ""
    filename: Optional[str] = None
    body: PartBody = field(default_factory=PartBody)
    children: List["PartNode"] = field(default_factory=list)

    @property
    def is_attachment(self) -> bool:
        return bool(self.filename) and bool(self.body.attachment_id)

    @classmethod
    def from_payload(cls, payload: Dict) -> "PartNode":
        """
        Build a part tree from a Gmail API message payload
        
        Args:
            payload: The 'payload' object of a Gmail message
        
        Returns:
            Root node of the tree
        """
        body = payload.get('body') or {}
        size = body.get('size')
        return cls(
            mime_type=payload.get('mimeType') or "",
            filename=payload.get('filename') or None,
            body=PartBody(
                attachment_id=body.get('attachmentId') or None,
                size=int(size) if size is not None else None,
            ),
            children=[cls.from_payload(part) for part in payload.get('parts') or []],
        )

@dataclass(frozen=True)
class AttachmentDescriptor:
    part_id: str
    attachment_id: str
    filename: str
    mime_type: str
    size: int
    size_formatted: str

    def to_dict(self) -> Dict:
        return {
            'partId': self.part_id,
            'attachmentId': self.attachment_id,
            'filename': self.filename,
            'mimeType': self.mime_type,
            'size': self.size,
            'sizeFormatted': self.size_formatted,
        }

@dataclass
class DownloadRequest:
    message_id: str
    attachment_id: str
    filename: str
    save_path: Optional[str] = None
    custom_filename: Optional[str] = None

    @classmethod
    def from_dict(cls, spec: Dict) -> "DownloadRequest":
        """Build a request from tool arguments (camelCase keys)"""
        return cls(
            message_id=spec.get('messageId', ''),
            attachment_id=spec.get('attachmentId', ''),
            filename=spec.get('filename', ''),
            custom_filename=spec.get('customFilename') or None,
        )

@dataclass
class DownloadResult:
    """Outcome of one download request, produced whether it worked or not"""
    success: bool
    message_id: str
    attachment_id: str
    filename: str
    saved_as: Optional[str] = None
    full_path: Optional[str] = None
    size: Optional[int] = None
    size_formatted: Optional[str] = None
    downloaded_at: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, request: DownloadRequest, error: str) -> "DownloadResult":
        return cls(
            success=False,
            message_id=request.message_id,
            attachment_id=request.attachment_id,
            filename=request.filename,
            error=error,
        )

    def to_dict(self) -> Dict:
        """Payload of a successful download"""
        return {
            'success': True,
            'messageId': self.message_id,
            'attachmentId': self.attachment_id,
            'originalFilename': self.filename,
            'savedAs': self.saved_as,
            'fullPath': self.full_path,
            'size': self.size,
            'sizeFormatted': self.size_formatted,
            'downloadedAt': self.downloaded_at,
        }

    def to_batch_item(self) -> Dict:
        """Per-item entry of a batch payload"""
        item = {
            'success': self.success,
            'messageId': self.message_id,
            'attachmentId': self.attachment_id,
            'filename': self.filename,
        }
        if self.success:
            item['result'] = self.to_dict()
        else:
            item['error'] = self.error
        return item

@dataclass
class BatchSummary:
    download_path: str
    results: List[DownloadResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return len([r for r in self.results if r.success])

    @property
    def failed(self) -> int:
        return len([r for r in self.results if not r.success])

    def to_dict(self) -> Dict:
        return {
            'summary': {
                'total': self.total,
                'successful': self.successful,
                'failed': self.failed,
                'downloadPath': self.download_path,
            },
            'results': [r.to_batch_item() for r in self.results],
        }
