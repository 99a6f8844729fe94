"""Exceptions raised by the Gmail MCP server."""


class GmailMCPError(Exception):
    """Base exception for all server failures."""


class ConfigurationError(GmailMCPError):
    """Raised when the OAuth client configuration is missing or invalid."""


class AuthorizationRequiredError(GmailMCPError):
    """Raised when no usable stored credentials exist and the user must authorize."""

    def __init__(self, message: str = "Gmail authentication required. Run: python run_auth.py"):
        super().__init__(message)


class GmailTransportError(GmailMCPError):
    """Raised when a Gmail API request fails."""

    def __init__(self, message: str, status=None):
        super().__init__(message)
        self.status = status


class NoAttachmentDataError(GmailMCPError):
    """Raised when Gmail returns an attachment without a payload."""

    def __init__(self, message: str = "No attachment data received"):
        super().__init__(message)


class AttachmentDecodeError(GmailMCPError):
    """Raised when an attachment payload is not valid URL-safe base64."""


class InvalidFilenameError(GmailMCPError):
    """Raised when a requested filename cannot be used as a bare file name."""


class AttachmentWriteError(GmailMCPError):
    """Raised when a destination directory or file cannot be written."""


class CredentialFileError(GmailMCPError):
    """Raised when the stored token file cannot be read, parsed or written."""
