"""
Configuration file for the Gmail MCP server
Contains OAuth file locations, download defaults and server identity
"""
import os
from pathlib import Path
from dotenv import load_dotenv

from gmail_mcp.errors import ConfigurationError

# Load environment variables from .env file if it exists
load_dotenv()

# Base directory
BASE_DIR = Path(__file__).parent.parent

# Gmail API Configuration
# OAuth client secrets downloaded from Google Cloud Console
GOOGLE_APPLICATION_CREDENTIALS = os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "")
GMAIL_TOKEN_FILE = Path(
    os.getenv("GMAIL_TOKEN_FILE", str(Path.home() / ".gmail-mcp" / "tokens.json"))
).expanduser()
GMAIL_SCOPES = [
    'https://www.googleapis.com/auth/gmail.readonly',
    'https://www.googleapis.com/auth/gmail.modify',
    'https://www.googleapis.com/auth/gmail.send',
]
GMAIL_TOKEN_URI = "https://oauth2.googleapis.com/token"
DEFAULT_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"

# Folder paths
DEFAULT_DOWNLOAD_DIR = Path(
    os.getenv("GMAIL_DOWNLOAD_DIR", str(Path.home() / "Downloads"))
).expanduser()

# Search limits
DEFAULT_SEARCH_RESULTS = 100
MAX_SEARCH_RESULTS = 500

# Filename handling
MAX_FILENAME_LENGTH = 200
FALLBACK_FILENAME = "untitled"
UNKNOWN_SENDER = "Unknown"

# Server identity
SERVER_NAME = "gmail-mcp-enhanced"
SERVER_VERSION = "2.0.0"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

def validate_config() -> Path:
    """
    Check that the OAuth client secrets file is configured
    
    Returns:
        Path to the client secrets file
    
    Raises:
        ConfigurationError: if the variable is unset or the file is missing
    """
    if not GOOGLE_APPLICATION_CREDENTIALS:
        raise ConfigurationError("GOOGLE_APPLICATION_CREDENTIALS environment variable not set")
    
    credentials_path = Path(GOOGLE_APPLICATION_CREDENTIALS).expanduser()
    if not credentials_path.exists():
        raise ConfigurationError(f"Credentials file not found: {credentials_path}")
    return credentials_path
