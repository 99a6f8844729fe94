"""
Interactive Gmail authorization
Runs the browser consent flow once and stores the tokens the server will use
"""
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from google_auth_oauthlib.flow import InstalledAppFlow
from gmail_mcp import config
from gmail_mcp.errors import GmailMCPError
from gmail_mcp.gmail_engine.credential_store import CredentialSet, CredentialStore
from gmail_mcp.gmail_engine.gmail_auth import load_client_config
from gmail_mcp.gmail_engine.gmail_reader import GmailReader
from gmail_mcp.utils.logger import logger

def check_connection(store: CredentialStore) -> None:
    """Print the profile of the stored account"""
    profile = GmailReader(store).get_profile()
    print(f"Connected to Gmail account: {profile.get('emailAddress')}")
    print(f"Total messages: {profile.get('messagesTotal', 0):,}")
    print(f"Total threads: {profile.get('threadsTotal', 0):,}")

def authorize(credentials_path: Path, store: CredentialStore) -> None:
    """
    Run the consent flow and save the resulting tokens

    Args:
        credentials_path: OAuth client secrets file
        store: Where to keep the tokens
    """
    client_config = load_client_config(credentials_path)
    flow = InstalledAppFlow.from_client_config({'installed': client_config}, config.GMAIL_SCOPES)
    creds = flow.run_local_server(port=0, access_type='offline', prompt='consent')
    store.save(CredentialSet.from_credentials(creds))
    print(f"Tokens saved to: {store.token_path}")

def main():
    """Main entry point"""
    store = CredentialStore(config.GMAIL_TOKEN_FILE)
    try:
        credentials_path = config.validate_config()
        print(f"Loading credentials from: {credentials_path}")

        if store.load() is not None:
            print("Found existing tokens, testing connection...")
            try:
                check_connection(store)
                print("Authentication successful! Gmail MCP is ready to use.")
                return
            except GmailMCPError as e:
                print(f"Stored tokens did not work ({e}), starting authorization flow...")

        authorize(credentials_path, store)
        check_connection(store)
        print("Gmail MCP authentication complete!")

    except KeyboardInterrupt:
        logger.info("Authorization interrupted by user")
        sys.exit(1)
    except GmailMCPError as e:
        logger.error(f"Authentication failed: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
