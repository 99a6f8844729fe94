"""
Main entry point for the Gmail MCP server
Checks configuration, then serves the Gmail tools on stdio
"""
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from gmail_mcp import config
from gmail_mcp.errors import ConfigurationError
from gmail_mcp.server import main as serve
from gmail_mcp.utils.logger import logger

def main():
    """Main entry point"""
    try:
        config.validate_config()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    try:
        serve()
    except KeyboardInterrupt:
        logger.info("Server interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

if __name__ == "__main__":
    main()
