"""
Logger module
Shared application logger, writes to stderr so stdout stays free for MCP
"""
import logging
import sys
from gmail_mcp import config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

def get_logger(name: str = "gmail_mcp") -> logging.Logger:
    """
    Create or fetch the application logger
    
    Args:
        name: Logger name
    
    Returns:
        Configured logger instance
    """
    log = logging.getLogger(name)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
        log.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))
        log.propagate = False
    return log

logger = get_logger()
