"""
MCP server module
Registers the Gmail tools and serves them over stdio
"""
import json
from typing import Any, Callable, Dict, List, Literal, Optional
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import BaseModel, Field
from gmail_mcp import config
from gmail_mcp.main import GmailService
from gmail_mcp.utils.logger import logger

class AttachmentDownloadSpec(BaseModel):
    messageId: str = Field(..., description="The Gmail message ID containing the attachment")
    attachmentId: str = Field(..., description="The attachment ID from the message parts")
    filename: str = Field(..., description="Original filename of the attachment")
    customFilename: Optional[str] = Field(default=None, description="Custom filename to save as")

def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)

def run_tool(name: str, operation: Callable[[], Dict]) -> str:
    """
    Run one tool operation and render its result as pretty JSON

    Failures are logged and returned to the agent as a tool error; they
    never stop the server.
    """
    try:
        return to_json(operation())
    except Exception as e:
        logger.error(f"Tool {name} failed: {e}")
        raise ToolError(f"Error: {e}") from e

def create_server(service: Optional[GmailService] = None) -> FastMCP:
    """
    Build the MCP server with all Gmail tools registered

    Args:
        service: Gmail service to use (a default one is created if None)

    Returns:
        FastMCP server
    """
    service = service or GmailService()
    server = FastMCP(name=config.SERVER_NAME)

    # Argument names are the tools' public camelCase schema

    @server.tool(description="Search Gmail messages with advanced query support and optional pagination")
    def search_gmail_messages(
        q: str = Field(..., description='Gmail search query (e.g., "from:example@gmail.com subject:invoice has:attachment")'),
        maxResults: int = Field(default=config.DEFAULT_SEARCH_RESULTS, ge=1, le=config.MAX_SEARCH_RESULTS,
                                description="Maximum number of results to return (1-500, default: 100)"),
        pageToken: Optional[str] = Field(default=None, description="Page token for pagination"),
    ) -> str:
        return run_tool("search_gmail_messages", lambda: service.search_messages(q, maxResults, pageToken))

    @server.tool(description="Read a specific Gmail message by ID with full content and attachment information")
    def read_gmail_message(
        messageId: str = Field(..., description="The Gmail message ID to retrieve"),
        format: Literal['full', 'minimal', 'raw'] = Field(
            default='full', description="Message format - full includes attachments, minimal for basic info"),
    ) -> str:
        return run_tool("read_gmail_message", lambda: service.read_message(messageId, format))

    @server.tool(description="Read a complete Gmail thread with all messages")
    def read_gmail_thread(
        threadId: str = Field(..., description="The Gmail thread ID to retrieve"),
        includeFullMessages: bool = Field(
            default=True, description="Include full message content for all messages in thread"),
    ) -> str:
        return run_tool("read_gmail_thread", lambda: service.read_thread(threadId, includeFullMessages))

    @server.tool(description="Download an attachment from a Gmail message to local storage")
    def download_gmail_attachment(
        messageId: str = Field(..., description="The Gmail message ID containing the attachment"),
        attachmentId: str = Field(..., description="The attachment ID from the message parts"),
        filename: str = Field(..., description="Original filename of the attachment"),
        savePath: Optional[str] = Field(
            default=None, description="Directory to save the attachment (defaults to Downloads folder)"),
        customFilename: Optional[str] = Field(default=None, description="Custom filename to save as (optional)"),
    ) -> str:
        return run_tool("download_gmail_attachment", lambda: service.download_attachment(
            messageId, attachmentId, filename, savePath, customFilename))

    @server.tool(description="List all attachments in a Gmail message with download information")
    def list_gmail_attachments(
        messageId: str = Field(..., description="The Gmail message ID to check for attachments"),
    ) -> str:
        return run_tool("list_gmail_attachments", lambda: service.list_attachments(messageId))

    @server.tool(description="Download multiple attachments from one or more Gmail messages")
    def batch_download_attachments(
        downloads: List[AttachmentDownloadSpec] = Field(..., description="Array of attachment download specifications"),
        savePath: Optional[str] = Field(
            default=None, description="Directory to save all attachments (defaults to Downloads folder)"),
        createSubfolders: bool = Field(
            default=False, description="Create subfolders by sender/date for organization"),
    ) -> str:
        specs = [spec.model_dump(exclude_none=True) for spec in downloads]
        return run_tool("batch_download_attachments", lambda: service.batch_download_attachments(
            specs, savePath, createSubfolders))

    @server.tool(description="Get the Gmail profile information for the authenticated user")
    def read_gmail_profile() -> str:
        return run_tool("read_gmail_profile", service.read_profile)

    return server

def main():
    """Serve the Gmail tools on stdio"""
    server = create_server()
    logger.info(f"{config.SERVER_NAME} {config.SERVER_VERSION} running on stdio")
    server.run(transport="stdio")
