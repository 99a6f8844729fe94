"""
Attachment locator module
Finds attachments anywhere in a Gmail message's MIME part tree
"""
from typing import Dict, List, Union
from gmail_mcp.gmail_engine.models import AttachmentDescriptor, PartNode
from gmail_mcp.utils.file_ops import format_file_size

def _child_path(parent_path: str, index: int) -> str:
    return f"{parent_path}.{index}" if parent_path else str(index)

def locate_attachments(message: Union[Dict, PartNode]) -> List[AttachmentDescriptor]:
    """
    List every attachment of a message in depth-first pre-order
    
    A part is an attachment when it has a filename and its body references
    an attachment id, whatever its MIME type or nesting depth. Part ids are
    dotted sibling indexes from the payload root ('' for the root itself,
    '1.0' for the first child of the second child).
    
    Args:
        message: Gmail message dictionary, or an already built part tree
    
    Returns:
        List of attachment descriptors
    """
    if isinstance(message, PartNode):
        root = message
    else:
        payload = message.get('payload')
        if not payload:
            return []
        root = PartNode.from_payload(payload)
    
    attachments = []
    
    def visit(part: PartNode, path: str):
        if part.is_attachment:
            size = part.body.size if part.body.size is not None else 0
            attachments.append(AttachmentDescriptor(
                part_id=path,
                attachment_id=part.body.attachment_id,
                filename=part.filename,
                mime_type=part.mime_type,
                size=size,
                size_formatted=format_file_size(size),
            ))
        
        for index, child in enumerate(part.children):
            visit(child, _child_path(path, index))
    
    visit(root, "")
    return attachments
