"""
File operations utility module
Handles filename sanitizing, collision-free naming and saving attachment bytes
"""
import os
import re
from pathlib import Path
from typing import Collection, Union
from gmail_mcp import config
from gmail_mcp.errors import AttachmentWriteError
from gmail_mcp.utils.logger import logger

# Characters that are invalid in Windows/POSIX filenames, plus C0 controls
INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
SIZE_UNITS = ['B', 'KB', 'MB', 'GB']

def ensure_directory(path: Path) -> Path:
    """
    Ensure directory exists, create if it doesn't

    Args:
        path: Directory path

    Returns:
        Path object

    Raises:
        AttachmentWriteError: if the directory cannot be created
    """
    path = Path(path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise AttachmentWriteError(f"Cannot create directory {path}: {e}") from e
    return path

def sanitize_filename(filename: str) -> str:
    """
    Make an untrusted filename safe to use on disk

    Hostile characters and whitespace become underscores, underscore runs
    collapse, and the result is trimmed and cut to MAX_FILENAME_LENGTH.
    Applying it twice gives the same result as applying it once.

    Args:
        filename: Raw filename, e.g. from a message part

    Returns:
        Safe, non-empty filename
    """
    name = INVALID_FILENAME_CHARS.sub('_', filename or '')
    name = re.sub(r'\s+', '_', name)
    name = re.sub(r'_{2,}', '_', name)
    name = name.strip('_')
    # Cutting can expose a trailing underscore
    name = name[:config.MAX_FILENAME_LENGTH].rstrip('_')

    if name in ('', '.', '..'):
        return config.FALLBACK_FILENAME
    return name

def _is_taken(path: Path, exclude: Collection[Path]) -> bool:
    # lexists also sees dangling symlinks, which block an exclusive create
    return path in exclude or os.path.lexists(path)

def get_unique_file_path(file_path: Union[str, Path], exclude: Collection[Path] = ()) -> Path:
    """
    Find a path that does not exist yet by appending _1, _2, ... to the stem

    Does not create anything; callers write the file themselves.

    Args:
        file_path: Desired destination path
        exclude: Paths to treat as taken even if nothing is there now

    Returns:
        The desired path if free, else the first free numbered variant
    """
    destination = Path(file_path)
    if not _is_taken(destination, exclude):
        return destination

    # Handle duplicate filenames
    stem = destination.stem
    suffix = destination.suffix
    counter = 1
    candidate = destination.parent / f"{stem}_{counter}{suffix}"
    while _is_taken(candidate, exclude):
        counter += 1
        candidate = destination.parent / f"{stem}_{counter}{suffix}"
    return candidate

def format_file_size(size: int) -> str:
    """
    Format a byte count for humans, e.g. 1536 -> '1.5 KB'

    Args:
        size: Size in bytes

    Returns:
        Formatted size string
    """
    if not size or size <= 0:
        return '0 B'

    index = 0
    value = float(size)
    while value >= 1024 and index < len(SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    value = round(value, 2)
    text = f"{value:.2f}".rstrip('0').rstrip('.')
    return f"{text} {SIZE_UNITS[index]}"

def save_bytes(data: bytes, destination_dir: Path, filename: str) -> Path:
    """
    Save raw bytes under a collision-free name in destination directory

    The file is created exclusively, so an existing file is never
    overwritten even if another writer claims the name after the check.

    Args:
        data: Raw file content
        destination_dir: Destination directory
        filename: Desired filename

    Returns:
        Path to saved file

    Raises:
        AttachmentWriteError: if the file cannot be written
    """
    ensure_directory(destination_dir)

    refused = set()
    while True:
        destination = get_unique_file_path(Path(destination_dir) / filename, refused)
        try:
            with open(destination, 'xb') as f:
                f.write(data)
        except FileExistsError:
            logger.debug(f"Name taken while saving, retrying: {destination.name}")
            refused.add(destination)
            continue
        except OSError as e:
            raise AttachmentWriteError(f"Cannot write {destination}: {e}") from e

        logger.info(f"Saved attachment: {destination}")
        return destination
