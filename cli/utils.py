"""Utility functions for CLI operations."""

import re
import sys
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import unquote

from cli.constants import GREEN, RESET, UPLOAD_READ_SIZE

_FILENAME_STAR = re.compile(r"filename\*\s*=\s*([^']*)'[^']*'([^;]+)", re.IGNORECASE)
_FILENAME_PLAIN = re.compile(r'filename\s*=\s*"?([^";]+)"?', re.IGNORECASE)


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def show_progress(verb: str, name: str, done: int, total: int) -> None:
    """Rewrite the current terminal line with transfer progress."""
    if total > 0:
        progress = (done / total) * 100
        sys.stdout.write(
            f"\r{verb} {name}: {format_file_size(done)} / {format_file_size(total)} ({GREEN}{progress:.1f}%{RESET})"
        )
    else:
        sys.stdout.write(f"\r{verb} {name}: {format_file_size(done)}")
    sys.stdout.flush()


def end_progress() -> None:
    sys.stdout.write('\n')
    sys.stdout.flush()


def iter_file_with_progress(path: Path, read_size: int = UPLOAD_READ_SIZE) -> Iterator[bytes]:
    """
    Yield a file's bytes piece by piece, printing upload progress as it goes.
    """
    total = path.stat().st_size
    sent = 0
    with open(path, 'rb') as f:
        while True:
            piece = f.read(read_size)
            if not piece:
                break
            sent += len(piece)
            show_progress("Uploading", path.name, sent, total)
            yield piece
    end_progress()


def filename_from_disposition(header: Optional[str]) -> Optional[str]:
    """
    Extract the file name from a Content-Disposition header.

    Prefers the RFC 5987 ``filename*`` form. Only the final path component
    is returned so a hostile header cannot point outside the target folder.
    """
    if not header:
        return None

    match = _FILENAME_STAR.search(header)
    if match:
        encoding = match.group(1) or 'utf-8'
        name = unquote(match.group(2).strip(), encoding=encoding, errors='replace')
    else:
        match = _FILENAME_PLAIN.search(header)
        if not match:
            return None
        name = match.group(1).strip()

    name = Path(name.replace('\\', '/')).name
    return name or None
