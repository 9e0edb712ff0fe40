"""Title and filename sanitization for filesystem safety."""

import re
from pathlib import Path

from loguru import logger

log = logger.bind(stage="sanitize")

# Characters not valid in Windows filenames, plus backtick.
# See https://learn.microsoft.com/windows/win32/fileio/naming-a-file
_TITLE_REPLACEMENTS = (
    ("\\", "-"),
    ("/", "-"),
    (":", " -"),
    ("*", ""),
    ("?", ""),
    ('"', "'"),
    ("<", ""),
    (">", ""),
    ("|", "-"),
    ("`", "'"),
)


def sanitize_title(title: str) -> str:
    """Replace characters that are illegal on common target filesystems."""
    for bad, good in _TITLE_REPLACEMENTS:
        title = title.replace(bad, good)
    return title


def sanitize_filename(filename: str) -> str:
    """Sanitize a filename component (not a full path).

    Applies sanitize_title, collapses repeated spaces, strips leading and
    trailing dots/whitespace, truncates to 255 bytes preserving extension.
    """
    log.debug(f"sanitize_filename(filename='{filename}')")

    sanitized = sanitize_title(filename)
    sanitized = re.sub(r"  +", " ", sanitized)
    sanitized = sanitized.strip().strip(".").strip()

    original_len = len(sanitized.encode("utf-8"))
    if original_len > 255:
        p = Path(sanitized)
        ext = p.suffix
        stem = p.stem
        if ext:
            while len((stem + ext).encode("utf-8")) > 255 and stem:
                stem = stem[:-1]
            sanitized = stem + ext
        else:
            while len(sanitized.encode("utf-8")) > 255 and sanitized:
                sanitized = sanitized[:-1]
        log.debug(f"Truncated filename from {original_len} to {len(sanitized.encode('utf-8'))} bytes: '{sanitized}'")

    return sanitized


def make_dot_title(title: str) -> str:
    """'The Title Here' -> 'The.Title.Here'."""
    return re.sub(r"\s+", ".", title.strip())


def get_extension(filename: str) -> str:
    """Return the suffix including the dot, or '' when there is none."""
    return Path(filename).suffix
