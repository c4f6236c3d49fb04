import re
from typing import Optional

_ILLEGAL_FILENAME_CHARS = re.compile(r'[/\\?%*:|"<>]')
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

MAX_FILENAME_LENGTH = 200


def sanitize_filename(filename: str, fallback: str = "media") -> str:
    """
    Sanitize filename for upload

    Args:
        filename: Original filename
        fallback: Used when nothing printable is left

    Returns:
        Filename with path/shell-hostile characters replaced by '-',
        at most 200 characters long
    """
    filename = _ILLEGAL_FILENAME_CHARS.sub("-", filename or "")
    filename = _CONTROL_CHARS.sub("", filename).strip()
    if not filename:
        return fallback
    return filename[:MAX_FILENAME_LENGTH]


def first_non_empty(*values: Optional[str]) -> str:
    for value in values:
        if value and str(value).strip():
            return str(value).strip()
    return ""
