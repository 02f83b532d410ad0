"""
text_match.py - Text Matching Tools

Provides key normalization, quote stripping and filename validation
"""

from typing import Optional
import re

# Supplier prefix that mapping rows and filenames may carry
ARTICLE_PREFIX = "amparts_"

# Characters ignored when comparing article numbers
_SEPARATOR_RE = re.compile(r"[. \-_~]")


def normalize(text: str) -> str:
    """
    Canonicalize an article string for comparison

    Args:
        text: Article number or filename base

    Returns:
        Lower-cased text without '.', ' ', '-', '_' and '~'
    """
    return _SEPARATOR_RE.sub("", text.lower())


def has_prefix(key: str, prefix: str = ARTICLE_PREFIX) -> bool:
    """
    Check if a normalized key starts with the (normalized) prefix

    The prefix is normalized too, since normalization strips its underscore.
    """
    norm = normalize(prefix)
    return bool(norm) and key.startswith(norm) and len(key) > len(norm)


def strip_prefix(key: str, prefix: str = ARTICLE_PREFIX) -> str:
    """Remove the normalized prefix from a normalized key (no-op if absent)"""
    if not has_prefix(key, prefix):
        return key
    return key[len(normalize(prefix)):]


def strip_quotes(field: str) -> str:
    """
    Trim a field, then strip at most one leading and one trailing double quote

    Args:
        field: Raw field text

    Returns:
        Cleaned field (interior quotes kept)
    """
    field = field.strip()
    if field.startswith('"'):
        field = field[1:]
    if field.endswith('"'):
        field = field[:-1]
    return field


def is_valid_filename(name: str) -> tuple[bool, Optional[str]]:
    """
    Check if a name is usable as an archive entry / file on disk

    Args:
        name: Filename

    Returns:
        (is_valid, error_reason)
    """
    if not name:
        return False, "Filename cannot be empty"

    invalid_chars = '<>:"/\\|?*'
    for char in invalid_chars:
        if char in name:
            return False, f"Filename contains invalid character: {char}"

    if any(ord(c) < 32 for c in name):
        return False, "Filename contains control characters"

    if name.endswith(' ') or name.endswith('.'):
        return False, "Filename cannot end with space or dot"

    if len(name) > 255:
        return False, "Filename exceeds 255 characters"

    return True, None


def sanitize_filename(name: str, replacement: str = "_") -> str:
    """
    Clean invalid characters from filename

    Args:
        name: Original filename
        replacement: Replacement character

    Returns:
        Cleaned filename
    """
    invalid_chars = '<>:"/\\|?*'
    for char in invalid_chars:
        name = name.replace(char, replacement)
    name = "".join(c if ord(c) >= 32 else replacement for c in name)

    name = name.rstrip(' .')

    if not name:
        name = "unnamed"

    return name[:255]
