"""
parse_mapping.py - Mapping File Parsing Module

Responsibilities:
- Read the mapping file in one shot (no partial content)
- Turn tab-separated "identifier<TAB>article" rows into a MappingTable
"""

from pathlib import Path
from typing import Dict, Union
import logging

from .errors import MappingReadError
from .models_batch import MappingTable
from .text_match import normalize, has_prefix, strip_prefix, strip_quotes

logger = logging.getLogger(__name__)


def parse_mapping(content: str) -> MappingTable:
    """
    Build the lookup table from mapping text

    The first line is a header and is always discarded. Rows missing the
    identifier or the article number are skipped and counted.

    Args:
        content: Decoded mapping file content

    Returns:
        Immutable mapping of normalized article -> identifier
    """
    entries: Dict[str, str] = {}
    accepted = 0
    skipped = 0

    lines = content.split("\n")
    for line in lines[1:]:
        line = line.strip()
        if not line:
            continue

        parts = [strip_quotes(part) for part in line.split("\t")]
        identifier = parts[0] if parts else ""
        article = parts[1] if len(parts) > 1 else ""

        if not identifier or not article:
            skipped += 1
            continue

        key = normalize(article)
        entries[key] = identifier
        if has_prefix(key):
            entries[strip_prefix(key)] = identifier
        accepted += 1

    if skipped:
        logger.warning("Skipped %d mapping rows without identifier or article number", skipped)
    logger.info("Mapping parsed: %d rows, %d keys", accepted, len(entries))

    return MappingTable(entries=entries, row_count=accepted, skipped_rows=skipped)


def read_mapping(path: Union[str, Path], encoding: str = "utf-8-sig") -> MappingTable:
    """
    Read and parse a mapping file

    Args:
        path: Mapping file (.txt / .csv, tab-separated)
        encoding: Text encoding (BOM tolerated by default)

    Returns:
        Parsed mapping table

    Raises:
        MappingReadError: File unreadable or not decodable as text
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise MappingReadError(f"Cannot read mapping file {path}: {e}") from e

    try:
        content = raw.decode(encoding)
    except (UnicodeDecodeError, LookupError) as e:
        raise MappingReadError(f"Cannot decode mapping file {path} as {encoding}: {e}") from e

    return parse_mapping(content)
