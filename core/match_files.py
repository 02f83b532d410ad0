"""
match_files.py - Filename Matching Module

Responsibilities:
- Split an image filename into article base, sequence number and extension
- Resolve the base against the mapping and classify the outcome
"""

from typing import Optional
import re

from .byte_sources import ImageFile
from .models_batch import MappingTable, ParsedFilename, RenameResult, RenameStatus
from .text_match import normalize, has_prefix, strip_prefix

MSG_NOT_IMAGE = "not an image"
MSG_INVALID_NAME = "invalid filename format"
MSG_NO_MATCH = "no corresponding entry in mapping"

# <base>(-<digits>)?.<ext>, base as short as possible
_FILENAME_RE = re.compile(r"(.+?)(?:-(\d+))?\.\w+", re.ASCII)


def parse_filename(filename: str) -> Optional[ParsedFilename]:
    """
    Decompose a filename

    Args:
        filename: Literal filename (no directory part)

    Returns:
        ParsedFilename, or None if the name does not fit the pattern
    """
    match = _FILENAME_RE.fullmatch(filename)
    if not match:
        return None

    base_name, sequence = match.group(1), match.group(2)
    extension = filename[filename.rfind("."):].lower()
    return ParsedFilename(
        base_name=base_name,
        sequence_number=sequence or "1",
        extension=extension,
    )


def lookup_identifier(base_name: str, mapping: MappingTable) -> Optional[str]:
    """Find the identifier for a filename base, retrying without the supplier prefix"""
    key = normalize(base_name)
    identifier = mapping.get(key)
    if identifier is None and has_prefix(key):
        identifier = mapping.get(strip_prefix(key))
    return identifier


def match_file(file: ImageFile, mapping: MappingTable) -> RenameResult:
    """
    Classify one file against the mapping

    Never raises: every file yields exactly one status. The timestamp is
    left unset for the caller to attach.

    Args:
        file: Input file (name + MIME type)
        mapping: Parsed mapping table

    Returns:
        Rename result
    """
    if not (file.mime_type or "").startswith("image/"):
        return RenameResult(
            old_name=file.name,
            new_name="",
            status=RenameStatus.INVALID_FORMAT,
            message=MSG_NOT_IMAGE,
        )

    parsed = parse_filename(file.name)
    if parsed is None:
        return RenameResult(
            old_name=file.name,
            new_name="",
            status=RenameStatus.ERROR,
            message=MSG_INVALID_NAME,
        )

    identifier = lookup_identifier(parsed.base_name, mapping)
    if identifier is None:
        return RenameResult(
            old_name=file.name,
            new_name="",
            status=RenameStatus.NO_MATCH,
            message=MSG_NO_MATCH,
        )

    new_name = f"{identifier}_{parsed.sequence_number}{parsed.extension}"
    return RenameResult(
        old_name=file.name,
        new_name=new_name,
        status=RenameStatus.SUCCESS,
    )
