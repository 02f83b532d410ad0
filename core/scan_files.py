"""
scan_files.py - Input Collection Module

Turns dropped / selected paths into ImageFile items
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional
import logging
import mimetypes
import os

from .byte_sources import ImageFile
from .models_batch import ProcessOptions

logger = logging.getLogger(__name__)


def guess_mime_type(name: str) -> str:
    """MIME type from the filename suffix, empty string if unknown"""
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or ""


def is_image_name(name: str) -> bool:
    return guess_mime_type(name).startswith("image/")


def scan_images(
    root: Path,
    include_hidden: bool = False,
    ignore_dirs: Optional[List[str]] = None,
    progress_callback: Optional[Callable[[str], None]] = None
) -> List[Path]:
    """
    Recursively scan folder for image files

    Args:
        root: Root directory
        include_hidden: Whether to include hidden files
        ignore_dirs: List of directories to ignore
        progress_callback: Progress callback function

    Returns:
        Image paths, sorted per directory by name
    """
    if ignore_dirs is None:
        ignore_dirs = [".git", "__pycache__", "node_modules"]

    root = Path(root).resolve()
    if not root.is_dir():
        raise ValueError(f"Directory does not exist: {root}")

    results: List[Path] = []

    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)

        dirnames[:] = sorted(
            d for d in dirnames
            if d not in ignore_dirs and (include_hidden or not d.startswith('.'))
        )

        for filename in sorted(filenames):
            if not include_hidden and filename.startswith('.'):
                continue
            if not is_image_name(filename):
                continue

            filepath = current_dir / filename
            if progress_callback:
                progress_callback(str(filepath))
            results.append(filepath)

    return results


@dataclass
class CollectResult:
    """Files accepted from a drop / selection, plus what was refused"""
    files: List[ImageFile] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)


def collect_images(
    paths: Iterable[Path],
    options: Optional[ProcessOptions] = None,
    already_selected: int = 0,
    progress_callback: Optional[Callable[[str], None]] = None
) -> CollectResult:
    """
    Collect input files from a mix of files and directories

    Directories contribute their image files only. Files given explicitly
    are kept whatever their type, so non-images surface as invalid_format.

    Args:
        paths: Dropped or selected paths
        options: Limits and scan options
        already_selected: Files already in the batch (counts toward max_files)
        progress_callback: Progress callback function

    Returns:
        Accepted files and rejection messages
    """
    if options is None:
        options = ProcessOptions()

    collected = CollectResult()
    candidates: List[Path] = []

    for p in paths:
        p = Path(p)
        if p.is_dir():
            candidates.extend(scan_images(
                p,
                include_hidden=options.include_hidden,
                ignore_dirs=options.ignore_dirs,
                progress_callback=progress_callback,
            ))
        elif p.is_file():
            candidates.append(p)
        else:
            collected.rejected.append(f"Not found: {p}")

    for p in candidates:
        if already_selected + len(collected.files) >= options.max_files:
            collected.rejected.append(f"Too many files, maximum allowed is {options.max_files}")
            break
        try:
            size = p.stat().st_size
        except OSError as e:
            collected.rejected.append(f"Cannot access {p}: {e}")
            continue
        if options.max_file_size and size > options.max_file_size:
            limit_mb = options.max_file_size / 1024 / 1024
            collected.rejected.append(f"File \"{p.name}\" is too large, maximum size is {limit_mb:g}MB")
            continue
        collected.files.append(ImageFile.from_path(p))

    if collected.rejected:
        logger.warning("Rejected %d inputs", len(collected.rejected))
    return collected
