"""
safety_checks.py - Safety Check Module

Checks run before export artifacts are written
"""

from pathlib import Path
from typing import Optional, Tuple
import os
import platform


def check_writable(path: Path) -> Tuple[bool, Optional[str]]:
    """
    Check if path is writable

    Args:
        path: Path to check

    Returns:
        (is_writable, error_reason)
    """
    if path.exists():
        if not os.access(path, os.W_OK):
            return False, f"File is not writable: {path}"
    else:
        parent = path.parent
        if not parent.exists():
            return False, f"Parent directory does not exist: {parent}"
        if not os.access(parent, os.W_OK):
            return False, f"Directory is not writable: {parent}"

    return True, None


def check_path_length(path: Path, max_length: int = 260) -> Tuple[bool, Optional[str]]:
    """
    Check if path length exceeds limit (mainly for Windows)

    Args:
        path: Path to check
        max_length: Maximum length

    Returns:
        (is_valid, error_reason)
    """
    path_str = str(path)
    if len(path_str) > max_length:
        return False, f"Path length ({len(path_str)}) exceeds limit ({max_length}): {path}"
    return True, None


def check_output_file(path: Path) -> Tuple[bool, Optional[str]]:
    """
    Check that an export file can be created

    Args:
        path: Target file (its directory must already exist)

    Returns:
        (is_safe, error_reason)
    """
    if not path.parent.is_dir():
        return False, f"Output directory does not exist: {path.parent}"

    if path.exists():
        return False, f"Output file already exists: {path}"

    if platform.system() == "Windows":
        valid, error = check_path_length(path)
        if not valid:
            return False, error

    return check_writable(path)
