"""
gui - PySide6 Interface for Image Batch Renamer
"""

from .gui_entry import main

__all__ = ["main"]
