"""
byte_sources.py - Raw Byte Access for Input Files

Responsibilities:
- Hide how an input file was captured (drag-drop, directory walk, picker)
- Read the whole content in one shot
- Release the underlying buffer exactly once
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional
import logging
import mimetypes
import threading

from .errors import SourceReleasedError

logger = logging.getLogger(__name__)


class ByteSource(ABC):
    """Retrieves the raw bytes of one input file"""

    def __init__(self):
        self._lock = threading.Lock()
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @abstractmethod
    def describe(self) -> str:
        """Short text identifying the source (for messages)"""

    @abstractmethod
    def _read(self) -> bytes:
        """Read full content, called only while not released"""

    def _free(self) -> None:
        """Drop held resources, called exactly once"""

    def read_bytes(self) -> bytes:
        """
        Read the full content

        Returns:
            File content

        Raises:
            SourceReleasedError: Source was already released
            OSError: Underlying read failed
        """
        # Held across the read so release() cannot free the buffer midway
        with self._lock:
            if self._released:
                raise SourceReleasedError(f"Source already released: {self.describe()}")
            return self._read()

    def release(self) -> bool:
        """
        Release the underlying buffer

        Returns:
            True on the first call, False if it was already released
        """
        with self._lock:
            if self._released:
                logger.debug("Ignoring second release of %s", self.describe())
                return False
            self._released = True
        self._free()
        return True


class PathSource(ByteSource):
    """Bytes read lazily from a file on disk"""

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)

    def describe(self) -> str:
        return str(self.path)

    def _read(self) -> bytes:
        return self.path.read_bytes()


class MemorySource(ByteSource):
    """Bytes already held in memory (e.g. dropped from another application)"""

    def __init__(self, data: bytes, label: str = "<memory>"):
        super().__init__()
        self._data: Optional[bytes] = data
        self.label = label

    def describe(self) -> str:
        return self.label

    def _read(self) -> bytes:
        return self._data

    def _free(self) -> None:
        self._data = None


@dataclass(frozen=True)
class ImageFile:
    """Input file item: name, declared MIME type and byte source"""
    name: str
    mime_type: str
    source: Optional[ByteSource] = None

    @classmethod
    def from_path(cls, p: Path) -> "ImageFile":
        """Create ImageFile from Path object, MIME type guessed from the suffix"""
        p = Path(p)
        mime_type, _ = mimetypes.guess_type(p.name)
        return cls(name=p.name, mime_type=mime_type or "", source=PathSource(p))

    @classmethod
    def from_bytes(cls, name: str, data: bytes, mime_type: Optional[str] = None) -> "ImageFile":
        """Create ImageFile from in-memory content"""
        if mime_type is None:
            mime_type = mimetypes.guess_type(name)[0] or ""
        return cls(name=name, mime_type=mime_type, source=MemorySource(data, label=name))


class FileSession:
    """
    Owns the byte sources of one batch

    Every source is released when the session is closed, unless it was
    already released (e.g. after being packaged into an archive).
    """

    def __init__(self, files: Optional[Iterable[ImageFile]] = None):
        self.files: List[ImageFile] = list(files or [])
        self._closed = False

    def add(self, files: Iterable[ImageFile]) -> None:
        if self._closed:
            raise RuntimeError("Session is closed")
        self.files.extend(files)

    def clear(self) -> int:
        """Release every source and forget the files, returns number released"""
        count = 0
        for f in self.files:
            if f.source is not None and f.source.release():
                count += 1
        self.files = []
        return count

    def close(self) -> int:
        count = self.clear()
        self._closed = True
        if count:
            logger.debug("Session closed, released %d sources", count)
        return count

    def __len__(self) -> int:
        return len(self.files)

    def __enter__(self) -> "FileSession":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
