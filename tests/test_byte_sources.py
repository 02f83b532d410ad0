"""
Unit tests for byte sources and file sessions.
"""

import threading

import pytest

from core.byte_sources import FileSession, ImageFile, MemorySource, PathSource
from core.errors import SourceReleasedError


class TestByteSource:
    """Tests for MemorySource and PathSource."""

    def test_memory_read(self):
        """Memory content is returned unchanged."""
        assert MemorySource(b"abc").read_bytes() == b"abc"

    def test_path_read(self, tmp_path):
        """Path content is read from disk."""
        path = tmp_path / "a.jpg"
        path.write_bytes(b"\xff\xd8")
        assert PathSource(path).read_bytes() == b"\xff\xd8"

    def test_release_once(self):
        """Only the first release reports success."""
        source = MemorySource(b"abc")
        assert source.release() is True
        assert source.release() is False
        assert source.released

    def test_read_after_release(self):
        """Reading a released source fails."""
        source = MemorySource(b"abc")
        source.release()
        with pytest.raises(SourceReleasedError):
            source.read_bytes()

    def test_released_error_is_oserror(self):
        """Released-source errors are handled as I/O errors."""
        assert issubclass(SourceReleasedError, OSError)

    def test_concurrent_release(self):
        """Concurrent releases free the source exactly once."""
        source = MemorySource(b"abc")
        outcomes = []
        threads = [threading.Thread(target=lambda: outcomes.append(source.release())) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert outcomes.count(True) == 1

    def test_release_waits_for_read(self):
        """A release during a read takes effect only after the read returns."""
        started = threading.Event()
        proceed = threading.Event()

        class SlowSource(MemorySource):
            def _read(self):
                started.set()
                proceed.wait(5)
                return super()._read()

        source = SlowSource(b"abc")
        data = []
        reader = threading.Thread(target=lambda: data.append(source.read_bytes()))
        reader.start()
        assert started.wait(5)

        releaser = threading.Thread(target=source.release)
        releaser.start()
        releaser.join(0.2)
        assert releaser.is_alive()
        assert not source.released

        proceed.set()
        reader.join(5)
        releaser.join(5)
        assert data == [b"abc"]
        assert source.released

    def test_missing_file(self, tmp_path):
        """A vanished file raises the underlying OSError."""
        with pytest.raises(OSError):
            PathSource(tmp_path / "gone.jpg").read_bytes()


class TestImageFile:
    """Tests for ImageFile constructors."""

    def test_from_path(self, tmp_path):
        """MIME type is guessed from the suffix."""
        path = tmp_path / "A-1.png"
        path.write_bytes(b"png")
        item = ImageFile.from_path(path)
        assert item.name == "A-1.png"
        assert item.mime_type == "image/png"
        assert item.source.read_bytes() == b"png"

    def test_from_path_unknown_type(self, tmp_path):
        """Unknown suffixes give an empty MIME type."""
        path = tmp_path / "noext"
        path.write_bytes(b"")
        assert ImageFile.from_path(path).mime_type == ""

    def test_from_bytes_explicit_type(self):
        """A declared MIME type wins over the name."""
        item = ImageFile.from_bytes("photo.txt", b"x", mime_type="image/jpeg")
        assert item.mime_type == "image/jpeg"


class TestFileSession:
    """Tests for FileSession."""

    def test_clear_releases(self):
        """Clearing releases every source and empties the session."""
        files = [ImageFile.from_bytes(f"{i}.jpg", b"x") for i in range(3)]
        session = FileSession(files)
        assert session.clear() == 3
        assert len(session) == 0
        assert all(f.source.released for f in files)

    def test_already_released_not_counted(self):
        """Sources released elsewhere are not released again."""
        files = [ImageFile.from_bytes(f"{i}.jpg", b"x") for i in range(3)]
        files[0].source.release()
        assert FileSession(files).close() == 2

    def test_context_manager(self):
        """Leaving the block closes the session."""
        item = ImageFile.from_bytes("a.jpg", b"x")
        with FileSession() as session:
            session.add([item])
            assert len(session) == 1
        assert item.source.released
        with pytest.raises(RuntimeError):
            session.add([item])
