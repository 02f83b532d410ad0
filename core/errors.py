"""
errors.py - Batch-level Error Types

Per-file outcomes are never raised, they are RenameStatus values.
Only conditions that stop a whole batch or export are exceptions.
"""


class RenamerError(Exception):
    """Base class for batch-level failures"""


class MappingReadError(RenamerError):
    """Mapping file could not be read or decoded"""


class EmptyBatchError(RenamerError):
    """No input files were supplied"""


class BatchCancelledError(RenamerError):
    """Batch was cancelled before all files were matched"""


class EmptyExportError(RenamerError):
    """Export requested but no entry qualifies"""


class ArchiveBuildError(RenamerError):
    """Archive could not be assembled or written"""


class ReportBuildError(RenamerError):
    """Text report could not be written"""


class SourceReleasedError(OSError):
    """Byte source was read after it had been released"""
