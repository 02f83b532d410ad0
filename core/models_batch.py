"""
models_batch.py - Core Data Structure Definitions

Contains:
- RenameStatus: Outcome of matching one file
- MappingTable: Immutable article -> identifier lookup
- ParsedFilename: Parts of an image filename
- RenameResult: Outcome record for one input file
- BatchReport: Counts and duplicate groups over a result set
- ProcessOptions: Processing and export configuration
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterator, List, Optional

from .byte_sources import ByteSource


class RenameStatus(Enum):
    """Outcome of matching a single file"""
    SUCCESS = "success"                  # Renamed via mapping
    NO_MATCH = "no_match"                # Article not in mapping
    INVALID_FORMAT = "invalid_format"    # Not an image
    ERROR = "error"                      # Filename could not be parsed

    @property
    def label(self) -> str:
        """Human readable label"""
        return _STATUS_LABELS[self]

    @property
    def report_label(self) -> str:
        """Prefix used for report filenames"""
        return _REPORT_LABELS[self]


_STATUS_LABELS = {
    RenameStatus.SUCCESS: "Success",
    RenameStatus.NO_MATCH: "Not Found",
    RenameStatus.INVALID_FORMAT: "Not an Image",
    RenameStatus.ERROR: "Error",
}

_REPORT_LABELS = {
    RenameStatus.SUCCESS: "successful",
    RenameStatus.NO_MATCH: "not_matched",
    RenameStatus.INVALID_FORMAT: "invalid_format",
    RenameStatus.ERROR: "errors",
}


class SortKey(Enum):
    """Sort key enumeration for result lists"""
    STATUS = "status"
    OLD_NAME = "old_name"
    NEW_NAME = "new_name"
    TIMESTAMP = "timestamp"
    DUPLICATE = "duplicate"


class ConflictPolicy(Enum):
    """How the archive handles two entries with the same name"""
    SUFFIX_NUMBER = "suffix_number"  # Add _1, _2, _3...
    SKIP = "skip"                    # Keep first, drop later ones
    OVERWRITE = "overwrite"          # Keep last (dangerous)
    REJECT = "reject"                # Refuse to build the archive


@dataclass(frozen=True, eq=False)
class MappingTable(Mapping):
    """Normalized article key -> identifier, never mutated after parsing"""
    entries: Mapping = field(default_factory=dict)
    row_count: int = 0              # Rows accepted
    skipped_rows: int = 0           # Rows dropped for a missing field

    def __post_init__(self):
        # Read-only view over a private copy
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def __getitem__(self, key: str) -> str:
        return self.entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class ParsedFilename:
    """Filename split into article base, sequence number and extension"""
    base_name: str
    sequence_number: str = "1"
    extension: str = ""             # Lower-cased, includes the dot


@dataclass(frozen=True)
class RenameResult:
    """Outcome for one input file"""
    old_name: str
    new_name: str
    status: RenameStatus
    message: Optional[str] = None
    timestamp: Optional[datetime] = None
    source: Optional[ByteSource] = field(default=None, compare=False, repr=False)

    @property
    def is_success(self) -> bool:
        return self.status is RenameStatus.SUCCESS


@dataclass
class BatchReport:
    """Per-status counts and duplicate output names"""
    counts: Dict[RenameStatus, int] = field(
        default_factory=lambda: {status: 0 for status in RenameStatus}
    )
    duplicates: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def duplicate_names(self) -> int:
        """Number of distinct output names produced more than once"""
        return len(self.duplicates)

    def count(self, status: RenameStatus) -> int:
        return self.counts.get(status, 0)

    def duplicate_count(self, result: RenameResult) -> int:
        """How many successes share this result's new name (0 for failures)"""
        if not result.is_success:
            return 0
        return self.duplicates.get(result.new_name, 1)

    def summary(self) -> str:
        """Generate summary"""
        lines = [
            "Batch Summary:",
            f"  - Total files: {self.total}",
        ]
        for status in RenameStatus:
            lines.append(f"  - {status.label}: {self.count(status)}")
        lines.append(f"  - Duplicate names: {self.duplicate_names}")
        return "\n".join(lines)


@dataclass
class ProcessOptions:
    """Processing and export options configuration"""
    # Matching
    max_workers: int = 1            # >1 matches files on a thread pool
    mapping_encoding: str = "utf-8-sig"

    # Input collection
    include_hidden: bool = False
    ignore_dirs: List[str] = field(default_factory=lambda: [".git", "__pycache__", "node_modules"])
    max_files: int = 5000
    max_file_size: int = 5 * 1024 * 1024

    # Export
    conflict_policy: ConflictPolicy = ConflictPolicy.SUFFIX_NUMBER
    archive_label: str = "processed_files"
    compress_level: int = 6
    release_after_export: bool = False
