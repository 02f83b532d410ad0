"""
core - Image Batch Renamer Core Module

Provides mapping parsing, filename matching, batch processing, statistics
and archive / report export.
"""

from .errors import (
    RenamerError,
    MappingReadError,
    EmptyBatchError,
    BatchCancelledError,
    EmptyExportError,
    ArchiveBuildError,
    ReportBuildError,
    SourceReleasedError,
)

from .byte_sources import (
    ByteSource,
    PathSource,
    MemorySource,
    ImageFile,
    FileSession,
)

from .models_batch import (
    RenameStatus,
    MappingTable,
    ParsedFilename,
    RenameResult,
    BatchReport,
    ProcessOptions,
    SortKey,
    ConflictPolicy,
)

from .text_match import (
    normalize,
    strip_quotes,
    is_valid_filename,
    sanitize_filename,
)

from .parse_mapping import (
    parse_mapping,
    read_mapping,
)

from .match_files import (
    parse_filename,
    match_file,
)

from .process_batch import (
    process_files,
    process_batch,
)

from .aggregate_results import (
    aggregate,
    filter_duplicates,
    filter_status,
)

from .sort_rules import (
    sort_results,
    get_sort_key,
)

from .export_archive import (
    ArchivePlan,
    ConflictResolver,
    plan_archive,
    build_archive,
    save_archive,
)

from .export_list import (
    export_timestamp,
    render_list,
    export_list,
    list_filename,
    save_list,
)

from .scan_files import (
    scan_images,
    collect_images,
    guess_mime_type,
)

__all__ = [
    # Errors
    "RenamerError",
    "MappingReadError",
    "EmptyBatchError",
    "BatchCancelledError",
    "EmptyExportError",
    "ArchiveBuildError",
    "ReportBuildError",
    "SourceReleasedError",

    # Inputs
    "ByteSource",
    "PathSource",
    "MemorySource",
    "ImageFile",
    "FileSession",

    # Data models
    "RenameStatus",
    "MappingTable",
    "ParsedFilename",
    "RenameResult",
    "BatchReport",
    "ProcessOptions",
    "SortKey",
    "ConflictPolicy",

    # Text processing
    "normalize",
    "strip_quotes",
    "is_valid_filename",
    "sanitize_filename",

    # Mapping and matching
    "parse_mapping",
    "read_mapping",
    "parse_filename",
    "match_file",

    # Processing
    "process_files",
    "process_batch",

    # Statistics and sorting
    "aggregate",
    "filter_duplicates",
    "filter_status",
    "sort_results",
    "get_sort_key",

    # Export
    "ArchivePlan",
    "ConflictResolver",
    "plan_archive",
    "build_archive",
    "save_archive",
    "export_timestamp",
    "render_list",
    "export_list",
    "list_filename",
    "save_list",

    # Scanning
    "scan_images",
    "collect_images",
    "guess_mime_type",
]
