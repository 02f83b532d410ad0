"""
export_archive.py - Archive Export Module

Responsibilities:
- Plan archive entry names for successful results
- Conflict detection and resolution for duplicate names
- Write the ZIP archive one entry at a time
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union
import io
import logging
import zipfile

from .errors import ArchiveBuildError, EmptyExportError
from .export_list import export_timestamp
from .models_batch import ConflictPolicy, RenameResult
from .safety_checks import check_output_file
from .text_match import is_valid_filename, sanitize_filename

logger = logging.getLogger(__name__)


class ConflictResolver:
    """Conflict resolver for archive entry names"""

    def __init__(self, case_insensitive: bool = False):
        """
        Initialize conflict resolver

        Args:
            case_insensitive: Whether names differing only by case collide
        """
        self.case_insensitive = case_insensitive
        self.occupied: Set[str] = set()
        # Names some entry asked for; generated suffixes must avoid them
        self.reserved: Set[str] = set()

    def _normalize(self, name: str) -> str:
        return name.casefold() if self.case_insensitive else name

    def reserve(self, names: Iterable[str]) -> None:
        """Reserve desired names so generated suffixes never take them"""
        self.reserved.update(self._normalize(n) for n in names)

    def is_occupied(self, name: str) -> bool:
        return self._normalize(name) in self.occupied

    def mark_occupied(self, name: str) -> None:
        self.occupied.add(self._normalize(name))

    def resolve(self, desired_name: str) -> Tuple[str, bool]:
        """
        Resolve conflict, return available name

        Args:
            desired_name: Desired entry name

        Returns:
            (actual name, whether conflict occurred)
        """
        if not self.is_occupied(desired_name):
            self.mark_occupied(desired_name)
            return desired_name, False

        stem = Path(desired_name).stem
        suffix = Path(desired_name).suffix

        n = 1
        while True:
            candidate = f"{stem}_{n}{suffix}"
            norm = self._normalize(candidate)
            if norm not in self.occupied and norm not in self.reserved:
                self.mark_occupied(candidate)
                return candidate, True
            n += 1
            if n > 10000:
                raise ArchiveBuildError(f"Cannot find available name for {desired_name} (tried over 10000 times)")


@dataclass
class ArchiveEntry:
    """One file to be stored in the archive"""
    result: RenameResult
    arcname: str
    note: str = ""


@dataclass
class ArchivePlan:
    """Entries of the archive, in insertion order"""
    entries: List[ArchiveEntry] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    policy: ConflictPolicy = ConflictPolicy.SUFFIX_NUMBER

    @property
    def conflict_count(self) -> int:
        """Number of conflict resolutions"""
        return sum(1 for e in self.entries if e.note.startswith("conflict resolved"))

    @property
    def total_count(self) -> int:
        return len(self.entries)

    def add_warning(self, msg: str) -> None:
        logger.warning(msg)
        self.warnings.append(msg)


def _entry_name(result: RenameResult, plan: ArchivePlan) -> Tuple[str, str]:
    name = result.new_name
    valid, error = is_valid_filename(name)
    if valid:
        return name, ""
    cleaned = sanitize_filename(name)
    plan.add_warning(f"{result.old_name}: {error}, stored as {cleaned}")
    return cleaned, f"sanitized: {name} -> {cleaned}"


def plan_archive(
    results: Iterable[RenameResult],
    policy: ConflictPolicy = ConflictPolicy.SUFFIX_NUMBER,
    case_insensitive: bool = False
) -> ArchivePlan:
    """
    Decide the entry name of every successful result

    Args:
        results: Rename results (non-successes are ignored)
        policy: What to do when two entries want the same name
        case_insensitive: Treat names differing only by case as colliding

    Returns:
        Archive plan

    Raises:
        EmptyExportError: No successful result
        ArchiveBuildError: Duplicate names under ConflictPolicy.REJECT
    """
    successes = [r for r in results if r.is_success]
    if not successes:
        raise EmptyExportError("No successfully renamed files to export")

    plan = ArchivePlan(policy=policy)
    named = [(r,) + _entry_name(r, plan) for r in successes]

    if policy == ConflictPolicy.SUFFIX_NUMBER:
        resolver = ConflictResolver(case_insensitive=case_insensitive)
        resolver.reserve(name for _, name, _ in named)
        for result, name, note in named:
            final_name, had_conflict = resolver.resolve(name)
            if had_conflict:
                note = f"conflict resolved: {name} -> {final_name}"
            plan.entries.append(ArchiveEntry(result, final_name, note))
        return plan

    fold = (lambda n: n.casefold()) if case_insensitive else (lambda n: n)
    by_name: Dict[str, ArchiveEntry] = {}
    for result, name, note in named:
        key = fold(name)
        previous = by_name.get(key)
        if previous is None:
            by_name[key] = ArchiveEntry(result, name, note)
        elif policy == ConflictPolicy.REJECT:
            raise ArchiveBuildError(
                f"Duplicate archive name {name}: {previous.result.old_name}, {result.old_name}"
            )
        elif policy == ConflictPolicy.SKIP:
            plan.add_warning(f"Duplicate name {name}: kept {previous.result.old_name}, skipped {result.old_name}")
        else:
            plan.add_warning(f"Duplicate name {name}: {result.old_name} replaces {previous.result.old_name}")
            by_name[key] = ArchiveEntry(result, name, f"overwrote {previous.result.old_name}")

    plan.entries = list(by_name.values())
    return plan


def _write_entries(
    archive: zipfile.ZipFile,
    plan: ArchivePlan,
    release_sources: bool = False
) -> None:
    for entry in plan.entries:
        source = entry.result.source
        if source is None:
            raise ArchiveBuildError(f"No content retained for {entry.result.old_name}")
        try:
            data = source.read_bytes()
        except OSError as e:
            raise ArchiveBuildError(f"Cannot read {entry.result.old_name}: {e}") from e
        archive.writestr(entry.arcname, data)
        del data
        if release_sources:
            source.release()


def build_archive(
    results: Iterable[RenameResult],
    policy: ConflictPolicy = ConflictPolicy.SUFFIX_NUMBER,
    compress_level: int = 6
) -> bytes:
    """
    Build the archive in memory

    Args:
        results: Rename results
        policy: Duplicate name policy
        compress_level: Deflate level 0-9

    Returns:
        ZIP archive bytes

    Raises:
        EmptyExportError: No successful result
        ArchiveBuildError: Content unavailable or rejected duplicates
    """
    plan = plan_archive(results, policy)
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED, compresslevel=compress_level) as archive:
        _write_entries(archive, plan)
    return buffer.getvalue()


def archive_filename(label: str = "processed_files", now: Optional[datetime] = None) -> str:
    """Archive filename: <label>_<timestamp>.zip"""
    return f"{label}_{export_timestamp(now)}.zip"


def save_archive(
    results: Iterable[RenameResult],
    directory: Union[str, Path],
    label: str = "processed_files",
    policy: ConflictPolicy = ConflictPolicy.SUFFIX_NUMBER,
    compress_level: int = 6,
    release_sources: bool = False,
    now: Optional[datetime] = None
) -> Tuple[Path, ArchivePlan]:
    """
    Write the archive into a directory, streaming one entry at a time

    Args:
        results: Rename results
        directory: Output directory
        label: Filename prefix
        policy: Duplicate name policy
        compress_level: Deflate level 0-9
        release_sources: Release each source once it is stored
        now: Timestamp for the filename

    Returns:
        (archive path, plan used)

    Raises:
        EmptyExportError: No successful result
        ArchiveBuildError: Target not writable, content unavailable or rejected duplicates
    """
    plan = plan_archive(results, policy)
    path = Path(directory) / archive_filename(label, now)

    valid, error = check_output_file(path)
    if not valid:
        raise ArchiveBuildError(error)

    try:
        with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED, compresslevel=compress_level) as archive:
            _write_entries(archive, plan, release_sources=release_sources)
    except ArchiveBuildError:
        path.unlink(missing_ok=True)
        raise
    except OSError as e:
        path.unlink(missing_ok=True)
        raise ArchiveBuildError(f"Cannot write archive {path}: {e}") from e

    logger.info("Archive written: %s (%d files, %d conflicts)", path, plan.total_count, plan.conflict_count)
    return path, plan
