"""
cli_entry.py - CLI Entry Point

Supports:
- Command-line argument mode
- Interactive mode
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .cli_interactive import interactive_mode

logger = logging.getLogger(__name__)

SORT_CHOICES = ["status", "old_name", "new_name", "timestamp", "duplicate"]
CATEGORY_CHOICES = ["success", "no_match", "invalid_format", "error"]
CONFLICT_CHOICES = ["suffix_number", "skip", "overwrite", "reject"]


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser"""
    parser = argparse.ArgumentParser(
        prog="image_renamer",
        description="Rename images by article number using an ID mapping file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive mode
  python main.py --cli

  # Preview results
  python main.py --cli process mapping.txt ./photos

  # Show only duplicate names, sorted by new name
  python main.py --cli process mapping.txt ./photos --duplicates-only --sort new_name

  # Write archive and the list of unmatched files
  python main.py --cli export mapping.txt ./photos --out ./export --zip --list no_match
"""
    )
    parser.add_argument("--verbose", "-v", action="count", default=0, help="Increase log output (-vv for debug)")

    subparsers = parser.add_subparsers(dest="command", help="Subcommands")

    def add_batch_args(sub):
        sub.add_argument("mapping", type=str, help="Mapping file (tab-separated: ID, article number)")
        sub.add_argument("inputs", type=str, nargs="+", help="Image files or directories")
        sub.add_argument("--workers", "-w", type=int, default=1, help="Matching worker threads")
        sub.add_argument("--include-hidden", action="store_true", help="Include hidden files")
        sub.add_argument("--max-files", type=int, default=5000, help="Maximum number of files")
        sub.add_argument("--max-size", type=float, default=5.0, help="Maximum file size in MB (0 = no limit)")

    # process subcommand
    process_parser = subparsers.add_parser("process", help="Match files and show results")
    add_batch_args(process_parser)
    process_parser.add_argument("--sort", type=str, default="timestamp", choices=SORT_CHOICES, help="Sort field")
    process_parser.add_argument("--reverse", "-r", action="store_true", help="Reverse sort")
    process_parser.add_argument("--duplicates-only", action="store_true", help="Show only duplicate new names")
    process_parser.add_argument("--limit", type=int, default=0, help="Show at most N rows (0 = all)")

    # export subcommand
    export_parser = subparsers.add_parser("export", help="Match files and write archive / lists")
    add_batch_args(export_parser)
    export_parser.add_argument("--out", "-o", type=str, required=True, help="Output directory")
    export_parser.add_argument("--zip", "-z", action="store_true", help="Write archive of renamed files")
    export_parser.add_argument("--list", "-l", dest="lists", action="append", default=[],
                               choices=CATEGORY_CHOICES, help="Write list of one category (repeatable)")
    export_parser.add_argument("--conflict", type=str, default="suffix_number", choices=CONFLICT_CHOICES,
                               help="Duplicate name policy inside the archive")
    export_parser.add_argument("--label", type=str, default="processed_files", help="Archive filename prefix")
    export_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    # parse-mapping subcommand
    mapping_parser = subparsers.add_parser("parse-mapping", help="Check a mapping file")
    mapping_parser.add_argument("mapping", type=str, help="Mapping file")

    return parser


def build_options(args):
    """Map CLI flags onto ProcessOptions"""
    from core import ProcessOptions, ConflictPolicy

    options = ProcessOptions(
        max_workers=max(1, args.workers),
        include_hidden=args.include_hidden,
        max_files=args.max_files,
        max_file_size=int(args.max_size * 1024 * 1024),
    )
    if getattr(args, "conflict", None):
        options.conflict_policy = ConflictPolicy(args.conflict)
    if getattr(args, "label", None):
        options.archive_label = args.label
    return options


def run_batch(args, options):
    """Collect inputs, read mapping, process. Returns (session, results) or None"""
    from core import collect_images, read_mapping, process_files, FileSession

    mapping = read_mapping(args.mapping, encoding=options.mapping_encoding)
    print(f"Mapping: {args.mapping} ({mapping.row_count} rows, {len(mapping)} keys)")
    if mapping.skipped_rows:
        print(f"Warning: {mapping.skipped_rows} rows skipped (missing ID or article number)")

    collected = collect_images([Path(p) for p in args.inputs], options)
    for msg in collected.rejected[:10]:
        print(f"  Skipped: {msg}")
    if len(collected.rejected) > 10:
        print(f"  ... and {len(collected.rejected) - 10} more skipped")

    if not collected.files:
        print("No image files found")
        return None

    print(f"Found {len(collected.files)} files")
    session = FileSession(collected.files)
    results = process_files(session.files, mapping, max_workers=options.max_workers)
    return session, results


def print_results(results, report, limit: int = 0) -> None:
    """Print result table"""
    from core import RenameStatus

    show_dup = report.duplicate_names > 0
    rows = results[:limit] if limit else results

    print("-" * 90)
    for i, r in enumerate(rows, 1):
        target = r.new_name if r.status is RenameStatus.SUCCESS else (r.message or "")
        time_str = r.timestamp.astimezone().strftime("%H:%M:%S") if r.timestamp else ""
        dup = report.duplicate_count(r)
        dup_str = f"  {dup}x" if show_dup and dup > 1 else ""
        print(f"{i:>5}  {r.status.label:<13} {r.old_name:<32} {target:<28} {time_str}{dup_str}")
    if limit and len(results) > limit:
        print(f"  ... and {len(results) - limit} more rows")
    print("-" * 90)


def print_stats(report) -> None:
    """Print status counts"""
    from core import RenameStatus

    parts = [f"{report.count(RenameStatus.SUCCESS)} successful"]
    if report.count(RenameStatus.NO_MATCH):
        parts.append(f"{report.count(RenameStatus.NO_MATCH)} not found")
    if report.count(RenameStatus.INVALID_FORMAT):
        parts.append(f"{report.count(RenameStatus.INVALID_FORMAT)} not images")
    if report.count(RenameStatus.ERROR):
        parts.append(f"{report.count(RenameStatus.ERROR)} errors")
    if report.duplicate_names:
        word = "duplicate" if report.duplicate_names == 1 else "duplicates"
        parts.append(f"{report.duplicate_names} {word}")
    print(", ".join(parts))


def cmd_process(args):
    """Handle process command"""
    from core import aggregate, sort_results, filter_duplicates, SortKey

    options = build_options(args)
    batch = run_batch(args, options)
    if batch is None:
        return 0
    session, results = batch

    with session:
        report = aggregate(results)
        shown = filter_duplicates(results, report) if args.duplicates_only else results
        shown = sort_results(shown, SortKey(args.sort), reverse=args.reverse, report=report)

        print()
        print_results(shown, report, limit=args.limit)
        print_stats(report)

    return 0


def export_artifacts(results, out_dir: Path, want_zip: bool, categories: List[str], options) -> int:
    """Write requested artifacts, returns number of failures"""
    from core import (
        aggregate, save_archive, save_list, RenameStatus,
        EmptyExportError, ArchiveBuildError, ReportBuildError,
    )

    report = aggregate(results)
    failures = 0

    if want_zip:
        try:
            path, plan = save_archive(
                results,
                out_dir,
                label=options.archive_label,
                policy=options.conflict_policy,
                compress_level=options.compress_level,
                release_sources=options.release_after_export,
            )
            print(f"Archive: {path} ({plan.total_count} files)")
            if plan.conflict_count:
                print(f"Note: {plan.conflict_count} duplicate names stored with _1, _2... suffix")
            for warn in plan.warnings:
                print(f"  - {warn}")
        except (EmptyExportError, ArchiveBuildError) as e:
            logger.error("Archive export failed: %s", e)
            print(f"Error: {e}")
            failures += 1

    for category in categories:
        status = RenameStatus(category)
        if report.count(status) == 0:
            print(f"Nothing to export for category: {status.label}")
            failures += 1
            continue
        try:
            path = save_list(results, status, out_dir)
            print(f"List: {path} ({report.count(status)} entries)")
        except ReportBuildError as e:
            logger.error("Report export failed: %s", e)
            print(f"Error: {e}")
            failures += 1

    return failures


def cmd_export(args):
    """Handle export command"""
    from core import aggregate

    out_dir = Path(args.out).resolve()
    if not out_dir.is_dir():
        print(f"Error: Directory does not exist: {out_dir}")
        return 1

    if not args.zip and not args.lists:
        print("Error: Nothing to export, use --zip and/or --list")
        return 1

    options = build_options(args)
    batch = run_batch(args, options)
    if batch is None:
        return 0
    session, results = batch

    with session:
        report = aggregate(results)
        print_stats(report)

        if not args.yes:
            confirm = input(f"\nWrite export files to {out_dir}? (y/N): ").strip().lower()
            if confirm != 'y':
                print("Cancelled")
                return 0

        failures = export_artifacts(results, out_dir, args.zip, args.lists, options)

    return 0 if failures == 0 else 1


def cmd_parse_mapping(args):
    """Handle parse-mapping command"""
    from core import read_mapping

    mapping = read_mapping(args.mapping)
    print(f"Mapping file: {args.mapping}")
    print(f"  - Rows: {mapping.row_count}")
    print(f"  - Lookup keys: {len(mapping)}")
    print(f"  - Skipped rows: {mapping.skipped_rows}")
    return 0


def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    from core import RenamerError

    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.command is None:
        # No subcommand, enter interactive mode
        return interactive_mode()

    handlers = {
        "process": cmd_process,
        "export": cmd_export,
        "parse-mapping": cmd_parse_mapping,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except RenamerError as e:
        logger.error("%s", e)
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
