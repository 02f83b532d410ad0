"""
cli_interactive.py - Interactive CLI

Provides a menu-style interactive interface
"""

import os
import sys
from pathlib import Path
from typing import List, Optional

# Import core module
sys.path.insert(0, str(Path(__file__).parent.parent))

from core import (
    read_mapping, collect_images, process_files, aggregate,
    save_archive, save_list, sort_results, filter_duplicates,
    FileSession, MappingTable, ProcessOptions, RenameStatus, SortKey,
    RenamerError,
)


def clear_screen():
    """Clear screen"""
    os.system('cls' if os.name == 'nt' else 'clear')


def print_header(title: str):
    """Print header"""
    print()
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)
    print()


def input_path(prompt: str, want_dir: bool = False) -> Optional[Path]:
    """Input and validate a file or directory path"""
    while True:
        path_str = input(f"{prompt} (q to return): ").strip().strip('"')
        if path_str.lower() == 'q':
            return None

        path = Path(path_str).expanduser().resolve()
        if want_dir and path.is_dir():
            return path
        if not want_dir and path.exists():
            return path
        print(f"Error: Path does not exist: {path}")


def input_choice(prompt: str, choices: List[str], default: Optional[str] = None) -> Optional[str]:
    """Input choice"""
    choices_str = "/".join(choices)
    default_str = f" [{default}]" if default else ""

    while True:
        value = input(f"{prompt} ({choices_str}){default_str}: ").strip()
        if not value and default:
            return default
        if value.lower() == 'q':
            return None
        if value in choices:
            return value
        print(f"Invalid choice, please enter: {choices_str}")


def input_bool(prompt: str, default: bool = False) -> bool:
    """Input boolean value"""
    default_str = "Y/n" if default else "y/N"
    value = input(f"{prompt} ({default_str}): ").strip().lower()
    if not value:
        return default
    return value == 'y'


class InteractiveState:
    """Mapping, files and results of the current interactive session"""

    def __init__(self):
        self.options = ProcessOptions()
        self.mapping: Optional[MappingTable] = None
        self.mapping_path: Optional[Path] = None
        self.session = FileSession()
        self.results = []

    def reset_results(self):
        self.results = []


def menu_load_mapping(state: InteractiveState):
    """Load mapping file menu"""
    print_header("Load Mapping File")

    path = input_path("Mapping file (.txt / .csv)")
    if path is None:
        return

    try:
        state.mapping = read_mapping(path, encoding=state.options.mapping_encoding)
    except RenamerError as e:
        print(f"Error: {e}")
        input("Press Enter to return...")
        return

    state.mapping_path = path
    state.reset_results()
    print(f"\nLoaded {state.mapping.row_count} rows ({len(state.mapping)} lookup keys)")
    if state.mapping.skipped_rows:
        print(f"Warning: {state.mapping.skipped_rows} rows skipped (missing ID or article number)")
    input("Press Enter to return...")


def menu_add_images(state: InteractiveState):
    """Add images menu"""
    print_header("Add Images")

    path = input_path("Image file or directory")
    if path is None:
        return

    collected = collect_images([path], state.options, already_selected=len(state.session))
    state.session.add(collected.files)
    state.reset_results()

    print(f"\nAdded {len(collected.files)} files, {len(state.session)} selected in total")
    for msg in collected.rejected[:10]:
        print(f"  Skipped: {msg}")
    if len(collected.rejected) > 10:
        print(f"  ... and {len(collected.rejected) - 10} more skipped")
    input("Press Enter to return...")


def menu_process(state: InteractiveState):
    """Process and show results menu"""
    print_header("Rename Results")

    if state.mapping is None or not len(state.session):
        print("Please load a mapping file and add images first")
        input("Press Enter to return...")
        return

    print("Processing...")
    state.results = process_files(state.session.files, state.mapping, max_workers=state.options.max_workers)
    report = aggregate(state.results)

    print("\nSort by:")
    print("  1. time     2. status     3. original name")
    print("  4. new name 5. duplicates")
    sort_choice = input_choice("Select sorting method", ["1", "2", "3", "4", "5"], "1")
    if sort_choice is None:
        return
    sort_map = {
        "1": SortKey.TIMESTAMP, "2": SortKey.STATUS, "3": SortKey.OLD_NAME,
        "4": SortKey.NEW_NAME, "5": SortKey.DUPLICATE,
    }

    shown = state.results
    if report.duplicate_names and input_bool("Show duplicates only", default=False):
        shown = filter_duplicates(shown, report)
    shown = sort_results(shown, sort_map[sort_choice], report=report)

    print("-" * 70)
    for i, r in enumerate(shown[:30], 1):
        target = r.new_name if r.is_success else r.message
        dup = report.duplicate_count(r)
        dup_str = f" [{dup}x]" if dup > 1 else ""
        print(f"  {i:>4}. {r.old_name:<30} -> {target}{dup_str}")
    if len(shown) > 30:
        print(f"  ... and {len(shown) - 30} more results")
    print("-" * 70)
    print(report.summary())

    input("\nPress Enter to return...")


def menu_export(state: InteractiveState):
    """Export menu"""
    print_header("Export")

    if not state.results:
        print("Nothing processed yet")
        input("Press Enter to return...")
        return

    out_dir = input_path("Output directory", want_dir=True)
    if out_dir is None:
        return

    report = aggregate(state.results)
    print("\n  1. Archive of renamed files")
    print("  2. List of successful files")
    print("  3. List of files without match")
    print("  4. List of non-image files")
    print("  5. List of errors")
    choice = input_choice("Select export", ["1", "2", "3", "4", "5"])
    if choice is None:
        return

    try:
        if choice == "1":
            path, plan = save_archive(
                state.results, out_dir,
                label=state.options.archive_label,
                policy=state.options.conflict_policy,
            )
            print(f"\nArchive written: {path} ({plan.total_count} files)")
            if plan.conflict_count > 0:
                print(f"Note: {plan.conflict_count} duplicate names stored with _1, _2... suffix")
        else:
            status = {
                "2": RenameStatus.SUCCESS, "3": RenameStatus.NO_MATCH,
                "4": RenameStatus.INVALID_FORMAT, "5": RenameStatus.ERROR,
            }[choice]
            if report.count(status) == 0:
                print(f"\nNo entries with status: {status.label}")
            else:
                path = save_list(state.results, status, out_dir)
                print(f"\nList written: {path}")
    except RenamerError as e:
        print(f"\nError: {e}")

    input("\nPress Enter to return...")


def interactive_mode() -> int:
    """Interactive mode main loop"""
    state = InteractiveState()
    try:
        while True:
            clear_screen()
            print_header("Image Batch Renamer")

            mapping_info = str(state.mapping_path) if state.mapping_path else "(none)"
            print(f"Mapping: {mapping_info}")
            print(f"Images:  {len(state.session)}")
            print()
            print("Please select function:")
            print()
            print("  1. Load mapping file")
            print("  2. Add images")
            print("  3. Process and show results")
            print("  4. Export")
            print("  5. Clear image selection")
            print()
            print("  q. Exit")
            print()

            choice = input("Please select (1/2/3/4/5/q): ").strip().lower()

            if choice == 'q':
                print("Goodbye!")
                return 0
            elif choice == '1':
                menu_load_mapping(state)
            elif choice == '2':
                menu_add_images(state)
            elif choice == '3':
                menu_process(state)
            elif choice == '4':
                menu_export(state)
            elif choice == '5':
                state.session.clear()
                state.reset_results()
            else:
                print("Invalid choice")
                input("Press Enter to continue...")
    finally:
        state.session.close()


if __name__ == "__main__":
    sys.exit(interactive_mode())
