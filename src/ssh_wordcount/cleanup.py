"""
Cleanup tool for word count shards, intermediate files and results.
Removes the files under Sx/, UMx/, Keys/ and RMx/ and the result file.
"""

import os
import argparse
from pathlib import Path
from typing import List, Optional, Tuple

from ssh_wordcount.config import DEFAULT_RESULT_FILE
from ssh_wordcount.coordinator.pipeline import WORK_DIRS


def cleanup_directory(directory: Path, dry_run: bool = False) -> Tuple[int, int]:
    """
    Remove all regular files from a directory.

    Args:
        directory: Path to the directory to clean
        dry_run: If True, only show what would be deleted without actually deleting

    Returns:
        tuple: (files_deleted, bytes_freed)
    """
    if not directory.exists():
        return 0, 0

    files_deleted = 0
    bytes_freed = 0

    for item in sorted(directory.iterdir()):
        if not item.is_file():
            continue
        file_size = item.stat().st_size
        if dry_run:
            print(f"    Would delete: {item.name} ({file_size} bytes)")
        else:
            try:
                item.unlink()
            except OSError as e:
                print(f"    Error deleting {item.name}: {e}")
                continue
        files_deleted += 1
        bytes_freed += file_size

    return files_deleted, bytes_freed


def format_size(size_bytes: float) -> str:
    """Format bytes into human-readable size."""
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.2f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.2f} TB"


def main(argv: Optional[List[str]] = None) -> int:
    """Main cleanup function."""
    parser = argparse.ArgumentParser(
        prog='ssh-wordcount-clean',
        description="Clean up word count shards, intermediate files and results",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                    # Clean the current directory
  %(prog)s --work-dir /data   # Clean another work directory
  %(prog)s --keep-result      # Keep the final result file
  %(prog)s --dry-run          # Show what would be deleted without deleting
        """
    )
    parser.add_argument(
        '--work-dir', '-w',
        default=os.environ.get("WORDCOUNT_WORK_DIR", os.getcwd()),
        help='Directory holding Sx/ UMx/ Keys/ RMx/ (default: $WORDCOUNT_WORK_DIR or cwd)'
    )
    parser.add_argument(
        '--keep-result', '-k',
        action='store_true',
        help='Do not delete the result file'
    )
    parser.add_argument(
        '--dry-run', '-n',
        action='store_true',
        help='Show what would be deleted without actually deleting'
    )
    args = parser.parse_args(argv)

    work_dir = Path(args.work_dir)
    if args.dry_run:
        print("DRY RUN MODE - No files will be deleted")

    total_files = 0
    total_bytes = 0
    for name in WORK_DIRS:
        directory = work_dir / name
        print(f"Cleaning: {directory}")
        files, bytes_freed = cleanup_directory(directory, dry_run=args.dry_run)
        total_files += files
        total_bytes += bytes_freed

    if not args.keep_result:
        result = work_dir / os.environ.get("WORDCOUNT_RESULT_FILE", DEFAULT_RESULT_FILE)
        if result.is_file():
            size = result.stat().st_size
            if args.dry_run:
                print(f"    Would delete: {result.name} ({size} bytes)")
            else:
                result.unlink()
            total_files += 1
            total_bytes += size

    if args.dry_run:
        print(f"DRY RUN: Would delete {total_files} files ({format_size(total_bytes)})")
    else:
        print(f"Cleanup complete: {total_files} files deleted ({format_size(total_bytes)})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
