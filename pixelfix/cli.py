"""Command line interface for pixelfix."""
import argparse
import logging
import sys
import time

from pixelfix.batch import collect_file_paths, process_files_parallel
from pixelfix.types import FixConfig

USAGE = """\
pixelfix "path/to/file.png" - Fix single file
pixelfix "file1.png" "file2.png" - Fix multiple files
pixelfix "path/to/folder" "path/to/folder2" - Fix all PNG files in folder(s) (recursive)
pixelfix -d "path/to/file.png" - Enable debug mode (makes transparent pixels visible)"""


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog='pixelfix',
        description='Fill fully transparent pixels with the color of the nearest opaque edge',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=USAGE,
    )

    parser.add_argument(
        'paths',
        nargs='*',
        help='PNG files or folders to fix in place'
    )

    parser.add_argument(
        '-d', '--debug',
        action='store_true',
        help='Make filled pixels opaque so the fill is visible'
    )

    parser.add_argument(
        '-j', '--workers',
        type=int,
        default=-1,
        help='Number of worker threads (default: one per CPU)'
    )

    parser.add_argument(
        '--max-border-pixels',
        type=int,
        default=None,
        help='Cap on border pixels per image (default: no cap)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Log per-image details'
    )

    return parser


def main(args=None):
    """Main entry point."""
    start_time = time.time()
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    logging.basicConfig(
        level=logging.INFO if parsed_args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if not parsed_args.paths:
        print(USAGE)
        return 0

    print("Collecting files...")
    file_paths = collect_file_paths(parsed_args.paths)
    if not file_paths:
        print(USAGE)
        return 0

    print(f"Found {len(file_paths)} files to process")

    config = FixConfig(
        visualize=parsed_args.debug,
        max_workers=parsed_args.workers,
        max_border_pixels=parsed_args.max_border_pixels,
    )

    stats = process_files_parallel(file_paths, config)

    for path, message in stats.failures:
        print(f"Error processing {path}: {message}", file=sys.stderr)

    print("Complete!")
    stats.print_summary()

    elapsed = time.time() - start_time
    print(f"Done in: {elapsed:.2f}s")

    return 1 if stats.errors > 0 else 0


if __name__ == '__main__':
    sys.exit(main())
