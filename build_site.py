#!/usr/bin/env python3
"""
Command line entry point for the content build pipeline.

With no arguments it builds the current directory (or $CONTENT_ROOT)
into <root>/.build/dist. This replaces the old build script rule of
using the parent of the script's own directory as the content root, so
the installed console script works from any checkout.
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from build_errors import BuildError
from content_build_pipeline import ContentBuildPipeline
from pipeline_configs import DEFAULT_OUTPUT_SUBDIR, PipelineConfig


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Stage content folders into a deployable, indexed output tree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  build_site.py                         # Build the current directory
  build_site.py ~/blog                  # Build a specific content root
  build_site.py --compression brotli    # Write .br artifacts next to every file
  build_site.py --timestamps --report /tmp/build.json
        """
    )

    parser.add_argument('root', nargs='?', default=None,
                        help='Content root (default: $CONTENT_ROOT, else the current directory; '
                             'not the parent of the script directory as the old build script used)')
    parser.add_argument('-o', '--output', default=None,
                        help='Output root (default: <root>/.build/dist)')
    parser.add_argument('--compression', default=None,
                        choices=['none', 'brotli', 'gzip', 'zstd', 'lz4'],
                        help='Compression applied after writing (default: none)')
    parser.add_argument('--level', type=int, default=None,
                        help='Compression level (default: algorithm maximum)')
    parser.add_argument('--timestamps', action='store_true', default=None,
                        help='Add dateCreatedISO/dateLastEditedISO to manifests')
    parser.add_argument('--no-sort', dest='sort_units', action='store_false', default=None,
                        help='Keep directory listing order instead of sorting by folder name')
    parser.add_argument('--report', default=None,
                        help='Write per-stage metrics as JSON to this path')
    parser.add_argument('--progress', action='store_true',
                        help='Show a progress bar over units')

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('-v', '--verbose', action='store_true',
                           help='Log every file operation')
    verbosity.add_argument('-q', '--quiet', action='store_true',
                           help='Only log warnings and errors')

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> PipelineConfig:
    """Environment first, explicit flags on top"""
    config = PipelineConfig.from_env()
    overrides = {}

    if args.root is not None:
        overrides['source_root'] = Path(args.root)
        if args.output is None and config.output_root == config.source_root / DEFAULT_OUTPUT_SUBDIR:
            overrides['output_root'] = None
    if args.output is not None:
        overrides['output_root'] = Path(args.output)
    if args.compression is not None:
        overrides['compression'] = args.compression
    if args.level is not None:
        overrides['compression_level'] = args.level
    if args.timestamps is not None:
        overrides['include_timestamps'] = args.timestamps
    if args.sort_units is not None:
        overrides['sort_units'] = args.sort_units
    if args.report is not None:
        overrides['report_path'] = Path(args.report)
    if args.progress:
        overrides['show_progress'] = True

    return replace(config, **overrides) if overrides else config


def configure_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    configure_logging(args)

    try:
        config = build_config(args)
        pipeline = ContentBuildPipeline(config)
        result = pipeline.run()
    except BuildError as e:
        print(f"Build failed: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130

    print(f"Built {result.unit_count} units into {result.output_root}")
    if result.compression.files_compressed:
        print(f"Compressed {result.compression.files_compressed} files "
              f"({result.compression.bytes_in:,} -> {result.compression.bytes_out:,} bytes)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
