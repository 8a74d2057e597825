# src/codebundle/cli.py
import argparse
import logging
import os
import sys
from collections import Counter
from pathlib import Path
from typing import List, Optional

from codebundle.config import PATH_ENCODINGS, load_bundle_config
from codebundle.core.bundler import Bundler
from codebundle.core.instructions import generate_instructions
from codebundle.core.writer import save_bundles
from codebundle.errors import BundleError
from codebundle.models import BundleResult, FileRecord, Project
from codebundle.utils.sizes import format_file_size
from codebundle.utils.tokenizer import Tokenizer

logger = logging.getLogger("codebundle")


class ColorFormatter(logging.Formatter):
    COLORS = {
        logging.DEBUG: "\033[36m",  # Cyan
        logging.INFO: "\033[32m",  # Green
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",  # Red
        logging.CRITICAL: "\033[41m",  # Red bg
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.COLORS.get(record.levelno, "")
        message = super().format(record)
        if color:
            message = f"{color}{message}{self.RESET}"
        return message


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    # main() may run more than once per process
    logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(ColorFormatter("%(levelname)s: %(message)s"))
    logger.addHandler(handler)

    if verbose:
        logger.setLevel(logging.DEBUG)
    elif quiet:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.INFO)


def create_arg_parser():
    parser = argparse.ArgumentParser(
        description="Package a flattened project directory into LLM-friendly markdown bundles."
    )
    parser.add_argument("root_dir", type=str, nargs="?", default=os.getcwd(), help="Project directory")
    parser.add_argument("-n", "--name", type=str, default=None, help="Project name (default: directory name)")
    parser.add_argument(
        "-m", "--mode",
        choices=["single", "multiple", "custom"],
        default="single",
        help="Bundling strategy (default: single)",
    )
    parser.add_argument("--max-files", type=int, default=None, help="Maximum files per bundle in multiple mode")
    parser.add_argument(
        "-s", "--select",
        nargs="+",
        default=[],
        help="Files to include in custom mode (original paths or flattened names)",
    )
    parser.add_argument("-c", "--config", type=str, default=None, help="JSON file with bundle settings")
    parser.add_argument("--include-empty", action="store_true", help="Include empty files")
    parser.add_argument("--encoding", choices=PATH_ENCODINGS, default=None, help="Flattened filename encoding")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be bundled without writing")
    parser.add_argument(
        "--tokens",
        action="store_true",
        help="Report estimated tokens per bundle (may download the tiktoken encoding)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only show warnings and errors")
    return parser


def get_default_project_name(root_dir: Path) -> str:
    """Derives a filename-safe project name from the directory name."""
    folder_name = root_dir.name
    if not folder_name:
        folder_name = "project"
    return folder_name.replace(" ", "_")


def print_project_summary(project: Project, files: List[FileRecord]) -> None:
    total_size = sum(f.size for f in files)
    print(f"Project:     {project.name}")
    print(f"Files found: {len(files)}")
    print(f"Total size:  {format_file_size(total_size)}")

    file_types = Counter(Path(f.original_path).suffix.lower() or ".txt" for f in files)
    if file_types:
        print("\n--- File types ---")
        for ext, count in file_types.most_common(10):
            print(f"  {ext}: {count} files")
        if len(file_types) > 10:
            print(f"  ... and {len(file_types) - 10} more types")


def print_bundle_report(result: BundleResult, tokenizer: Optional[Tokenizer] = None) -> None:
    print("\n--- Bundles ---")
    if tokenizer is not None:
        print(f"{'#':<4} | {'Size':<10} | {'Files':<6} | {'Tokens':<10} | {'Filename'}")
    else:
        print(f"{'#':<4} | {'Size':<10} | {'Files':<6} | {'Filename'}")
    print("-" * 70)
    for i, bundle in enumerate(result.bundles):
        row = f"{i + 1:<4} | {format_file_size(bundle.size):<10} | {bundle.file_count:<6} | "
        if tokenizer is not None:
            row += f"{tokenizer.count(bundle.content):<10} | "
        print(row + bundle.filename)
    print("-" * 70)
    print(f"Total files: {result.total_files} ({result.bundled_files} bundled)")
    print(f"Total size:  {format_file_size(result.total_size)} ({format_file_size(result.bundled_size)} bundled)")
    if tokenizer is not None and not tokenizer.exact:
        print("Token counts are estimates (encoding unavailable).")


def main(argv: Optional[List[str]] = None):
    try:
        # 1. Setup
        parser = create_arg_parser()
        args = parser.parse_args(argv)
        if args.max_files is not None and args.mode != "multiple":
            parser.error("--max-files only applies to --mode multiple")
        if args.select and args.mode != "custom":
            parser.error("--select only applies to --mode custom")
        setup_logging(args.verbose, args.quiet)

        root_dir = Path(args.root_dir).resolve()
        if not root_dir.is_dir():
            print(f"Error: Invalid directory '{root_dir}'", file=sys.stderr)
            sys.exit(1)

        project = Project(name=args.name or get_default_project_name(root_dir), root=root_dir)

        # 2. Configuration
        config = load_bundle_config(Path(args.config) if args.config else None)
        overrides = {}
        if args.max_files is not None:
            overrides["max_files_per_bundle"] = args.max_files
        if args.include_empty:
            overrides["include_empty_files"] = True
        if args.encoding:
            overrides["path_encoding"] = args.encoding
        if overrides:
            config = config.replace(**overrides)

        print("--- codebundle ---")
        print(f"Scanning: {root_dir}")
        print(f"Mode:     {args.mode}")

        # 3. Discovery
        bundler = Bundler(config)
        files = bundler.get_project_files(project)
        print_project_summary(project, files)

        # 4. Bundling
        if args.mode == "single":
            result = bundler.create_single_bundle(project, files=files)
        elif args.mode == "multiple":
            result = bundler.create_multiple_bundles(project, files=files)
        else:
            if not args.select:
                parser.error("--select is required in custom mode")
            result = bundler.create_custom_bundle(project, args.select, files=files)

        print_bundle_report(result, Tokenizer() if args.tokens else None)

        if args.dry_run:
            print("\nDry run: nothing written.")
            return

        # 5. Output
        saved = save_bundles(project, result, generate_instructions(result, project))
        print(f"\nSuccess! Bundles written to: {saved[0].parent}")
        for path in saved:
            print(f"  {path.name}")
        if len(result.bundles) > 1:
            print(f"Upload ALL {len(result.bundles)} bundles for complete project context.")

    except BundleError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)


if __name__ == "__main__":
    main()
