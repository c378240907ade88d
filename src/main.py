#!/usr/bin/env python3
"""
main.py
collect-files – Main orchestrator

Collects the files of a project into a single Markdown document with a table
of contents. Runs all subsystems sequentially: settings → ingest → process → assemble

Usage:
    python main.py [directory]
    python main.py -o context.md ~/projects/myrepo
    python main.py --init

Examples:
    python main.py .
    python main.py --config my.config.json --out docs/all.md src/
"""

import argparse
import logging
import os
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

# Allow running straight from a checkout: python src/main.py
sys.path.insert(0, str(Path(__file__).parent))

from settings import (
    load_config,
    create_config_file,
    output_ignore_entries,
    to_ruleset,
    CollectConfig,
    ConfigError,
    DEFAULT_CONFIG_FILENAME,
    TOOL_VERSION,
)
from ingest import (
    scan_project_files,
    find_preamble,
    load_preamble,
    display_path,
    Ruleset,
    FileDescriptor,
    IngestError,
    PREAMBLE_FILENAME,
)
from process import process_files, ProcessResult
from assemble import (
    assemble_document,
    summarize_results,
    write_document,
    DocumentHeader,
    AssemblySummary,
    AssembleError,
)


# ============================================================
# Run Statistics
# ============================================================

@dataclass
class RunStats:
    """Statistics collected during a run."""
    # Stage timings
    scan_time: float = 0.0
    process_time: float = 0.0
    assemble_time: float = 0.0
    total_time: float = 0.0

    # Stage outputs
    files_found: int = 0
    files_ok: int = 0
    output_bytes: int = 0
    output_path: Optional[str] = None
    preamble_path: Optional[str] = None
    degraded: List[Tuple[str, str]] = field(default_factory=list)

    def print_summary(self):
        """Print a formatted summary of run statistics."""
        print("\n" + "=" * 70)
        print("RUN SUMMARY")
        print("=" * 70)

        print("\nStage Timings:")
        print(f"  Scan:       {self.scan_time:>8.2f}s  ({self.files_found} files)")
        print(f"  Process:    {self.process_time:>8.2f}s  ({self.files_ok} rendered, {len(self.degraded)} placeholders)")
        print(f"  Assemble:   {self.assemble_time:>8.2f}s  ({self.output_bytes/1024:.1f} KB)")
        print(f"  {'─' * 40}")
        print(f"  Total:      {self.total_time:>8.2f}s")

        if self.preamble_path:
            print(f"\nPreamble: {self.preamble_path}")

        if self.degraded:
            print("\nFiles included as placeholders:")
            for path, reason in self.degraded:
                print(f"  - {path}: {reason}")

        print(f"\nOutput: {self.output_path}")
        print("=" * 70)


# ============================================================
# Display
# ============================================================

def display_start_dir(scan_root: Path, cwd: Path) -> str:
    """Scan root as shown in the header: cwd-relative when possible."""
    try:
        rel = os.path.relpath(scan_root, cwd)
    except ValueError:
        return display_path(scan_root.as_posix())
    return display_path(rel.replace("\\", "/")) or "."


# ============================================================
# Pipeline Stages
# ============================================================

def stage_preamble(scan_root: Path, ruleset: Ruleset) -> Tuple[Optional[str], Ruleset, Optional[str]]:
    """
    Stage 1: Locate and read SYSTEM.txt.

    Returns:
        (preamble text or None, ruleset with the preamble path ignored, preamble relative path)
    """
    print("\n" + "=" * 70)
    print("STAGE 1: PREAMBLE")
    print("=" * 70)

    candidate = find_preamble(scan_root, ruleset)
    if candidate is None:
        print(f"\nNo {PREAMBLE_FILENAME} found")
        return None, ruleset, None

    print(f"\nUsing {PREAMBLE_FILENAME} found at: {display_path(str(candidate.location))}")
    text = load_preamble(candidate)
    if text is None:
        print("✗ Preamble unreadable, continuing without it")
        return None, ruleset, None

    return text, ruleset.with_ignored(candidate.relative_path), candidate.relative_path


def stage_scan(scan_root: Path, ruleset: Ruleset) -> Tuple[List[FileDescriptor], float]:
    """
    Stage 2: Walk the project tree.
    """
    print("\n" + "=" * 70)
    print("STAGE 2: SCAN")
    print("=" * 70)

    start_time = time.time()

    print(f"\nStarting scan in: {display_path(str(scan_root))}")
    if ruleset.ignore_names:
        print(f"  Ignoring names/paths: {', '.join(sorted(ruleset.ignore_names))}")
    if ruleset.ignore_extensions:
        print(f"  Ignoring extensions: {', '.join(sorted(ruleset.ignore_extensions))}")
    if ruleset.include_extensions:
        print(f"  Including only extensions: {', '.join(sorted(ruleset.include_extensions))}")
    if ruleset.metadata_suffix:
        print(f"  Metadata suffix: {ruleset.metadata_suffix}")

    descriptors = scan_project_files(scan_root, ruleset)

    elapsed = time.time() - start_time
    print(f"\n✓ Found {len(descriptors)} files matching criteria in {elapsed:.2f}s")

    return descriptors, elapsed


def stage_process(
    descriptors: List[FileDescriptor],
    ruleset: Ruleset,
    workers: int,
) -> Tuple[List[ProcessResult], float]:
    """
    Stage 3: Render each file as a section.
    """
    print("\n" + "=" * 70)
    print("STAGE 3: PROCESS")
    print("=" * 70)

    start_time = time.time()

    print(f"\nProcessing {len(descriptors)} files ({workers} worker{'s' if workers != 1 else ''})...")
    results = process_files(descriptors, ruleset, workers=workers)

    elapsed = time.time() - start_time
    print(f"\n✓ Processed {len(results)} files in {elapsed:.2f}s")

    return results, elapsed


def stage_assemble(
    preamble: Optional[str],
    results: List[ProcessResult],
    header: DocumentHeader,
    output_path: Path,
) -> Tuple[AssemblySummary, int, float]:
    """
    Stage 4: Build the document and write it.
    """
    print("\n" + "=" * 70)
    print("STAGE 4: ASSEMBLE")
    print("=" * 70)

    start_time = time.time()

    document = assemble_document(preamble, [r.section for r in results], header)
    write_document(output_path, document)

    elapsed = time.time() - start_time
    size = len(document.encode("utf-8"))
    print(f"\n✓ Wrote {len(results)} files to {display_path(str(output_path))} ({size/1024:.1f} KB)")

    return summarize_results(results), size, elapsed


# ============================================================
# Main Pipeline
# ============================================================

def run_collect(
    scan_root: str | Path,
    config: CollectConfig,
    workers: int = 1,
    cwd: str | Path | None = None,
    start_dir: Optional[str] = None,
) -> RunStats:
    """
    Collect one directory into the configured output document.

    Args:
        scan_root: Directory to scan
        config: Validated configuration
        workers: Thread count for content processing
        cwd: Base for relative output paths (defaults to the process cwd)
        start_dir: Label shown in the document header (defaults to scan_root relative to cwd)

    Returns:
        RunStats for the run

    Raises:
        IngestError, AssembleError: on fatal failures
    """
    cwd = Path(cwd) if cwd is not None else Path.cwd()
    scan_root = Path(scan_root).resolve()
    output_path = (cwd / config.output).resolve()

    stats = RunStats(output_path=display_path(str(output_path)))
    run_start = time.time()

    ruleset = to_ruleset(config)

    preamble, ruleset, preamble_rel = stage_preamble(scan_root, ruleset)
    stats.preamble_path = display_path(preamble_rel) if preamble_rel else None

    # The document must never contain itself
    ruleset = ruleset.with_ignored(*output_ignore_entries(config.output, scan_root, cwd))

    descriptors, stats.scan_time = stage_scan(scan_root, ruleset)
    stats.files_found = len(descriptors)
    if not descriptors:
        print("No files found to process. Output will only contain the header.")

    results, stats.process_time = stage_process(descriptors, ruleset, workers)

    header = DocumentHeader(
        tool_version=TOOL_VERSION,
        start_dir=start_dir or display_start_dir(scan_root, cwd),
    )
    summary, stats.output_bytes, stats.assemble_time = stage_assemble(
        preamble, results, header, output_path,
    )
    stats.files_ok = summary.ok
    stats.degraded = summary.degraded

    stats.total_time = time.time() - run_start
    return stats


# ============================================================
# CLI Interface
# ============================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="collect-files",
        description="Collects files from a directory and its subdirectories into a single Markdown document.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Configuration file ('{DEFAULT_CONFIG_FILENAME}'):
  "output": "output.md"                 Default output file name
  "ignore": ["node_modules", ".git"]    Directory/file names or relative paths to ignore
  "ignoreExtensions": ["exe", "png"]    File extensions to ignore
  "includeExtensions": ["js", "ts"]     If non-empty, only these extensions are included
  "metadataSuffix": ".meta.txt"         Suffix of sidecar metadata files

Examples:
  %(prog)s
  %(prog)s --init
  %(prog)s -o context.md src/
        """
    )

    parser.add_argument(
        "source",
        nargs="?",
        default=".",
        help="Directory to scan (default: current directory)"
    )
    parser.add_argument(
        "-i", "--init",
        action="store_true",
        help=f"Create '{DEFAULT_CONFIG_FILENAME}' with default settings and exit"
    )
    parser.add_argument(
        "-o", "--out",
        dest="output",
        help="Output Markdown filename (overrides the config file)"
    )
    parser.add_argument(
        "-c", "--config",
        default=DEFAULT_CONFIG_FILENAME,
        help=f"Configuration file to use (default: {DEFAULT_CONFIG_FILENAME})"
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=1,
        help="Threads used to read and render files (default: 1)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {TOOL_VERSION}"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with CLI argument parsing."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.workers < 1:
        parser.error("--workers must be at least 1")

    print("\n" + "╔" + "═" * 68 + "╗")
    print("║" + "COLLECT-FILES".center(68) + "║")
    print("╚" + "═" * 68 + "╝")

    try:
        if args.init:
            create_config_file(args.config)
            return 0

        config = load_config(args.config)
        if args.output:
            config.output = args.output

        stats = run_collect(args.source, config, workers=args.workers)

        stats.print_summary()
        return 0

    except (ConfigError, IngestError, AssembleError) as e:
        print(f"\n✗ Run failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
