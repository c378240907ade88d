"""
Ingest subsystem for collect-files.

Purpose: Turn a project directory into an ordered list of files to document.

Responsibilities:
- Decide inclusion/exclusion per entry (names, relative paths, extensions)
- Walk the tree depth-first, pruning ignored directories without listing them
- Locate the SYSTEM.txt preamble closest to the scan root
- Output: List of FileDescriptor {relative_path, location}

Non-responsibilities:
- No reading of file contents (beyond the preamble)
- No rendering
"""

from .ignore import (
    Ruleset,
    RuleScope,
    ALWAYS_SKIPPED_DIRS,
    should_ignore,
    file_extension,
)
from .ingest import (
    scan_project_files,
    find_preamble,
    load_preamble,
    display_path,
    FileDescriptor,
    PreambleCandidate,
    PREAMBLE_FILENAME,
    IngestError,
)

__all__ = [
    "Ruleset",
    "RuleScope",
    "ALWAYS_SKIPPED_DIRS",
    "should_ignore",
    "file_extension",
    "scan_project_files",
    "find_preamble",
    "load_preamble",
    "display_path",
    "FileDescriptor",
    "PreambleCandidate",
    "PREAMBLE_FILENAME",
    "IngestError",
]
