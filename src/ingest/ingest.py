# ingest.py
# collect-files – Ingest subsystem: walk a project tree into an ordered file list

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .ignore import Ruleset, RuleScope, should_ignore


logger = logging.getLogger(__name__)


# ============================================================
# Exceptions
# ============================================================

class IngestError(Exception):
    pass


# ============================================================
# Output Format
# ============================================================

@dataclass(frozen=True)
class FileDescriptor:
    """A file selected for the document: root-relative path plus real location."""
    relative_path: str
    location: Path


@dataclass(frozen=True)
class PreambleCandidate:
    """A SYSTEM.txt file found during the preamble search."""
    location: Path
    relative_path: str

    @property
    def depth(self) -> int:
        return len(self.relative_path.split("/"))


# ============================================================
# Configuration
# ============================================================

PREAMBLE_FILENAME = "SYSTEM.txt"


# ============================================================
# Recursive Walk
# ============================================================

def _relative(path: Path, root: Path) -> str:
    return path.relative_to(root).as_posix()


def display_path(path: str) -> str:
    """
    Printable form of a path.

    Names that are not valid UTF-8 arrive from os.scandir with surrogate
    escapes, which cannot be written to a UTF-8 document; the offending
    bytes become U+FFFD.
    """
    return os.fsencode(path).decode("utf-8", "replace")


def _walk(
    current: Path,
    root: Path,
    ruleset: Ruleset,
    scope: RuleScope,
    accept_file: Callable[[os.DirEntry, str], bool],
    found: List[Tuple[str, Path]],
) -> None:
    """
    Depth-first descent shared by the file scan and the preamble search.

    Directories rejected by the ignore engine are never listed, so a large
    ignored tree (node_modules, .git) costs a single check.
    """
    if current != root and should_ignore(_relative(current, root), True, ruleset, scope):
        return

    try:
        with os.scandir(current) as it:
            entries = list(it)
    except PermissionError:
        logger.warning("Permission denied scanning directory: %s. Skipping.", current)
        return
    except OSError as e:
        logger.warning("Error reading directory %s: %s. Skipping.", current, e)
        return

    for entry in entries:
        entry_path = current / entry.name
        rel_path = _relative(entry_path, root)

        try:
            # Symlinks are neither followed nor collected
            is_dir = entry.is_dir(follow_symlinks=False)
            is_file = not is_dir and entry.is_file(follow_symlinks=False)
        except OSError as e:
            logger.warning("Cannot stat %s: %s. Skipping.", entry_path, e)
            continue

        if is_dir:
            if not should_ignore(rel_path, True, ruleset, scope):
                _walk(entry_path, root, ruleset, scope, accept_file, found)
        elif is_file and accept_file(entry, rel_path):
            found.append((rel_path, entry_path))


def _resolve_root(root: str | Path) -> Path:
    root = Path(root).resolve()
    if not root.exists():
        raise IngestError(f"Path does not exist: {root}")
    if not root.is_dir():
        raise IngestError(f"Not a directory: {root}")
    return root


# ============================================================
# Project File Scan
# ============================================================

def scan_project_files(root: str | Path, ruleset: Ruleset) -> List[FileDescriptor]:
    """
    Collect every file under root that passes the ignore rules.

    Args:
        root: Directory to scan (never subject to the ignore check itself)
        ruleset: Ignore/include rules for this run

    Returns:
        FileDescriptors sorted by ordinal comparison of their relative paths
    """
    root = _resolve_root(root)
    found: List[Tuple[str, Path]] = []

    def accept(entry: os.DirEntry, rel_path: str) -> bool:
        return not should_ignore(rel_path, False, ruleset, RuleScope.CONTENT)

    _walk(root, root, ruleset, RuleScope.CONTENT, accept, found)

    descriptors = [FileDescriptor(relative_path=display_path(rel), location=loc) for rel, loc in found]

    # Plain str ordering is code point order: "A.txt" < "a/c.txt" < "b.txt"
    descriptors.sort(key=lambda d: d.relative_path)
    return descriptors


# ============================================================
# Preamble Search
# ============================================================

def find_preamble(root: str | Path, ruleset: Ruleset) -> Optional[PreambleCandidate]:
    """
    Find the SYSTEM.txt closest to the scan root.

    Uses the reduced PREAMBLE rule scope so the file is still found when the
    main ruleset is narrow (e.g. an include_extensions whitelist without "txt").
    Ties on depth are broken by ordinal path comparison.
    """
    root = _resolve_root(root)
    found: List[Tuple[str, Path]] = []

    def accept(entry: os.DirEntry, rel_path: str) -> bool:
        return entry.name == PREAMBLE_FILENAME

    _walk(root, root, ruleset, RuleScope.PREAMBLE, accept, found)

    if not found:
        return None

    candidates = sorted(
        (PreambleCandidate(location=loc, relative_path=rel) for rel, loc in found),
        key=lambda c: (c.depth, c.relative_path),
    )
    selected = candidates[0]
    logger.info(
        "Found %d %s file(s). Selected: %s",
        len(candidates), PREAMBLE_FILENAME, selected.relative_path,
    )
    return selected


def load_preamble(candidate: PreambleCandidate) -> Optional[str]:
    """Read the selected preamble; None (with a warning) if it cannot be read."""
    try:
        return candidate.location.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read %s %s: %s", PREAMBLE_FILENAME, candidate.location, e)
        return None
