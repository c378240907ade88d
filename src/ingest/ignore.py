# ignore.py
# collect-files – Ingest subsystem: include/exclude decisions for scanned entries

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Iterable


# ============================================================
# Rule Scopes
# ============================================================

class RuleScope(Enum):
    """Which subset of the ignore rules applies to a walk."""
    CONTENT = "content"    # full rules, used by the main file scan
    PREAMBLE = "preamble"  # directory-name pruning only, used by the SYSTEM.txt search


# Infrastructure directories the preamble search never descends into,
# whatever the configured ignore list says.
ALWAYS_SKIPPED_DIRS = frozenset({
    ".git",
    "node_modules",
    "dist",
    "build",
    "out",
    "target",
    ".next",
    ".nuxt",
    ".svelte-kit",
})


# ============================================================
# Ruleset
# ============================================================

def normalize_path(path: str) -> str:
    """Convert any path separators to forward slashes."""
    return path.replace("\\", "/")


def normalize_extension(ext: str) -> str:
    """Lowercase an extension and drop a leading dot (".PNG" -> "png")."""
    ext = ext.strip().lower()
    return ext[1:] if ext.startswith(".") else ext


@dataclass(frozen=True)
class Ruleset:
    """Immutable ignore/include rules for one run."""
    ignore_names: FrozenSet[str] = field(default_factory=frozenset)
    ignore_extensions: FrozenSet[str] = field(default_factory=frozenset)
    include_extensions: FrozenSet[str] = field(default_factory=frozenset)
    metadata_suffix: str = ".meta.txt"

    @classmethod
    def build(
        cls,
        ignore: Iterable[str] = (),
        ignore_extensions: Iterable[str] = (),
        include_extensions: Iterable[str] = (),
        metadata_suffix: str = ".meta.txt",
    ) -> "Ruleset":
        """Build a ruleset from raw configuration lists, normalizing every entry."""
        return cls(
            ignore_names=frozenset(normalize_path(name.strip()) for name in ignore if name.strip()),
            ignore_extensions=frozenset(normalize_extension(e) for e in ignore_extensions),
            include_extensions=frozenset(normalize_extension(e) for e in include_extensions),
            metadata_suffix=metadata_suffix,
        )

    def with_ignored(self, *names: str) -> "Ruleset":
        """Return a copy with extra names/paths added to the ignore list."""
        extra = {normalize_path(n.strip()) for n in names if n and n.strip()}
        if not extra:
            return self
        return replace(self, ignore_names=self.ignore_names | extra)


# ============================================================
# Decision Engine
# ============================================================

def base_name(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1]


def file_extension(path: str) -> str:
    """
    Lowercase extension without the dot.

    Follows the usual "last dot of the base name" rule; a name that only
    starts with a dot (".env") has no extension.
    """
    name = base_name(normalize_path(path))
    idx = name.rfind(".")
    if idx <= 0:
        return ""
    return name[idx + 1:].lower()


def should_ignore(
    relative_path: str,
    is_directory: bool,
    ruleset: Ruleset,
    scope: RuleScope = RuleScope.CONTENT,
) -> bool:
    """
    Decide whether an entry is excluded.

    Args:
        relative_path: Path relative to the scan root (any separator style)
        is_directory: Whether the entry is a directory
        ruleset: Rules for the current run
        scope: CONTENT for the full rule chain, PREAMBLE for the reduced one

    Returns:
        True if the entry must be skipped (and, for directories, not entered)
    """
    path = normalize_path(relative_path)
    name = base_name(path)

    if scope is RuleScope.PREAMBLE:
        if not is_directory:
            return False
        return name in ruleset.ignore_names or name in ALWAYS_SKIPPED_DIRS

    # Names or full relative paths
    if name in ruleset.ignore_names or path in ruleset.ignore_names:
        return True

    # Directories are never filtered by extension
    if is_directory:
        return False

    ext = file_extension(path)
    if ext in ruleset.ignore_extensions:
        return True

    # Whitelist, applied after every exclusion above
    if ruleset.include_extensions and ext not in ruleset.include_extensions:
        return True

    return False
