# assemble.py
# collect-files – Assemble subsystem: order sections into the final Markdown document

import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from process.process import ProcessResult, Section, path_to_anchor


# ============================================================
# Exceptions
# ============================================================

class AssembleError(Exception):
    """Error writing the assembled document."""
    pass


# ============================================================
# Configuration
# ============================================================

DOCUMENT_TITLE = "Project Files"
PREAMBLE_PREFIX = "SYSTEM: "


@dataclass
class DocumentHeader:
    """Generation metadata shown under the document title."""
    tool_version: str = "0.0.0"
    start_dir: str = "."
    generated_at: datetime = field(default_factory=datetime.now)


# ============================================================
# Output Format
# ============================================================

@dataclass
class AssemblySummary:
    """Counts of rendered vs degraded files for the run report."""
    total: int = 0
    ok: int = 0
    degraded: List[Tuple[str, str]] = field(default_factory=list)  # (path, reason)

    @property
    def degraded_count(self) -> int:
        return len(self.degraded)


# ============================================================
# Document Parts
# ============================================================

def format_preamble(preamble_text: Optional[str]) -> str:
    if not preamble_text or not preamble_text.strip():
        return ""
    return f"{PREAMBLE_PREFIX}{preamble_text.strip()}\n\n"


def format_header(header: DocumentHeader) -> str:
    generated = header.generated_at.strftime("%Y-%m-%d %H:%M:%S")
    return (
        f"# {DOCUMENT_TITLE}\n\n"
        f"*Generated on: {generated}*\n\n"
        f"*Tool Version: {header.tool_version}*\n\n"
        f"*Starting directory: {header.start_dir}*\n\n"
    )


def format_table_of_contents(sections: Sequence[Section]) -> str:
    lines = ["## Table of Contents\n"]
    for section in sections:
        lines.append(f"- [{section.relative_path}](#{path_to_anchor(section.relative_path)})")
    return "\n".join(lines) + "\n\n"


# ============================================================
# Assembly
# ============================================================

def assemble_document(
    preamble_text: Optional[str],
    sections: Sequence[Section],
    header: Optional[DocumentHeader] = None,
) -> str:
    """
    Build the final document.

    Order is fixed: preamble, header, table of contents, then the section
    bodies in the order given (the walker's sorted order).

    Args:
        preamble_text: Raw SYSTEM.txt content, or None
        sections: Rendered sections, already ordered
        header: Generation metadata (defaults if not provided)

    Returns:
        The complete Markdown text
    """
    if header is None:
        header = DocumentHeader()

    return "".join([
        format_preamble(preamble_text),
        format_header(header),
        format_table_of_contents(sections),
        "".join(section.rendered_text for section in sections),
    ])


def summarize_results(results: Sequence[ProcessResult]) -> AssemblySummary:
    summary = AssemblySummary(total=len(results))
    for result in results:
        if result.ok:
            summary.ok += 1
        else:
            summary.degraded.append((result.section.relative_path, result.reason or "unknown"))
    return summary


# ============================================================
# File Writing
# ============================================================

def write_document(path: str | Path, text: str) -> Path:
    """
    Write the assembled document. This is the only write of a run; failure
    is fatal and surfaces as AssembleError.

    The text goes to a temporary file beside the target, which is then
    renamed over it, so a failed write never leaves a partial document and
    never clobbers the previous one.
    """
    path = Path(path)
    tmp_name = None
    try:
        data = text.encode("utf-8")
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except (OSError, UnicodeError) as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise AssembleError(f"Failed to write output {path}: {e}")
    return path
