"""
Process subsystem for collect-files.

Purpose: Convert each selected file into a rendered Markdown section.

Responsibilities:
- Skip known binary extensions without reading them
- Decode text, attach sidecar metadata, escape code fences, truncate
- Report every file as a tagged result (OK or DEGRADED with a reason)

Non-responsibilities:
- No file selection
- No ordering or table of contents
"""

from .process import (
    process_file,
    process_files,
    render_section,
    read_metadata_file,
    path_to_anchor,
    Section,
    ProcessResult,
    ProcessStatus,
    ProcessError,
    BINARY_EXTENSIONS,
    MAX_CONTENT_LENGTH,
    TRUNCATION_MARKER,
)

__all__ = [
    "process_file",
    "process_files",
    "render_section",
    "read_metadata_file",
    "path_to_anchor",
    "Section",
    "ProcessResult",
    "ProcessStatus",
    "ProcessError",
    "BINARY_EXTENSIONS",
    "MAX_CONTENT_LENGTH",
    "TRUNCATION_MARKER",
]
