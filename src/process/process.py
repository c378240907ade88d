# process.py
# collect-files – Process subsystem: render each selected file as a Markdown section

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from ingest.ignore import Ruleset, file_extension
from ingest.ingest import FileDescriptor


logger = logging.getLogger(__name__)


# ============================================================
# Exceptions
# ============================================================

class ProcessError(Exception):
    """Raised for invalid processing arguments; per-file failures never raise."""
    pass


# ============================================================
# Output Format
# ============================================================

class ProcessStatus(Enum):
    OK = "ok"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class Section:
    """One rendered document section."""
    relative_path: str
    rendered_text: str


@dataclass(frozen=True)
class ProcessResult:
    """Tagged result for one file: the section plus why it was degraded, if it was."""
    status: ProcessStatus
    section: Section
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is ProcessStatus.OK


# ============================================================
# Configuration
# ============================================================

MAX_CONTENT_LENGTH = 200_000
TRUNCATION_MARKER = "\n\n... [Content truncated due to length] ..."
FENCE = "```"
ESCAPED_FENCE = "\\`\\`\\`"
DEFAULT_LANGUAGE = "text"

# Files with these extensions are never read
BINARY_EXTENSIONS = frozenset({
    # Executables & compiled objects
    "exe", "dll", "so", "dylib", "o", "a", "lib", "bundle", "obj", "pdb",
    "class", "pyc", "pyo", "beam", "cmo", "cmi", "cmx",
    # Archives & packages
    "zip", "tar", "gz", "rar", "7z", "jar", "war", "nupkg", "pkg", "dmg",
    # Images
    "png", "jpg", "jpeg", "gif", "bmp", "tiff", "webp", "ico",
    # Audio & video
    "mp3", "wav", "ogg", "mp4", "mov", "avi",
    # Documents, fonts, data
    "pdf", "woff", "woff2", "ttf", "otf", "eot", "sqlite", "db", "dat",
})

BINARY_SNIFF_SIZE = 8192


# ============================================================
# Helpers
# ============================================================

def path_to_anchor(file_path: str) -> str:
    """
    Derive a Markdown anchor from a relative path.

    "Src/My File.JS" -> "src-my-file-js"
    """
    anchor = file_path.lower().replace("\\", "/")
    anchor = re.sub(r"[^a-z0-9/\-]", "-", anchor)
    anchor = re.sub(r"/+", "-", anchor)
    anchor = re.sub(r"-+", "-", anchor)
    return anchor.strip("-")


def is_binary_extension(ext: str) -> bool:
    return ext in BINARY_EXTENSIONS


def looks_binary(data: bytes, sample_size: int = BINARY_SNIFF_SIZE) -> bool:
    """Null byte in the leading sample is a strong binary indicator."""
    return b"\x00" in data[:sample_size]


def read_metadata_file(location: Path, metadata_suffix: str) -> Optional[str]:
    """
    Read the sidecar "<file><suffix>" next to a file.

    Returns the trimmed content, or None when absent, unreadable or empty.
    """
    if not metadata_suffix:
        return None

    # Building the sidecar name can fail too: a suffix with a separator
    # raises ValueError, a long base name ENAMETOOLONG on stat
    try:
        sidecar = location.with_name(location.name + metadata_suffix)
        if not sidecar.is_file():
            return None
        content = sidecar.read_text(encoding="utf-8").strip()
    except (OSError, ValueError, UnicodeDecodeError):
        return None

    return content or None


def escape_fences(text: str) -> str:
    """Keep literal ``` from closing the surrounding code block."""
    return text.replace(FENCE, ESCAPED_FENCE)


def truncate_content(text: str, limit: int = MAX_CONTENT_LENGTH) -> str:
    """Hard cut at limit characters, followed by a visible marker."""
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def section_heading(relative_path: str) -> str:
    return f'<a id="{path_to_anchor(relative_path)}"></a>\n\n## {relative_path}\n\n'


# ============================================================
# Section Rendering
# ============================================================

def _degraded(relative_path: str, body: str, reason: str) -> ProcessResult:
    text = section_heading(relative_path) + body
    return ProcessResult(
        status=ProcessStatus.DEGRADED,
        section=Section(relative_path=relative_path, rendered_text=text),
        reason=reason,
    )


def render_section(relative_path: str, content: str, metadata: Optional[str] = None) -> str:
    """
    Render a text file as a Markdown section.

    Args:
        relative_path: Path shown in the heading
        content: Decoded file text
        metadata: Optional sidecar text, shown before the content

    Returns:
        Section text ending with a blank line
    """
    ext = file_extension(relative_path)
    lang = ext or DEFAULT_LANGUAGE

    parts = [section_heading(relative_path)]
    if metadata:
        parts.append(f"**Associated Metadata:**\n{FENCE}text\n{metadata}\n{FENCE}\n\n")

    body = truncate_content(escape_fences(content))
    parts.append(f"{FENCE}{lang}\n{body}\n{FENCE}\n\n")
    return "".join(parts)


def process_file(descriptor: FileDescriptor, ruleset: Ruleset) -> ProcessResult:
    """
    Turn one file into a section. Never raises: every failure becomes a
    DEGRADED result with a placeholder body, so the file still shows up in
    the table of contents.
    """
    rel = descriptor.relative_path

    try:
        ext = file_extension(rel)

        if is_binary_extension(ext):
            return _degraded(
                rel,
                f"*Binary file (ext: .{ext}) - content not included*\n\n",
                f"binary extension .{ext}",
            )

        try:
            data = descriptor.location.read_bytes()
        except OSError as e:
            logger.warning("Unable to read %s: %s", rel, e)
            code = e.strerror or type(e).__name__
            return _degraded(
                rel,
                f"*Unable to read file as text (Error: {code}). Likely binary or unsupported encoding.*\n\n",
                f"read error: {code}",
            )

        if looks_binary(data):
            return _degraded(
                rel,
                "*Unable to read file as text (binary content detected).*\n\n",
                "binary content",
            )

        try:
            content = data.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning("Unable to decode %s as UTF-8: %s", rel, e)
            return _degraded(
                rel,
                "*Unable to read file as text (Error: invalid UTF-8). Likely binary or unsupported encoding.*\n\n",
                "invalid UTF-8",
            )

        metadata = read_metadata_file(descriptor.location, ruleset.metadata_suffix)
        text = render_section(rel, content, metadata)
        return ProcessResult(
            status=ProcessStatus.OK,
            section=Section(relative_path=rel, rendered_text=text),
        )

    except Exception as e:
        logger.error("Error processing file %s: %s", rel, e)
        return _degraded(rel, f"**Error during processing: {e}**\n\n", f"processing error: {e}")


def process_files(
    descriptors: List[FileDescriptor],
    ruleset: Ruleset,
    workers: int = 1,
) -> List[ProcessResult]:
    """
    Process files, optionally on a bounded thread pool.

    Results always come back in the order of descriptors, not completion order.
    """
    if workers < 1:
        raise ProcessError(f"workers must be >= 1, got {workers}")

    if workers == 1 or len(descriptors) < 2:
        return [process_file(d, ruleset) for d in descriptors]

    with ThreadPoolExecutor(max_workers=workers) as executor:
        # Executor.map yields in submission order
        return list(executor.map(lambda d: process_file(d, ruleset), descriptors))
