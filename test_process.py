#!/usr/bin/env python3
"""
Test the process subsystem: binary handling, metadata sidecars, escaping, truncation.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent / "src"))

from ingest import Ruleset, FileDescriptor
from process import (
    process_file,
    process_files,
    read_metadata_file,
    path_to_anchor,
    ProcessStatus,
    ProcessError,
    MAX_CONTENT_LENGTH,
    TRUNCATION_MARKER,
)


RULES = Ruleset.build(metadata_suffix=".meta.txt")


def descriptor(root: Path, rel: str, content=None) -> FileDescriptor:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    elif content is not None:
        path.write_text(content, encoding="utf-8")
    return FileDescriptor(relative_path=rel, location=path)


# ============================================================
# Text Files
# ============================================================

def test_text_file_renders_fenced_block(tmp_path):
    result = process_file(descriptor(tmp_path, "src/app.py", "print('hi')"), RULES)

    assert result.status is ProcessStatus.OK
    assert result.reason is None
    text = result.section.rendered_text
    assert '<a id="src-app-py"></a>' in text
    assert "## src/app.py\n\n" in text
    assert text.endswith("```py\nprint('hi')\n```\n\n")


def test_language_tag_is_lowercase_extension_or_text(tmp_path):
    upper = process_file(descriptor(tmp_path, "Main.JS", "x"), RULES)
    bare = process_file(descriptor(tmp_path, "Makefile", "all:"), RULES)

    assert "```js\nx\n```" in upper.section.rendered_text
    assert "```text\nall:\n```" in bare.section.rendered_text


def test_triple_backticks_are_escaped(tmp_path):
    content = "Example:\n```python\ncode\n```\n"
    result = process_file(descriptor(tmp_path, "README.md", content), RULES)

    text = result.section.rendered_text
    body = text.split("```md\n", 1)[1]
    assert "\\`\\`\\`python" in body
    # Only the closing fence remains unescaped
    assert body.count("\\`\\`\\`") == 2
    assert body.count("```") == 1


def test_truncation_is_a_hard_cut(tmp_path):
    content = "a" * (MAX_CONTENT_LENGTH + 5)
    result = process_file(descriptor(tmp_path, "big.txt", content), RULES)

    text = result.section.rendered_text
    assert result.ok
    assert "a" * MAX_CONTENT_LENGTH + TRUNCATION_MARKER in text
    assert "a" * (MAX_CONTENT_LENGTH + 1) not in text


def test_content_at_limit_is_not_truncated(tmp_path):
    content = "b" * MAX_CONTENT_LENGTH
    result = process_file(descriptor(tmp_path, "edge.txt", content), RULES)

    assert TRUNCATION_MARKER not in result.section.rendered_text


# ============================================================
# Metadata Sidecars
# ============================================================

def test_metadata_block_precedes_content(tmp_path):
    d = descriptor(tmp_path, "lib/util.py", "pass")
    (tmp_path / "lib" / "util.py.meta.txt").write_text("\n  Helper module.  \n", encoding="utf-8")

    text = process_file(d, RULES).section.rendered_text

    block = "**Associated Metadata:**\n```text\nHelper module.\n```\n\n"
    assert block in text
    assert text.index(block) < text.index("```py\npass")


def test_missing_or_empty_metadata_is_silent(tmp_path):
    d = descriptor(tmp_path, "a.py", "x = 1")
    assert "Associated Metadata" not in process_file(d, RULES).section.rendered_text

    (tmp_path / "a.py.meta.txt").write_text("   \n", encoding="utf-8")
    assert "Associated Metadata" not in process_file(d, RULES).section.rendered_text


def test_undecodable_metadata_is_silent(tmp_path):
    d = descriptor(tmp_path, "a.py", "x = 1")
    (tmp_path / "a.py.meta.txt").write_bytes(b"\xff\xfe\xfa")

    result = process_file(d, RULES)

    assert result.ok
    assert "Associated Metadata" not in result.section.rendered_text


def test_read_metadata_file_respects_suffix(tmp_path):
    d = descriptor(tmp_path, "x.js", "1")
    (tmp_path / "x.js.notes").write_text("note", encoding="utf-8")

    assert read_metadata_file(d.location, ".notes") == "note"
    assert read_metadata_file(d.location, ".meta.txt") is None
    assert read_metadata_file(d.location, "") is None


def test_metadata_lookup_on_long_name_is_silent(tmp_path):
    name = "a" * 250 + ".py"
    try:
        d = descriptor(tmp_path, name, "x = 1")
    except OSError:
        pytest.skip("filesystem rejects long names")

    # "<name>.meta.txt" is past the usual 255-byte name limit
    result = process_file(d, RULES)

    assert result.ok
    assert "```py\nx = 1\n```" in result.section.rendered_text


def test_metadata_suffix_with_separator_is_silent(tmp_path):
    d = descriptor(tmp_path, "a.py", "x = 1")

    result = process_file(d, Ruleset.build(metadata_suffix="/notes"))

    assert result.ok
    assert "Associated Metadata" not in result.section.rendered_text


# ============================================================
# Degraded Files
# ============================================================

def test_binary_extension_is_not_read(tmp_path):
    # The file does not even exist: binary classification never touches disk
    d = FileDescriptor(relative_path="img/Logo.PNG", location=tmp_path / "missing.png")

    result = process_file(d, RULES)

    assert result.status is ProcessStatus.DEGRADED
    assert "*Binary file (ext: .png) - content not included*" in result.section.rendered_text
    assert "## img/Logo.PNG" in result.section.rendered_text


def test_unreadable_file_degrades(tmp_path):
    d = FileDescriptor(relative_path="gone.txt", location=tmp_path / "gone.txt")

    result = process_file(d, RULES)

    assert result.status is ProcessStatus.DEGRADED
    assert "read error" in result.reason
    assert "Unable to read file as text" in result.section.rendered_text


def test_invalid_utf8_degrades(tmp_path):
    result = process_file(descriptor(tmp_path, "latin1.txt", "caf\xe9".encode("latin-1")), RULES)

    assert result.status is ProcessStatus.DEGRADED
    assert result.reason == "invalid UTF-8"


def test_null_bytes_degrade(tmp_path):
    result = process_file(descriptor(tmp_path, "blob.bin", b"\x00\x01\x02data"), RULES)

    assert result.status is ProcessStatus.DEGRADED
    assert result.reason == "binary content"
    assert "```" not in result.section.rendered_text


# ============================================================
# Batch Processing
# ============================================================

@pytest.mark.parametrize("workers", [1, 4])
def test_process_files_keeps_input_order(tmp_path, workers):
    descriptors = [descriptor(tmp_path, f"f{i:02d}.txt", str(i)) for i in range(20)]
    descriptors.insert(5, FileDescriptor(relative_path="broken.txt", location=tmp_path / "nope.txt"))

    results = process_files(descriptors, RULES, workers=workers)

    assert [r.section.relative_path for r in results] == [d.relative_path for d in descriptors]
    assert [r.ok for r in results].count(False) == 1


def test_process_files_rejects_zero_workers(tmp_path):
    with pytest.raises(ProcessError):
        process_files([], RULES, workers=0)


# ============================================================
# Anchors
# ============================================================

@pytest.mark.parametrize("path, anchor", [
    ("Src/My File.JS", "src-my-file-js"),
    ("a.txt", "a-txt"),
    ("docs\\guide\\intro.md", "docs-guide-intro-md"),
    ("--weird__name--", "weird-name"),
    ("a//b", "a-b"),
])
def test_path_to_anchor(path, anchor):
    assert path_to_anchor(path) == anchor
