# assemble/__init__.py
# collect-files – Assemble subsystem: preamble, header, table of contents and section bodies

from .assemble import (
    assemble_document,
    summarize_results,
    write_document,
    path_to_anchor,
    DocumentHeader,
    AssemblySummary,
    AssembleError,
)

__all__ = [
    "assemble_document",
    "summarize_results",
    "write_document",
    "path_to_anchor",
    "DocumentHeader",
    "AssemblySummary",
    "AssembleError",
]
