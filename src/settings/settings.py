# settings.py
# collect-files – Settings subsystem: load, validate and template the JSON config

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from ingest.ignore import Ruleset, normalize_path


# ============================================================
# Exceptions
# ============================================================

class ConfigError(Exception):
    """Invalid configuration value; the run cannot continue."""
    pass


# ============================================================
# Configuration
# ============================================================

TOOL_VERSION = "1.0.0"
DEFAULT_CONFIG_FILENAME = "collect-files.config.json"


@dataclass
class CollectConfig:
    """Validated run configuration."""
    output: str = "output.md"
    ignore: List[str] = field(default_factory=lambda: ["node_modules", ".git"])
    ignore_extensions: List[str] = field(default_factory=list)
    include_extensions: List[str] = field(default_factory=list)
    metadata_suffix: str = ".meta.txt"

    def to_json(self) -> Dict[str, Any]:
        return {
            "output": self.output,
            "ignore": list(self.ignore),
            "ignoreExtensions": list(self.ignore_extensions),
            "includeExtensions": list(self.include_extensions),
            "metadataSuffix": self.metadata_suffix,
        }


# JSON key -> (attribute, expected kind)
CONFIG_KEYS = {
    "output": ("output", str),
    "ignore": ("ignore", list),
    "ignoreExtensions": ("ignore_extensions", list),
    "includeExtensions": ("include_extensions", list),
    "metadataSuffix": ("metadata_suffix", str),
}


# Template written by --init
UNIVERSAL_INIT_CONFIG = CollectConfig(
    output="output.md",
    ignore=[
        # Version control & editors
        ".git", ".svn", ".hg",
        ".vscode", ".idea", ".vs", ".fleet",
        ".DS_Store", "Thumbs.db", "desktop.ini",
        # Dependencies
        "node_modules", "bower_components", "vendor",
        # Build output
        "target", "build", "dist", "out", "bin", "obj", "wwwroot",
        "elm-stuff", "_build", "zig-cache", "zig-out",
        ".next", ".nuxt", ".svelte-kit", ".angular",
        # Test & coverage reports
        "coverage", "lcov-report", ".nyc_output", "JacocoReport", "TestResults",
        # Environments
        ".env", "__pycache__", ".venv", "venv", "env", ".tox", ".nox", ".eggs",
        ".gradle", "tmp", "_esy",
        # Specific files
        "npm-debug.log", "yarn-debug.log", "yarn-error.log",
        DEFAULT_CONFIG_FILENAME,
    ],
    ignore_extensions=[
        # Executables & libraries
        "exe", "dll", "so", "dylib", "o", "a", "lib", "bundle",
        "pdb", "idb", "exp", "pch", "class", "pyc", "pyo", "map",
        # Archives & packages
        "zip", "tar", "gz", "bz2", "xz", "rar", "7z",
        "jar", "war", "ear", "nupkg", "gem", "pkg", "deb", "rpm", "msi", "dmg",
        # Images
        "png", "jpg", "jpeg", "gif", "bmp", "tiff", "tif", "webp", "ico",
        # Audio & video
        "mp3", "wav", "aac", "ogg", "oga", "flac",
        "mp4", "mkv", "mov", "avi", "webm", "flv",
        # Documents
        "pdf", "doc", "docx", "odt", "xls", "xlsx", "ods", "ppt", "pptx", "odp",
        # Data & databases
        "csv", "mdb", "accdb", "db", "sqlite", "sqlite3", "sqlitedb", "sdf", "mdf", "ldf",
        # Fonts
        "woff", "woff2", "ttf", "otf", "eot",
        # IDE user settings
        "suo", "user", "dotsettings",
        # Compiled language artifacts
        "cmo", "cmi", "cmx", "cma", "cmxa", "cmxs", "beam",
        # LaTeX auxiliary, backups, swap files
        "aux", "lof", "log", "lot", "fls", "toc",
        "bak", "swp", "swo", "tmp",
    ],
    include_extensions=[],
    metadata_suffix=".meta.txt",
)


# ============================================================
# Validation
# ============================================================

def _check_string_list(key: str, value: list) -> List[str]:
    for item in value:
        if not isinstance(item, str):
            raise ConfigError(f"'{key}' must be a list of strings, found {item!r}")
    return list(value)


def config_from_dict(data: Dict[str, Any]) -> CollectConfig:
    """
    Merge a parsed JSON object over the defaults.

    Present keys replace the default outright (lists are not concatenated).
    Unknown keys are ignored.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a JSON object, got {type(data).__name__}")

    config = CollectConfig()
    for key, (attr, kind) in CONFIG_KEYS.items():
        if key not in data:
            continue
        value = data[key]
        if not isinstance(value, kind):
            raise ConfigError(f"'{key}' must be a {kind.__name__}, got {type(value).__name__}")
        if kind is list:
            value = _check_string_list(key, value)
        setattr(config, attr, value)

    if not config.output.strip():
        raise ConfigError("'output' must not be empty")

    return config


# ============================================================
# Loading & Writing
# ============================================================

def load_config(config_path: str | Path) -> CollectConfig:
    """
    Load the configuration file, falling back to defaults.

    A missing file or malformed JSON yields the defaults (with a notice);
    a well-formed file with a wrong value type raises ConfigError.
    """
    path = Path(config_path).resolve()

    if not path.exists():
        print(f"No config file at '{path}'. Using default configuration.")
        return CollectConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"⚠ Failed to load or parse config '{config_path}': {e}. Using default configuration.")
        return CollectConfig()

    print(f"Using config file: {path}")
    return config_from_dict(data)


def create_config_file(config_path: str | Path, template: CollectConfig = UNIVERSAL_INIT_CONFIG) -> bool:
    """
    Write a config template for --init.

    Returns:
        True if the file was created, False if it already existed
    """
    path = Path(config_path).resolve()
    if path.exists():
        print(f"⚠ Config file '{path}' already exists. No changes made.")
        return False

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(template.to_json(), f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise ConfigError(f"Error creating config file '{path}': {e}")

    print(f"✓ Created config file: {path}")
    return True


# ============================================================
# Ruleset Conversion
# ============================================================

def output_ignore_entries(
    output: str,
    scan_root: str | Path,
    cwd: str | Path | None = None,
) -> List[str]:
    """
    Names under which the output document could show up in a scan: its base
    name, plus its path relative to the scan root when it lies inside it.
    """
    cwd = Path(cwd) if cwd is not None else Path.cwd()
    out_path = (cwd / output).resolve()
    root = Path(scan_root).resolve()
    entries = [out_path.name]

    rel = normalize_path(os.path.relpath(out_path, root))
    if not rel.startswith("../") and rel != out_path.name:
        entries.append(rel)
    return entries


def to_ruleset(config: CollectConfig) -> Ruleset:
    return Ruleset.build(
        ignore=config.ignore,
        ignore_extensions=config.ignore_extensions,
        include_extensions=config.include_extensions,
        metadata_suffix=config.metadata_suffix,
    )
