# src/codebundle/config.py
import json
import logging
from dataclasses import dataclass, field, fields, replace as dc_replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from codebundle.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILES_PER_BUNDLE = 50
DEFAULT_MAX_FILE_SIZE = 1024 * 1024  # 1MB per file
DEFAULT_MAX_BUNDLE_SIZE = 5 * 1024 * 1024  # 5MB warning threshold

BUNDLE_FORMATS = ("markdown",)
PATH_ENCODINGS = ("legacy", "escaped")

# Project metadata files kept under their literal names
RESERVED_NAMES = ("structure.txt", "metadata.json")

BUNDLES_DIRNAME = "bundles"
IGNORE_FILENAME = ".bundleignore"

BINARY_EXTENSIONS = frozenset([
    ".exe", ".dll", ".so", ".dylib", ".bin", ".img", ".iso",
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".ico", ".svg",
    ".mp3", ".mp4", ".avi", ".mkv", ".mov", ".wav", ".ogg",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".zip", ".rar", ".7z", ".tar", ".gz", ".bz2",
])

LANGUAGE_MAP = {
    ".js": "javascript",
    ".jsx": "jsx",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".py": "python",
    ".php": "php",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".scss": "scss",
    ".sass": "sass",
    ".json": "json",
    ".xml": "xml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".md": "markdown",
    ".txt": "text",
    ".sh": "bash",
    ".sql": "sql",
    ".java": "java",
    ".c": "c",
    ".cpp": "cpp",
    ".h": "c",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
    ".swift": "swift",
    ".kt": "kotlin",
    ".dart": "dart",
    ".r": "r",
    ".m": "matlab",
    ".pl": "perl",
    ".scala": "scala",
}
DEFAULT_LANGUAGE = "text"

DEFAULT_IGNORE_PATTERNS = [
    "# Default ignore patterns",
    ".DS_Store",
    "*.log",
    "*.pyc",
    IGNORE_FILENAME,
]

# camelCase keys used by existing JSON config files
_CAMEL_KEYS = {
    "maxFilesPerBundle": "max_files_per_bundle",
    "bundleFormat": "bundle_format",
    "includeEmptyFiles": "include_empty_files",
    "maxFileSizeForBundle": "max_file_size_for_bundle",
    "maxBundleSize": "max_bundle_size",
    "ignorePatterns": "ignore_patterns",
    "pathEncoding": "path_encoding",
}


def _check_positive_int(name: str, value: Any) -> None:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class BundleConfig:
    """Immutable bundling parameters for one bundling operation."""
    max_files_per_bundle: int = DEFAULT_MAX_FILES_PER_BUNDLE
    bundle_format: str = "markdown"
    include_empty_files: bool = False
    max_file_size_for_bundle: int = DEFAULT_MAX_FILE_SIZE
    max_bundle_size: int = DEFAULT_MAX_BUNDLE_SIZE
    ignore_patterns: Tuple[str, ...] = field(default_factory=tuple)
    path_encoding: str = "legacy"

    def __post_init__(self):
        _check_positive_int("max_files_per_bundle", self.max_files_per_bundle)
        _check_positive_int("max_file_size_for_bundle", self.max_file_size_for_bundle)
        _check_positive_int("max_bundle_size", self.max_bundle_size)
        if self.bundle_format not in BUNDLE_FORMATS:
            raise ConfigError(f"Unsupported bundle format: {self.bundle_format!r}")
        if self.path_encoding not in PATH_ENCODINGS:
            raise ConfigError(f"Unsupported path encoding: {self.path_encoding!r}")
        if not isinstance(self.include_empty_files, bool):
            raise ConfigError("include_empty_files must be a boolean")
        if isinstance(self.ignore_patterns, str):
            raise ConfigError("ignore_patterns must be a list of patterns, not a string")
        # Normalise lists coming from JSON into a hashable tuple
        object.__setattr__(self, "ignore_patterns", tuple(self.ignore_patterns))

    def replace(self, **changes) -> "BundleConfig":
        """Returns a validated copy with the given fields changed."""
        return dc_replace(self, **changes)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BundleConfig":
        """
        Builds a config from a mapping with snake_case or camelCase keys.
        Missing keys keep their defaults; unknown keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_KEYS.get(key, key)
            if name not in known:
                logger.debug("Ignoring unknown bundle config key: %s", key)
                continue
            kwargs[name] = value
        return cls(**kwargs)


def load_bundle_config(path: Optional[Path]) -> BundleConfig:
    """
    Loads bundle settings from a JSON file.
    Accepts either a flat object or one nested under a "bundle" key.
    A missing file yields the defaults.
    """
    if path is None or not path.exists():
        return BundleConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Could not read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    section = data.get("bundle", data)
    if not isinstance(section, dict):
        raise ConfigError(f"'bundle' section in {path} must be a JSON object")

    return BundleConfig.from_mapping(section)
