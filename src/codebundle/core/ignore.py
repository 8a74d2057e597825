# src/codebundle/core/ignore.py
import logging
from pathlib import Path
from typing import Iterable, List, Optional

import pathspec

from codebundle.config import DEFAULT_IGNORE_PATTERNS, IGNORE_FILENAME
from codebundle.errors import ConfigError

logger = logging.getLogger(__name__)


def read_ignore_file(ignore_file: Path) -> List[str]:
    """Returns the raw pattern lines of a .bundleignore file, or [] if absent."""
    if not ignore_file.is_file():
        return []
    try:
        with open(ignore_file, "r", encoding="utf-8") as f:
            return f.read().splitlines()
    except OSError as e:
        logger.warning("Could not read %s: %s", ignore_file.name, e)
        return []


def load_ignore_spec(root_dir: Path, extra_patterns: Optional[Iterable[str]] = None) -> pathspec.PathSpec:
    """
    Builds the PathSpec used to skip files during discovery.
    Combines the built-in defaults, the project's .bundleignore and any
    patterns supplied by the caller (e.g. from BundleConfig.ignore_patterns).
    """
    lines = list(DEFAULT_IGNORE_PATTERNS)

    project_lines = read_ignore_file(root_dir / IGNORE_FILENAME)
    if project_lines:
        logger.debug("Loaded %d lines from %s", len(project_lines), IGNORE_FILENAME)
        lines.extend(project_lines)

    if extra_patterns:
        lines.extend(extra_patterns)

    try:
        return pathspec.GitIgnoreSpec.from_lines(lines)
    except Exception as e:
        raise ConfigError(f"Error parsing ignore rules: {e}") from e


def is_ignored(spec: Optional[pathspec.PathSpec], *candidates: str) -> bool:
    """True if any of the candidate paths matches the spec."""
    if spec is None:
        return False
    return any(spec.match_file(c) for c in candidates)
