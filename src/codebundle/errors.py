# src/codebundle/errors.py
from pathlib import Path
from typing import Union


class BundleError(Exception):
    """Base class for failures that abort a bundling operation."""


class ConfigError(BundleError):
    """Raised when bundle settings are invalid."""


class EmptyProjectError(BundleError):
    """Raised when a project has no files eligible for bundling."""


class EmptySelectionError(BundleError):
    """Raised when a custom selection matches none of the project's files."""


class BundleIOError(BundleError):
    """Wraps an OSError raised while reading a project or writing bundles."""

    def __init__(self, path: Union[str, Path], cause: OSError):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"{self.path}: {cause}")
