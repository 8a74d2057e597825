# src/codebundle/core/classifier.py
import logging
import os
import stat
from pathlib import Path
from typing import Optional, Union

import pathspec

from codebundle.config import (
    BINARY_EXTENSIONS,
    DEFAULT_LANGUAGE,
    LANGUAGE_MAP,
    BundleConfig,
)
from codebundle.core.ignore import is_ignored
from codebundle.core.pathcodec import recover_original_path

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def get_language(path: PathLike) -> str:
    """Maps a file extension to the fence tag used in bundles."""
    return LANGUAGE_MAP.get(Path(path).suffix.lower(), DEFAULT_LANGUAGE)


class FileClassifier:
    """Decides which project files are eligible for bundling."""

    def __init__(self, config: BundleConfig, ignore_spec: Optional[pathspec.PathSpec] = None):
        self.config = config
        self.ignore_spec = ignore_spec

    def should_include(self, path: PathLike, st: os.stat_result) -> bool:
        """
        Applies the exclusion rules in order; the first match wins.
        Only logs, never touches the file itself.
        """
        path = Path(path)

        if stat.S_ISDIR(st.st_mode):
            return False

        if st.st_size > self.config.max_file_size_for_bundle:
            logger.warning("Skipping large file: %s (%dKB)", path, round(st.st_size / 1024))
            return False

        if st.st_size == 0 and not self.config.include_empty_files:
            return False

        if path.suffix.lower() in BINARY_EXTENSIONS:
            logger.debug("Skipping binary file: %s", path)
            return False

        original = recover_original_path(path.name, self.config.path_encoding)
        if is_ignored(self.ignore_spec, original, path.name):
            logger.debug("Skipping ignored file: %s", path)
            return False

        return True

    def read_content(self, path: PathLike) -> Optional[str]:
        """
        Reads a file as UTF-8 text, replacing undecodable bytes.
        Returns None (and logs) when the file is unreadable or contains a null byte.
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            logger.warning("File not found: %s", path)
            return None
        except OSError as e:
            logger.warning("Error reading file %s: %s", path, e)
            return None

        if b"\0" in data:
            logger.debug("Skipping binary file detected by content: %s", path)
            return None

        # Invalid UTF-8 sequences become U+FFFD; the file is still bundled
        return data.decode("utf-8", errors="replace")
