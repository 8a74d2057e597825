# src/codebundle/core/scanner.py
import logging
import os
from pathlib import Path
from typing import Iterator, List, Optional

import pathspec

from codebundle.config import BundleConfig
from codebundle.core.classifier import FileClassifier
from codebundle.core.pathcodec import recover_original_path
from codebundle.errors import BundleIOError
from codebundle.models import FileRecord

logger = logging.getLogger(__name__)


class ProjectScanner:
    """
    Enumerates the direct entries of a flattened project directory.
    Subdirectories (including the bundles/ output folder) are never entered.
    """

    def __init__(self, root_dir: Path, config: BundleConfig, ignore_spec: Optional[pathspec.PathSpec] = None):
        self.root_dir = Path(root_dir)
        self.config = config
        self.classifier = FileClassifier(config, ignore_spec)

    def _list_entries(self) -> List[str]:
        try:
            return os.listdir(self.root_dir)
        except OSError as e:
            logger.error("Error reading project directory: %s", e)
            raise BundleIOError(self.root_dir, e) from e

    def scan(self) -> Iterator[FileRecord]:
        """Yields a FileRecord for every entry the classifier accepts, in directory order."""
        for entry in self._list_entries():
            full_path = self.root_dir / entry
            try:
                st = full_path.stat()
            except OSError as e:
                logger.debug("Error processing file %s: %s", entry, e)
                continue

            if not self.classifier.should_include(full_path, st):
                continue

            yield FileRecord(
                flattened_name=entry,
                original_path=recover_original_path(entry, self.config.path_encoding),
                full_path=full_path,
                size=st.st_size,
            )


def list_project_files(
    root_dir: Path,
    config: BundleConfig,
    ignore_spec: Optional[pathspec.PathSpec] = None,
) -> List[FileRecord]:
    """Returns the project manifest sorted by original path (case-sensitive)."""
    scanner = ProjectScanner(root_dir, config, ignore_spec)
    # flattened_name breaks ties when two entries recover to the same path
    return sorted(scanner.scan(), key=lambda r: (r.original_path, r.flattened_name))
