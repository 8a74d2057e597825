# src/codebundle/models.py
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple


@dataclass(frozen=True)
class Project:
    """A named project whose files live flattened in one directory."""
    name: str
    root: Path

    @property
    def project_path(self) -> Path:
        return Path(self.root)


@dataclass(frozen=True)
class FileRecord:
    """Immutable data class describing one file eligible for bundling."""
    flattened_name: str
    original_path: str
    full_path: Path
    size: int


@dataclass(frozen=True)
class Bundle:
    filename: str
    content: str
    size: int
    file_count: int


@dataclass(frozen=True)
class BundleResult:
    """
    Outcome of one bundling operation.

    total_files and total_size describe the contributing manifest (every
    classifier-eligible file in scope), not what was serialised. Files that
    turn out to be unreadable still count there; use bundled_files and
    bundled_size for what actually made it into the documents.
    """
    bundles: Tuple[Bundle, ...]
    total_files: int
    total_size: int

    @property
    def bundled_files(self) -> int:
        return sum(b.file_count for b in self.bundles)

    @property
    def bundled_size(self) -> int:
        return sum(b.size for b in self.bundles)
