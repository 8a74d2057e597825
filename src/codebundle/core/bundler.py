# src/codebundle/core/bundler.py
import logging
import math
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence

import pathspec

from codebundle.config import BundleConfig
from codebundle.core.classifier import FileClassifier
from codebundle.core.formatter import BundleInfo, format_bundle, format_entry
from codebundle.core.ignore import load_ignore_spec
from codebundle.core.scanner import list_project_files
from codebundle.errors import ConfigError, EmptyProjectError, EmptySelectionError
from codebundle.models import Bundle, BundleResult, FileRecord, Project

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def bundle_filename(project: Project, number: int) -> str:
    return f"{project.name}-bundle-{number}.md"


def custom_bundle_filename(project: Project) -> str:
    return f"{project.name}-custom-bundle.md"


class Bundler:
    """
    Packages a project's manifest into one or more bundle documents.

    Each instance holds a single configuration snapshot and no other state,
    so separate instances can bundle different projects concurrently.
    """

    def __init__(self, config: Optional[BundleConfig] = None, clock: Optional[Clock] = None):
        self.config = config or BundleConfig()
        self.clock = clock or _utc_now

    # --- Manifest ---

    def ignore_spec_for(self, project: Project) -> pathspec.PathSpec:
        return load_ignore_spec(project.project_path, self.config.ignore_patterns)

    def get_project_files(self, project: Project) -> List[FileRecord]:
        """Discovers the project's eligible files, sorted by original path."""
        return list_project_files(project.project_path, self.config, self.ignore_spec_for(project))

    def _manifest(self, project: Project, files: Optional[Sequence[FileRecord]]) -> List[FileRecord]:
        manifest = list(files) if files is not None else self.get_project_files(project)
        if not manifest:
            raise EmptyProjectError(f"No files found in project '{project.name}'")
        return manifest

    # --- Shared core ---

    def _build_bundle(self, filename: str, info: BundleInfo, records: Iterable[FileRecord]) -> Bundle:
        classifier = FileClassifier(self.config)
        entries = []
        for record in records:
            content = classifier.read_content(record.full_path)
            if content is None:
                continue
            entries.append(format_entry(record.original_path, content))

        content = format_bundle(info, entries)
        size = len(content.encode("utf-8"))

        if size > self.config.max_bundle_size:
            logger.warning(
                "Bundle %d size (%.1fMB) exceeds recommended limit of %.1fMB",
                info.bundle_number,
                size / 1024 / 1024,
                self.config.max_bundle_size / 1024 / 1024,
            )

        return Bundle(filename=filename, content=content, size=size, file_count=len(entries))

    @staticmethod
    def _result(bundles: List[Bundle], records: Sequence[FileRecord]) -> BundleResult:
        return BundleResult(
            bundles=tuple(bundles),
            total_files=len(records),
            total_size=sum(r.size for r in records),
        )

    # --- Strategies ---

    def create_single_bundle(self, project: Project, files: Optional[Sequence[FileRecord]] = None) -> BundleResult:
        """Packs every eligible file into one bundle."""
        logger.info("Creating single bundle for project: %s", project.name)
        manifest = self._manifest(project, files)

        info = BundleInfo(
            project_name=project.name,
            total_files=len(manifest),
            bundle_number=1,
            total_bundles=1,
            created=self.clock(),
            description=f"Complete project bundle containing all {len(manifest)} files",
        )
        bundle = self._build_bundle(bundle_filename(project, 1), info, manifest)
        return self._result([bundle], manifest)

    def create_multiple_bundles(
        self,
        project: Project,
        max_files_per_bundle: Optional[int] = None,
        files: Optional[Sequence[FileRecord]] = None,
    ) -> BundleResult:
        """Splits the manifest into consecutive chunks of at most max_files_per_bundle files."""
        per_bundle = max_files_per_bundle if max_files_per_bundle is not None else self.config.max_files_per_bundle
        if isinstance(per_bundle, bool) or not isinstance(per_bundle, int) or per_bundle <= 0:
            raise ConfigError(f"max_files_per_bundle must be a positive integer, got {per_bundle!r}")

        logger.info("Creating multiple bundles for project: %s (max %d files per bundle)", project.name, per_bundle)
        manifest = self._manifest(project, files)

        total = len(manifest)
        total_bundles = math.ceil(total / per_bundle)
        created = self.clock()
        bundles = []

        for i in range(total_bundles):
            start = i * per_bundle
            end = min(start + per_bundle, total)
            info = BundleInfo(
                project_name=project.name,
                total_files=total,
                bundle_number=i + 1,
                total_bundles=total_bundles,
                created=created,
                description=f"Bundle {i + 1} containing files {start + 1}-{end} of {total}",
            )
            bundles.append(self._build_bundle(bundle_filename(project, i + 1), info, manifest[start:end]))

        return self._result(bundles, manifest)

    def create_custom_bundle(
        self,
        project: Project,
        selected: Iterable[str],
        files: Optional[Sequence[FileRecord]] = None,
    ) -> BundleResult:
        """
        Bundles only the files named in `selected`, each given either as an
        original path or as a flattened name. Manifest order is preserved.
        """
        wanted = set(selected)
        logger.info("Creating custom bundle for project: %s with %d selected files", project.name, len(wanted))

        manifest = list(files) if files is not None else self.get_project_files(project)
        chosen = [r for r in manifest if r.original_path in wanted or r.flattened_name in wanted]
        if not chosen:
            raise EmptySelectionError("No valid files selected")

        info = BundleInfo(
            project_name=project.name,
            total_files=len(chosen),
            bundle_number=1,
            total_bundles=1,
            created=self.clock(),
            description=f"Custom bundle with {len(chosen)} selected files",
        )
        bundle = self._build_bundle(custom_bundle_filename(project), info, chosen)
        return self._result([bundle], chosen)
