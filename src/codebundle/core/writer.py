# src/codebundle/core/writer.py
import logging
from pathlib import Path
from typing import List, Optional

from codebundle.config import BUNDLES_DIRNAME
from codebundle.core.instructions import generate_instructions, instructions_filename
from codebundle.errors import BundleIOError
from codebundle.models import BundleResult, Project
from codebundle.utils.sizes import format_file_size

logger = logging.getLogger(__name__)


def bundles_dir(project: Project) -> Path:
    return project.project_path / BUNDLES_DIRNAME


def _write_text(path: Path, content: str) -> None:
    try:
        # newline="" keeps file content byte-faithful on every platform
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
    except OSError as e:
        raise BundleIOError(path, e) from e


def save_bundles(project: Project, result: BundleResult, instructions: Optional[str] = None) -> List[Path]:
    """
    Writes every bundle, then the instructions document, into <root>/bundles.
    Returns the written paths in that order. Files written before a failure
    are left in place.
    """
    out_dir = bundles_dir(project)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BundleIOError(out_dir, e) from e

    saved: List[Path] = []
    for bundle in result.bundles:
        bundle_path = out_dir / bundle.filename
        _write_text(bundle_path, bundle.content)
        saved.append(bundle_path)
        logger.info(
            "Saved bundle: %s (%s, %d files)",
            bundle.filename,
            format_file_size(bundle.size),
            bundle.file_count,
        )

    if instructions is None:
        instructions = generate_instructions(result, project)
    instructions_path = out_dir / instructions_filename(project)
    _write_text(instructions_path, instructions)
    saved.append(instructions_path)
    logger.info("Saved instructions: %s", instructions_path.name)

    return saved
