# src/codebundle/core/formatter.py
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from codebundle.core.classifier import get_language

BUNDLE_START = "# CODE_BUNDLE_START"
BUNDLE_END = "# CODE_BUNDLE_END"
FILE_MARKER = "### FILE:"
SEPARATOR = "---"


@dataclass(frozen=True)
class BundleInfo:
    """Metadata rendered into a bundle header."""
    project_name: str
    total_files: int
    bundle_number: int
    total_bundles: int
    created: datetime
    description: Optional[str] = None


def format_timestamp(created: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. 2024-05-01T12:00:00.000Z."""
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    utc = created.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_header(info: BundleInfo) -> str:
    lines = [
        BUNDLE_START,
        f"## Project: {info.project_name}",
        f"## Created: {format_timestamp(info.created)}",
        f"## Total Files: {info.total_files}",
        f"## Bundle: {info.bundle_number} of {info.total_bundles}",
    ]
    if info.description:
        lines.append(f"## Description: {info.description}")
    lines.extend(["", SEPARATOR, "", ""])
    return "\n".join(lines)


def format_entry(original_path: str, content: str) -> str:
    """Renders one file as a marker line plus a fenced block tagged by language."""
    language = get_language(original_path)
    return (
        f"{FILE_MARKER} {original_path}\n"
        f"```{language}\n"
        f"{content}\n"
        f"```\n"
        f"\n"
        f"{SEPARATOR}\n"
        f"\n"
    )


def format_footer() -> str:
    return f"\n{BUNDLE_END}\n"


def format_bundle(info: BundleInfo, entries: Iterable[str]) -> str:
    """Assembles header, pre-rendered entries (in order) and footer."""
    return format_header(info) + "".join(entries) + format_footer()
