# src/codebundle/core/pathcodec.py
"""
Mapping between hierarchical project paths and the flat filenames they are
stored under.

Two encodings exist:

* ``legacy``: every path separator becomes ``_`` and every ``_`` is read
  back as ``/``. Paths whose segments contain underscores do not survive
  the round trip (``my_module.py`` comes back as ``my/module.py``).
* ``escaped``: ``%`` and ``_`` inside segments are percent-escaped before
  separators are replaced, so recovery is exact for every path.
"""
import re

from codebundle.config import RESERVED_NAMES

SEPARATOR = "/"
FLAT_SEPARATOR = "_"

_ESCAPES = {"%25": "%", "%5F": "_"}
_ESCAPED_TOKEN = re.compile(r"%25|%5F|_", re.IGNORECASE)


def _check_encoding(encoding: str) -> None:
    if encoding not in ("legacy", "escaped"):
        raise ValueError(f"Unknown path encoding: {encoding!r}")


def flatten_path(original_path: str, encoding: str = "legacy") -> str:
    """Converts a project-relative path into its flat on-disk filename."""
    _check_encoding(encoding)
    normalized = original_path.replace("\\", SEPARATOR).strip(SEPARATOR)
    if normalized in RESERVED_NAMES:
        return normalized

    if encoding == "escaped":
        normalized = normalized.replace("%", "%25").replace(FLAT_SEPARATOR, "%5F")
    return normalized.replace(SEPARATOR, FLAT_SEPARATOR)


def recover_original_path(flattened_name: str, encoding: str = "legacy") -> str:
    """Converts a flat on-disk filename back to its original path."""
    _check_encoding(encoding)
    if flattened_name in RESERVED_NAMES:
        return flattened_name

    if encoding == "legacy":
        return flattened_name.replace(FLAT_SEPARATOR, SEPARATOR)

    # Single left-to-right pass so decoded characters are never re-read
    def _decode(match: "re.Match[str]") -> str:
        token = match.group(0)
        if token == FLAT_SEPARATOR:
            return SEPARATOR
        return _ESCAPES[token.upper()]

    return _ESCAPED_TOKEN.sub(_decode, flattened_name)
