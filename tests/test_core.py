# tests/test_core.py

import stat
import sys
import warnings
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from codebundle.config import BundleConfig
from codebundle.core.classifier import FileClassifier, get_language
from codebundle.core.formatter import (
    BundleInfo,
    format_bundle,
    format_entry,
    format_footer,
    format_header,
    format_timestamp,
)
from codebundle.core.ignore import load_ignore_spec
from codebundle.core.pathcodec import flatten_path, recover_original_path
from codebundle.core.scanner import list_project_files
from codebundle.errors import BundleIOError
from codebundle.utils.sizes import format_file_size
import codebundle.utils.tokenizer as tokenizer_module
from codebundle.utils.tokenizer import Tokenizer, estimate_tokens

FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)


def fake_stat(size, is_dir=False):
    mode = (stat.S_IFDIR | 0o755) if is_dir else (stat.S_IFREG | 0o644)
    return SimpleNamespace(st_mode=mode, st_size=size)


@pytest.fixture
def flat_project(tmp_path):
    """
    A flattened project directory:
    - src_main.py / src_utils.js  -> src/main.py, src/utils.js
    - README.md, structure.txt    -> kept as-is
    - logo.png                    -> blocklisted
    - empty.txt                   -> empty
    - nested/                     -> subdirectory, never entered
    """
    (tmp_path / "src_main.py").write_text("print('main')", encoding="utf-8")
    (tmp_path / "src_utils.js").write_text("export const x = 1;", encoding="utf-8")
    (tmp_path / "README.md").write_text("# Project", encoding="utf-8")
    (tmp_path / "structure.txt").write_text("src/\n", encoding="utf-8")
    (tmp_path / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR")
    (tmp_path / "empty.txt").write_text("", encoding="utf-8")
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "inner.py").write_text("x = 1", encoding="utf-8")
    return tmp_path


# --- Path codec ---

def test_legacy_recovery_replaces_underscores():
    assert recover_original_path("src_components_App.js") == "src/components/App.js"
    assert recover_original_path("README.md") == "README.md"


def test_legacy_recovery_is_lossy_for_underscored_segments():
    # Known limitation of the legacy encoding
    assert recover_original_path("my_module.py") == "my/module.py"


def test_reserved_names_pass_through():
    for name in ("structure.txt", "metadata.json"):
        assert recover_original_path(name) == name
        assert recover_original_path(name, "escaped") == name
        assert flatten_path(name) == name


@pytest.mark.parametrize("path", ["src/app.js", "a/b/c/d.ts", "Makefile", "docs/guide.md"])
def test_legacy_round_trip_without_underscores(path):
    assert recover_original_path(flatten_path(path)) == path


@pytest.mark.parametrize("path", ["src/my_module.py", "100%_done/a_b.txt", "x/%5F/y", "_private/__init__.py"])
def test_escaped_round_trip(path):
    flat = flatten_path(path, "escaped")
    assert "/" not in flat
    assert recover_original_path(flat, "escaped") == path


def test_escaped_flatten_format():
    assert flatten_path("src/my_module.py", "escaped") == "src_my%5Fmodule.py"


def test_flatten_normalises_backslashes():
    assert flatten_path("src\\lib\\util.c") == "src_lib_util.c"


def test_unknown_encoding_rejected():
    with pytest.raises(ValueError):
        recover_original_path("a_b", "base64")


# --- Classifier ---

def test_classifier_exclusion_order(caplog):
    classifier = FileClassifier(BundleConfig(max_file_size_for_bundle=100))

    assert classifier.should_include(Path("dir.js"), fake_stat(10, is_dir=True)) is False
    assert classifier.should_include(Path("big.js"), fake_stat(101)) is False
    assert "Skipping large file" in caplog.text
    assert classifier.should_include(Path("at_limit.js"), fake_stat(100)) is True
    assert classifier.should_include(Path("empty.js"), fake_stat(0)) is False
    assert classifier.should_include(Path("photo.JPG"), fake_stat(10)) is False
    assert classifier.should_include(Path("a.js"), fake_stat(10)) is True


def test_classifier_includes_empty_files_when_configured():
    classifier = FileClassifier(BundleConfig(include_empty_files=True))
    assert classifier.should_include(Path("empty.js"), fake_stat(0)) is True


def test_classifier_is_deterministic():
    classifier = FileClassifier(BundleConfig())
    st = fake_stat(42)
    results = {classifier.should_include(Path("src_a.py"), st) for _ in range(5)}
    assert results == {True}


def test_classifier_ignore_patterns(tmp_path):
    spec = load_ignore_spec(tmp_path, ["src/generated/*", "*.lock"])
    classifier = FileClassifier(BundleConfig(), spec)

    assert classifier.should_include(Path("src_generated_api.ts"), fake_stat(5)) is False
    assert classifier.should_include(Path("yarn.lock"), fake_stat(5)) is False
    assert classifier.should_include(Path("debug.log"), fake_stat(5)) is False
    assert classifier.should_include(Path("src_api.ts"), fake_stat(5)) is True


def test_ignore_spec_builds_without_deprecation_warnings(tmp_path):
    (tmp_path / ".bundleignore").write_text("build/\n!keep.log\n", encoding="utf-8")
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        spec = load_ignore_spec(tmp_path, ["*.lock"])

    assert spec.match_file("app.log")
    assert not spec.match_file("keep.log")
    assert spec.match_file("build/out.js")


def test_read_content_drops_null_bytes(tmp_path):
    blob = tmp_path / "blob.dat"
    blob.write_bytes(b"abc\x00def")
    assert FileClassifier(BundleConfig()).read_content(blob) is None


def test_read_content_missing_file_is_soft_failure(tmp_path, caplog):
    assert FileClassifier(BundleConfig()).read_content(tmp_path / "gone.js") is None
    assert "File not found" in caplog.text


def test_read_content_invalid_utf8_is_kept_with_replacement(tmp_path):
    bad = tmp_path / "latin.txt"
    bad.write_bytes("café".encode("latin-1"))
    assert FileClassifier(BundleConfig()).read_content(bad) == "caf\ufffd"


def test_get_language():
    assert get_language("src/app.js") == "javascript"
    assert get_language("lib/Main.PY") == "python"
    assert get_language("config.yml") == "yaml"
    assert get_language("Makefile") == "text"
    assert get_language("notes.unknown") == "text"


# --- Discovery ---

def test_discovery_filters_and_sorts(flat_project):
    files = list_project_files(flat_project, BundleConfig())
    paths = [f.original_path for f in files]

    assert paths == ["README.md", "src/main.py", "src/utils.js", "structure.txt"]
    main = files[1]
    assert main.flattened_name == "src_main.py"
    assert main.full_path == flat_project / "src_main.py"
    assert main.size == len("print('main')")


def test_discovery_is_case_sensitive(tmp_path):
    (tmp_path / "b.js").write_text("b", encoding="utf-8")
    (tmp_path / "B.js").write_text("B", encoding="utf-8")
    (tmp_path / "a.js").write_text("a", encoding="utf-8")

    paths = [f.original_path for f in list_project_files(tmp_path, BundleConfig())]
    assert paths == ["B.js", "a.js", "b.js"]


def test_discovery_escaped_encoding(tmp_path):
    (tmp_path / "src_my%5Fmodule.py").write_text("x = 1", encoding="utf-8")
    files = list_project_files(tmp_path, BundleConfig(path_encoding="escaped"))
    assert [f.original_path for f in files] == ["src/my_module.py"]


def test_discovery_missing_directory_is_fatal(tmp_path):
    with pytest.raises(BundleIOError) as excinfo:
        list_project_files(tmp_path / "missing", BundleConfig())
    assert excinfo.value.path == tmp_path / "missing"
    assert isinstance(excinfo.value.cause, FileNotFoundError)


def test_discovery_honours_bundleignore(flat_project):
    (flat_project / ".bundleignore").write_text("README.md\nsrc/utils.js\n", encoding="utf-8")
    spec = load_ignore_spec(flat_project)

    paths = [f.original_path for f in list_project_files(flat_project, BundleConfig(), spec)]
    assert paths == ["src/main.py", "structure.txt"]


# --- Formatter ---

def test_format_timestamp():
    assert format_timestamp(FIXED_TIME) == "2024-01-02T03:04:05.678Z"
    naive = datetime(2024, 1, 2, 3, 4, 5)
    assert format_timestamp(naive) == "2024-01-02T03:04:05.000Z"


def test_format_header():
    info = BundleInfo(
        project_name="demo",
        total_files=3,
        bundle_number=2,
        total_bundles=4,
        created=FIXED_TIME,
        description="Bundle 2 containing files 2-2 of 3",
    )
    assert format_header(info) == (
        "# CODE_BUNDLE_START\n"
        "## Project: demo\n"
        "## Created: 2024-01-02T03:04:05.678Z\n"
        "## Total Files: 3\n"
        "## Bundle: 2 of 4\n"
        "## Description: Bundle 2 containing files 2-2 of 3\n"
        "\n"
        "---\n"
        "\n"
    )


def test_format_header_without_description():
    info = BundleInfo("demo", 1, 1, 1, FIXED_TIME)
    assert "Description" not in format_header(info)


def test_format_entry_and_footer():
    assert format_entry("src/app.ts", "let a = 1;") == (
        "### FILE: src/app.ts\n"
        "```typescript\n"
        "let a = 1;\n"
        "```\n"
        "\n"
        "---\n"
        "\n"
    )
    assert format_footer() == "\n# CODE_BUNDLE_END\n"


def test_format_bundle_is_deterministic():
    info = BundleInfo("demo", 2, 1, 1, FIXED_TIME, "desc")
    entries = [format_entry("a.py", "a"), format_entry("b.py", "b")]
    first = format_bundle(info, entries)
    second = format_bundle(info, list(entries))
    assert first == second
    assert first.startswith("# CODE_BUNDLE_START\n")
    assert first.endswith("# CODE_BUNDLE_END\n")
    assert first.index("### FILE: a.py") < first.index("### FILE: b.py")


# --- Utils ---

@pytest.mark.parametrize("size, expected", [
    (0, "0 B"),
    (512, "512 B"),
    (1024, "1 KB"),
    (1536, "1.5 KB"),
    (5 * 1024 * 1024, "5 MB"),
])
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


class FakeEncoding:
    """Stands in for a tiktoken Encoding: one token per whitespace-separated word."""

    def __init__(self):
        self.calls = []

    def encode(self, text, disallowed_special="all"):
        self.calls.append(disallowed_special)
        return text.split()


def test_tokenizer_counts_with_loaded_encoding(monkeypatch):
    encoding = FakeEncoding()
    requested = []

    def fake_get_encoding(name):
        requested.append(name)
        return encoding

    monkeypatch.setattr(tokenizer_module.tiktoken, "get_encoding", fake_get_encoding)
    tokenizer = Tokenizer()

    assert tokenizer.count("print <|endoftext|> here") == 3
    assert tokenizer.count("one two") == 2
    assert tokenizer.exact is True
    # Special-token text in source files must not raise
    assert encoding.calls == [(), ()]
    assert requested == ["cl100k_base"]


def test_tokenizer_falls_back_once_when_encoding_unavailable(monkeypatch, caplog):
    attempts = []

    def unavailable(name):
        attempts.append(name)
        raise RuntimeError("offline")

    monkeypatch.setattr(tokenizer_module.tiktoken, "get_encoding", unavailable)
    tokenizer = Tokenizer()

    assert tokenizer.count("abcdefgh") == estimate_tokens("abcdefgh") == 2
    assert tokenizer.count("abcd") == 1
    assert tokenizer.exact is False
    assert attempts == ["cl100k_base"]
    assert "unavailable" in caplog.text
