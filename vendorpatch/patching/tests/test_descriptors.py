"""Unit tests for YAML patch descriptors."""

from pathlib import Path

import pytest

from vendorpatch.patching.descriptors import (
    PatchSelectionError,
    load_descriptor,
    parse_descriptor,
    select_patch,
)
from vendorpatch.patching.exceptions import ConfigError

REPO_DESCRIPTOR = Path(__file__).resolve().parents[3] / "descriptors" / "frida-core.yaml"

SERIES_YAML = r"""
patches:
  - description: 0009-memfd-name-jit-cache
    target_path: lib/base/linux.vala
    matcher: '(Linux\.syscall\s*\(\s*LinuxSyscall\.MEMFD_CREATE\s*,\s*)(\w+)(\s*,\s*flags\s*\))'
    replacement: '\1"jit-cache"\3'
  - description: 0010-rename-agent
    target_path: lib/agent/agent.vala
    matcher: '(const string NAME = )"frida-agent"'
    replacement: '\1"jit-agent"'
    flags: [MULTILINE]
"""

SINGLE_YAML = r"""
description: rename-thread
target_path: src/thread.c
matcher: '(pthread_setname_np\(\w+, )"gum-js-loop"'
replacement: '\1"worker"'
"""


def _write(tmp_path: Path, text: str, name: str = "patches.yaml") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadDescriptor:
    """Tests for load_descriptor."""

    def test_loads_series(self, tmp_path):
        specs = load_descriptor(_write(tmp_path, SERIES_YAML))

        assert [s.description for s in specs] == ["0009-memfd-name-jit-cache", "0010-rename-agent"]
        assert specs[0].replacement == r'\1"jit-cache"\3'
        assert specs[1].flags == ("MULTILINE",)

    def test_loads_single_patch_mapping(self, tmp_path):
        specs = load_descriptor(_write(tmp_path, SINGLE_YAML))

        assert len(specs) == 1
        assert specs[0].target_path == "src/thread.c"

    def test_shipped_descriptor_is_valid(self):
        specs = load_descriptor(REPO_DESCRIPTOR)

        assert specs[0].description == "0009-memfd-name-jit-cache"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            load_descriptor(tmp_path / "absent.yaml")

        assert "absent.yaml" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_yaml_syntax_error(self, tmp_path):
        with pytest.raises(ConfigError):
            load_descriptor(_write(tmp_path, "patches: [\n  - {description: a"))

    def test_invalid_patch_names_entry(self, tmp_path):
        text = SERIES_YAML.replace(r"(const string NAME = )", "(const string NAME = ")

        with pytest.raises(ConfigError, match=r"patches\[1\]"):
            load_descriptor(_write(tmp_path, text))


class TestParseDescriptor:
    """Tests for parse_descriptor shape checks."""

    def test_empty_document(self):
        with pytest.raises(ConfigError, match="empty"):
            parse_descriptor(None, Path("p.yaml"))

    def test_top_level_list_rejected(self):
        with pytest.raises(ConfigError, match="must be a mapping"):
            parse_descriptor([], Path("p.yaml"))

    def test_empty_patch_list_rejected(self):
        with pytest.raises(ConfigError, match="non-empty list"):
            parse_descriptor({"patches": []}, Path("p.yaml"))

    def test_unexpected_top_level_key(self):
        with pytest.raises(ConfigError, match="Unexpected key"):
            parse_descriptor({"patches": [{}], "order": "strict"}, Path("p.yaml"))

    def test_duplicate_descriptions_rejected(self):
        entry = {
            "description": "same",
            "target_path": "a.c",
            "matcher": "(a)",
            "replacement": r"\1b",
        }

        with pytest.raises(ConfigError, match="duplicate patch description"):
            parse_descriptor({"patches": [entry, dict(entry)]}, Path("p.yaml"))


class TestSelectPatch:
    """Tests for select_patch."""

    def test_single_patch_needs_no_name(self, tmp_path):
        specs = load_descriptor(_write(tmp_path, SINGLE_YAML))
        assert select_patch(specs, None, tmp_path).description == "rename-thread"

    def test_selects_by_description(self, tmp_path):
        specs = load_descriptor(_write(tmp_path, SERIES_YAML))
        assert select_patch(specs, "0010-rename-agent", tmp_path).target_path == "lib/agent/agent.vala"

    def test_ambiguous_without_name(self, tmp_path):
        specs = load_descriptor(_write(tmp_path, SERIES_YAML))

        with pytest.raises(PatchSelectionError, match="choose one with --patch"):
            select_patch(specs, None, tmp_path)

    def test_unknown_name(self, tmp_path):
        specs = load_descriptor(_write(tmp_path, SERIES_YAML))

        with pytest.raises(PatchSelectionError, match="no patch named 'missing'"):
            select_patch(specs, "missing", tmp_path)
