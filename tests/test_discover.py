"""File discovery — extension filter, directory pruning, ordering."""

from __future__ import annotations

from pathlib import Path

import pytest

from evidency_monitor.core.discover import find_files


def _touch(root: Path, rel: str) -> Path:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text("<?php\n", encoding="utf-8")
    return p


class TestFindFiles:
    def test_finds_php_recursively_sorted(self, tmp_path):
        _touch(tmp_path, "b.php")
        _touch(tmp_path, "a/z.php")
        _touch(tmp_path, "a/readme.md")

        found = find_files(tmp_path)

        assert [p.relative_to(tmp_path).as_posix() for p in found] == ["a/z.php", "b.php"]
        assert all(p.is_absolute() for p in found)

    def test_default_excludes_pruned_at_any_depth(self, tmp_path):
        _touch(tmp_path, "index.php")
        _touch(tmp_path, "vendor/lib/x.php")
        _touch(tmp_path, "src/node_modules/y.php")
        _touch(tmp_path, "tests/t.php")
        _touch(tmp_path, ".git/hooks/h.php")

        found = find_files(tmp_path)

        assert [p.name for p in found] == ["index.php"]

    def test_custom_excludes_and_extensions(self, tmp_path):
        _touch(tmp_path, "cache/c.php")
        _touch(tmp_path, "lib/l.inc")
        _touch(tmp_path, "vendor/v.php")

        found = find_files(tmp_path, exclude_dir_names=["cache"], extensions=[".inc", "php"])

        assert sorted(p.name for p in found) == ["l.inc", "v.php"]

    def test_extension_match_is_case_insensitive(self, tmp_path):
        _touch(tmp_path, "UPPER.PHP")
        assert [p.name for p in find_files(tmp_path)] == ["UPPER.PHP"]

    def test_empty_directory(self, tmp_path):
        assert find_files(tmp_path) == []

    def test_not_a_directory(self, tmp_path):
        with pytest.raises(NotADirectoryError):
            find_files(tmp_path / "missing")
