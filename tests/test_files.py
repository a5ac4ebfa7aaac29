from __future__ import annotations

from devloop.repository.files import (
    apply_change_set,
    is_ignored,
    list_project_files,
    load_ignore_patterns,
    normalize_change_set,
    read_file_contents,
)


def touch(path, content="x"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_listing_honours_default_and_gitignore_rules(tmp_path):
    touch(tmp_path / ".gitignore", "# comment\n*.log\n/secret.txt\ntmp/\n!keep.log\n")
    for rel in [
        "README.md",
        "src/app.py",
        "nested/secret.txt",
        "secret.txt",
        "debug.log",
        "src/trace.log",
        "tmp/scratch.txt",
        "node_modules/pkg/index.js",
        "build/out.js",
        ".env",
        ".github/workflows/ci.yml",
    ]:
        touch(tmp_path / rel)

    assert list_project_files(tmp_path) == ["README.md", "nested/secret.txt", "src/app.py"]


def test_negated_and_comment_lines_are_skipped(tmp_path):
    touch(tmp_path / ".gitignore", "# comment\n\n!important.log\n*.tmp\n")

    assert load_ignore_patterns(tmp_path) == ["*.tmp"]


def test_directory_pattern_only_matches_directories():
    assert is_ignored("logs", True, ["logs/"])
    assert not is_ignored("logs", False, ["logs/"])
    assert is_ignored("a/b/cache.tmp", False, ["*.tmp"])
    assert is_ignored(".hidden", False, [])


def test_apply_creates_parent_directories(tmp_path):
    report = apply_change_set(tmp_path, {"a/b/c.txt": "deep", "top.txt": "top"})

    assert report.all_written
    assert report.written == ["a/b/c.txt", "top.txt"]
    assert (tmp_path / "a" / "b" / "c.txt").read_text(encoding="utf-8") == "deep"


def test_apply_refuses_paths_outside_the_root(tmp_path):
    root = tmp_path / "repo"
    root.mkdir()

    report = apply_change_set(root, {"../outside.txt": "x", "inside.txt": "y"})

    assert report.written == ["inside.txt"]
    assert report.failed[0].error == "path escapes the repository root"
    assert not (tmp_path / "outside.txt").exists()


def test_apply_continues_after_a_failed_write(tmp_path):
    touch(tmp_path / "blocker", "file, not a directory")

    report = apply_change_set(tmp_path, {"blocker/child.txt": "x", "ok.txt": "y"})

    assert [failure.path for failure in report.failed] == ["blocker/child.txt"]
    assert report.written == ["ok.txt"]


def test_unreadable_file_yields_placeholder(tmp_path):
    content = read_file_contents(tmp_path, "missing.txt")

    assert content.startswith("Error: Could not read file.")


def test_unencodable_content_fails_only_that_entry(tmp_path):
    report = apply_change_set(tmp_path, {"bad.txt": "\ud800", "ok.txt": "y"})

    assert [failure.path for failure in report.failed] == ["bad.txt"]
    assert report.written == ["ok.txt"]
    assert (tmp_path / "ok.txt").read_text(encoding="utf-8") == "y"


def test_null_byte_in_path_fails_only_that_entry(tmp_path):
    report = apply_change_set(tmp_path, {"a\x00b.txt": "x", "ok.txt": "y"})

    assert [failure.path for failure in report.failed] == ["a\x00b.txt"]
    assert (tmp_path / "ok.txt").read_text(encoding="utf-8") == "y"


def test_change_set_keys_are_normalised_to_catalog_form():
    normalized = normalize_change_set(
        {"./app.txt": "a", "src//lib.py": "b", "docs\\readme.md": "c", "../out.txt": "d"}
    )

    assert normalized == {
        "app.txt": "a",
        "src/lib.py": "b",
        "docs/readme.md": "c",
        "../out.txt": "d",
    }
