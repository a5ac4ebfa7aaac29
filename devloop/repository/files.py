from __future__ import annotations

import fnmatch
import os
import posixpath
from pathlib import Path
from typing import Iterable, List

from devloop.models import ApplyReport, ChangeSet, FileWriteResult
from devloop.utils import log

DEFAULT_IGNORES = ["node_modules/", "dist/", "build/", "public/", "__pycache__/", ".git/"]


def load_ignore_patterns(root: Path) -> List[str]:
    """Read root-level ``.gitignore`` patterns; negations are not supported."""
    path = root / ".gitignore"
    if not path.exists():
        return []

    patterns: List[str] = []
    try:
        raw_lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        log.warning("files", f"could not read {path}: {exc}")
        return []
    for raw in raw_lines:
        line = raw.strip()
        if not line or line.startswith("#") or line.startswith("!"):
            continue
        patterns.append(line)
    return patterns


def is_ignored(rel: str, is_dir: bool, patterns: Iterable[str]) -> bool:
    rel = rel.replace(os.sep, "/")
    parts = rel.split("/")
    if parts[-1].startswith("."):
        return True

    for pattern in patterns:
        pattern = pattern.replace(os.sep, "/")
        if pattern.endswith("/"):
            if not is_dir:
                continue
            pattern = pattern[:-1]
        if pattern.startswith("/"):
            pattern = pattern[1:]
            if rel == pattern or fnmatch.fnmatch(rel, pattern):
                return True
            continue
        if rel == pattern or fnmatch.fnmatch(rel, pattern):
            return True
        if "/" not in pattern and fnmatch.fnmatch(parts[-1], pattern):
            return True
    return False


def list_project_files(root: str | Path) -> List[str]:
    """List files under ``root`` as sorted relative POSIX paths."""
    base = Path(root)
    patterns = DEFAULT_IGNORES + load_ignore_patterns(base)
    files: List[str] = []

    def walk(directory: Path) -> None:
        try:
            entries = sorted(directory.iterdir(), key=lambda entry: entry.name)
        except OSError as exc:
            log.warning("files", f"could not read directory {directory}, skipping: {exc}")
            return
        for entry in entries:
            rel = entry.relative_to(base).as_posix()
            is_dir = entry.is_dir()
            if is_ignored(rel, is_dir, patterns):
                continue
            if is_dir:
                walk(entry)
            else:
                files.append(rel)

    walk(base)
    return files


def read_file_contents(root: str | Path, rel_path: str) -> str:
    full_path = Path(root) / rel_path
    try:
        return full_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        log.error("files", f"error reading file {rel_path}: {exc}")
        return f"Error: Could not read file. {exc}"


def normalize_change_set(change_set: ChangeSet) -> ChangeSet:
    """Rewrite keys into catalog form (``./a.txt`` and ``src//a.py`` become ``a.txt``, ``src/a.py``)."""
    normalized: ChangeSet = {}
    for rel_path, content in change_set.items():
        key = posixpath.normpath(rel_path.replace("\\", "/")) if rel_path else rel_path
        if key in normalized:
            log.warning("apply", f"duplicate entry for {key}; keeping the last one")
        normalized[key] = content
    return normalized


def apply_change_set(root: str | Path, change_set: ChangeSet) -> ApplyReport:
    """Write every entry independently; a failed entry does not stop the rest."""
    base = Path(root).resolve()
    report = ApplyReport()
    for rel_path, content in change_set.items():
        try:
            target = (base / rel_path).resolve()
            if target != base and base not in target.parents:
                message = "path escapes the repository root"
                log.error("apply", f"refusing to write {rel_path}: {message}")
                report.results.append(FileWriteResult(path=rel_path, ok=False, error=message))
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except (OSError, ValueError) as exc:
            log.error("apply", f"failed to write {rel_path!r}: {exc}")
            report.results.append(FileWriteResult(path=rel_path, ok=False, error=str(exc)))
            continue
        log.debug("apply", f"wrote {rel_path} ({len(content)} chars)")
        report.results.append(FileWriteResult(path=rel_path, ok=True))
    return report
