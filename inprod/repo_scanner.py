"""Builds a file corpus from a local repository checkout."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from .config import CONFIG_FILENAME, ConfigError, ScannerConfig, load_config
from .corpus import FileCorpus
from .logging import get_logger
from .models import RepoFile

logger = get_logger("scanner")

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
    ".next",
    ".nuxt",
    "dist",
    "build",
    "coverage",
}


@dataclass(frozen=True)
class IgnoreRule:
    """A ``.gitignore`` style pattern. Later rules override earlier ones."""

    pattern: str
    directory_only: bool = False
    rooted: bool = False
    negate: bool = False

    @classmethod
    def parse(cls, line: str) -> Optional["IgnoreRule"]:
        line = line.strip()
        if not line or line.startswith("#"):
            return None
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        pattern = line.strip("/")
        if not pattern:
            return None
        return cls(
            pattern=pattern,
            directory_only=line.endswith("/"),
            rooted=line.startswith("/") or "/" in pattern,
            negate=negate,
        )

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        if self.rooted:
            return fnmatchcase(rel_path, self.pattern)
        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def _load_rules(root: Path, extra_patterns: Sequence[str]) -> List[IgnoreRule]:
    lines: List[str] = []
    gitignore = root / ".gitignore"
    if gitignore.is_file():
        lines.extend(gitignore.read_text(encoding="utf-8", errors="replace").splitlines())
    lines.extend(extra_patterns)
    return [rule for rule in map(IgnoreRule.parse, lines) if rule is not None]


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _iter_files(root: Path, rules: Sequence[IgnoreRule]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept = []
        for name in sorted(dirnames):
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if not _should_ignore(rel_path, True, rules):
                kept.append(name)
        dirnames[:] = kept

        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _should_ignore(rel_path, False, rules):
                continue
            yield current_dir / filename


class RepoScanner:
    """Walks a checkout and materialises a :class:`FileCorpus`.

    Files larger than ``max_file_size`` or not valid UTF-8 are skipped. The
    corpus is capped at ``max_files`` entries, keeping the lowest paths.
    """

    def __init__(self, config: Optional[ScannerConfig] = None) -> None:
        self.config = config

    def scan(self, root: str | Path) -> FileCorpus:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")

        config = self.config or self._load_config(root_path)
        rules = _load_rules(root_path, config.exclude_paths)

        candidates = sorted(
            (path.relative_to(root_path).as_posix(), path) for path in _iter_files(root_path, rules)
        )

        files: List[RepoFile] = []
        skipped = 0
        for rel_path, path in candidates:
            if len(files) >= config.max_files:
                logger.debug("File cap of %d reached; ignoring remaining files", config.max_files)
                break
            record = self._read(rel_path, path, config.max_file_size)
            if record is None:
                skipped += 1
                continue
            files.append(record)

        logger.debug("Scanned %s: %d files kept, %d skipped", root_path, len(files), skipped)
        return FileCorpus(files)

    @staticmethod
    def _load_config(root: Path) -> ScannerConfig:
        try:
            return load_config(root / CONFIG_FILENAME).scanner
        except ConfigError as exc:
            logger.warning("Ignoring invalid %s: %s", CONFIG_FILENAME, exc)
            return ScannerConfig()

    @staticmethod
    def _read(rel_path: str, path: Path, max_file_size: int) -> Optional[RepoFile]:
        try:
            size = path.stat().st_size
        except OSError as exc:
            logger.debug("Skipping %s: %s", rel_path, exc)
            return None
        if size > max_file_size:
            logger.debug("Skipping %s: %d bytes exceeds limit", rel_path, size)
            return None
        try:
            content = path.read_bytes().decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Skipping %s: not UTF-8 text", rel_path)
            return None
        except OSError as exc:
            logger.debug("Skipping %s: %s", rel_path, exc)
            return None
        return RepoFile(path=rel_path, content=content, size=size)


__all__ = ["IgnoreRule", "RepoScanner"]
