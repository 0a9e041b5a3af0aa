"""Helper utilities for constructing file corpora and throwaway repositories in tests."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Dict, Iterable, Mapping

from inprod.corpus import FileCorpus
from inprod.models import RepoFile
from inprod.repo_scanner import RepoScanner


def package_json(
    dependencies: Iterable[str] = (),
    dev_dependencies: Iterable[str] = (),
    scripts: Mapping[str, str] | None = None,
    **extra: object,
) -> str:
    """Render a package.json with ``latest`` version ranges."""
    payload: Dict[str, object] = {"name": "fixture", "version": "0.1.0"}
    if scripts:
        payload["scripts"] = dict(scripts)
    if dependencies:
        payload["dependencies"] = {name: "latest" for name in dependencies}
    if dev_dependencies:
        payload["devDependencies"] = {name: "latest" for name in dev_dependencies}
    payload.update(extra)
    return json.dumps(payload, indent=2)


def web_app_files() -> Dict[str, str]:
    """A minimal Next.js app: one manifest and one page."""
    return {
        "package.json": package_json(["next", "react", "react-dom"]),
        "app/page.tsx": """
            export default function Page() {
              return <main>Hello</main>
            }
        """,
    }


def web_app_with_tests_files() -> Dict[str, str]:
    """The minimal app plus a vitest setup and one test file."""
    files = web_app_files()
    files["package.json"] = package_json(["next", "react", "react-dom"], dev_dependencies=["vitest"])
    files["vitest.config.ts"] = """
        import { defineConfig } from 'vitest/config'

        export default defineConfig({})
    """
    files["app/page.test.tsx"] = """
        import { it, expect } from 'vitest'

        it('renders', () => {
          expect(1).toBe(1)
        })
    """
    return files


class CorpusBuilder:
    """Collects ``path -> contents`` entries and turns them into a corpus."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()
        self._files: Dict[str, str] = {}

    def write(self, files: Mapping[str, str]) -> "CorpusBuilder":
        """Record files in memory and write them into the repository."""
        for relative, content in files.items():
            normalised = textwrap.dedent(content).lstrip("\n")
            self._files[relative] = normalised
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(normalised, encoding="utf-8")
        return self

    def records(self) -> list[RepoFile]:
        return [
            RepoFile(path=path, content=content, size=len(content.encode("utf-8")))
            for path, content in self._files.items()
        ]

    def corpus(self) -> FileCorpus:
        """Return an in-memory corpus of everything written so far."""
        return FileCorpus(self.records())

    def scan(self) -> FileCorpus:
        """Return a corpus read back from disk by the repository scanner."""
        return RepoScanner().scan(self.root)

    def path(self) -> Path:
        return self.root


__all__ = ["CorpusBuilder", "package_json", "web_app_files", "web_app_with_tests_files"]
