"""Tests for the in-memory corpus and manifest parsing."""

from __future__ import annotations

import pytest

from inprod.corpus import FileCorpus, ManifestError, is_test_path
from inprod.models import RepoFile
from tests._fixtures.corpus_builder import package_json


def _file(path: str, content: str = "") -> RepoFile:
    return RepoFile(path=path, content=content, size=len(content))


def test_corpus_is_sorted_and_deduplicated() -> None:
    corpus = FileCorpus(
        [
            _file("src/b.ts", "b"),
            _file("./src/a.ts", "a"),
            _file("src/b.ts", "a-duplicate"),
        ]
    )

    assert corpus.paths == ("src/a.ts", "src/b.ts")
    assert corpus.get("src/b.ts").content == "a-duplicate"


def test_bare_globs_match_basenames_and_slashed_globs_match_paths() -> None:
    corpus = FileCorpus(
        [
            _file("app/page.tsx"),
            _file("app/dashboard/page.tsx"),
            _file("packages/web/Dockerfile"),
        ]
    )

    assert corpus.has("Dockerfile")
    assert [item.path for item in corpus.glob("app/**/page.*")] == [
        "app/dashboard/page.tsx",
        "app/page.tsx",
    ]
    assert not corpus.has("web/Dockerfile")


def test_search_reports_line_numbers_and_skips_tests() -> None:
    corpus = FileCorpus(
        [
            _file("src/app.ts", "const a = 1\nconsole.log(a)\n"),
            _file("src/app.test.ts", "console.log('test')\n"),
        ]
    )

    found = corpus.search(r"console\.log", include_tests=False)

    assert found is not None
    item, line = found
    assert item.path == "src/app.ts"
    assert line == 2
    assert corpus.search(r"console\.log", globs=("*.test.ts",), include_tests=False) is None


def test_case_insensitive_lookup() -> None:
    corpus = FileCorpus([_file("Readme.md", "# hi")])

    assert corpus.get("README.md") is None
    assert corpus.exists("README.md", case_sensitive=False)


@pytest.mark.parametrize(
    "path",
    ["src/button.test.tsx", "tests/test_app.py", "pkg/server_test.go", "spec/user_spec.rb"],
)
def test_is_test_path(path: str) -> None:
    assert is_test_path(path)


def test_is_test_path_rejects_source_files() -> None:
    assert not is_test_path("src/testing_utils.ts")
    assert not is_test_path("app/page.tsx")


def test_manifests_cover_several_ecosystems() -> None:
    corpus = FileCorpus(
        [
            _file("package.json", package_json(["Next"], ["vitest"], scripts={"test": "vitest"})),
            _file("api/requirements.txt", "fastapi>=0.110\nuvicorn[standard]==0.29  # server\n"),
            _file(
                "worker/pyproject.toml",
                '[project]\nname = "w"\ndependencies = ["celery>=5"]\n'
                '[project.optional-dependencies]\ntest = ["pytest"]\n'
                '[project.scripts]\nworker = "w:main"\n',
            ),
            _file("svc/go.mod", "module x\n\ngo 1.22\n\nrequire (\n\tgithub.com/gin-gonic/gin v1.9.1\n)\n"),
        ]
    )

    dependencies = corpus.manifests.dependencies
    assert {"next", "vitest", "fastapi", "uvicorn", "celery", "pytest", "github.com/gin-gonic/gin"} <= dependencies
    assert corpus.manifests.scripts() == {"test": "vitest"}
    worker = [m for m in corpus.manifests.of("python") if m.path == "worker/pyproject.toml"][0]
    assert worker.entry_points == ("worker",)
    assert worker.directory == "worker"


def test_malformed_manifest_is_recorded_and_strict_access_raises() -> None:
    corpus = FileCorpus([_file("package.json", "{ not json")])

    assert corpus.manifests.dependencies == frozenset()
    assert len(corpus.manifests.errors) == 1
    with pytest.raises(ManifestError) as excinfo:
        corpus.manifests.strict_dependencies()
    assert excinfo.value.path == "package.json"


def test_wrongly_typed_pyproject_fields_are_recorded() -> None:
    corpus = FileCorpus(
        [
            _file("a/pyproject.toml", "[project]\nname = 'a'\ndependencies = 5\n"),
            _file("b/pyproject.toml", "[project.optional-dependencies]\ndev = 1\n"),
            _file("c/pyproject.toml", "[project]\ndependencies = ['requests>=2']\n"),
        ]
    )

    assert [error.path for error in corpus.manifests.errors] == ["a/pyproject.toml", "b/pyproject.toml"]
    assert "project.dependencies must be a list" in str(corpus.manifests.errors[0])
    assert corpus.manifests.dependencies == frozenset({"requests"})


def test_deeply_nested_json_is_recorded() -> None:
    corpus = FileCorpus([_file("package.json", "[" * 200000)])

    assert len(corpus.manifests.errors) == 1
    assert corpus.manifests.errors[0].reason == "nesting too deep"


def test_from_records_accepts_plain_mappings() -> None:
    corpus = FileCorpus.from_records([{"path": "a.py", "content": "print(1)\n"}, {"path": "b.bin"}])

    assert corpus.get("a.py").size == len("print(1)\n")
    assert corpus.get("b.bin").content == ""
