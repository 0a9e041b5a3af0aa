"""Tests for technology-stack inference."""

from __future__ import annotations

import random

from inprod.corpus import FileCorpus
from inprod.stack import TechStackDetector
from tests._fixtures.corpus_builder import (
    CorpusBuilder,
    package_json,
    web_app_files,
    web_app_with_tests_files,
)


def test_next_app_is_a_web_platform(corpus_builder: CorpusBuilder) -> None:
    corpus = corpus_builder.write(web_app_files()).corpus()

    profile = TechStackDetector().detect(corpus)

    assert profile.platform == "web"
    assert profile.frameworks[:2] == ("next.js", "react")
    assert profile.languages == ("TypeScript",)
    assert profile.package_manager == "npm"
    assert profile.test_framework is None
    assert profile.maturity_level == "prototype"


def test_fastapi_service_is_a_backend(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write(
        {
            "requirements.txt": "fastapi\nsqlalchemy\npytest\n",
            "app/main.py": "from fastapi import FastAPI\napp = FastAPI()\n",
            "tests/test_main.py": "def test_ok():\n    assert True\n",
            ".github/workflows/ci.yml": "jobs:\n  test:\n    steps:\n      - run: pytest\n",
        }
    )

    profile = TechStackDetector().detect(corpus_builder.corpus())

    assert profile.platform == "backend"
    assert "fastapi" in profile.frameworks
    assert profile.database == "sqlalchemy"
    assert profile.test_framework == "pytest"
    assert profile.ci_provider == "github-actions"
    assert profile.maturity_level == "mvp"


def test_tests_ci_and_deploy_config_is_production(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write(web_app_with_tests_files())
    corpus_builder.write(
        {
            ".github/workflows/ci.yml": "jobs:\n  test:\n    steps:\n      - run: npm test\n",
            "vercel.json": "{}\n",
        }
    )

    profile = TechStackDetector().detect(corpus_builder.corpus())

    assert profile.platform == "web"
    assert profile.test_framework == "vitest"
    assert profile.ci_provider == "github-actions"
    assert profile.deployment_platform == "vercel"
    assert profile.maturity_level == "production"


def test_android_manifest_is_android(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write(
        {
            "build.gradle": "plugins {\n    id 'com.android.application'\n}\n",
            "app/src/main/AndroidManifest.xml": '<manifest package="com.example.app" />\n',
            "app/src/main/java/com/example/MainActivity.kt": "class MainActivity\n",
        }
    )

    profile = TechStackDetector().detect(corpus_builder.corpus())

    assert profile.platform == "android"
    assert profile.languages == ("Kotlin",)


def test_cli_entry_without_ui_is_a_cli(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write(
        {
            "pyproject.toml": '[project]\nname = "tool"\ndependencies = ["click"]\n'
            '[project.scripts]\ntool = "tool.cli:main"\n',
            "tool/cli.py": "import click\n",
        }
    )

    profile = TechStackDetector().detect(corpus_builder.corpus())

    assert profile.platform == "cli"
    assert profile.frameworks == ("click",)


def test_workspace_marker_is_a_monorepo(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write(
        {
            "pnpm-workspace.yaml": "packages:\n  - apps/*\n",
            "pnpm-lock.yaml": "lockfileVersion: '9.0'\n",
            "apps/web/package.json": package_json(["react"]),
            "apps/api/package.json": package_json(["express"]),
        }
    )

    profile = TechStackDetector().detect(corpus_builder.corpus())

    assert profile.platform == "monorepo"
    assert profile.package_manager == "pnpm"


def test_xcode_project_is_ios(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write(
        {
            "App.xcodeproj/project.pbxproj": "// !$*UTF8*$!\n",
            "App/ContentView.swift": "import SwiftUI\n\nstruct ContentView: View {}\n",
        }
    )

    profile = TechStackDetector().detect(corpus_builder.corpus())

    assert profile.platform == "ios"
    assert "swiftui" in profile.frameworks


def test_plain_sources_default_to_library(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write({"lib/util.py": "def add(a, b):\n    return a + b\n"})

    profile = TechStackDetector().detect(corpus_builder.corpus())

    assert profile.platform == "library"
    assert profile.frameworks == ()


def test_detection_ignores_input_order(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write(web_app_files())
    corpus_builder.write({"vercel.json": "{}", "Dockerfile": "FROM node:20\n"})
    records = corpus_builder.records()
    shuffled = list(records)
    random.Random(7).shuffle(shuffled)

    detector = TechStackDetector()

    assert detector.detect(FileCorpus(records)) == detector.detect(FileCorpus(shuffled))
    assert detector.detect(FileCorpus(records)).deployment_platform == "vercel"
