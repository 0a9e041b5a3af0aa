"""Scorers for version-control hygiene and deployment readiness."""

from __future__ import annotations

import re

from .base import (
    CI_GLOBS,
    Check,
    Penalty,
    RuleBasedScorer,
    any_of,
    find_path,
    path,
    profile_has,
    root_file,
    script,
    text,
)


class VersionControlScorer(RuleBasedScorer):
    category = "versionControl"
    requires_manifests = False
    checks = (
        Check(
            id="vc-no-readme",
            signal="README",
            points=25,
            title="No README",
            description="New contributors have nowhere to learn how to run the project.",
            severity="warning",
            confidence="proven",
            fix_type="instant",
            effort_minutes=15,
            fix_template="readme",
            predicate=root_file("README.md", "README", "README.rst", "README.txt", "README.markdown"),
        ),
        Check(
            id="vc-no-gitignore",
            signal=".gitignore",
            points=20,
            title="No .gitignore",
            description="Build output and secrets are one `git add .` away from being committed.",
            severity="critical",
            confidence="proven",
            fix_type="instant",
            effort_minutes=5,
            fix_template="gitignore",
            predicate=root_file(".gitignore"),
        ),
        Check(
            id="vc-license",
            signal="License",
            points=15,
            title="No license",
            description="Without a license nobody may legally reuse the code.",
            severity="warning",
            confidence="proven",
            fix_type="suggested",
            effort_minutes=5,
            predicate=root_file("LICENSE", "LICENSE.md", "LICENSE.txt", "LICENCE", "COPYING"),
        ),
        Check(
            id="vc-contributing",
            signal="Contributing guide",
            points=10,
            title="No contributing guide",
            description="Describe how to propose and review changes.",
            severity="info",
            confidence="proven",
            fix_type="suggested",
            effort_minutes=20,
            predicate=path("CONTRIBUTING*"),
        ),
        Check(
            id="vc-pr-template",
            signal="Pull request template",
            points=10,
            title="No pull request template",
            description="Reviews lack a consistent checklist.",
            severity="info",
            confidence="proven",
            fix_type="instant",
            effort_minutes=5,
            fix_template="pr-template",
            predicate=path(
                "pull_request_template.md",
                "PULL_REQUEST_TEMPLATE.md",
                ".github/PULL_REQUEST_TEMPLATE/*",
            ),
        ),
        Check(
            id="vc-changelog",
            signal="Changelog",
            points=10,
            title="No changelog",
            description="Users cannot see what changed between releases.",
            severity="info",
            confidence="proven",
            fix_type="suggested",
            effort_minutes=15,
            predicate=path("CHANGELOG*", "HISTORY.md", "CHANGES.md", "CHANGES.rst"),
        ),
        Check(
            id="vc-code-owners",
            signal="Code owners",
            points=10,
            title="No CODEOWNERS file",
            description="Changes are not routed to the people responsible for them.",
            severity="info",
            confidence="proven",
            fix_type="suggested",
            effort_minutes=10,
            predicate=path("CODEOWNERS"),
        ),
    )
    penalties = (
        Penalty(
            id="vc-committed-artifacts",
            points=10,
            title="Generated artifacts committed",
            description="OS metadata, bytecode or logs are tracked in version control.",
            severity="warning",
            confidence="proven",
            fix_type="suggested",
            effort_minutes=10,
            finder=find_path(".DS_Store", "Thumbs.db", "*.pyc", "*.log", "**/node_modules/*"),
        ),
    )


class DeploymentScorer(RuleBasedScorer):
    category = "deployment"
    checks = (
        Check(
            id="deploy-no-ci",
            signal="Continuous integration",
            points=25,
            title="No CI pipeline",
            description="Nothing builds or tests the project automatically on push.",
            severity="critical",
            confidence="proven",
            fix_type="instant",
            effort_minutes=30,
            fix_template="github-actions",
            predicate=profile_has("ci_provider"),
        ),
        Check(
            id="deploy-no-platform",
            signal="Deployment target",
            points=20,
            title="No deployment target",
            description="There is no configuration describing where the project runs.",
            severity="warning",
            confidence="likely",
            fix_type="guided",
            effort_minutes=60,
            predicate=profile_has("deployment_platform"),
        ),
        Check(
            id="deploy-build-script",
            signal="Build command",
            points=15,
            title="No build command",
            description="Releases depend on someone remembering the build steps.",
            severity="warning",
            confidence="verified",
            fix_type="suggested",
            effort_minutes=10,
            predicate=any_of(
                script("build"),
                path(
                    "Makefile",
                    "build.gradle",
                    "build.gradle.kts",
                    "pom.xml",
                    "Cargo.toml",
                    "go.mod",
                    "pyproject.toml",
                    "setup.py",
                    "pubspec.yaml",
                    "Package.swift",
                    "*.xcodeproj/*",
                ),
            ),
        ),
        Check(
            id="deploy-no-dockerfile",
            signal="Container image",
            points=10,
            title="No Dockerfile",
            description="The runtime environment is not reproducible.",
            severity="info",
            confidence="proven",
            fix_type="instant",
            effort_minutes=20,
            fix_template="dockerfile",
            predicate=path("Dockerfile", "*.Dockerfile", "docker-compose.yml", "docker-compose.yaml", "compose.yaml"),
        ),
        Check(
            id="deploy-no-env-docs",
            signal="Environment documentation",
            points=10,
            title="Environment variables are undocumented",
            description="Operators cannot tell which settings a deployment needs.",
            severity="info",
            confidence="likely",
            fix_type="instant",
            effort_minutes=10,
            fix_template="env-example",
            predicate=any_of(
                path(".env.example", ".env.sample", ".env.template"),
                text(r"environment variables", globs=("README*",), include_tests=True, flags=re.IGNORECASE),
            ),
        ),
        Check(
            id="deploy-ci-deploy-step",
            signal="Automated deploys",
            points=10,
            title="CI never deploys",
            description="Releases are manual even though CI exists.",
            severity="info",
            confidence="likely",
            fix_type="guided",
            effort_minutes=60,
            predicate=text(r"deploy|publish|release", globs=CI_GLOBS, include_tests=True, flags=re.IGNORECASE),
        ),
        Check(
            id="deploy-runtime-pinning",
            signal="Pinned runtime",
            points=10,
            title="Runtime version is not pinned",
            description="Production may run a different language version than development.",
            severity="info",
            confidence="verified",
            fix_type="suggested",
            effort_minutes=5,
            predicate=any_of(
                root_file(
                    ".nvmrc",
                    ".node-version",
                    ".python-version",
                    ".tool-versions",
                    ".ruby-version",
                    "runtime.txt",
                    "rust-toolchain",
                    "rust-toolchain.toml",
                ),
                text(r'"engines"\s*:', globs=("package.json",), include_tests=True),
                text(r"requires-python", globs=("pyproject.toml",), include_tests=True),
                text(r"^go \d", globs=("go.mod",), include_tests=True),
            ),
        ),
    )


__all__ = ["DeploymentScorer", "VersionControlScorer"]
