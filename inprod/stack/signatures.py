"""Declarative technology signatures evaluated by the tech-stack detector.

Each row maps a match predicate to a technology identifier. Rows are evaluated
uniformly over the whole corpus; when several rows of the same kind match, the
earliest row wins. Adding a detectable technology is a table edit.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol, Tuple

from ..corpus import FileCorpus


class Matcher(Protocol):
    def matches(self, corpus: FileCorpus) -> bool:
        ...


@dataclass(frozen=True)
class DependencyMatcher:
    """Matches manifest dependency names exactly or by prefix."""

    names: Tuple[str, ...] = ()
    prefixes: Tuple[str, ...] = ()

    def matches(self, corpus: FileCorpus) -> bool:
        dependencies = corpus.manifests.dependencies
        if any(name in dependencies for name in self.names):
            return True
        return any(dep.startswith(self.prefixes) for dep in dependencies) if self.prefixes else False


@dataclass(frozen=True)
class PathMatcher:
    """Matches when any file path matches one of the glob patterns."""

    patterns: Tuple[str, ...]

    def matches(self, corpus: FileCorpus) -> bool:
        return corpus.has(*self.patterns)


@dataclass(frozen=True)
class ContentMatcher:
    """Matches a regular expression inside files selected by glob."""

    globs: Tuple[str, ...]
    pattern: str

    def matches(self, corpus: FileCorpus) -> bool:
        return corpus.contains(re.compile(self.pattern, re.MULTILINE), globs=self.globs)


@dataclass(frozen=True)
class AnyOf:
    matchers: Tuple[Matcher, ...]

    def matches(self, corpus: FileCorpus) -> bool:
        return any(matcher.matches(corpus) for matcher in self.matchers)


@dataclass(frozen=True)
class Signature:
    kind: str
    technology: str
    matcher: Matcher

    def matches(self, corpus: FileCorpus) -> bool:
        return self.matcher.matches(corpus)


def deps(*names: str, prefixes: Tuple[str, ...] = ()) -> DependencyMatcher:
    return DependencyMatcher(names=names, prefixes=prefixes)


def paths(*patterns: str) -> PathMatcher:
    return PathMatcher(patterns=patterns)


def content(globs: Tuple[str, ...], pattern: str) -> ContentMatcher:
    return ContentMatcher(globs=globs, pattern=pattern)


def any_of(*matchers: Matcher) -> AnyOf:
    return AnyOf(matchers=matchers)


SIGNATURE_KINDS: tuple[str, ...] = (
    "ui_framework",
    "server_framework",
    "cli_framework",
    "mobile_framework",
    "ios",
    "android",
    "cli_entry",
    "workspace",
    "database",
    "test_framework",
    "package_manager",
    "ci",
    "deployment",
)

SIGNATURES: Tuple[Signature, ...] = (
    # UI frameworks (meta-frameworks first so they lead the framework list)
    Signature("ui_framework", "next.js", deps("next")),
    Signature("ui_framework", "nuxt", deps("nuxt")),
    Signature("ui_framework", "remix", deps(prefixes=("@remix-run/",))),
    Signature("ui_framework", "sveltekit", deps("@sveltejs/kit")),
    Signature("ui_framework", "astro", deps("astro")),
    Signature("ui_framework", "gatsby", deps("gatsby")),
    Signature("ui_framework", "react", deps("react")),
    Signature("ui_framework", "vue", deps("vue")),
    Signature("ui_framework", "svelte", deps("svelte")),
    Signature("ui_framework", "angular", deps("@angular/core")),
    Signature("ui_framework", "solid", deps("solid-js")),
    # Server frameworks
    Signature("server_framework", "express", deps("express")),
    Signature("server_framework", "fastify", deps("fastify")),
    Signature("server_framework", "nestjs", deps("@nestjs/core")),
    Signature("server_framework", "koa", deps("koa")),
    Signature("server_framework", "hono", deps("hono")),
    Signature("server_framework", "hapi", deps("@hapi/hapi")),
    Signature("server_framework", "django", deps("django")),
    Signature("server_framework", "fastapi", deps("fastapi")),
    Signature("server_framework", "flask", deps("flask")),
    Signature("server_framework", "rails", deps("rails")),
    Signature("server_framework", "sinatra", deps("sinatra")),
    Signature("server_framework", "laravel", deps("laravel/framework")),
    Signature("server_framework", "symfony", deps("symfony/framework-bundle")),
    Signature(
        "server_framework",
        "spring boot",
        deps("org.springframework.boot", prefixes=("org.springframework.boot:",)),
    ),
    Signature("server_framework", "gin", deps("github.com/gin-gonic/gin")),
    Signature("server_framework", "echo", deps(prefixes=("github.com/labstack/echo",))),
    Signature("server_framework", "fiber", deps(prefixes=("github.com/gofiber/fiber",))),
    Signature("server_framework", "actix-web", deps("actix-web")),
    Signature("server_framework", "axum", deps("axum")),
    Signature("server_framework", "rocket", deps("rocket")),
    # CLI frameworks
    Signature("cli_framework", "commander", deps("commander")),
    Signature("cli_framework", "yargs", deps("yargs")),
    Signature("cli_framework", "oclif", deps("@oclif/core")),
    Signature("cli_framework", "click", deps("click")),
    Signature("cli_framework", "typer", deps("typer")),
    Signature("cli_framework", "cobra", deps("github.com/spf13/cobra")),
    Signature("cli_framework", "clap", deps("clap")),
    # Mobile frameworks
    Signature("mobile_framework", "react-native", deps("react-native")),
    Signature("mobile_framework", "expo", deps("expo")),
    Signature("mobile_framework", "flutter", deps("flutter")),
    Signature("mobile_framework", "swiftui", content(("*.swift",), r"^import SwiftUI")),
    Signature("mobile_framework", "jetpack-compose", deps(prefixes=("androidx.compose",))),
    # Native mobile project markers
    Signature(
        "ios",
        "xcode",
        any_of(
            paths("*.xcodeproj/*", "*.xcworkspace/*", "Podfile", "Info.plist"),
            content(("Package.swift",), r"\.iOS\("),
        ),
    ),
    Signature(
        "android",
        "gradle-android",
        any_of(
            paths("AndroidManifest.xml"),
            content(("build.gradle", "build.gradle.kts"), r"com\.android\.application"),
        ),
    ),
    # Executable entry points
    Signature("cli_entry", "go-cmd", paths("cmd/*/main.go")),
    Signature("cli_entry", "cargo-bin", paths("src/bin/*.rs")),
    Signature("cli_entry", "shebang", content(("bin/*",), r"\A#!")),
    # Workspace markers
    Signature(
        "workspace",
        "workspace",
        paths("pnpm-workspace.yaml", "lerna.json", "turbo.json", "nx.json", "go.work", "rush.json"),
    ),
    # Databases and data layers
    Signature(
        "database",
        "supabase",
        any_of(deps("@supabase/supabase-js", "supabase"), paths("supabase/config.toml")),
    ),
    Signature("database", "firebase", deps("firebase", "firebase-admin")),
    Signature(
        "database",
        "prisma",
        any_of(deps("prisma", "@prisma/client"), paths("schema.prisma")),
    ),
    Signature("database", "drizzle", deps("drizzle-orm")),
    Signature(
        "database",
        "postgresql",
        deps(
            "pg",
            "postgres",
            "psycopg2",
            "psycopg2-binary",
            "psycopg",
            "asyncpg",
            "github.com/lib/pq",
            prefixes=("github.com/jackc/pgx", "org.postgresql:"),
        ),
    ),
    Signature(
        "database",
        "mysql",
        deps("mysql", "mysql2", "mysqlclient", "pymysql", "github.com/go-sql-driver/mysql", prefixes=("mysql:",)),
    ),
    Signature(
        "database",
        "mongodb",
        deps("mongodb", "mongoose", "pymongo", "motor", "mongoid", prefixes=("go.mongodb.org/mongo-driver",)),
    ),
    Signature(
        "database",
        "sqlite",
        deps("sqlite3", "better-sqlite3", "aiosqlite", "rusqlite", "github.com/mattn/go-sqlite3"),
    ),
    Signature("database", "sqlalchemy", deps("sqlalchemy")),
    Signature("database", "typeorm", deps("typeorm")),
    Signature("database", "sequelize", deps("sequelize")),
    Signature("database", "redis", deps("redis", "ioredis", "@upstash/redis")),
    # Test frameworks
    Signature("test_framework", "vitest", any_of(deps("vitest"), paths("vitest.config.*"))),
    Signature(
        "test_framework",
        "jest",
        any_of(deps("jest", "ts-jest", "@jest/globals"), paths("jest.config.*")),
    ),
    Signature("test_framework", "mocha", any_of(deps("mocha"), paths(".mocharc*"))),
    Signature(
        "test_framework",
        "playwright",
        any_of(deps("@playwright/test"), paths("playwright.config.*")),
    ),
    Signature("test_framework", "cypress", any_of(deps("cypress"), paths("cypress.config.*"))),
    Signature(
        "test_framework",
        "pytest",
        any_of(
            deps("pytest"),
            paths("pytest.ini", "conftest.py"),
            content(("pyproject.toml", "setup.cfg", "tox.ini"), r"^\[(tool[.:])?pytest"),
        ),
    ),
    Signature("test_framework", "unittest", content(("*.py",), r"^(import unittest|from unittest )")),
    Signature("test_framework", "go-test", paths("*_test.go")),
    Signature("test_framework", "cargo-test", content(("*.rs",), r"#\[(cfg\(test\)|test)\]")),
    Signature("test_framework", "rspec", any_of(deps("rspec", "rspec-rails"), paths(".rspec"))),
    Signature("test_framework", "minitest", deps("minitest")),
    Signature("test_framework", "phpunit", any_of(deps("phpunit/phpunit"), paths("phpunit.xml*"))),
    Signature("test_framework", "junit", deps(prefixes=("junit:", "org.junit"))),
    Signature("test_framework", "xctest", content(("*.swift",), r"^import XCTest")),
    Signature("test_framework", "flutter_test", deps("flutter_test")),
    # Dependency managers
    Signature("package_manager", "pnpm", paths("pnpm-lock.yaml")),
    Signature("package_manager", "yarn", paths("yarn.lock")),
    Signature("package_manager", "bun", paths("bun.lockb", "bun.lock")),
    Signature("package_manager", "npm", paths("package-lock.json", "package.json")),
    Signature("package_manager", "uv", paths("uv.lock")),
    Signature(
        "package_manager",
        "poetry",
        any_of(paths("poetry.lock"), content(("pyproject.toml",), r"^\[tool\.poetry")),
    ),
    Signature("package_manager", "pipenv", paths("Pipfile")),
    Signature("package_manager", "pip", paths("requirements*.txt", "pyproject.toml", "setup.py")),
    Signature("package_manager", "go", paths("go.mod")),
    Signature("package_manager", "cargo", paths("Cargo.toml")),
    Signature("package_manager", "bundler", paths("Gemfile")),
    Signature("package_manager", "composer", paths("composer.json")),
    Signature("package_manager", "maven", paths("pom.xml")),
    Signature("package_manager", "gradle", paths("build.gradle", "build.gradle.kts")),
    Signature("package_manager", "cocoapods", paths("Podfile")),
    Signature("package_manager", "swiftpm", paths("Package.swift")),
    Signature("package_manager", "pub", paths("pubspec.yaml")),
    # CI providers
    Signature(
        "ci",
        "github-actions",
        paths(".github/workflows/*.yml", ".github/workflows/*.yaml"),
    ),
    Signature("ci", "gitlab-ci", paths(".gitlab-ci.yml", ".gitlab-ci.yaml")),
    Signature("ci", "circleci", paths(".circleci/config.yml", ".circleci/config.yaml")),
    Signature("ci", "jenkins", paths("Jenkinsfile")),
    Signature("ci", "azure-pipelines", paths("azure-pipelines.yml", "azure-pipelines.yaml")),
    Signature("ci", "bitbucket-pipelines", paths("bitbucket-pipelines.yml")),
    Signature("ci", "travis-ci", paths(".travis.yml")),
    # Deployment platforms
    Signature("deployment", "vercel", paths("vercel.json")),
    Signature("deployment", "netlify", paths("netlify.toml")),
    Signature("deployment", "fly.io", paths("fly.toml")),
    Signature("deployment", "render", paths("render.yaml")),
    Signature("deployment", "railway", paths("railway.json", "railway.toml")),
    Signature("deployment", "heroku", paths("Procfile")),
    Signature("deployment", "serverless", paths("serverless.yml", "serverless.ts")),
    Signature("deployment", "aws-cdk", paths("cdk.json")),
    Signature("deployment", "google-app-engine", paths("app.yaml")),
    Signature(
        "deployment",
        "kubernetes",
        paths("k8s/*", "kubernetes/*", "helm/*", "charts/*", "Chart.yaml"),
    ),
    Signature("deployment", "fastlane", paths("Fastfile")),
    Signature("deployment", "goreleaser", paths(".goreleaser.yml", ".goreleaser.yaml")),
    Signature(
        "deployment",
        "docker",
        paths("Dockerfile", "docker-compose.yml", "docker-compose.yaml", "compose.yaml"),
    ),
)


__all__ = [
    "AnyOf",
    "ContentMatcher",
    "DependencyMatcher",
    "Matcher",
    "PathMatcher",
    "SIGNATURES",
    "SIGNATURE_KINDS",
    "Signature",
    "any_of",
    "content",
    "deps",
    "paths",
]
