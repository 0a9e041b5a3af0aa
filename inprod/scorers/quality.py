"""Scorers for testing, security and error handling."""

from __future__ import annotations

import re

from .base import (
    CI_GLOBS,
    SOURCE_GLOBS,
    Check,
    Penalty,
    RuleBasedScorer,
    any_of,
    dep,
    find_path,
    find_text,
    has_test_files,
    path,
    profile_has,
    script,
    text,
)

_CONFIG_GLOBS = ("*.json", "*.yml", "*.yaml", "*.toml", "*.env", "*.properties", "*.plist")

_LOGGING_DEPS = ("pino", "winston", "bunyan", "structlog", "loguru", "go.uber.org/zap")


class TestingScorer(RuleBasedScorer):
    category = "testing"
    checks = (
        Check(
            id="testing-no-framework",
            signal="Test framework",
            points=30,
            title="No test framework",
            description="No test runner is configured, so nothing guards against regressions.",
            severity="critical",
            confidence="proven",
            fix_type="instant",
            effort_minutes=30,
            fix_template="vitest-setup",
            predicate=profile_has("test_framework"),
        ),
        Check(
            id="testing-no-test-files",
            signal="Test files",
            points=25,
            title="No test files",
            description="The repository contains no tests.",
            severity="critical",
            confidence="proven",
            fix_type="suggested",
            effort_minutes=120,
            predicate=has_test_files,
        ),
        Check(
            id="testing-no-test-script",
            signal="Test command",
            points=15,
            title="No test command",
            description="There is no single command that runs the suite.",
            severity="warning",
            confidence="verified",
            fix_type="suggested",
            effort_minutes=5,
            predicate=any_of(
                script("test"),
                path("pytest.ini", "conftest.py", "tox.ini", "noxfile.py", "*_test.go"),
                text(r"^\[tool\.pytest", globs=("pyproject.toml",), include_tests=True),
                text(r"^test:", globs=("Makefile",), include_tests=True),
                path("Cargo.toml", "pom.xml", "build.gradle", "build.gradle.kts", "pubspec.yaml"),
            ),
        ),
        Check(
            id="testing-no-coverage",
            signal="Coverage reporting",
            points=10,
            title="No coverage reporting",
            description="Untested code paths are invisible without coverage.",
            severity="warning",
            confidence="likely",
            fix_type="suggested",
            effort_minutes=20,
            predicate=any_of(
                dep(
                    "@vitest/coverage-v8",
                    "@vitest/coverage-istanbul",
                    "c8",
                    "nyc",
                    "pytest-cov",
                    "coverage",
                    "simplecov",
                ),
                path(".nycrc*", ".coveragerc", "codecov.yml", ".codecov.yml"),
                text(r"coverage", globs=("vitest.config.*", "jest.config.*"), include_tests=True),
            ),
        ),
        Check(
            id="testing-no-e2e",
            signal="End-to-end tests",
            points=10,
            title="No end-to-end tests",
            description="Critical user journeys are never exercised as a whole.",
            severity="info",
            confidence="likely",
            fix_type="guided",
            effort_minutes=180,
            predicate=any_of(
                dep(
                    "@playwright/test",
                    "playwright",
                    "cypress",
                    "puppeteer",
                    "detox",
                    "selenium-webdriver",
                    "webdriverio",
                ),
                path("**/e2e/*", "**/*UITests/*", "**/androidTest/*", "integration_test/*"),
            ),
        ),
        Check(
            id="testing-not-in-ci",
            signal="Tests in CI",
            points=10,
            title="Tests do not run in CI",
            description="Run the suite on every push so failures block merges.",
            severity="warning",
            confidence="verified",
            fix_type="suggested",
            effort_minutes=20,
            predicate=text(
                r"\b(test|tests|pytest|vitest|jest|go test|cargo test|gradlew test|xcodebuild test)\b",
                globs=CI_GLOBS,
                include_tests=True,
            ),
        ),
    )


class SecurityScorer(RuleBasedScorer):
    category = "security"
    checks = (
        Check(
            id="sec-env-not-ignored",
            signal="Environment files ignored",
            points=15,
            title=".env files are not git-ignored",
            description="Add .env to .gitignore before secrets get committed.",
            severity="critical",
            confidence="proven",
            fix_type="suggested",
            effort_minutes=5,
            predicate=text(r"^\s*/?\.env", globs=(".gitignore",), include_tests=True),
        ),
        Check(
            id="sec-no-security-headers",
            signal="Security headers",
            points=15,
            title="No security headers",
            description="Responses lack CSP, HSTS and frame protections.",
            severity="critical",
            confidence="likely",
            fix_type="instant",
            effort_minutes=20,
            fix_template="security-headers",
            predicate=any_of(
                dep("helmet", "@fastify/helmet", "django-csp", "flask-talisman", "secure-headers"),
                text(
                    r"Content-Security-Policy|X-Frame-Options|Strict-Transport-Security|SECURE_HSTS",
                    globs=SOURCE_GLOBS + ("vercel.json", "netlify.toml", "_headers"),
                    flags=re.IGNORECASE,
                ),
            ),
        ),
        Check(
            id="sec-no-dependency-scanning",
            signal="Dependency scanning",
            points=15,
            title="No dependency vulnerability scanning",
            description="Known-vulnerable packages are never flagged.",
            severity="warning",
            confidence="verified",
            fix_type="suggested",
            effort_minutes=15,
            predicate=any_of(
                path(".github/dependabot.yml", ".github/dependabot.yaml", "renovate.json", ".renovaterc*", ".snyk"),
                text(
                    r"npm audit|pnpm audit|yarn audit|pip-audit|snyk|trivy|safety check|codeql|cargo audit",
                    globs=CI_GLOBS,
                    include_tests=True,
                ),
            ),
        ),
        Check(
            id="sec-lockfile",
            signal="Lockfile",
            points=15,
            title="No dependency lockfile",
            description="Builds resolve different dependency versions over time.",
            severity="warning",
            confidence="proven",
            fix_type="suggested",
            effort_minutes=5,
            predicate=path(
                "package-lock.json",
                "yarn.lock",
                "pnpm-lock.yaml",
                "bun.lockb",
                "bun.lock",
                "poetry.lock",
                "uv.lock",
                "Pipfile.lock",
                "go.sum",
                "Cargo.lock",
                "Gemfile.lock",
                "composer.lock",
                "Podfile.lock",
                "pubspec.lock",
                "gradle.lockfile",
                "Package.resolved",
            ),
        ),
        Check(
            id="sec-input-sanitization",
            signal="Input sanitization",
            points=15,
            title="User input is not sanitized",
            description="Untrusted input reaches queries and markup unchecked.",
            severity="critical",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=60,
            predicate=any_of(
                dep(
                    "zod",
                    "joi",
                    "yup",
                    "valibot",
                    "dompurify",
                    "isomorphic-dompurify",
                    "sanitize-html",
                    "validator",
                    "class-validator",
                    "pydantic",
                    "bleach",
                    "marshmallow",
                ),
                text(r"sanitize|bleach\.clean|escapeHtml|html\.escape"),
            ),
        ),
        Check(
            id="sec-cors",
            signal="CORS policy",
            points=10,
            title="No explicit CORS policy",
            description="Cross-origin access is either blocked or wide open by accident.",
            severity="info",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=15,
            predicate=any_of(
                dep("cors", "@fastify/cors", "django-cors-headers", "flask-cors"),
                text(r"Access-Control-Allow-Origin|CORSMiddleware|\bcors\(", flags=re.IGNORECASE),
            ),
        ),
        Check(
            id="sec-security-policy",
            signal="Security policy",
            points=15,
            title="No security policy",
            description="Researchers have no documented way to report vulnerabilities.",
            severity="info",
            confidence="proven",
            fix_type="suggested",
            effort_minutes=15,
            predicate=path("SECURITY.md", "SECURITY.txt", "security.txt"),
        ),
    )
    penalties = (
        Penalty(
            id="sec-env-committed",
            points=25,
            title="Environment file committed",
            description="A .env file is tracked in version control; rotate its secrets.",
            severity="blocker",
            confidence="proven",
            fix_type="guided",
            effort_minutes=30,
            finder=find_path(".env", ".env.local", ".env.production", ".env.development"),
        ),
        Penalty(
            id="sec-hardcoded-secret",
            points=20,
            title="Hard-coded secret",
            description="A credential is embedded in source; move it to the environment and rotate it.",
            severity="critical",
            confidence="high",
            fix_type="guided",
            effort_minutes=30,
            finder=find_text(
                r"AKIA[0-9A-Z]{16}|sk_live_[0-9A-Za-z]{10,}|ghp_[0-9A-Za-z]{36}|"
                r"-----BEGIN (RSA |EC |OPENSSH |DSA )?PRIVATE KEY-----",
                globs=SOURCE_GLOBS + _CONFIG_GLOBS,
            ),
        ),
    )


class ErrorHandlingScorer(RuleBasedScorer):
    category = "errorHandling"
    checks = (
        Check(
            id="err-no-error-tracking",
            signal="Error tracking",
            points=25,
            title="No error tracking",
            description="Production exceptions go unnoticed without an error-tracking service.",
            severity="critical",
            confidence="high",
            fix_type="instant",
            effort_minutes=20,
            fix_template="sentry-setup",
            predicate=dep(
                "sentry-sdk",
                "@bugsnag/js",
                "rollbar",
                "@rollbar/react",
                "@datadog/browser-rum",
                "dd-trace",
                "newrelic",
                "@highlight-run/next",
                "logrocket",
                "github.com/getsentry/sentry-go",
                "sentry",
                prefixes=("@sentry/", "sentry-"),
            ),
        ),
        Check(
            id="err-no-global-handler",
            signal="Global error handler",
            points=15,
            title="No global error handler",
            description="Unhandled errors crash the process or show raw stack traces.",
            severity="critical",
            confidence="likely",
            fix_type="suggested",
            effort_minutes=30,
            predicate=any_of(
                path(
                    "app/error.*",
                    "app/global-error.*",
                    "src/app/error.*",
                    "src/app/global-error.*",
                    "pages/_error.*",
                    "src/pages/_error.*",
                ),
                text(
                    r"ErrorBoundary|componentDidCatch|app\.use\(\s*\(\s*err|setErrorHandler|"
                    r"exception_handler|errorhandler\(|uncaughtException|rescue_from|"
                    r"NSSetUncaughtExceptionHandler|setDefaultUncaughtExceptionHandler|FlutterError\.onError"
                ),
            ),
        ),
        Check(
            id="err-try-catch",
            signal="Local error handling",
            points=15,
            title="No local error handling",
            description="Failure paths are never caught where they happen.",
            severity="warning",
            confidence="likely",
            fix_type="suggested",
            effort_minutes=60,
            predicate=text(r"\btry\s*[{:]|\bcatch\s*\(|\bexcept\b|\brescue\b|if err != nil|\.catch\("),
        ),
        Check(
            id="err-custom-errors",
            signal="Typed errors",
            points=15,
            title="No custom error types",
            description="Callers cannot tell failure kinds apart without typed errors.",
            severity="info",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=45,
            predicate=text(
                r"class \w+(Error|Exception)\b|errors\.New\(|fmt\.Errorf|thiserror|enum \w*Error"
            ),
        ),
        Check(
            id="err-logging",
            signal="Error logging",
            points=15,
            title="Errors are not logged",
            description="Caught errors disappear without a log line.",
            severity="warning",
            confidence="likely",
            fix_type="suggested",
            effort_minutes=30,
            predicate=any_of(
                dep(*_LOGGING_DEPS),
                text(
                    r"console\.error\(|logger\.(error|exception|warn)|logging\.(error|exception)|"
                    r"log\.(Error|Printf|Fatal)|Log\.e\(|os_log|NSLog|eprintln!"
                ),
            ),
        ),
        Check(
            id="err-no-404",
            signal="Not-found handling",
            points=15,
            title="No not-found handling",
            description="Unknown routes and missing records fall through to generic errors.",
            severity="warning",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=20,
            predicate=any_of(
                path("app/not-found.*", "src/app/not-found.*", "pages/404.*", "src/pages/404.*", "404.html"),
                text(r"\b404\b|NotFound|not_found|Http404"),
            ),
        ),
    )
    penalties = (
        Penalty(
            id="err-empty-catch",
            points=10,
            title="Swallowed exception",
            description="An empty catch block hides failures.",
            severity="warning",
            confidence="proven",
            fix_type="suggested",
            effort_minutes=10,
            finder=find_text(r"catch\s*(\([^)]*\))?\s*\{\s*\}|except[^:\n]*:\s*\n\s*pass\b"),
        ),
    )


__all__ = ["ErrorHandlingScorer", "SecurityScorer", "TestingScorer"]
