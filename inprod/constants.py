"""Shared constants for categories, platforms and gap metadata."""

from __future__ import annotations

from typing import Dict, Tuple

# Declaration order doubles as the tie-break order for bottlenecks and fix dispatch.
CATEGORIES: tuple[str, ...] = (
    "frontend",
    "backend",
    "database",
    "authentication",
    "apiIntegrations",
    "stateManagement",
    "designUx",
    "testing",
    "security",
    "errorHandling",
    "versionControl",
    "deployment",
)

CATEGORY_LABELS: dict[str, str] = {
    "frontend": "Frontend",
    "backend": "Backend",
    "database": "Database",
    "authentication": "Authentication",
    "apiIntegrations": "API Integrations",
    "stateManagement": "State Management",
    "designUx": "Design/UX",
    "testing": "Testing",
    "security": "Security",
    "errorHandling": "Error Handling",
    "versionControl": "Version Control",
    "deployment": "Deployment",
}

PLATFORMS: tuple[str, ...] = (
    "web",
    "backend",
    "cli",
    "ios",
    "android",
    "library",
    "monorepo",
)

PLATFORM_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "web": CATEGORIES,
    "ios": (
        "stateManagement",
        "designUx",
        "testing",
        "security",
        "errorHandling",
        "versionControl",
        "deployment",
    ),
    "android": (
        "stateManagement",
        "designUx",
        "testing",
        "security",
        "errorHandling",
        "versionControl",
        "deployment",
    ),
    "backend": (
        "backend",
        "database",
        "authentication",
        "apiIntegrations",
        "testing",
        "security",
        "errorHandling",
        "versionControl",
        "deployment",
    ),
    "cli": ("testing", "security", "errorHandling", "versionControl", "deployment"),
    "library": ("testing", "security", "versionControl"),
    "monorepo": CATEGORIES,
}

PLATFORM_LABEL_OVERRIDES: Dict[str, Dict[str, str]] = {
    "ios": {
        "testing": "Testing (XCTest)",
        "deployment": "App Store",
        "security": "iOS Security",
    },
    "android": {
        "testing": "Testing (JUnit)",
        "deployment": "Play Store",
    },
    "cli": {"deployment": "Distribution"},
    "library": {"deployment": "Publishing"},
}

MATURITY_LEVELS: tuple[str, ...] = ("prototype", "mvp", "production")

# Ordered from most to least severe.
SEVERITIES: tuple[str, ...] = ("blocker", "critical", "warning", "info")
CONFIDENCES: tuple[str, ...] = ("proven", "verified", "high", "likely", "possible")
FIX_TYPES: tuple[str, ...] = ("instant", "suggested", "guided")


def category_label(category: str, platform: str | None = None) -> str:
    """Return the display label for a category, honouring platform overrides."""
    if platform is not None:
        override = PLATFORM_LABEL_OVERRIDES.get(platform, {}).get(category)
        if override:
            return override
    return CATEGORY_LABELS[category]


def applicable_categories(platform: str) -> Tuple[str, ...]:
    """Return applicable categories for ``platform`` in declaration order."""
    selected = set(PLATFORM_CATEGORIES[platform])
    return tuple(category for category in CATEGORIES if category in selected)


__all__ = [
    "CATEGORIES",
    "CATEGORY_LABELS",
    "CONFIDENCES",
    "FIX_TYPES",
    "MATURITY_LEVELS",
    "PLATFORMS",
    "PLATFORM_CATEGORIES",
    "PLATFORM_LABEL_OVERRIDES",
    "SEVERITIES",
    "applicable_categories",
    "category_label",
]
