"""Scorers for external integrations, client state and design quality."""

from __future__ import annotations

import re

from .base import (
    STYLE_GLOBS,
    UI_GLOBS,
    Check,
    RuleBasedScorer,
    any_of,
    dep,
    language,
    path,
    text,
)

_NATIVE_GLOBS = ("*.swift", "*.kt", "*.dart")


class ApiIntegrationsScorer(RuleBasedScorer):
    category = "apiIntegrations"
    checks = (
        Check(
            id="api-client",
            signal="HTTP client",
            points=20,
            title="No HTTP client",
            description="No outbound API calls were found.",
            severity="warning",
            confidence="likely",
            fix_type="guided",
            effort_minutes=60,
            predicate=any_of(
                dep(
                    "axios",
                    "ky",
                    "got",
                    "ofetch",
                    "node-fetch",
                    "undici",
                    "graphql-request",
                    "@apollo/client",
                    "requests",
                    "httpx",
                    "aiohttp",
                    "reqwest",
                    "faraday",
                    "guzzlehttp/guzzle",
                ),
                text(r"\bfetch\(|URLSession|HttpClient|http\.Get\("),
            ),
        ),
        Check(
            id="api-error-handling",
            signal="API error handling",
            points=20,
            title="API failures are not handled",
            description="Non-2xx responses and network errors flow straight into the UI.",
            severity="critical",
            confidence="likely",
            fix_type="suggested",
            effort_minutes=60,
            predicate=text(
                r"\.catch\(|\bcatch\s*\(|\bexcept\b|\.ok\b|raise_for_status|statusCode\s*[><=!]|if err != nil"
            ),
        ),
        Check(
            id="api-timeouts",
            signal="Request timeouts",
            points=15,
            title="No request timeouts",
            description="A hung upstream ties up workers indefinitely.",
            severity="warning",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=30,
            predicate=text(r"timeout|AbortController|AbortSignal", flags=re.IGNORECASE),
        ),
        Check(
            id="api-retries",
            signal="Retries with backoff",
            points=15,
            title="No retry strategy",
            description="Transient upstream failures surface as user-facing errors.",
            severity="warning",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=45,
            predicate=any_of(
                dep("axios-retry", "p-retry", "async-retry", "tenacity", "backoff", "retry", "ky"),
                text(r"retry|retries|backoff", flags=re.IGNORECASE),
            ),
        ),
        Check(
            id="api-secrets-env",
            signal="Secrets from environment",
            points=15,
            title="API keys are not read from the environment",
            description="Keep credentials in environment variables, not source.",
            severity="critical",
            confidence="likely",
            fix_type="suggested",
            effort_minutes=20,
            predicate=text(
                r"process\.env\.|import\.meta\.env|os\.environ|os\.getenv|System\.getenv|ENV\[|Bundle\.main\.infoDictionary"
            ),
        ),
        Check(
            id="api-typed-clients",
            signal="Typed API contracts",
            points=15,
            title="API responses are untyped",
            description="Parse responses into typed models so contract drift fails loudly.",
            severity="info",
            confidence="possible",
            fix_type="guided",
            effort_minutes=90,
            predicate=any_of(
                dep(
                    "zod",
                    "@trpc/client",
                    "@trpc/server",
                    "openapi-typescript",
                    "openapi-fetch",
                    "@graphql-codegen/cli",
                    "orval",
                    "pydantic",
                ),
                path("*.d.ts"),
                text(r"Codable|@Serializable|json_serializable", globs=_NATIVE_GLOBS),
            ),
        ),
    )


class StateManagementScorer(RuleBasedScorer):
    category = "stateManagement"
    checks = (
        Check(
            id="state-library",
            signal="State library",
            points=30,
            title="No state management approach",
            description="Shared state is threaded through props or globals.",
            severity="warning",
            confidence="likely",
            fix_type="guided",
            effort_minutes=120,
            predicate=any_of(
                dep(
                    "zustand",
                    "redux",
                    "@reduxjs/toolkit",
                    "jotai",
                    "recoil",
                    "mobx",
                    "valtio",
                    "pinia",
                    "vuex",
                    "xstate",
                    "@ngrx/store",
                    "provider",
                    "riverpod",
                    "flutter_riverpod",
                    "flutter_bloc",
                ),
                text(r"ObservableObject|@Observable|StateFlow|LiveData|ViewModel\(", globs=_NATIVE_GLOBS),
            ),
        ),
        Check(
            id="state-server-cache",
            signal="Server-state caching",
            points=20,
            title="No server-state cache",
            description="Remote data is refetched on every render instead of cached.",
            severity="warning",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=90,
            predicate=any_of(
                dep(
                    "@tanstack/react-query",
                    "@tanstack/vue-query",
                    "react-query",
                    "swr",
                    "@apollo/client",
                    "urql",
                ),
                text(r"\brevalidate\b|unstable_cache|createApi\("),
            ),
        ),
        Check(
            id="state-context",
            signal="Dependency context",
            points=15,
            title="No shared context",
            description="Cross-cutting state such as the current user has no provider.",
            severity="info",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=45,
            predicate=text(
                r"createContext\(|\bprovide\(|@EnvironmentObject|CompositionLocal|InheritedWidget"
            ),
        ),
        Check(
            id="state-persistence",
            signal="State persistence",
            points=15,
            title="Client state is not persisted",
            description="User preferences and drafts are lost on reload.",
            severity="info",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=45,
            predicate=any_of(
                dep("redux-persist", "idb-keyval", "localforage", "shared_preferences"),
                text(
                    r"localStorage|sessionStorage|AsyncStorage|UserDefaults|SharedPreferences|DataStore|indexedDB|\bpersist\("
                ),
            ),
        ),
        Check(
            id="state-store-structure",
            signal="Store modules",
            points=20,
            title="State is not organised into stores",
            description="Group state and its updates into dedicated store modules.",
            severity="info",
            confidence="possible",
            fix_type="guided",
            effort_minutes=90,
            predicate=path(
                "**/store/*",
                "**/stores/*",
                "**/state/*",
                "*Store.*",
                "*.store.*",
                "*Slice.*",
                "*.slice.*",
                "**/viewmodels/*",
                "*ViewModel.*",
            ),
        ),
    )


class DesignUxScorer(RuleBasedScorer):
    category = "designUx"
    checks = (
        Check(
            id="ux-styling",
            signal="Styling system",
            points=25,
            title="No styling system",
            description="No stylesheet, CSS framework or native styling was found.",
            severity="warning",
            confidence="likely",
            fix_type="guided",
            effort_minutes=120,
            predicate=any_of(
                dep(
                    "tailwindcss",
                    "styled-components",
                    "@emotion/react",
                    "sass",
                    "@vanilla-extract/css",
                    "@pandacss/dev",
                    "nativewind",
                ),
                path("tailwind.config.*", *STYLE_GLOBS),
                text(r"\.padding\(|\.foregroundColor\(|\bModifier\.|ThemeData\(", globs=_NATIVE_GLOBS),
            ),
        ),
        Check(
            id="ux-component-library",
            signal="Component library",
            points=15,
            title="No component library",
            description="Reusable primitives keep the interface consistent.",
            severity="info",
            confidence="possible",
            fix_type="guided",
            effort_minutes=120,
            predicate=any_of(
                dep(
                    "@headlessui/react",
                    "@mui/material",
                    "@chakra-ui/react",
                    "antd",
                    "@mantine/core",
                    "@nextui-org/react",
                    "primereact",
                    "vuetify",
                    "@angular/material",
                    "react-native-paper",
                    prefixes=("@radix-ui/",),
                ),
                path("components.json", "**/components/ui/*"),
            ),
        ),
        Check(
            id="ux-responsive",
            signal="Responsive layout",
            points=15,
            title="Layout is not responsive",
            description="No breakpoints were found; the UI will break on small screens.",
            severity="warning",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=90,
            predicate=any_of(
                text(
                    r"@media|\b(sm|md|lg|xl):|useMediaQuery|breakpoint|GeometryReader|LayoutBuilder",
                    globs=UI_GLOBS + STYLE_GLOBS,
                ),
                language("Swift", "Kotlin"),
            ),
        ),
        Check(
            id="ux-accessibility",
            signal="Accessibility",
            points=20,
            title="No accessibility attributes",
            description="Screen readers cannot describe controls without labels and roles.",
            severity="critical",
            confidence="likely",
            fix_type="suggested",
            effort_minutes=90,
            predicate=any_of(
                dep("eslint-plugin-jsx-a11y", "@axe-core/react", "jest-axe"),
                text(
                    r"aria-\w+|\brole=|\balt=|accessibilityLabel|contentDescription|Semantics\(",
                    globs=UI_GLOBS,
                ),
            ),
        ),
        Check(
            id="ux-dark-mode",
            signal="Dark mode",
            points=10,
            title="No dark mode",
            description="The interface ignores the user's colour-scheme preference.",
            severity="info",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=60,
            predicate=any_of(
                dep("next-themes"),
                text(
                    r"\bdark:|prefers-color-scheme|darkMode|colorScheme|ColorScheme",
                    globs=UI_GLOBS + STYLE_GLOBS + ("tailwind.config.*",),
                ),
            ),
        ),
        Check(
            id="ux-favicon",
            signal="App icon",
            points=15,
            title="No favicon or app icon",
            description="Browser tabs and home screens show a generic icon.",
            severity="info",
            confidence="verified",
            fix_type="suggested",
            effort_minutes=15,
            predicate=path(
                "favicon.*",
                "app/icon.*",
                "src/app/icon.*",
                "apple-touch-icon*",
                "**/AppIcon.appiconset/*",
                "ic_launcher*",
            ),
        ),
    )


__all__ = ["ApiIntegrationsScorer", "DesignUxScorer", "StateManagementScorer"]
