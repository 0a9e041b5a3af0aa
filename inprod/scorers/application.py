"""Scorers for the application layers: frontend, backend, database and auth."""

from __future__ import annotations

import re

from .base import (
    SOURCE_GLOBS,
    UI_GLOBS,
    Check,
    Penalty,
    RuleBasedScorer,
    any_of,
    dep,
    detected,
    find_text,
    language,
    path,
    profile_has,
    script,
    text,
)

_SCRIPT_GLOBS = ("*.ts", "*.tsx", "*.js", "*.jsx", "*.mjs", "*.vue", "*.svelte")

# Hosted identity providers also take care of password storage.
_AUTH_PROVIDERS = (
    "next-auth",
    "@auth/core",
    "@auth/nextjs",
    "@clerk/nextjs",
    "@clerk/clerk-react",
    "@clerk/express",
    "@supabase/auth-helpers-nextjs",
    "@supabase/ssr",
    "@supabase/supabase-js",
    "firebase",
    "firebase-admin",
    "@auth0/nextjs-auth0",
    "@auth0/auth0-react",
    "@kinde-oss/kinde-auth-nextjs",
    "better-auth",
    "lucia",
)


class FrontendScorer(RuleBasedScorer):
    category = "frontend"
    checks = (
        Check(
            id="fe-framework",
            signal="UI framework",
            points=20,
            title="No UI framework detected",
            description="No component framework was found; pages are hard to scale without one.",
            severity="critical",
            confidence="high",
            fix_type="guided",
            effort_minutes=240,
            predicate=detected("ui_framework", "mobile_framework"),
        ),
        Check(
            id="fe-typescript",
            signal="TypeScript",
            points=15,
            title="Frontend is not type-checked",
            description="Adopt TypeScript to catch contract errors before they reach users.",
            severity="warning",
            confidence="verified",
            fix_type="guided",
            effort_minutes=240,
            predicate=any_of(language("TypeScript"), path("tsconfig.json")),
        ),
        Check(
            id="fe-pages",
            signal="Pages and components",
            points=15,
            title="No pages or components found",
            description="The frontend has no routable pages or component files.",
            severity="warning",
            confidence="likely",
            fix_type="guided",
            effort_minutes=120,
            predicate=path(
                "app/**/page.*",
                "src/app/**/page.*",
                "pages/*",
                "src/pages/*",
                "src/routes/*",
                "**/components/*",
                "src/views/*",
                "*.vue",
                "*.svelte",
            ),
        ),
        Check(
            id="fe-loading-states",
            signal="Loading states",
            points=15,
            title="No loading states",
            description="Slow requests render blank screens; add loading UI or suspense fallbacks.",
            severity="warning",
            confidence="likely",
            fix_type="suggested",
            effort_minutes=60,
            predicate=any_of(
                path("app/**/loading.*", "src/app/**/loading.*"),
                text(r"isLoading|isPending|<Suspense|Skeleton|Spinner|ProgressView", globs=UI_GLOBS),
            ),
        ),
        Check(
            id="fe-error-boundary",
            signal="Error boundaries",
            points=15,
            title="No error boundary",
            description="A rendering error anywhere takes down the whole page.",
            severity="critical",
            confidence="high",
            fix_type="instant",
            effort_minutes=20,
            fix_template="error-boundary",
            predicate=any_of(
                path("app/**/error.*", "src/app/**/error.*"),
                text(r"ErrorBoundary|componentDidCatch|onErrorCaptured|errorCaptured", globs=_SCRIPT_GLOBS),
            ),
        ),
        Check(
            id="fe-seo-meta",
            signal="SEO metadata",
            points=10,
            title="Missing page metadata",
            description="Pages lack titles and meta descriptions for search engines and link previews.",
            severity="warning",
            confidence="likely",
            fix_type="instant",
            effort_minutes=15,
            fix_template="seo-meta",
            predicate=any_of(
                dep("next-seo", "react-helmet", "react-helmet-async", "@unhead/vue"),
                text(
                    r"export const metadata|generateMetadata|<title>|next/head|<Head>|useHead\(|<meta\s",
                    globs=UI_GLOBS + ("*.ts", "*.js"),
                ),
            ),
        ),
        Check(
            id="fe-image-optimization",
            signal="Image optimization",
            points=10,
            title="Images are not optimized",
            description="Serve responsive, lazily loaded images to keep pages fast.",
            severity="info",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=45,
            predicate=any_of(
                dep("sharp", "next-cloudinary", "@unpic/react", "@nuxt/image"),
                text(r"next/image|<Image\b|srcset|loading=\"lazy\"", globs=UI_GLOBS),
            ),
        ),
    )
    penalties = (
        Penalty(
            id="fe-console-logs",
            points=5,
            title="console.log left in frontend code",
            description="Debug logging leaks internals to the browser console.",
            severity="info",
            confidence="proven",
            fix_type="suggested",
            effort_minutes=10,
            finder=find_text(r"console\.log\(", globs=_SCRIPT_GLOBS),
        ),
    )


class BackendScorer(RuleBasedScorer):
    category = "backend"
    checks = (
        Check(
            id="be-framework",
            signal="Server framework",
            points=20,
            title="No server framework or API routes",
            description="No request-handling layer was found.",
            severity="critical",
            confidence="high",
            fix_type="guided",
            effort_minutes=240,
            predicate=any_of(
                detected("server_framework"),
                path("app/api/**/route.*", "src/app/api/**/route.*", "pages/api/*", "src/pages/api/*"),
            ),
        ),
        Check(
            id="be-input-validation",
            signal="Input validation",
            points=20,
            title="No request validation",
            description="Request bodies reach handlers unchecked; validate them with a schema library.",
            severity="critical",
            confidence="high",
            fix_type="instant",
            effort_minutes=30,
            fix_template="input-validation",
            predicate=dep(
                "zod",
                "joi",
                "yup",
                "valibot",
                "ajv",
                "class-validator",
                "express-validator",
                "@sinclair/typebox",
                "pydantic",
                "marshmallow",
                "djangorestframework",
            ),
        ),
        Check(
            id="be-env-config",
            signal="Environment configuration",
            points=15,
            title="Configuration is not environment-driven",
            description="Document and load settings from the environment instead of source.",
            severity="warning",
            confidence="likely",
            fix_type="suggested",
            effort_minutes=30,
            predicate=any_of(
                path(".env.example", ".env.sample", ".env.template"),
                dep("dotenv", "@t3-oss/env-nextjs", "envalid", "python-dotenv", "pydantic-settings"),
            ),
        ),
        Check(
            id="be-rate-limiting",
            signal="Rate limiting",
            points=15,
            title="No rate limiting",
            description="Endpoints can be hammered without limit.",
            severity="critical",
            confidence="likely",
            fix_type="suggested",
            effort_minutes=60,
            predicate=any_of(
                dep(
                    "express-rate-limit",
                    "@upstash/ratelimit",
                    "rate-limiter-flexible",
                    "@nestjs/throttler",
                    "slowapi",
                    "django-ratelimit",
                    "flask-limiter",
                ),
                text(r"rate[-_ ]?limit", flags=re.IGNORECASE),
            ),
        ),
        Check(
            id="be-health-check",
            signal="Health check",
            points=10,
            title="No health-check endpoint",
            description="Load balancers and uptime monitors need a cheap liveness endpoint.",
            severity="warning",
            confidence="likely",
            fix_type="suggested",
            effort_minutes=15,
            predicate=any_of(
                path("app/api/health/route.*", "src/app/api/health/route.*", "pages/api/health.*"),
                text(r"['\"]/(api/)?(health|healthz|ping|status)['\"]"),
            ),
        ),
        Check(
            id="be-logging",
            signal="Structured logging",
            points=10,
            title="No server logging",
            description="Without a logger, production incidents leave no trail.",
            severity="warning",
            confidence="likely",
            fix_type="suggested",
            effort_minutes=30,
            predicate=any_of(
                dep(
                    "pino",
                    "winston",
                    "bunyan",
                    "morgan",
                    "structlog",
                    "loguru",
                    "go.uber.org/zap",
                    "github.com/sirupsen/logrus",
                    "tracing",
                ),
                text(r"^import logging|logging\.getLogger", globs=("*.py",)),
            ),
        ),
        Check(
            id="be-api-docs",
            signal="API documentation",
            points=10,
            title="No API documentation",
            description="Publish an OpenAPI description so clients know the contract.",
            severity="info",
            confidence="possible",
            fix_type="guided",
            effort_minutes=90,
            predicate=any_of(
                dep(
                    "fastapi",
                    "swagger-ui-express",
                    "swagger-jsdoc",
                    "@nestjs/swagger",
                    "@fastify/swagger",
                    "next-swagger-doc",
                    "drf-spectacular",
                ),
                path("openapi.*", "swagger.*"),
            ),
        ),
    )


class DatabaseScorer(RuleBasedScorer):
    category = "database"
    checks = (
        Check(
            id="db-detected",
            signal="Database",
            points=25,
            title="No database detected",
            description="No database client or ORM was found.",
            severity="critical",
            confidence="high",
            fix_type="guided",
            effort_minutes=180,
            predicate=profile_has("database"),
        ),
        Check(
            id="db-schema",
            signal="Schema definition",
            points=20,
            title="No schema definition",
            description="Data shape is implicit; define it in a schema or model layer.",
            severity="warning",
            confidence="likely",
            fix_type="guided",
            effort_minutes=120,
            predicate=any_of(
                path(
                    "schema.prisma",
                    "drizzle.config.*",
                    "schema.sql",
                    "models.py",
                    "**/models/*",
                    "**/entities/*",
                    "supabase/config.toml",
                ),
                text(r"pgTable\(|sqliteTable\(|mysqlTable\(|mongoose\.Schema|new Schema\("),
            ),
        ),
        Check(
            id="db-migrations",
            signal="Migrations",
            points=20,
            title="No migrations",
            description="Schema changes are not versioned, so deploys can drift from code.",
            severity="critical",
            confidence="likely",
            fix_type="guided",
            effort_minutes=90,
            predicate=path(
                "**/migrations/*",
                "**/migrate/*",
                "drizzle/*",
                "alembic.ini",
            ),
        ),
        Check(
            id="db-connection-pooling",
            signal="Connection pooling",
            points=15,
            title="No connection pooling",
            description="Each request opening a connection exhausts the database under load.",
            severity="warning",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=45,
            predicate=any_of(
                dep("pg-pool", "@neondatabase/serverless", "@prisma/adapter-pg"),
                text(
                    r"connection_?limit|pool_?size|poolSize|createPool\(|new Pool\(|pgbouncer|pool_pre_ping",
                    globs=SOURCE_GLOBS + ("*.prisma", "*.toml", "*.yml", "*.yaml"),
                    flags=re.IGNORECASE,
                ),
            ),
        ),
        Check(
            id="db-indexes",
            signal="Indexes",
            points=10,
            title="No indexes declared",
            description="Queries will scan whole tables once data grows.",
            severity="warning",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=45,
            predicate=text(
                r"@@index|@index|\.index\(|CREATE (UNIQUE )?INDEX|index=True|db_index=True|\bindex\(",
                globs=SOURCE_GLOBS + ("*.prisma", "*.sql"),
                flags=re.IGNORECASE,
            ),
        ),
        Check(
            id="db-seed",
            signal="Seed data",
            points=10,
            title="No seed data",
            description="New environments start empty; add a seed script.",
            severity="info",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=45,
            predicate=any_of(
                path("seed.*", "seeds.*", "**/seeds/*", "seed.sql"),
                script("seed", "db:seed"),
            ),
        ),
    )


class AuthenticationScorer(RuleBasedScorer):
    category = "authentication"
    checks = (
        Check(
            id="auth-provider",
            signal="Authentication provider",
            points=30,
            title="No authentication",
            description="Nothing identifies users, so every endpoint is public.",
            severity="blocker",
            confidence="high",
            fix_type="guided",
            effort_minutes=240,
            predicate=any_of(
                dep(
                    *_AUTH_PROVIDERS,
                    "passport",
                    "jsonwebtoken",
                    "jose",
                    "django-allauth",
                    "djangorestframework-simplejwt",
                    "flask-login",
                    "devise",
                    "authlib",
                ),
                path("auth.ts", "auth.config.*"),
            ),
        ),
        Check(
            id="auth-middleware",
            signal="Route protection",
            points=20,
            title="No route protection",
            description="Protected routes are not guarded by middleware or decorators.",
            severity="critical",
            confidence="likely",
            fix_type="suggested",
            effort_minutes=60,
            predicate=any_of(
                path("middleware.ts", "middleware.js", "src/middleware.*"),
                text(
                    r"requireAuth|isAuthenticated|authMiddleware|withAuth|login_required|"
                    r"@UseGuards|authenticate\(|Depends\(get_current_user"
                ),
            ),
        ),
        Check(
            id="auth-password-hashing",
            signal="Password hashing",
            points=15,
            title="No password hashing",
            description="Credentials must be stored with a slow adaptive hash.",
            severity="critical",
            confidence="likely",
            fix_type="suggested",
            effort_minutes=45,
            predicate=any_of(
                dep(*_AUTH_PROVIDERS),
                dep("bcrypt", "bcryptjs", "argon2", "@node-rs/argon2", "@node-rs/bcrypt", "passlib"),
                text(r"make_password|hashpw|argon2|scrypt"),
            ),
        ),
        Check(
            id="auth-session-security",
            signal="Secure sessions",
            points=15,
            title="Session cookies are not hardened",
            description="Set HttpOnly, Secure and SameSite on session cookies.",
            severity="warning",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=30,
            predicate=any_of(
                dep("iron-session", "express-session", "cookie-session", *_AUTH_PROVIDERS),
                text(r"httpOnly|SESSION_COOKIE_SECURE|sameSite|secure:\s*true", flags=re.IGNORECASE),
            ),
        ),
        Check(
            id="auth-csrf",
            signal="CSRF protection",
            points=10,
            title="No CSRF protection",
            description="Cookie-authenticated forms can be submitted cross-site.",
            severity="warning",
            confidence="possible",
            fix_type="suggested",
            effort_minutes=30,
            predicate=any_of(
                dep("csurf", "csrf", "@edge-csrf/nextjs", "flask-wtf", "next-auth", "django"),
                text(r"csrf", flags=re.IGNORECASE),
            ),
        ),
        Check(
            id="auth-rbac",
            signal="Authorization roles",
            points=10,
            title="No role-based access control",
            description="All authenticated users share the same permissions.",
            severity="info",
            confidence="possible",
            fix_type="guided",
            effort_minutes=120,
            predicate=any_of(
                dep("@casl/ability", "accesscontrol", "django-guardian", "pundit", "cancancan"),
                text(r"\b(hasRole|isAdmin|permissions?|roles?)\b"),
            ),
        ),
    )


__all__ = ["AuthenticationScorer", "BackendScorer", "DatabaseScorer", "FrontendScorer"]
