"""
Term Tiers
==========

Vocabulary used by the lexical scorer. Each term is ranked into exactly one
tier; when a word appears in several sets the first tier in TIER_ORDER wins.
"""

from enum import Enum


class TermTier(str, Enum):
    """Importance tier of a keyword."""
    CONCEPT = "concept"
    IMPORTANT = "important"
    PRODUCT = "product"
    TECHNICAL = "technical"
    OTHER = "other"


CONCEPT_TERMS = frozenset({
    "csrf", "xss", "sql", "injection", "cors", "origin", "origins",
    "trusted", "trustedorigins", "trusted-origins", "trusted_origins",
    "baseurl", "base-url", "base_url",
    "apikey", "api-key", "api_key",
    "jwt", "oauth2", "openid", "saml", "sso",
    "cookie", "cookies", "sessionid", "session-id", "session_id",
    "refresh", "refresh-token", "refresh_token", "refreshtoken",
    "access", "access-token", "access_token", "accesstoken",
    "middleware", "adapter",
    "hook", "hooks", "callback", "callbacks",
    "migration", "migrations", "schema", "schemas",
    "endpoint", "endpoints", "route", "routes", "path", "paths",
    "headers", "header",
})

IMPORTANT_TERMS = frozenset({
    "name", "product", "identity", "account", "profile", "credential",
    "authentication", "authorization", "configuration", "settings",
    "environment", "deployment", "production", "development",
})

PRODUCT_TERMS = frozenset({
    # ORMs
    "drizzle", "prisma", "sequelize", "typeorm", "knex", "bookshelf",
    "waterline", "mongoose", "objection", "kysely", "mikro-orm", "mikroorm",
    "typegoose", "doctrine", "orm", "orms",
    # Databases and hosted services
    "supabase", "firebase", "postgres", "postgresql", "mysql", "mariadb",
    "sqlite", "mongodb", "couchdb", "redis", "elasticsearch", "dynamodb",
    "neon", "planetscale", "vercel", "turso", "cockroachdb", "cockroach",
    "timescale", "timescaledb", "aurora", "rds", "cosmosdb", "cosmos",
    # Drivers
    "mysql2", "better-sqlite3", "sqlite3", "mongodb-driver",
    "ioredis", "redis-client", "node-postgres", "node-mysql",
    # Frameworks
    "nextjs",
})

TECHNICAL_TERMS = frozenset({
    "secret", "token", "email", "password", "auth", "plugin", "session",
    "user", "signup", "signin", "login", "logout", "verify", "verification",
    "reset", "error", "bug", "issue", "feature", "api", "endpoint", "webhook",
    "database", "schema", "migration", "model", "field", "admin", "oauth",
    "sso", "oidc", "stripe", "subscription", "payment", "organization",
    "role", "permission", "access", "security", "validation", "type",
    "typescript", "javascript", "react", "nextjs", "express", "hono",
    "headers", "header",
})

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "is", "are", "was", "were", "be", "been",
    "have", "has", "had", "do", "does", "did", "will", "would", "should",
    "could", "may", "might", "can", "this", "that", "these", "those",
    "i", "you", "he", "she", "it", "we", "they", "what", "which", "who",
    "when", "where", "why", "how", "all", "each", "every", "both", "few",
    "more", "most", "other", "some", "such", "no", "nor", "not", "only",
    "own", "same", "so", "than", "too", "very", "just", "now", "here",
    "there", "current", "latest", "release", "breaking", "since",
    "chars", "long", "introduced", "throw", "replaces", "instead", "existing",
    "implementations", "dont", "break", "after", "updating",
    "find", "guide", "migrate", "rotate",
})

TIER_ORDER = (
    (TermTier.CONCEPT, CONCEPT_TERMS),
    (TermTier.IMPORTANT, IMPORTANT_TERMS),
    (TermTier.PRODUCT, PRODUCT_TERMS),
    (TermTier.TECHNICAL, TECHNICAL_TERMS),
)

# Standalone token weights (exact match); partial matches earn half.
EXACT_WEIGHTS = {
    TermTier.CONCEPT: 6.0,
    TermTier.IMPORTANT: 4.0,
    TermTier.PRODUCT: 5.0,
    TermTier.TECHNICAL: 3.0,
    TermTier.OTHER: 2.0,
}

# Per-word bonus inside a matched phrase.
PHRASE_BONUS = {
    TermTier.CONCEPT: 4.0,
    TermTier.IMPORTANT: 2.5,
    TermTier.PRODUCT: 3.0,
    TermTier.TECHNICAL: 1.5,
    TermTier.OTHER: 0.0,
}

PHRASE_BASE_SCORE = {2: 7.0, 3: 10.0}


def tier_of(term: str) -> TermTier:
    """Highest tier the term belongs to."""
    for tier, terms in TIER_ORDER:
        if term in terms:
            return tier
    return TermTier.OTHER
