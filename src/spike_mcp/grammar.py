"""Generated spike id grammar and enumeration.

An id has the shape ``[prefix-]<lib>-<pattern>-<style>-<lang>``. The full
space is ``PREFIXES x LIBRARIES x PATTERNS x STYLES x LANGS`` and is never
built as a list: the Nth id is decoded directly by mixed-radix decomposition
over the axis sizes (``lang`` is the least significant digit), so listing the
first L ids costs O(L) regardless of the size of the space.

Parsing rules:

- ``lang`` and ``style`` are the two rightmost fields.
- ``pattern`` is the next field, except that a known hyphenated pattern
  (``graphql-server``) is taken whole.
- Everything before is ``lib``, which may itself contain hyphens.
- Prefixed ids (``gen-``/``strike-``) accept unknown tokens; the generator
  routes them to its generic fallback. Unprefixed ids must use known tokens
  for all four components, so ordinary catalog names are not mistaken for
  generated ids.
"""

import re
from collections.abc import Iterator, Sequence

from loguru import logger

from spike_mcp.models import GeneratedIdComponents

PREFIXES: tuple[str, ...] = ("strike", "gen")

LIBRARIES: tuple[str, ...] = (
    # UI frameworks
    "react", "vue", "svelte", "angular", "solid", "qwik", "nextjs", "nuxt", "remix", "astro",
    "reactflow", "shadcn-tree-view", "tailwind", "storybook",
    # HTTP servers
    "express", "fastify", "koa", "hapi", "nestjs", "deno-fresh", "bun-elysia", "elysia",
    "hono", "fastapi", "django", "flask", "gin", "actix", "axum", "ktor",
    # API layers
    "graphql", "apollo", "urql", "relay", "graphql-yoga", "openapi", "swagger", "trpc",
    # Data
    "prisma", "mongoose", "sequelize", "typeorm", "drizzle", "knex", "postgres", "mysql",
    "sqlite", "neo4j", "redis", "supabase",
    # Messaging
    "bullmq", "kafka", "rabbitmq", "nats", "sqs", "sns", "pubsub", "kinesis",
    # Tooling
    "jest", "vitest", "playwright", "cypress", "eslint", "prettier", "vite", "webpack",
    # Infra
    "docker", "kubernetes", "helm", "terraform", "pulumi", "serverless", "aws-lambda",
    "github-actions",
    # Auth
    "auth0", "passport", "next-auth", "keycloak", "firebase-auth", "cognito", "clerk", "lucia",
    # AI
    "openai", "anthropic", "langchain", "llamaindex", "weaviate", "pinecone", "qdrant",
    # Payments
    "stripe", "paddle", "paypal", "braintree",
    # Search
    "elasticsearch", "opensearch", "meilisearch", "typesense", "algolia",
    # Storage
    "s3", "gcs", "azure-blob", "minio", "cloudinary", "uploadthing",
    # Monitoring
    "sentry", "posthog", "datadog", "newrelic", "prometheus", "pino", "winston",
    # Messaging / email
    "resend", "sendgrid", "twilio", "ably", "pusher", "socketio",
)  # fmt: skip

PATTERNS: tuple[str, ...] = (
    "minimal", "init", "config", "route", "controller", "service", "client", "crud",
    "webhook", "job", "component", "hook", "schema", "adapter", "worker", "listener",
    "middleware", "snapshot", "export", "replay", "realtime", "graphql-server",
    "graphql-client", "dnd", "virtualize", "example", "docs",
)  # fmt: skip

STYLES: tuple[str, ...] = ("basic", "typed", "advanced", "secure", "testing")

LANGS: tuple[str, ...] = ("ts", "js", "py", "go", "rs", "kt")

_LIBRARY_SET = frozenset(LIBRARIES)
_PATTERN_SET = frozenset(PATTERNS)
_STYLE_SET = frozenset(STYLES)
_LANG_SET = frozenset(LANGS)

# Longest first so "graphql-server" wins over a bare "server"
_MULTI_PATTERNS = sorted(
    (p.split("-") for p in PATTERNS if "-" in p), key=len, reverse=True
)

_FIELD_RE = re.compile(r"^[a-z0-9]+$")


def parse_id(spike_id: str) -> GeneratedIdComponents | None:
    """Parse a generated id, or return None if it does not fit the grammar."""
    if not isinstance(spike_id, str) or not spike_id:
        return None

    parts = spike_id.split("-")
    if not all(_FIELD_RE.match(p) for p in parts):
        return None

    prefix = None
    if parts[0] in PREFIXES and len(parts) > 4:
        prefix = parts[0]
        parts = parts[1:]

    if len(parts) < 4:
        return None

    lang, style = parts[-1], parts[-2]
    head = parts[:-2]

    pattern_len = 1
    for multi in _MULTI_PATTERNS:
        if len(head) > len(multi) and head[-len(multi) :] == multi:
            pattern_len = len(multi)
            break

    pattern = "-".join(head[-pattern_len:])
    lib = "-".join(head[:-pattern_len])
    if not lib:
        return None

    if prefix is None and not (
        lib in _LIBRARY_SET
        and pattern in _PATTERN_SET
        and style in _STYLE_SET
        and lang in _LANG_SET
    ):
        return None

    return GeneratedIdComponents(
        prefix=prefix, lib=lib, pattern=pattern, style=style, lang=lang
    )


def is_generated_id(spike_id: str) -> bool:
    return parse_id(spike_id) is not None


def is_known(components: GeneratedIdComponents) -> bool:
    """True when every component is in its enumerated set."""
    return (
        components.lib in _LIBRARY_SET
        and components.pattern in _PATTERN_SET
        and components.style in _STYLE_SET
        and components.lang in _LANG_SET
    )


def format_id(
    lib: str, pattern: str, style: str, lang: str, prefix: str | None = None
) -> str:
    body = f"{lib}-{pattern}-{style}-{lang}"
    return f"{prefix}-{body}" if prefix else body


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------


def _restrict(
    axis: str, known: Sequence[str], include: Sequence[str] | None
) -> tuple[str, ...]:
    """Restrict an axis to ``include`` keeping canonical order.

    None or empty means the whole axis. Unknown values are dropped.
    """
    if not include:
        return tuple(known)
    wanted = set(include)
    unknown = wanted.difference(known)
    if unknown:
        logger.debug(f"Ignoring unknown {axis}: {sorted(unknown)}")
    return tuple(v for v in known if v in wanted)


def _axes(
    libs: Sequence[str] | None = None,
    patterns: Sequence[str] | None = None,
    styles: Sequence[str] | None = None,
    langs: Sequence[str] | None = None,
    prefixes: Sequence[str] | None = None,
) -> tuple[tuple[str, ...], ...]:
    return (
        _restrict("prefixes", PREFIXES, prefixes),
        _restrict("libs", LIBRARIES, libs),
        _restrict("patterns", PATTERNS, patterns),
        _restrict("styles", STYLES, styles),
        _restrict("langs", LANGS, langs),
    )


def space_size(axes: Sequence[Sequence[str]]) -> int:
    size = 1
    for axis in axes:
        size *= len(axis)
    return size


def total_generated() -> int:
    """Size of the unrestricted generated space."""
    return space_size(_axes())


def generated_id_at(index: int, axes: Sequence[Sequence[str]] | None = None) -> str:
    """Decode the id at ``index`` via mixed-radix decomposition."""
    axes = axes if axes is not None else _axes()
    size = space_size(axes)
    if not 0 <= index < size:
        raise IndexError(f"generated id index {index} out of range 0..{size - 1}")

    digits: list[str] = []
    for axis in reversed(axes):
        index, digit = divmod(index, len(axis))
        digits.append(axis[digit])
    prefix, lib, pattern, style, lang = reversed(digits)
    return format_id(lib, pattern, style, lang, prefix)


def iter_generated_spike_ids(
    libs: Sequence[str] | None = None,
    patterns: Sequence[str] | None = None,
    styles: Sequence[str] | None = None,
    langs: Sequence[str] | None = None,
    prefixes: Sequence[str] | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> Iterator[str]:
    """Lazily yield ids of the filtered space in canonical order."""
    axes = _axes(libs, patterns, styles, langs, prefixes)
    size = space_size(axes)
    start = max(0, offset)
    stop = size if limit is None else min(size, start + max(0, limit))
    for index in range(start, stop):
        yield generated_id_at(index, axes)


def list_generated_spike_ids_filtered(
    libs: Sequence[str] | None = None,
    patterns: Sequence[str] | None = None,
    styles: Sequence[str] | None = None,
    langs: Sequence[str] | None = None,
    limit: int | None = None,
    prefixes: Sequence[str] | None = None,
    offset: int = 0,
    cap: int | None = None,
) -> list[str]:
    """List ids matching every include set, truncated to ``limit``.

    ``cap`` is the configured enumeration cap; the smaller of ``limit`` and
    ``cap`` wins. The result is a stable prefix across repeated calls.
    """
    effective = limit
    if cap is not None:
        effective = cap if effective is None else min(effective, cap)
    return list(
        iter_generated_spike_ids(
            libs, patterns, styles, langs, prefixes, limit=effective, offset=offset
        )
    )


def list_generated_spike_ids(cap: int | None = None) -> list[str]:
    """Unrestricted listing, bounded only by the configured cap."""
    return list_generated_spike_ids_filtered(cap=cap)
