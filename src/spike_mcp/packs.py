"""Named presets that select a slice of the generated id space."""

import re

from spike_mcp import grammar
from spike_mcp.models import PackAxes, PackDef

SPIKE_PACKS: dict[str, PackDef] = {
    "nextjs-secure": PackDef(
        name="nextjs-secure",
        description="Secure Next.js setup: middleware, routes and services (secure/typed)",
        include=PackAxes(
            libs=["nextjs"],
            patterns=["middleware", "route", "service"],
            styles=["secure", "typed"],
            langs=["ts"],
        ),
    ),
    "bun-elysia-worker": PackDef(
        name="bun-elysia-worker",
        description="Bun + Elysia workers and listeners",
        include=PackAxes(
            libs=["bun-elysia", "elysia"],
            patterns=["worker", "listener"],
            styles=["typed", "testing", "basic"],
            langs=["ts"],
        ),
    ),
    "payments": PackDef(
        name="payments",
        description="Payments and billing (Stripe, Paddle, PayPal, Braintree)",
        include=PackAxes(
            libs=["stripe", "paddle", "paypal", "braintree"],
            patterns=["service", "route", "webhook"],
            styles=["typed", "secure", "basic"],
            langs=["ts", "js"],
        ),
    ),
    "search": PackDef(
        name="search",
        description="Full-text search (Elasticsearch, OpenSearch, Meilisearch, Typesense, Algolia)",
        include=PackAxes(
            libs=["elasticsearch", "opensearch", "meilisearch", "typesense", "algolia"],
            patterns=["client", "service", "adapter"],
            styles=["typed", "basic"],
            langs=["ts"],
        ),
    ),
    "storage": PackDef(
        name="storage",
        description="Object storage and uploads (S3, GCS, Azure Blob, MinIO, Cloudinary, UploadThing)",
        include=PackAxes(
            libs=["s3", "gcs", "azure-blob", "minio", "cloudinary", "uploadthing"],
            patterns=["adapter", "service", "client", "route"],
            styles=["typed", "secure", "basic"],
            langs=["ts"],
        ),
    ),
    "monitoring": PackDef(
        name="monitoring",
        description="Monitoring, APM and logging (Sentry, PostHog, Datadog, New Relic, Prometheus, Pino, Winston)",
        include=PackAxes(
            libs=["sentry", "posthog", "datadog", "newrelic", "prometheus", "pino", "winston"],
            patterns=["middleware", "service", "config", "adapter"],
            styles=["typed", "basic", "secure"],
            langs=["ts"],
        ),
    ),
    "flow-tree-starter": PackDef(
        name="flow-tree-starter",
        description="React Flow + shadcn tree view starter: UI, server, schema and bridges",
        include=PackAxes(
            libs=["reactflow", "shadcn-tree-view"],
            patterns=[
                "component", "route", "schema", "adapter", "example", "docs",
                "realtime", "graphql-server", "graphql-client", "dnd", "virtualize",
            ],  # fmt: skip
            styles=["typed", "advanced", "testing"],
            langs=["ts", "js", "py"],
        ),
    ),
    "flow-tree-ops": PackDef(
        name="flow-tree-ops",
        description="Flow/tree operations: snapshot, export and replay plus realtime and GraphQL",
        include=PackAxes(
            libs=["reactflow", "shadcn-tree-view"],
            patterns=[
                "snapshot", "export", "replay", "realtime", "graphql-server",
                "graphql-client", "route", "adapter",
            ],  # fmt: skip
            styles=["typed", "secure", "advanced", "testing"],
            langs=["ts", "js", "py"],
        ),
    ),
}


def get_pack(name: str) -> PackDef | None:
    return SPIKE_PACKS.get(name)


def list_packs() -> list[dict]:
    return [
        {"key": key, "name": pack.name, "description": pack.description}
        for key, pack in SPIKE_PACKS.items()
    ]


def _within(value: str, allowed: list[str] | None) -> bool:
    return not allowed or value in allowed


def _excluded(value: str, denied: list[str] | None) -> bool:
    return bool(denied) and value in denied


def filter_ids_by_pack(ids: list[str], pack_name: str) -> list[str]:
    """Keep the ids that belong to ``pack_name``, preserving order.

    Unknown pack names select nothing. Ids outside the grammar are kept only
    when they contain the pack name literally.
    """
    pack = SPIKE_PACKS.get(pack_name)
    if pack is None:
        return []
    id_filter = re.compile(pack.id_filter) if pack.id_filter else None
    inc, exc = pack.include, pack.exclude

    selected = []
    for spike_id in ids:
        if id_filter is not None and not id_filter.search(spike_id):
            continue
        parsed = grammar.parse_id(spike_id)
        if parsed is None:
            if pack.name in spike_id:
                selected.append(spike_id)
            continue
        attrs = (
            (parsed.lib, inc.libs, exc.libs),
            (parsed.pattern, inc.patterns, exc.patterns),
            (parsed.style, inc.styles, exc.styles),
            (parsed.lang, inc.langs, exc.langs),
        )
        if all(_within(v, i) and not _excluded(v, e) for v, i, e in attrs):
            selected.append(spike_id)
    return selected


def pack_ids(pack_name: str, limit: int | None = None, cap: int | None = None) -> list[str]:
    """Enumerate the generated ids of a pack directly from its include axes."""
    pack = SPIKE_PACKS.get(pack_name)
    if pack is None:
        return []
    ids = grammar.list_generated_spike_ids_filtered(
        libs=pack.include.libs,
        patterns=pack.include.patterns,
        styles=pack.include.styles,
        langs=pack.include.langs,
        cap=cap,
    )
    selected = filter_ids_by_pack(ids, pack_name)
    return selected if limit is None else selected[: max(0, limit)]
