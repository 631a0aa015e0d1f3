"""Synthesize ``SpikeSpec`` values for generated ids.

Generation is pure: the same id always yields the same spec, nothing is
cached or persisted. Library-specific file sets come from
``SPECIALIZATIONS``; ids whose library has no entry (or whose tokens are
unknown) still get the generic snippet, README and style files.
"""

from collections.abc import Callable

from spike_mcp.errors import ValidationError
from spike_mcp.grammar import parse_id
from spike_mcp.models import SpikeMetadata, SpikeParam, SpikeSpec
from spike_mcp.specializations import backend, data, ops, web
from spike_mcp.specializations.common import (
    GenContext,
    Scaffold,
    apply_style,
    dependency_patches,
    generic,
)

Specialization = Callable[[GenContext, Scaffold], None]

SPECIALIZATIONS: dict[str, Specialization] = {
    "nextjs": web.nextjs,
    "react": web.react,
    "reactflow": web.reactflow,
    "shadcn-tree-view": web.shadcn_tree_view,
    "next-auth": web.next_auth,
    "express": backend.express,
    "fastapi": backend.fastapi,
    "bun-elysia": backend.elysia,
    "elysia": backend.elysia,
    "stripe": backend.stripe,
    "prisma": data.prisma,
    "graphql": data.graphql,
    "apollo": data.apollo,
    "github-actions": ops.github_actions,
}

GENERATED_VERSION = "0.1.0"


def _context(spike_id: str) -> GenContext:
    components = parse_id(spike_id)
    if components is None:
        raise ValidationError("generate", spike_id, "not a generated spike id")
    return GenContext(
        spike_id=spike_id,
        lib=components.lib,
        pattern=components.pattern,
        style=components.style,
        lang=components.lang,
        prefix=components.prefix,
    )


def _base_spec(ctx: GenContext) -> SpikeSpec:
    tags = [ctx.pattern, ctx.style, "generated"]
    if ctx.prefix == "strike":
        tags.append("strike")
    return SpikeSpec(
        id=ctx.spike_id,
        name=f"{ctx.lib} {ctx.pattern} {ctx.style} {ctx.lang}",
        version=GENERATED_VERSION,
        description=(
            f"Auto-generated spike for {ctx.lib} {ctx.pattern} in {ctx.lang} ({ctx.style})."
        ),
        stack=[ctx.lib, ctx.lang],
        tags=tags,
        params=[SpikeParam(name="app_name", default=f"{ctx.lib}-{ctx.pattern}-app")],
    )


def generate_spike(spike_id: str) -> SpikeSpec:
    """Build the full spec for a grammar-valid id."""
    ctx = _context(spike_id)
    spec = _base_spec(ctx)

    out = Scaffold(ctx=ctx, params=list(spec.params))
    SPECIALIZATIONS.get(ctx.lib, lambda _ctx, _out: None)(ctx, out)
    generic(out)
    apply_style(out)

    spec.stack.extend(s for s in out.stack if s not in spec.stack)
    spec.params = out.params
    spec.files = out.files
    spec.patches = dependency_patches(out)
    return spec


def generate_metadata(spike_id: str) -> SpikeMetadata:
    return generate_spike(spike_id).metadata()
