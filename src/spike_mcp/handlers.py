"""Spike operations exposed by the MCP tools and the CLI.

Every handler reads settings at the start of the call, returns a plain
dict and raises ``SpikeError`` subclasses on failure. Nothing here writes
into a target project: ``apply`` only returns the plan.
"""

from collections.abc import Mapping

from loguru import logger

from spike_mcp import catalog, grammar, matching, packs
from spike_mcp.config import Settings, get_settings
from spike_mcp.errors import NotFoundError, ValidationError
from spike_mcp.generator import generate_spike
from spike_mcp.models import SpikeSpec
from spike_mcp.render import render_spike, unresolved, unsafe_paths

APPLY_STRATEGIES = ("overwrite", "three_way_merge", "abort")
GENERATED_PREFIXES = ("strike", "gen", "any")


def resolve_spike(spike_id: str, settings: Settings | None = None) -> SpikeSpec:
    """Catalog entry if present, else the generated spec."""
    settings = settings or get_settings()
    cfg = settings.get_catalog_config()
    try:
        return catalog.load_spike(spike_id, cfg)
    except NotFoundError:
        pass
    except ValidationError:
        # Names the catalog cannot even store may still be generated ids
        if not grammar.is_generated_id(spike_id):
            raise
    if grammar.is_generated_id(spike_id):
        return generate_spike(spike_id)
    raise NotFoundError("resolve", spike_id, "no catalog entry or generated spike")


def _summary_item(spec, value: float) -> dict:
    return {
        "id": spec.id,
        "name": spec.name,
        "stack": list(spec.stack),
        "tags": list(spec.tags),
        "score": round(value, 2),
    }


# ---------------------------------------------------------------------------
# spike tool
# ---------------------------------------------------------------------------


def discover(query: str | None = None, limit: int | None = None, offset: int = 0) -> dict:
    settings = get_settings()
    cfg = settings.get_catalog_config()
    names = catalog.list_names(None, cfg)
    ids = matching.candidate_ids(query, settings, names)

    scored = [
        (value, meta)
        for _, value, meta in matching.score_candidates(query, ids, settings, cfg, set(names))
    ]
    scored.sort(key=lambda pair: (-pair[0], pair[1].id))

    start = max(0, offset)
    window = scored[start:] if limit is None else scored[start : start + max(0, limit)]
    return {
        "items": [_summary_item(meta, value) for value, meta in window],
        "total": len(scored),
    }


def preview(spike_id: str, params: Mapping[str, object] | None = None) -> dict:
    spec = resolve_spike(spike_id)
    files, patches = render_spike(spec, params)
    return {
        "id": spec.id,
        "files": [f.model_dump(exclude={"template"}) for f in files],
        "patches": [p.model_dump() for p in patches],
        "next_actions": [
            {
                "tool": "apply-spike",
                "args": {"id": spec.id, "params": dict(params or {}), "strategy": "three_way_merge"},
            }
        ],
    }


def apply(
    spike_id: str,
    params: Mapping[str, object] | None = None,
    strategy: str = "three_way_merge",
) -> dict:
    """Return the plan a client would apply. Never writes files."""
    if strategy not in APPLY_STRATEGIES:
        raise ValidationError(
            "apply", spike_id, f"unknown strategy '{strategy}', expected one of {list(APPLY_STRATEGIES)}"
        )
    plan = preview(spike_id, params)
    plan.update(
        strategy=strategy,
        applied=False,
        next_actions=[
            {"tool": "validate-spike", "args": {"id": plan["id"], "params": dict(params or {})}}
        ],
    )
    return plan


def validate(spike_id: str, params: Mapping[str, object] | None = None) -> dict:
    """Structural checks only: required params, unsafe paths and leftover placeholders."""
    spec = resolve_spike(spike_id)
    given = {k for k, v in (params or {}).items() if v is not None}
    issues = [
        {"level": "error", "message": f"missing required param '{p.name}'"}
        for p in spec.params
        if p.required and p.name not in given and p.default is None
    ]
    issues.extend(
        {"level": "error", "message": f"unsafe file path '{path}'"}
        for path in unsafe_paths(spec, params)
    )
    issues.extend(
        {"level": "warn", "message": f"unresolved placeholder '{{{{{name}}}}}'"}
        for name in unresolved(spec, params)
    )
    if any(i["level"] == "error" for i in issues):
        status = "fail"
    else:
        status = "warn" if issues else "pass"
    return {
        "status": status,
        "issues": issues,
        "next_actions": [{"tool": "explain-spike", "args": {"id": spec.id}}],
    }


def explain(spike_id: str) -> dict:
    spec = resolve_spike(spike_id)
    lines = [
        f"Spike: {spec.name}" + (f"@{spec.version}" if spec.version else ""),
        spec.description or "",
        f"Stack: {', '.join(spec.stack)}" if spec.stack else "",
        f"Tags: {', '.join(spec.tags)}" if spec.tags else "",
        f"Files: {', '.join(f.path for f in spec.files)}" if spec.files else "",
        f"Params: {', '.join(p.name for p in spec.params)}" if spec.params else "",
    ]
    return {
        "text": "\n".join(line for line in lines if line),
        "spec": spec.model_dump(exclude_none=True),
    }


def auto(task: str, constraints: Mapping[str, object] | None = None) -> dict:
    if not task or not task.strip():
        raise ValidationError("auto", str(task), "task must be a non-empty string")
    settings = get_settings()
    selection = matching.auto_select(task, settings, settings.get_catalog_config())
    if selection.best is None:
        raise NotFoundError("auto", task, "no spike candidates available")

    best_id = selection.best.id
    spec = resolve_spike(best_id, settings)
    logger.info(f"auto selected {best_id} (score={selection.best_score:.2f})")
    return {
        "selected_id": best_id,
        "selected_spike": spec.model_dump(exclude_none=True),
        "coverage_score": selection.coverage_score,
        "candidates": [_summary_item(meta, value) for value, meta in selection.top],
        "residual_work": [
            f"not covered by {best_id}: {token}"
            for token in matching.unmatched(task, spec)
        ]
        if selection.best_score < matching.ALIAS_SCORE
        else [],
        "next_actions": [
            {"tool": "preview-spike", "args": {"id": best_id, "params": dict(constraints or {})}}
        ],
    }


# ---------------------------------------------------------------------------
# catalog tool
# ---------------------------------------------------------------------------


def list_generated(
    libs: list[str] | None = None,
    patterns: list[str] | None = None,
    styles: list[str] | None = None,
    langs: list[str] | None = None,
    limit: int | None = None,
    prefix: str = "strike",
    offset: int = 0,
) -> dict:
    if prefix not in GENERATED_PREFIXES:
        raise ValidationError(
            "list_generated", prefix, f"prefix must be one of {list(GENERATED_PREFIXES)}"
        )
    settings = get_settings()
    ids = grammar.list_generated_spike_ids_filtered(
        libs=libs,
        patterns=patterns,
        styles=styles,
        langs=langs,
        limit=limit,
        prefixes=None if prefix == "any" else [prefix],
        offset=offset,
        cap=settings.generated_cap(),
    )
    return {"ids": ids, "count": len(ids), "prefix": prefix}


def list_packs() -> dict:
    return {"packs": packs.list_packs()}


def pack_ids(pack: str, limit: int | None = None) -> dict:
    if packs.get_pack(pack) is None:
        raise NotFoundError("pack", pack, f"unknown pack, expected one of {list(packs.SPIKE_PACKS)}")
    ids = packs.pack_ids(pack, limit=limit, cap=get_settings().generated_cap())
    return {"pack": pack, "ids": ids, "count": len(ids)}


def catalog_list(filter_regex: str | None = None) -> dict:
    settings = get_settings()
    names = catalog.list_names(filter_regex, settings.get_catalog_config())
    cap = settings.list_cap()
    shown = names if cap is None else names[:cap]
    return {"names": shown, "count": len(shown), "total": len(names)}


def catalog_read(name: str) -> dict:
    ext, content = catalog.read_entry(name, get_settings().get_catalog_config())
    return {"name": name, "extension": ext, "content": content}


def catalog_write(name: str, content: str) -> dict:
    path = catalog.write(name, content, get_settings().get_catalog_config())
    return {"name": name, "path": str(path)}


def catalog_delete(name: str) -> dict:
    return {"name": name, "deleted": catalog.delete(name, get_settings().get_catalog_config())}


def catalog_stats() -> dict:
    return catalog.stats(get_settings().get_catalog_config())


def catalog_seed() -> dict:
    written = catalog.seed_catalog(get_settings().get_catalog_config())
    return {"seeded": written, "count": len(written)}


def spike_stats() -> dict:
    """Catalog counts plus the size of the generated space."""
    settings = get_settings()
    cfg = settings.get_catalog_config()
    names = catalog.list_names(None, cfg)
    total = grammar.total_generated()
    cap = settings.generated_cap()
    return {
        "catalog": catalog.stats(cfg),
        "catalog_sample": names[:20],
        "generated_total": total,
        "generated_listed": total if cap is None else min(total, cap),
        "catalog_generated_ids": [n for n in names if grammar.is_generated_id(n)],
    }
