"""Placeholder rendering for spike file templates.

Placeholders look like ``{{ name }}``. Each one resolves, in order, to:

1. the caller-supplied parameter,
2. the spike's own ``SpikeParam.default``,
3. ``DEFAULT_PARAMS`` below,
4. the untouched placeholder text.

Rendered paths must stay relative to the target project; anything else
raises ``ValidationError``.
"""

import re
from collections.abc import Mapping
from pathlib import PurePosixPath

from spike_mcp.errors import ValidationError
from spike_mcp.models import FileTemplate, Patch, SpikeSpec

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z0-9_\-]+)\s*\}\}")
_DRIVE_RE = re.compile(r"^[A-Za-z]:")

# Documented fallbacks for placeholders that spikes commonly share
DEFAULT_PARAMS: dict[str, str] = {
    "app_name": "spike-app",
    "component_name": "Demo",
    "model": "User",
    "port": "3000",
    "route": "health",
}


def placeholders(text: str) -> list[str]:
    """Placeholder names in order of first appearance."""
    return list(dict.fromkeys(_PLACEHOLDER_RE.findall(text or "")))


def spec_defaults(spec: SpikeSpec) -> dict[str, str]:
    return {p.name: p.default for p in spec.params if p.default is not None}


def resolve_params(
    params: Mapping[str, object] | None, defaults: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Merge the layers above into one lookup table (caller wins)."""
    merged = {**DEFAULT_PARAMS, **(defaults or {})}
    for key, value in (params or {}).items():
        if value is not None:
            merged[str(key)] = str(value)
    return merged


def render_string(text: str, values: Mapping[str, str]) -> str:
    def _sub(match: re.Match) -> str:
        return values.get(match.group(1), match.group(0))

    return _PLACEHOLDER_RE.sub(_sub, text or "")


def safe_path(path: str) -> str:
    """Normalize a rendered path, rejecting absolute paths and ``..``."""
    unified = path.replace("\\", "/")
    if unified.startswith("/") or _DRIVE_RE.match(unified):
        raise ValidationError("render", path, "absolute paths are not allowed")
    parts = [p for p in PurePosixPath(unified).parts if p != "."]
    if ".." in parts:
        raise ValidationError("render", path, "path escapes the project root")
    if not parts:
        raise ValidationError("render", path, "empty path")
    return "/".join(parts)


def render_files(
    files: list[FileTemplate], values: Mapping[str, str]
) -> list[FileTemplate]:
    return [
        FileTemplate(
            path=safe_path(render_string(f.path, values)),
            content=render_string(f.source(), values),
        )
        for f in files
    ]


def render_patches(patches: list[Patch], values: Mapping[str, str]) -> list[Patch]:
    return [
        Patch(
            path=safe_path(render_string(p.path, values)),
            diff=render_string(p.diff, values),
        )
        for p in patches
    ]


def render_spike(
    spec: SpikeSpec, params: Mapping[str, object] | None = None
) -> tuple[list[FileTemplate], list[Patch]]:
    values = resolve_params(params, spec_defaults(spec))
    return render_files(spec.files, values), render_patches(spec.patches, values)


def unsafe_paths(spec: SpikeSpec, params: Mapping[str, object] | None = None) -> list[str]:
    """Rendered paths that ``safe_path`` would reject."""
    values = resolve_params(params, spec_defaults(spec))
    bad = []
    for raw in [f.path for f in spec.files] + [p.path for p in spec.patches]:
        rendered = render_string(raw, values)
        try:
            safe_path(rendered)
        except ValidationError:
            bad.append(rendered)
    return bad


def unresolved(spec: SpikeSpec, params: Mapping[str, object] | None = None) -> list[str]:
    """Placeholders that would be left literal after rendering."""
    values = resolve_params(params, spec_defaults(spec))
    names: list[str] = []
    for f in spec.files:
        names.extend(placeholders(f.path))
        names.extend(placeholders(f.source()))
    for p in spec.patches:
        names.extend(placeholders(p.path))
        names.extend(placeholders(p.diff))
    return [n for n in dict.fromkeys(names) if n not in values]
