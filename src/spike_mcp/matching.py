"""Query normalization, scoring and auto-selection of spikes.

Scores are ``hits / len(query tokens)`` in ``[0, 1]``. An id named by an
alias in the query scores ``ALIAS_SCORE``, which no keyword score can reach.
Candidates are scored in fixed-size batches; the generated part of the
candidate set is narrowed by attribute hints found in the query and bounded
by ``SPIKE_AUTO_SCAN_LIMIT``.
"""

import heapq
import re
import unicodedata
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from loguru import logger

from spike_mcp import catalog, grammar
from spike_mcp.config import Settings
from spike_mcp.errors import SpikeError
from spike_mcp.generator import generate_metadata
from spike_mcp.models import CatalogConfig, SpikeMetadata, SpikeSpec

ALIAS_SCORE = 2.0
MIN_COVERAGE = 0.10
MAX_COVERAGE = 1.00

ALIASES: dict[str, str] = {
    "next-mw-ts": "strike-nextjs-middleware-typed-ts",
    "next-route-ts": "strike-nextjs-route-typed-ts",
    "next-auth-ts": "strike-next-auth-config-typed-ts",
    "prisma-schema-ts": "strike-prisma-schema-typed-ts",
    "prisma-crud-ts": "strike-prisma-crud-typed-ts",
    "elysia-worker-ts": "strike-bun-elysia-worker-typed-ts",
    "fastapi-route-py": "strike-fastapi-route-typed-py",
    "fastapi-secure-py": "strike-fastapi-route-secure-py",
    "react-component-ts": "strike-react-component-typed-ts",
    "react-hook-ts": "strike-react-hook-typed-ts",
    "stripe-webhook-ts": "strike-stripe-webhook-typed-ts",
    "gha-ci": "strike-github-actions-config-basic-ts",
}

SYNONYMS: dict[str, str] = {
    "typescript": "ts",
    "javascript": "js",
    "python": "py",
    "golang": "go",
    "rust": "rs",
    "kotlin": "kt",
    "next": "nextjs",
    "api": "route",
    "endpoint": "route",
    "mw": "middleware",
    "test": "testing",
    "tests": "testing",
    "secured": "secure",
    "security": "secure",
    "types": "typed",
}

# Keywords recognized inside non-ASCII runs (no word boundaries there)
KEYWORDS: dict[str, str] = {
    "セキュア": "secure",
    "ルート": "route",
    "型": "typed",
    "テスト": "testing",
    "コンポーネント": "component",
    "ミドルウェア": "middleware",
    "スキーマ": "schema",
    "ワーカー": "worker",
    "フック": "hook",
    "クライアント": "client",
}

_ASCII_WORD_RE = re.compile(r"[a-z0-9]+(?:[._\-][a-z0-9]+)*")
_NON_ASCII_WORD_RE = re.compile(r"[^\W\x00-\x7f]+")
_ALIAS_MARKER_RE = re.compile(r"\[\s*alias\s*:\s*([^\]]+?)\s*\]", re.IGNORECASE)
_BARE_TOKEN_RE = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)+")


def _canonical(token: str) -> str:
    return SYNONYMS.get(token, token)


def normalize(text: str | None) -> list[str]:
    """Tokenize free text for scoring.

    Hyphen/underscore compounds yield the whole compound followed by its
    parts. The result is deduplicated in order of first appearance.
    """
    if not text:
        return []
    text = unicodedata.normalize("NFKC", text).casefold()

    tokens: list[str] = []
    for word in _ASCII_WORD_RE.findall(text):
        word = word.replace(".", "")
        parts = [p for p in re.split(r"[_\-]", word) if p]
        if len(parts) > 1:
            tokens.append(word.replace("_", "-"))
        tokens.extend(_canonical(p) for p in parts)

    for run in _NON_ASCII_WORD_RE.findall(text):
        found = [mapped for kw, mapped in KEYWORDS.items() if kw in run]
        tokens.extend(found or [run])

    return list(dict.fromkeys(tokens))


def extract_aliases(query: str | None) -> list[str]:
    """Resolve ``[alias: X]`` markers and bare alias tokens to spike ids."""
    if not query:
        return []
    text = unicodedata.normalize("NFKC", query).casefold()
    names = [m.strip() for m in _ALIAS_MARKER_RE.findall(text)]
    names.extend(_BARE_TOKEN_RE.findall(_ALIAS_MARKER_RE.sub(" ", text)))
    return list(dict.fromkeys(ALIASES[n] for n in names if n in ALIASES))


def _haystack(spec: SpikeSpec | SpikeMetadata) -> set[str]:
    text = " ".join([spec.name, spec.description or "", *spec.stack, *spec.tags])
    return set(normalize(text))


def _query_tokens(query: str) -> list[str]:
    # Alias markers select directly; their text is not part of the keywords
    return normalize(_ALIAS_MARKER_RE.sub(" ", query))


def score(query: str | None, spec: SpikeSpec | SpikeMetadata) -> float:
    if not query:
        return 0.0
    if spec.id in extract_aliases(query):
        return ALIAS_SCORE
    tokens = _query_tokens(query)
    if not tokens:
        return 0.0
    hay = _haystack(spec)
    return sum(1 for t in tokens if t in hay) / len(tokens)


def unmatched(query: str | None, spec: SpikeSpec | SpikeMetadata) -> list[str]:
    """Query tokens that ``spec`` does not cover."""
    if not query:
        return []
    hay = _haystack(spec)
    return [t for t in _query_tokens(query) if t not in hay]


def rank(
    query: str | None, specs: Iterable[SpikeSpec | SpikeMetadata]
) -> list[tuple[float, SpikeSpec | SpikeMetadata]]:
    scored = [(score(query, s), s) for s in specs]
    scored.sort(key=lambda pair: (-pair[0], pair[1].id))
    return scored


def coverage(value: float) -> float:
    return round(min(MAX_COVERAGE, max(MIN_COVERAGE, value)), 2)


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------


def _lib_hints(tokens: set[str]) -> list[str]:
    small = set(grammar.PATTERNS) | set(grammar.STYLES) | set(grammar.LANGS)
    hints = []
    for lib in grammar.LIBRARIES:
        parts = [p for p in lib.split("-") if len(p) >= 3 and p not in small]
        if lib in tokens or lib.replace("-", "") in tokens or any(p in tokens for p in parts):
            hints.append(lib)
    return hints


def attribute_hints(query: str | None) -> dict[str, list[str]]:
    """Grammar attributes mentioned in the query, per axis."""
    tokens = set(normalize(query))
    return {
        "libs": _lib_hints(tokens),
        "patterns": [p for p in grammar.PATTERNS if p in tokens],
        "styles": [s for s in grammar.STYLES if s in tokens],
        "langs": [lang for lang in grammar.LANGS if lang in tokens],
    }


def candidate_ids(
    query: str | None,
    settings: Settings,
    catalog_names: Iterable[str] = (),
) -> list[str]:
    """Alias targets, then catalog names, then the narrowed generated space."""
    ids = list(extract_aliases(query))

    names = list(catalog_names)
    cap = settings.list_cap()
    ids.extend(names[:cap] if cap is not None else names)

    limit = settings.auto_scan_cap()
    generated_cap = settings.generated_cap()
    if generated_cap is not None:
        limit = min(limit, generated_cap)

    hints = attribute_hints(query)
    ids.extend(
        grammar.iter_generated_spike_ids(
            libs=hints["libs"] or None,
            patterns=hints["patterns"] or None,
            styles=hints["styles"] or None,
            langs=hints["langs"] or None,
            limit=limit,
        )
    )
    return list(dict.fromkeys(ids))


def load_metadata(
    spike_id: str, catalog_config: CatalogConfig, catalog_names: set[str]
) -> SpikeMetadata | None:
    """Catalog entry first, then generated. None when neither applies."""
    if spike_id in catalog_names:
        try:
            return catalog.load_spike_metadata(spike_id, catalog_config)
        except SpikeError as e:
            logger.warning(f"Skipping malformed catalog entry {spike_id}: {e}")
            return None
    if grammar.is_generated_id(spike_id):
        return generate_metadata(spike_id)
    return None


def _batches(ids: list[str], size: int) -> Iterator[list[str]]:
    for start in range(0, len(ids), size):
        yield ids[start : start + size]


# ---------------------------------------------------------------------------
# Auto-selection
# ---------------------------------------------------------------------------


@dataclass
class AutoSelection:
    best: SpikeMetadata | None
    best_score: float
    coverage_score: float
    top: list[tuple[float, SpikeMetadata]] = field(default_factory=list)
    scanned: int = 0


def score_candidates(
    query: str | None,
    ids: list[str],
    settings: Settings,
    catalog_config: CatalogConfig,
    catalog_names: set[str],
) -> Iterator[tuple[int, float, SpikeMetadata]]:
    """Yield ``(position, score, metadata)`` for every loadable candidate."""
    batch_size = settings.auto_batch_size()
    position = 0
    for number, batch in enumerate(_batches(ids, batch_size), start=1):
        logger.debug(f"Scoring batch {number} ({len(batch)} candidates)")
        for spike_id in batch:
            meta = load_metadata(spike_id, catalog_config, catalog_names)
            if meta is None:
                continue
            yield position, score(query, meta), meta
            position += 1


def auto_select(
    task: str,
    settings: Settings,
    catalog_config: CatalogConfig,
) -> AutoSelection:
    names = catalog.list_names(None, catalog_config)
    ids = candidate_ids(task, settings, names)
    top_n = settings.auto_top_n()

    best: SpikeMetadata | None = None
    best_score = 0.0
    heap: list[tuple[float, int, SpikeMetadata]] = []
    scanned = 0

    for position, value, meta in score_candidates(
        task, ids, settings, catalog_config, set(names)
    ):
        scanned += 1
        if best is None or value > best_score:
            best, best_score = meta, value
        # Min-heap on (score, -position): the earliest of equal scores survives
        entry = (value, -position, meta)
        if len(heap) < top_n:
            heapq.heappush(heap, entry)
        elif entry[:2] > heap[0][:2]:
            heapq.heapreplace(heap, entry)

    top = [(v, m) for v, _, m in sorted(heap, key=lambda e: (-e[0], -e[1]))]
    logger.debug(f"auto_select scanned {scanned} candidates, best={best.id if best else None}")
    return AutoSelection(
        best=best,
        best_score=best_score,
        coverage_score=coverage(best_score) if best else 0.0,
        top=top,
        scanned=scanned,
    )
