"""Building blocks shared by every generator specialization.

Templates below use two kinds of markers:

- ``__LIB__``, ``__PATTERN__``, ``__STYLE__``, ``__LANG__``, ``__ID__`` and
  ``__SLUG__`` are filled in at generation time by ``GenContext.fill``;
- ``{{name}}`` placeholders are left for ``spike_mcp.render`` at preview time.
"""

from dataclasses import dataclass, field

from spike_mcp.models import FileTemplate, Patch, SpikeParam

# Source extension per language tag
CODE_EXT: dict[str, str] = {
    "ts": "ts",
    "js": "js",
    "py": "py",
    "go": "go",
    "rs": "rs",
    "kt": "kt",
}

# npm/pip package versions used by dependency patches
NPM_VERSIONS: dict[str, str] = {
    "@apollo/client": "^3.10.0",
    "@apollo/server": "^4.10.0",
    "@prisma/client": "^5.14.0",
    "ably": "^2.0.0",
    "elysia": "^1.0.0",
    "express": "^4.19.0",
    "graphql": "^16.8.0",
    "next": "^14.2.0",
    "next-auth": "^4.24.0",
    "prisma": "^5.14.0",
    "react": "^18.3.0",
    "reactflow": "^11.11.0",
    "stripe": "^15.0.0",
    "zod": "^3.23.0",
}

PIP_VERSIONS: dict[str, str] = {
    "fastapi": ">=0.110",
    "httpx": ">=0.27",
    "prisma": ">=0.13",
    "pydantic": ">=2.5",
    "pytest": ">=8.0",
    "stripe": ">=9.0",
    "uvicorn": ">=0.29",
}


@dataclass(frozen=True)
class GenContext:
    """Parsed id components handed to a specialization."""

    spike_id: str
    lib: str
    pattern: str
    style: str
    lang: str
    prefix: str | None = None

    @property
    def ext(self) -> str:
        return CODE_EXT.get(self.lang, "txt")

    @property
    def is_node(self) -> bool:
        return self.lang in ("ts", "js")

    @property
    def jsx_ext(self) -> str:
        """Component file extension (tsx for TypeScript, jsx otherwise)."""
        return "tsx" if self.lang == "ts" else "jsx"

    @property
    def slug(self) -> str:
        return self.spike_id.replace("-", "_")

    def fill(self, text: str) -> str:
        return (
            text.replace("__ID__", self.spike_id)
            .replace("__SLUG__", self.slug)
            .replace("__LIB__", self.lib)
            .replace("__PATTERN__", self.pattern)
            .replace("__STYLE__", self.style)
            .replace("__LANG__", self.lang)
        )


@dataclass
class Scaffold:
    """Mutable accumulator a specialization writes into.

    A fresh instance is created per ``generate_spike`` call.
    """

    ctx: GenContext
    files: list[FileTemplate] = field(default_factory=list)
    patches: list[Patch] = field(default_factory=list)
    params: list[SpikeParam] = field(default_factory=list)
    stack: list[str] = field(default_factory=list)
    npm: list[str] = field(default_factory=list)
    pip: list[str] = field(default_factory=list)

    def file(self, path: str, template: str) -> None:
        path = self.ctx.fill(path)
        if any(f.path == path for f in self.files):
            return
        self.files.append(FileTemplate(path=path, template=self.ctx.fill(template)))

    def param(self, name: str, default: str, description: str | None = None) -> None:
        if any(p.name == name for p in self.params):
            return
        self.params.append(SpikeParam(name=name, default=default, description=description))

    def depends(self, *, npm: tuple[str, ...] = (), pip: tuple[str, ...] = ()) -> None:
        self.npm.extend(d for d in npm if d not in self.npm)
        self.pip.extend(d for d in pip if d not in self.pip)


# ---------------------------------------------------------------------------
# Dependency patches
# ---------------------------------------------------------------------------


def package_json_patch(deps: list[str]) -> Patch:
    lines = [f'+    "{d}": "{NPM_VERSIONS.get(d, "latest")}",' for d in sorted(deps)]
    diff = "\n".join(
        [
            "--- a/package.json",
            "+++ b/package.json",
            f"@@ -1,2 +1,{2 + len(lines)} @@",
            " {",
            '   "dependencies": {',
            *lines,
            "",
        ]
    )
    return Patch(path="package.json", diff=diff)


def requirements_patch(deps: list[str]) -> Patch:
    lines = [f"+{d}{PIP_VERSIONS.get(d, '')}" for d in sorted(deps)]
    diff = "\n".join(
        [
            "--- a/requirements.txt",
            "+++ b/requirements.txt",
            f"@@ -0,0 +1,{len(lines)} @@",
            *lines,
            "",
        ]
    )
    return Patch(path="requirements.txt", diff=diff)


def dependency_patches(out: Scaffold) -> list[Patch]:
    if out.ctx.is_node and out.npm:
        return [package_json_patch(out.npm)]
    if out.ctx.lang == "py" and out.pip:
        return [requirements_patch(out.pip)]
    return []


# ---------------------------------------------------------------------------
# Generic snippet + README (every spike gets these)
# ---------------------------------------------------------------------------

_SNIPPETS: dict[str, str] = {
    "ts": (
        "// Auto-generated spike stub for __LIB__ (__PATTERN__)\n"
        "export function demo(): void {\n"
        "  console.log('use __LIB__ - __PATTERN__ (__STYLE__) in {{app_name}}');\n"
        "}\n"
    ),
    "js": (
        "// Auto-generated spike stub for __LIB__ (__PATTERN__)\n"
        "module.exports = function demo() {\n"
        "  console.log('use __LIB__ - __PATTERN__ (__STYLE__) in {{app_name}}');\n"
        "};\n"
    ),
    "py": (
        "# Auto-generated spike stub for __LIB__ (__PATTERN__)\n"
        "def demo() -> None:\n"
        "    print('use __LIB__ - __PATTERN__ (__STYLE__) in {{app_name}}')\n"
    ),
    "go": (
        "// Auto-generated spike stub for __LIB__ (__PATTERN__)\n"
        "package main\n\n"
        'import "fmt"\n\n'
        'func demo() { fmt.Println("use __LIB__ - __PATTERN__ (__STYLE__) in {{app_name}}") }\n'
    ),
    "rs": (
        "// Auto-generated spike stub for __LIB__ (__PATTERN__)\n"
        'pub fn demo() { println!("use __LIB__ - __PATTERN__ (__STYLE__) in {{app_name}}"); }\n'
    ),
    "kt": (
        "// Auto-generated spike stub for __LIB__ (__PATTERN__)\n"
        'fun demo() { println("use __LIB__ - __PATTERN__ (__STYLE__) in {{app_name}}") }\n'
    ),
}

_README = (
    "# __LIB__ __PATTERN__ (__STYLE__, __LANG__)\n\n"
    "This is an auto-generated spike template for `{{app_name}}`.\n\n"
    "- id: `__ID__`\n"
    "- library: __LIB__\n"
    "- pattern: __PATTERN__\n"
    "- style: __STYLE__\n"
)


def generic(out: Scaffold) -> None:
    """Fallback specialization: snippet + README. Always emits a file."""
    ctx = out.ctx
    header = "# Spike: __LIB__ __PATTERN__ (__LANG__)\n"
    body = _SNIPPETS.get(ctx.lang, "// Auto-generated spike stub for __LIB__ (__PATTERN__)\n")
    out.file("spikes/__ID__.__LANG__.txt", header + body)
    out.file("spikes/__ID__.md", _README)


# ---------------------------------------------------------------------------
# Style layer
# ---------------------------------------------------------------------------

_TEST_SKELETONS: dict[str, tuple[str, str]] = {
    "ts": (
        "spikes/__ID__.test.ts",
        "import { describe, it, expect } from 'vitest';\n\n"
        "describe('__LIB__ __PATTERN__', () => {\n"
        "  it('works', () => {\n"
        "    expect(true).toBe(true);\n"
        "  });\n"
        "});\n",
    ),
    "js": (
        "spikes/__ID__.test.js",
        "describe('__LIB__ __PATTERN__', () => {\n"
        "  it('works', () => {\n"
        "    expect(true).toBe(true);\n"
        "  });\n"
        "});\n",
    ),
    "py": (
        "spikes/test___SLUG__.py",
        "def test___SLUG__():\n    assert True\n",
    ),
    "go": (
        "spikes/__SLUG___test.go",
        'package main\n\nimport "testing"\n\n'
        "func TestDemo(t *testing.T) {\n\tdemo()\n}\n",
    ),
    "rs": (
        "spikes/__SLUG___test.rs",
        "#[cfg(test)]\nmod tests {\n    #[test]\n    fn works() {\n        assert!(true);\n    }\n}\n",
    ),
    "kt": (
        "spikes/__SLUG__Test.kt",
        "import kotlin.test.Test\nimport kotlin.test.assertTrue\n\n"
        "class DemoTest {\n    @Test\n    fun works() {\n        assertTrue(true)\n    }\n}\n",
    ),
}

_SECURE_TS = {
    "headers": (
        "src/security/headers.__EXT__",
        "export const securityHeaders__TYPE__ = {\n"
        "  'Content-Security-Policy': \"default-src 'self'\",\n"
        "  'X-Content-Type-Options': 'nosniff',\n"
        "  'X-Frame-Options': 'DENY',\n"
        "  'Referrer-Policy': 'strict-origin-when-cross-origin',\n"
        "};\n",
    ),
    "rate_limit": (
        "src/security/rateLimit.__EXT__",
        "const hits = new Map__MAP__();\n\n"
        "export function allow(key__KEY__, limit = 60, windowMs = 60_000)__BOOL__ {\n"
        "  const now = Date.now();\n"
        "  const recent = (hits.get(key) || []).filter((t) => now - t < windowMs);\n"
        "  recent.push(now);\n"
        "  hits.set(key, recent);\n"
        "  return recent.length <= limit;\n"
        "}\n",
    ),
    "audit": (
        "src/security/audit.__EXT__",
        "export function audit(event__KEY__, data__DATA__ = {}) {\n"
        "  console.info(JSON.stringify({ at: new Date().toISOString(), app: '{{app_name}}', event, ...data }));\n"
        "}\n",
    ),
}

_SECURE_PY = {
    "headers": (
        "app/security/headers.py",
        "SECURITY_HEADERS = {\n"
        "    \"Content-Security-Policy\": \"default-src 'self'\",\n"
        '    "X-Content-Type-Options": "nosniff",\n'
        '    "X-Frame-Options": "DENY",\n'
        "}\n",
    ),
    "rate_limit": (
        "app/security/rate_limit.py",
        "import time\nfrom collections import defaultdict\n\n"
        "_hits: dict[str, list[float]] = defaultdict(list)\n\n\n"
        "def allow(key: str, limit: int = 60, window: float = 60.0) -> bool:\n"
        "    now = time.monotonic()\n"
        "    recent = [t for t in _hits[key] if now - t < window]\n"
        "    recent.append(now)\n"
        "    _hits[key] = recent\n"
        "    return len(recent) <= limit\n",
    ),
    "audit": (
        "app/security/audit.py",
        "import json\nimport logging\nfrom datetime import datetime, timezone\n\n"
        'log = logging.getLogger("{{app_name}}.audit")\n\n\n'
        "def audit(event: str, **data) -> None:\n"
        '    log.info(json.dumps({"at": datetime.now(timezone.utc).isoformat(), "event": event, **data}))\n',
    ),
}

_SECURE_OTHER = {
    "go": (
        "security/security.go",
        "package security\n\n"
        'import (\n\t"log"\n\t"sync"\n\t"time"\n)\n\n'
        'var Headers = map[string]string{"X-Content-Type-Options": "nosniff", "X-Frame-Options": "DENY"}\n\n'
        "type window struct {\n\tstart time.Time\n\tcount int\n}\n\n"
        "var (\n\tmu   sync.Mutex\n\thits = map[string]*window{}\n)\n\n"
        "// Allow is a fixed-window rate limiter keyed by caller.\n"
        "func Allow(key string, limit int, per time.Duration) bool {\n"
        "\tmu.Lock()\n\tdefer mu.Unlock()\n"
        "\tnow := time.Now()\n"
        "\tw, ok := hits[key]\n"
        "\tif !ok || now.Sub(w.start) >= per {\n"
        "\t\tw = &window{start: now}\n\t\thits[key] = w\n\t}\n"
        "\tw.count++\n"
        "\treturn w.count <= limit\n}\n\n"
        'func Audit(event string) { log.Printf("audit app={{app_name}} event=%s", event) }\n',
    ),
    "rs": (
        "src/security.rs",
        "use std::collections::HashMap;\n"
        "use std::sync::Mutex;\n"
        "use std::time::{Duration, Instant};\n\n"
        'pub const HEADERS: [(&str, &str); 2] = [("X-Content-Type-Options", "nosniff"), ("X-Frame-Options", "DENY")];\n\n'
        "/// Fixed-window rate limiter keyed by caller.\n"
        "pub struct RateLimiter {\n"
        "    limit: u32,\n"
        "    per: Duration,\n"
        "    hits: Mutex<HashMap<String, (Instant, u32)>>,\n"
        "}\n\n"
        "impl RateLimiter {\n"
        "    pub fn new(limit: u32, per: Duration) -> Self {\n"
        "        Self { limit, per, hits: Mutex::new(HashMap::new()) }\n"
        "    }\n\n"
        "    pub fn allow(&self, key: &str) -> bool {\n"
        "        let now = Instant::now();\n"
        "        let mut hits = self.hits.lock().unwrap();\n"
        "        let entry = hits.entry(key.to_string()).or_insert((now, 0));\n"
        "        if now.duration_since(entry.0) >= self.per {\n"
        "            *entry = (now, 0);\n"
        "        }\n"
        "        entry.1 += 1;\n"
        "        entry.1 <= self.limit\n"
        "    }\n"
        "}\n\n"
        'pub fn audit(event: &str) { eprintln!("audit app={{app_name}} event={}", event); }\n',
    ),
    "kt": (
        "src/main/kotlin/Security.kt",
        'val securityHeaders = mapOf("X-Content-Type-Options" to "nosniff", "X-Frame-Options" to "DENY")\n\n'
        "/** Fixed-window rate limiter keyed by caller. */\n"
        "class RateLimiter(private val limit: Int, private val windowMs: Long) {\n"
        "    private val hits = mutableMapOf<String, Pair<Long, Int>>()\n\n"
        "    @Synchronized\n"
        "    fun allow(key: String): Boolean {\n"
        "        val now = System.currentTimeMillis()\n"
        "        val (start, count) = hits[key]?.takeIf { now - it.first < windowMs } ?: (now to 0)\n"
        "        hits[key] = start to count + 1\n"
        "        return count + 1 <= limit\n"
        "    }\n"
        "}\n\n"
        'fun audit(event: String) = println("audit app={{app_name}} event=$event")\n',
    ),
}

_ADVANCED = {
    "ts": [
        (
            "src/lib/retry.ts",
            "export async function retry<T>(fn: () => Promise<T>, attempts = 3, delayMs = 200): Promise<T> {\n"
            "  let last: unknown;\n"
            "  for (let i = 0; i < attempts; i++) {\n"
            "    try { return await fn(); } catch (e) { last = e; await new Promise((r) => setTimeout(r, delayMs * 2 ** i)); }\n"
            "  }\n"
            "  throw last;\n"
            "}\n",
        ),
        (
            "src/lib/logger.ts",
            "export const log = (msg: string, extra: Record<string, unknown> = {}) =>\n"
            "  console.log(JSON.stringify({ app: '{{app_name}}', msg, ...extra }));\n",
        ),
    ],
    "js": [
        (
            "src/lib/retry.js",
            "async function retry(fn, attempts = 3, delayMs = 200) {\n"
            "  let last;\n"
            "  for (let i = 0; i < attempts; i++) {\n"
            "    try { return await fn(); } catch (e) { last = e; await new Promise((r) => setTimeout(r, delayMs * 2 ** i)); }\n"
            "  }\n"
            "  throw last;\n"
            "}\nmodule.exports = { retry };\n",
        ),
        (
            "src/lib/logger.js",
            "const log = (msg, extra = {}) => console.log(JSON.stringify({ app: '{{app_name}}', msg, ...extra }));\n"
            "module.exports = { log };\n",
        ),
    ],
    "py": [
        (
            "app/lib/retry.py",
            "import time\n\n\n"
            "def retry(fn, attempts: int = 3, delay: float = 0.2):\n"
            "    for i in range(attempts):\n"
            "        try:\n"
            "            return fn()\n"
            "        except Exception:\n"
            "            if i == attempts - 1:\n"
            "                raise\n"
            "            time.sleep(delay * 2**i)\n",
        ),
        (
            "app/lib/logger.py",
            "import json\nimport logging\n\n"
            'log = logging.getLogger("{{app_name}}")\n\n\n'
            "def log_event(msg: str, **extra) -> None:\n"
            '    log.info(json.dumps({"app": "{{app_name}}", "msg": msg, **extra}))\n',
        ),
    ],
    "go": [
        (
            "internal/retry/retry.go",
            "package retry\n\n"
            'import "time"\n\n'
            "// Do calls fn until it succeeds, doubling the delay after each failure.\n"
            "func Do(attempts int, delay time.Duration, fn func() error) error {\n"
            "\tvar err error\n"
            "\tfor i := 0; i < attempts; i++ {\n"
            "\t\tif err = fn(); err == nil {\n\t\t\treturn nil\n\t\t}\n"
            "\t\ttime.Sleep(delay << i)\n"
            "\t}\n"
            "\treturn err\n}\n",
        ),
        (
            "internal/logging/logging.go",
            "package logging\n\n"
            'import (\n\t"log/slog"\n\t"os"\n)\n\n'
            "var Logger = slog.New(slog.NewJSONHandler(os.Stdout, nil)).With(\"app\", \"{{app_name}}\")\n",
        ),
    ],
    "rs": [
        (
            "src/retry.rs",
            "use std::{thread, time::Duration};\n\n"
            "pub fn retry<T, E>(attempts: u32, delay: Duration, mut f: impl FnMut() -> Result<T, E>) -> Result<T, E> {\n"
            "    let mut i = 0;\n"
            "    loop {\n"
            "        match f() {\n"
            "            Ok(v) => return Ok(v),\n"
            "            Err(e) if i + 1 >= attempts => return Err(e),\n"
            "            Err(_) => {\n"
            "                thread::sleep(delay * 2u32.pow(i));\n"
            "                i += 1;\n"
            "            }\n"
            "        }\n"
            "    }\n"
            "}\n",
        ),
        (
            "src/logging.rs",
            "pub fn log_event(msg: &str) {\n"
            '    println!("{{\\"app\\":\\"{{app_name}}\\",\\"msg\\":\\"{}\\"}}", msg);\n'
            "}\n",
        ),
    ],
    "kt": [
        (
            "src/main/kotlin/Retry.kt",
            "fun <T> retry(attempts: Int = 3, delayMs: Long = 200, block: () -> T): T {\n"
            "    var last: Throwable? = null\n"
            "    repeat(attempts) { i ->\n"
            "        try {\n"
            "            return block()\n"
            "        } catch (e: Exception) {\n"
            "            last = e\n"
            "            Thread.sleep(delayMs shl i)\n"
            "        }\n"
            "    }\n"
            "    throw last!!\n"
            "}\n",
        ),
        (
            "src/main/kotlin/Logging.kt",
            "fun logEvent(msg: String) = println(\"\"\"{\"app\":\"{{app_name}}\",\"msg\":\"$msg\"}\"\"\")\n",
        ),
    ],
}


def apply_style(out: Scaffold) -> None:
    """Add the style-driven files shared by every library."""
    ctx = out.ctx
    if ctx.style == "testing":
        skeleton = _TEST_SKELETONS.get(ctx.lang)
        if skeleton:
            out.file(*skeleton)
    elif ctx.style == "secure":
        if ctx.is_node:
            typed = ctx.lang == "ts"
            for path, body in _SECURE_TS.values():
                out.file(
                    path.replace("__EXT__", ctx.ext),
                    body.replace("__TYPE__", ": Record<string, string>" if typed else "")
                    .replace("__MAP__", "<string, number[]>" if typed else "")
                    .replace("__KEY__", ": string" if typed else "")
                    .replace("__BOOL__", ": boolean" if typed else "")
                    .replace("__DATA__", ": Record<string, unknown>" if typed else ""),
                )
        elif ctx.lang == "py":
            for path, body in _SECURE_PY.values():
                out.file(path, body)
        elif ctx.lang in _SECURE_OTHER:
            out.file(*_SECURE_OTHER[ctx.lang])
    elif ctx.style == "advanced":
        for path, body in _ADVANCED.get(ctx.lang, []):
            out.file(path, body)
