"""Tests for spike generation from ids."""

import pytest

from spike_mcp.errors import ValidationError
from spike_mcp.generator import SPECIALIZATIONS, generate_metadata, generate_spike
from spike_mcp.grammar import LANGS, PATTERNS, STYLES, list_generated_spike_ids_filtered


def _paths(spike_id: str) -> set[str]:
    return {f.path for f in generate_spike(spike_id).files}


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


class TestMetadata:
    def test_strike_spec(self):
        spec = generate_spike("strike-nextjs-route-typed-ts")
        assert spec.id == "strike-nextjs-route-typed-ts"
        assert spec.name == "nextjs route typed ts"
        assert spec.version == "0.1.0"
        assert spec.stack[:2] == ["nextjs", "ts"]
        assert spec.tags == ["route", "typed", "generated", "strike"]
        assert spec.description == "Auto-generated spike for nextjs route in ts (typed)."

    def test_gen_spec_has_no_strike_tag(self):
        spec = generate_spike("gen-vue-component-basic-js")
        assert spec.tags == ["component", "basic", "generated"]

    def test_app_name_default(self):
        spec = generate_spike("strike-express-route-basic-js")
        params = {p.name: p for p in spec.params}
        assert params["app_name"].default == "express-route-app"

    def test_prisma_model_param(self):
        spec = generate_spike("strike-prisma-schema-typed-ts")
        params = {p.name: p.default for p in spec.params}
        assert params["model"] == "User"

    def test_generate_metadata_matches_spec(self):
        spike_id = "strike-apollo-service-advanced-ts"
        spec = generate_spike(spike_id)
        meta = generate_metadata(spike_id)
        assert meta.id == spec.id
        assert meta.tags == spec.tags
        assert meta.file_count == len(spec.files)
        assert meta.patch_count == len(spec.patches)


# ---------------------------------------------------------------------------
# Purity and totality
# ---------------------------------------------------------------------------


class TestPurity:
    @pytest.mark.parametrize(
        "spike_id",
        [
            "strike-nextjs-middleware-typed-ts",
            "gen-reactflow-component-advanced-ts",
            "strike-fastapi-route-testing-py",
            "strike-foo-bar-baz-qux",
        ],
    )
    def test_deterministic(self, spike_id):
        assert generate_spike(spike_id) == generate_spike(spike_id)

    @pytest.mark.parametrize("spike_id", ["", "not-a-spike", "my-team-auth-notes", "strike-a-b-c"])
    def test_invalid_id(self, spike_id):
        with pytest.raises(ValidationError) as exc_info:
            generate_spike(spike_id)
        assert exc_info.value.operation == "generate"

    def test_unknown_tokens_use_generic_fallback(self):
        spec = generate_spike("strike-foo-bar-baz-qux")
        paths = {f.path for f in spec.files}
        assert paths == {"spikes/strike-foo-bar-baz-qux.qux.txt", "spikes/strike-foo-bar-baz-qux.md"}
        assert spec.patches == []

    def test_total_over_specialized_libraries(self):
        """Every specialized library generates for every pattern/style/lang."""
        ids = list_generated_spike_ids_filtered(libs=list(SPECIALIZATIONS), prefixes=["strike"])
        assert len(ids) == len(SPECIALIZATIONS) * len(PATTERNS) * len(STYLES) * len(LANGS)
        for spike_id in ids:
            spec = generate_spike(spike_id)
            paths = [f.path for f in spec.files]
            assert f"spikes/{spike_id}.md" in paths
            assert len(paths) == len(set(paths))
            assert all(f.template for f in spec.files)


# ---------------------------------------------------------------------------
# Generic files and style layer
# ---------------------------------------------------------------------------


class TestGenericAndStyles:
    def test_snippet_and_readme_always_present(self):
        paths = _paths("strike-vue-component-basic-go")
        assert "spikes/strike-vue-component-basic-go.go.txt" in paths
        assert "spikes/strike-vue-component-basic-go.md" in paths

    def test_snippet_is_language_specific(self):
        spec = generate_spike("strike-vue-component-basic-rs")
        snippet = next(f for f in spec.files if f.path.endswith(".rs.txt"))
        assert "pub fn demo()" in snippet.template
        assert "vue" in snippet.template

    @pytest.mark.parametrize(
        ("spike_id", "expected"),
        [
            ("strike-vue-component-testing-ts", "spikes/strike-vue-component-testing-ts.test.ts"),
            ("strike-vue-component-testing-js", "spikes/strike-vue-component-testing-js.test.js"),
            ("strike-vue-component-testing-py", "spikes/test_strike_vue_component_testing_py.py"),
            ("strike-vue-component-testing-go", "spikes/strike_vue_component_testing_go_test.go"),
        ],
    )
    def test_testing_skeleton(self, spike_id, expected):
        assert expected in _paths(spike_id)

    def test_secure_helpers_ts(self):
        paths = _paths("strike-vue-service-secure-ts")
        assert {"src/security/headers.ts", "src/security/rateLimit.ts", "src/security/audit.ts"} <= paths

    def test_secure_helpers_ts_are_typed_and_js_are_not(self):
        ts = generate_spike("strike-vue-service-secure-ts")
        js = generate_spike("strike-vue-service-secure-js")
        ts_limit = next(f for f in ts.files if f.path == "src/security/rateLimit.ts")
        js_limit = next(f for f in js.files if f.path == "src/security/rateLimit.js")
        assert "key: string" in ts_limit.template
        assert "key: string" not in js_limit.template
        assert "__" not in js_limit.template

    def test_secure_helpers_py(self):
        paths = _paths("strike-vue-service-secure-py")
        assert {"app/security/headers.py", "app/security/rate_limit.py", "app/security/audit.py"} <= paths

    @pytest.mark.parametrize(
        ("lang", "expected"),
        [
            ("ts", {"src/lib/retry.ts", "src/lib/logger.ts"}),
            ("js", {"src/lib/retry.js", "src/lib/logger.js"}),
            ("py", {"app/lib/retry.py", "app/lib/logger.py"}),
            ("go", {"internal/retry/retry.go", "internal/logging/logging.go"}),
            ("rs", {"src/retry.rs", "src/logging.rs"}),
            ("kt", {"src/main/kotlin/Retry.kt", "src/main/kotlin/Logging.kt"}),
        ],
    )
    def test_advanced_helpers(self, lang, expected):
        assert expected <= _paths(f"strike-vue-service-advanced-{lang}")

    def test_every_language_has_advanced_helpers(self):
        for lang in LANGS:
            paths = _paths(f"strike-vue-service-advanced-{lang}")
            assert any("retry" in p.lower() for p in paths), lang
            assert any("log" in p.lower() for p in paths), lang

    @pytest.mark.parametrize(
        ("lang", "path"),
        [("go", "security/security.go"), ("rs", "src/security.rs"), ("kt", "src/main/kotlin/Security.kt")],
    )
    def test_secure_limiter_tracks_requests(self, lang, path):
        spec = generate_spike(f"strike-vue-service-secure-{lang}")
        body = next(f.template for f in spec.files if f.path == path)
        assert "<= limit" in body or "<= self.limit" in body
        assert "return true" not in body

    def test_basic_style_adds_nothing(self):
        assert _paths("strike-vue-service-basic-ts") == {
            "spikes/strike-vue-service-basic-ts.ts.txt",
            "spikes/strike-vue-service-basic-ts.md",
        }


# ---------------------------------------------------------------------------
# Library specializations
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("spike_id", "expected"),
    [
        # Next.js
        ("gen-nextjs-route-basic-ts", {"app/api/health/route.ts"}),
        ("gen-nextjs-route-typed-ts", {"app/api/echo/route.ts"}),
        ("gen-nextjs-route-advanced-ts", {"app/api/items/route.ts"}),
        ("gen-nextjs-config-basic-ts", {"middleware.ts"}),
        ("gen-nextjs-init-basic-ts", {"middleware.ts"}),
        ("strike-nextjs-middleware-typed-ts", {"middleware.ts"}),
        ("gen-nextjs-service-basic-ts", {"app/actions/demo.ts"}),
        ("gen-nextjs-client-basic-ts", {"app/client-demo/page.tsx"}),
        ("gen-nextjs-config-advanced-ts", {"app/api/typed/route.ts", "src/next/withRole.ts"}),
        # React Flow
        ("strike-reactflow-component-typed-ts", {"src/components/Flow.tsx"}),
        ("strike-reactflow-component-typed-js", {"src/components/Flow.jsx"}),
        ("strike-reactflow-example-typed-ts", {"src/flow/App.tsx"}),
        ("strike-reactflow-docs-typed-ts", {"src/flow/README.md"}),
        ("strike-reactflow-hook-typed-ts", {"src/flow/useFlowState.ts"}),
        ("strike-reactflow-adapter-typed-ts", {"src/flow/api.ts"}),
        ("strike-reactflow-route-typed-ts", {"app/api/flow/route.ts", "src/flow/route.ts"}),
        ("strike-reactflow-route-typed-py", {"src/flow/fastapi_flow.py"}),
        (
            "strike-reactflow-component-advanced-ts",
            {
                "src/components/FlowAdvanced.tsx",
                "src/components/CustomNode.tsx",
                "src/components/InputNode.tsx",
                "src/components/DecisionNode.tsx",
            },
        ),
        (
            "strike-reactflow-component-testing-ts",
            {"src/components/Flow.test.tsx", "src/components/Flow.rtl.test.tsx"},
        ),
        # shadcn tree view
        ("strike-shadcn-tree-view-component-typed-ts", {"src/components/TreeView.tsx"}),
        (
            "strike-shadcn-tree-view-component-testing-ts",
            {"src/components/TreeView.test.tsx", "src/components/TreeView.rtl.test.tsx"},
        ),
        (
            "strike-shadcn-tree-view-component-advanced-ts",
            {
                "src/components/TreeViewAdvanced.tsx",
                "src/components/VirtualizedTree.tsx",
                "src/components/VirtualizedTreeWindow.tsx",
                "src/components/DnDTree.tsx",
                "src/components/DnDTreeKit.tsx",
            },
        ),
        ("strike-shadcn-tree-view-route-typed-ts", {"app/api/tree/route.ts", "src/treeview/route.ts"}),
        ("strike-shadcn-tree-view-route-typed-py", {"src/treeview/fastapi_tree.py"}),
        ("strike-shadcn-tree-view-route-testing-ts", {"src/treeview/a11y.test.ts"}),
        (
            "strike-shadcn-tree-view-adapter-typed-ts",
            {
                "src/treeview/api.ts",
                "src/treeview/fromFlow.ts",
                "src/treeview/toFlow.ts",
                "src/treeview/graphql.ts",
                "src/treeview/realtime-ably.ts",
                "src/treeview/realtime-adapter.ts",
            },
        ),
        ("strike-shadcn-tree-view-adapter-typed-js", {"src/treeview/realtime.js"}),
        (
            "strike-shadcn-tree-view-schema-typed-ts",
            {
                "src/treeview/schema.ts",
                "src/treeview/patch.ts",
                "app/api/tree/patch/route.ts",
                "src/treeview/graphql-schema.ts",
                "src/treeview/graphql-resolvers.ts",
            },
        ),
        ("strike-shadcn-tree-view-schema-typed-py", {"src/treeview/models.py"}),
        ("strike-shadcn-tree-view-example-typed-ts", {"src/treeview/App.tsx"}),
        ("strike-shadcn-tree-view-docs-typed-ts", {"src/treeview/README.md"}),
        # Prisma
        ("gen-prisma-crud-basic-ts", {"src/prisma.ts", "prisma/schema.prisma"}),
        ("gen-prisma-crud-advanced-ts", {"src/post.service.ts"}),
        (
            "gen-prisma-service-advanced-ts",
            {
                "src/user.service.ts",
                "src/prisma.pagination.ts",
                "src/prisma.dto.ts",
                "src/prisma.sort.ts",
            },
        ),
        # GraphQL / Apollo
        ("gen-graphql-service-basic-ts", {"schema.graphql", "src/graphql/resolvers.ts"}),
        ("gen-graphql-service-advanced-ts", {"codegen.yml"}),
        ("strike-graphql-service-typed-ts", {"src/graphql/express-server.ts"}),
        ("strike-graphql-route-typed-ts", {"app/api/graphql/route.ts"}),
        ("strike-graphql-adapter-typed-ts", {"src/graphql/adapter.ts"}),
        (
            "gen-graphql-client-advanced-ts",
            {
                "src/graphql/useUpdateTitle.tsx",
                "src/graphql/updateCache.ts",
                "src/graphql/fragments.ts",
                "src/graphql/cachePolicies.ts",
            },
        ),
        ("gen-apollo-service-basic-ts", {"src/apollo/server.ts"}),
        ("gen-apollo-client-basic-ts", {"src/apollo/client.ts"}),
        ("gen-apollo-service-advanced-ts", {"src/apollo/federation.ts", "src/apollo/subscriptions.ts"}),
        ("strike-apollo-schema-typed-ts", {"src/graphql/schema.ts", "src/graphql/resolvers.ts"}),
        ("strike-apollo-adapter-typed-ts", {"src/apollo/adapter.ts"}),
        # NextAuth
        ("gen-next-auth-config-basic-ts", {"app/api/auth/[...nextauth]/route.ts", "middleware.ts"}),
        (
            "gen-next-auth-config-advanced-ts",
            {
                "src/auth/withRole.tsx",
                "app/(protected)/admin/page.tsx",
                "app/(protected)/dashboard/page.tsx",
            },
        ),
        # GitHub Actions
        ("gen-github-actions-config-basic-ts", {".github/workflows/ci.yml"}),
        ("gen-github-actions-config-advanced-ts", {".github/workflows/monorepo.yml"}),
        ("gen-github-actions-job-advanced-ts", {".github/workflows/e2e.yml"}),
        # Servers and payments
        ("gen-express-config-basic-ts", {"src/express/security.ts"}),
        ("strike-express-route-typed-js", {"src/routes/health.js"}),
        ("strike-fastapi-route-typed-py", {"app/main.py"}),
        ("strike-fastapi-schema-testing-py", {"app/schemas.py", "tests/test_main.py"}),
        ("strike-bun-elysia-worker-typed-ts", {"src/worker.ts", "src/index.ts"}),
        ("strike-elysia-route-basic-js", {"src/index.js"}),
        ("gen-stripe-client-basic-ts", {"src/stripe/client.ts"}),
        ("strike-stripe-webhook-typed-ts", {"app/api/stripe/webhook/route.ts"}),
        ("strike-stripe-webhook-secure-py", {"app/payments/webhook.py"}),
    ],
)
def test_specialization_files(spike_id, expected):
    paths = _paths(spike_id)
    assert expected <= paths, sorted(expected - paths)


def test_specialization_skips_foreign_language():
    """Node-only libraries fall back to the generic files for go."""
    assert _paths("strike-nextjs-route-typed-go") == {
        "spikes/strike-nextjs-route-typed-go.go.txt",
        "spikes/strike-nextjs-route-typed-go.md",
    }


def test_bun_elysia_and_elysia_share_specialization():
    assert SPECIALIZATIONS["bun-elysia"] is SPECIALIZATIONS["elysia"]
    a = _paths("strike-bun-elysia-worker-typed-ts")
    b = _paths("strike-elysia-worker-typed-ts")
    assert {p for p in a if not p.startswith("spikes/")} == {p for p in b if not p.startswith("spikes/")}


def test_typed_elysia_uses_validators():
    spec = generate_spike("strike-bun-elysia-worker-typed-ts")
    index = next(f for f in spec.files if f.path == "src/index.ts")
    assert "t.Object" in index.template
    assert "bun" in spec.stack


# ---------------------------------------------------------------------------
# Patches
# ---------------------------------------------------------------------------


class TestPatches:
    def test_package_json_patch_for_node(self):
        spec = generate_spike("strike-nextjs-route-typed-ts")
        assert [p.path for p in spec.patches] == ["package.json"]
        diff = spec.patches[0].diff
        assert diff.startswith("--- a/package.json\n+++ b/package.json\n")
        assert '+    "next": ' in diff
        assert '+    "react": ' in diff

    def test_requirements_patch_for_python(self):
        spec = generate_spike("strike-fastapi-route-basic-py")
        assert [p.path for p in spec.patches] == ["requirements.txt"]
        assert "+fastapi>=" in spec.patches[0].diff

    def test_no_patch_without_dependencies(self):
        assert generate_spike("strike-vue-component-basic-ts").patches == []
        assert generate_spike("strike-prisma-schema-typed-go").patches == []

    def test_hunk_header_counts_added_lines(self):
        diff = generate_spike("strike-prisma-crud-typed-ts").patches[0].diff
        added = [line for line in diff.splitlines() if line.startswith("+") and not line.startswith("+++")]
        context = [line for line in diff.splitlines() if line.startswith(" ")]
        assert len(context) == 2
        assert f"@@ -1,2 +1,{2 + len(added)} @@" in diff
