"""Tests for src/spike_mcp/server.py."""

import json
import os
from unittest.mock import patch

import pytest

from spike_mcp import catalog
from spike_mcp.config import get_settings
from spike_mcp.errors import FileSystemError
from spike_mcp.server import (
    _lifespan,
    catalog as catalog_tool,
    config,
    mcp,
    scaffold_task,
    spike,
    spike_resource,
)

ELYSIA_TASK = "Elysia の typed worker を ts で作成"


# ---------------------------------------------------------------------------
# spike tool
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_spike_auto(small_scan):
    """Auto returns JSON with the selected id."""
    result = json.loads(await spike(action="auto", task=ELYSIA_TASK))
    assert result["selected_id"] == "strike-bun-elysia-worker-typed-ts"
    assert result["coverage_score"] == 0.57


@pytest.mark.asyncio
async def test_spike_auto_missing_task():
    result = await spike(action="auto")
    assert result == "Error: task is required for auto action"


@pytest.mark.asyncio
@pytest.mark.parametrize("action", ["preview", "apply", "validate", "explain"])
async def test_spike_id_required(action):
    result = await spike(action=action)
    assert result == f"Error: id is required for {action} action"


@pytest.mark.asyncio
async def test_spike_preview():
    result = json.loads(
        await spike(action="preview", id="strike-fastapi-route-typed-py", params={"route": "ping"})
    )
    main = next(f for f in result["files"] if f["path"] == "app/main.py")
    assert '"/ping"' in main["content"]


@pytest.mark.asyncio
async def test_spike_apply_strategy_passed_through():
    result = json.loads(
        await spike(action="apply", id="strike-fastapi-route-typed-py", strategy="abort")
    )
    assert result["strategy"] == "abort"
    assert result["applied"] is False


@pytest.mark.asyncio
async def test_spike_errors_as_json():
    """Core errors are serialized rather than raised."""
    result = json.loads(await spike(action="explain", id="my-team-notes"))
    assert result["kind"] == "not_found"
    assert result["operation"] == "resolve"
    assert result["target"] == "my-team-notes"


@pytest.mark.asyncio
async def test_spike_preview_path_escape_is_validation_error():
    result = json.loads(
        await spike(
            action="preview",
            id="strike-prisma-schema-typed-ts",
            params={"model": "../../../etc/cron.d/x"},
        )
    )
    assert result["kind"] == "validation_error"
    assert result["operation"] == "render"


@pytest.mark.asyncio
async def test_spike_discover(small_scan):
    result = json.loads(await spike(action="discover", query="react hook", limit=2))
    assert len(result["items"]) == 2
    assert result["items"][0]["score"] == 1.0


@pytest.mark.asyncio
async def test_spike_unknown_action():
    result = await spike(action="destroy")
    assert "Error: Unknown action 'destroy'" in result
    assert "discover" in result


# ---------------------------------------------------------------------------
# catalog tool
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_catalog_write_read_list_delete():
    written = json.loads(await catalog_tool(action="write", name="notes", content="name: n\n"))
    assert written["name"] == "notes"

    read = json.loads(await catalog_tool(action="read", name="notes"))
    assert read["content"] == "name: n\n"

    listed = json.loads(await catalog_tool(action="list"))
    assert listed["names"] == ["notes"]

    deleted = json.loads(await catalog_tool(action="delete", name="notes"))
    assert deleted["deleted"] is True


@pytest.mark.asyncio
async def test_catalog_required_args():
    assert await catalog_tool(action="read") == "Error: name is required for read action"
    assert await catalog_tool(action="delete") == "Error: name is required for delete action"
    assert (
        await catalog_tool(action="write", name="x")
        == "Error: name and content are required for write action"
    )
    assert await catalog_tool(action="pack") == "Error: pack is required for pack action"


@pytest.mark.asyncio
async def test_catalog_invalid_regex():
    result = json.loads(await catalog_tool(action="list", filter="("))
    assert result["kind"] == "validation_error"


@pytest.mark.asyncio
async def test_catalog_generated_and_packs():
    generated = json.loads(
        await catalog_tool(action="generated", libs=["stripe"], langs=["ts"], limit=3, prefix="gen")
    )
    assert generated["count"] == 3
    assert all(i.startswith("gen-stripe-") for i in generated["ids"])

    listed = json.loads(await catalog_tool(action="packs"))
    assert len(listed["packs"]) == 8

    pack = json.loads(await catalog_tool(action="pack", pack="payments", limit=2))
    assert pack["count"] == 2


@pytest.mark.asyncio
async def test_catalog_seed_and_stats():
    seeded = json.loads(await catalog_tool(action="seed"))
    assert seeded["count"] == 3
    stats = json.loads(await catalog_tool(action="stats"))
    assert stats["catalog"]["total"] == 3


@pytest.mark.asyncio
async def test_catalog_unknown_action():
    result = await catalog_tool(action="purge")
    assert "Error: Unknown action 'purge'" in result


# ---------------------------------------------------------------------------
# config tool
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_config_status():
    result = json.loads(await config(action="status"))
    assert result["catalog"]["path"] == str(get_settings().get_catalog_dir())
    assert result["catalog"]["extensions"] == [".yaml", ".yml", ".json"]
    assert result["limits"]["auto_top"] == 5
    assert result["settings"]["log_level"] == "INFO"


@pytest.mark.asyncio
async def test_config_set_updates_environment():
    result = json.loads(await config(action="set", key="spike_list_limit", value="7"))
    assert result == {"status": "updated", "key": "spike_list_limit", "value": 7}
    assert os.environ["SPIKE_LIST_LIMIT"] == "7"
    assert get_settings().list_cap() == 7


@pytest.mark.asyncio
async def test_config_set_log_level():
    with patch("spike_mcp.server.logger") as mock_logger:
        result = json.loads(await config(action="set", key="log_level", value="debug"))
    assert result["value"] == "DEBUG"
    mock_logger.remove.assert_called_once()
    mock_logger.add.assert_called_once()


@pytest.mark.asyncio
async def test_config_set_invalid_key():
    result = json.loads(await config(action="set", key="spike_catalog_encoding", value="latin-1"))
    assert result["error"] == "Invalid key: spike_catalog_encoding"
    assert "spike_list_limit" in result["valid_keys"]


@pytest.mark.asyncio
async def test_config_set_missing_value():
    result = json.loads(await config(action="set", key="log_level"))
    assert "error" in result


@pytest.mark.asyncio
async def test_config_unknown_action():
    result = json.loads(await config(action="reset"))
    assert result["valid_actions"] == ["status", "set"]


# ---------------------------------------------------------------------------
# Resources, prompts and lifespan
# ---------------------------------------------------------------------------


def test_spike_resource():
    text = spike_resource("strike-react-hook-typed-ts")
    assert text.startswith("Spike: react hook typed ts@0.1.0")


def test_spike_resource_unknown():
    assert spike_resource("my-team-notes").startswith("Error: resolve failed")


def test_scaffold_prompt():
    text = scaffold_task("add a stripe webhook")
    assert "task='add a stripe webhook'" in text
    assert "action='preview'" in text


@pytest.mark.asyncio
async def test_lifespan_seeds_catalog(catalog_config):
    async with _lifespan(mcp):
        pass
    assert catalog.list_names(None, catalog_config) == [
        "express-error-handler",
        "fastapi-health-check",
        "github-actions-node-ci",
    ]


@pytest.mark.asyncio
async def test_lifespan_seeding_disabled(catalog_config):
    with patch.dict(os.environ, {"SPIKE_SEED_CATALOG": "false"}):
        async with _lifespan(mcp):
            pass
    assert not catalog_config.base_dir.exists()


@pytest.mark.asyncio
async def test_lifespan_seeding_failure_is_not_fatal():
    with patch(
        "spike_mcp.handlers.catalog_seed",
        side_effect=FileSystemError("seed", "x", "disk full"),
    ):
        async with _lifespan(mcp):
            pass
