"""Spike MCP Server - Main server definition."""

import asyncio
import json
import os
import sys
from contextlib import asynccontextmanager
from importlib.resources import files

from loguru import logger
from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from spike_mcp import handlers
from spike_mcp.config import get_settings, settings
from spike_mcp.errors import SpikeError

# Configure logging
logger.remove()
logger.add(sys.stderr, level=settings.log_level)


@asynccontextmanager
async def _lifespan(_server: FastMCP):
    """Server lifespan: make sure the catalog exists and seed bundled spikes."""
    logger.info("Starting Spike MCP Server...")

    current = get_settings()
    if current.spike_seed_catalog:
        try:
            result = await asyncio.to_thread(handlers.catalog_seed)
            logger.info(
                f"Catalog ready at {current.get_catalog_dir()} "
                f"({result['count']} bundled spike(s) added)"
            )
        except SpikeError as e:
            # Non-fatal: generated spikes still work without a catalog
            logger.warning(f"Catalog seeding failed: {e}")

    yield

    logger.info("Spike MCP Server stopped")


mcp = FastMCP(
    name="spike-mcp",
    instructions=(
        "Spike templates for scaffolding. Use `spike` with action='auto' to pick "
        "the best template for a task, then 'preview' to render its files. "
        "Use `catalog` to manage hand-authored spikes and browse generated ids. "
        "Use `help` for full documentation of any tool."
    ),
    lifespan=_lifespan,
)


def _dump(data: dict) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


async def _run(func, *args, **kwargs) -> str:
    """Run a blocking handler off the event loop and serialize its result."""
    try:
        result = await asyncio.to_thread(func, *args, **kwargs)
    except SpikeError as e:
        logger.debug(f"{func.__name__} failed: {e}")
        return _dump(e.to_dict())
    return _dump(result)


# ---------------------------------------------------------------------------
# spike tool: discover, auto, preview, apply, validate, explain
# ---------------------------------------------------------------------------


@mcp.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        openWorldHint=False,
        idempotentHint=True,
    ),
)
async def spike(
    action: str,
    id: str | None = None,
    query: str | None = None,
    task: str | None = None,
    params: dict[str, str] | None = None,
    constraints: dict[str, str] | None = None,
    strategy: str = "three_way_merge",
    limit: int | None = None,
    offset: int = 0,
) -> str:
    """Find, select and render spike templates.
    - discover: Rank catalog and generated spikes against a query
    - auto: Pick the best spike for a task (requires task)
    - preview: Render files and patches (requires id)
    - apply: Return the apply plan, never writes (requires id)
    - validate: Structural checks for params/placeholders (requires id)
    - explain: Human-readable summary (requires id)
    Use `help` tool for full documentation.
    """
    match action:
        case "discover":
            return await _run(handlers.discover, query=query, limit=limit, offset=offset)

        case "auto":
            if not task:
                return "Error: task is required for auto action"
            return await _run(handlers.auto, task, constraints)

        case "preview" | "apply" | "validate" | "explain":
            if not id:
                return f"Error: id is required for {action} action"
            if action == "preview":
                return await _run(handlers.preview, id, params)
            if action == "apply":
                return await _run(handlers.apply, id, params, strategy)
            if action == "validate":
                return await _run(handlers.validate, id, params)
            return await _run(handlers.explain, id)

        case _:
            return (
                f"Error: Unknown action '{action}'. "
                "Valid actions: discover, auto, preview, apply, validate, explain"
            )


# ---------------------------------------------------------------------------
# catalog tool: list, read, write, delete, stats, generated, packs, pack, seed
# ---------------------------------------------------------------------------


@mcp.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=True,
        openWorldHint=False,
        idempotentHint=True,
    ),
)
async def catalog(
    action: str,
    name: str | None = None,
    content: str | None = None,
    filter: str | None = None,
    libs: list[str] | None = None,
    patterns: list[str] | None = None,
    styles: list[str] | None = None,
    langs: list[str] | None = None,
    prefix: str = "strike",
    pack: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> str:
    """Manage the spike catalog and browse generated ids.
    - list: Catalog entry names (optional regex filter)
    - read / delete: One entry (requires name)
    - write: Store YAML/JSON text (requires name + content)
    - stats: Catalog and generated-space counts
    - generated: List generated ids (libs/patterns/styles/langs/prefix/limit)
    - packs: List presets; pack: ids of one preset (requires pack)
    - seed: Copy bundled spikes into the catalog (never overwrites)
    Use `help` tool for full documentation.
    """
    match action:
        case "list":
            return await _run(handlers.catalog_list, filter)

        case "read":
            if not name:
                return "Error: name is required for read action"
            return await _run(handlers.catalog_read, name)

        case "write":
            if not name or content is None:
                return "Error: name and content are required for write action"
            return await _run(handlers.catalog_write, name, content)

        case "delete":
            if not name:
                return "Error: name is required for delete action"
            return await _run(handlers.catalog_delete, name)

        case "stats":
            return await _run(handlers.spike_stats)

        case "generated":
            return await _run(
                handlers.list_generated,
                libs=libs,
                patterns=patterns,
                styles=styles,
                langs=langs,
                limit=limit,
                prefix=prefix,
                offset=offset,
            )

        case "packs":
            return await _run(handlers.list_packs)

        case "pack":
            if not pack:
                return "Error: pack is required for pack action"
            return await _run(handlers.pack_ids, pack, limit)

        case "seed":
            return await _run(handlers.catalog_seed)

        case _:
            return (
                f"Error: Unknown action '{action}'. Valid actions: "
                "list, read, write, delete, stats, generated, packs, pack, seed"
            )


@mcp.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        openWorldHint=False,
        idempotentHint=True,
    ),
)
async def help(tool_name: str = "spike") -> str:
    """Get full documentation for a tool.
    Use when compressed descriptions are insufficient.
    Valid tool names: spike, catalog, config, help.
    """
    try:
        doc_file = files("spike_mcp.docs").joinpath(f"{tool_name}.md")
        return doc_file.read_text()
    except FileNotFoundError:
        return f"Error: No documentation found for tool '{tool_name}'"
    except Exception as e:
        return f"Error loading documentation: {e}"


# Runtime-settable keys and the environment variable each one maps to
_SETTABLE_KEYS = {
    "log_level": "LOG_LEVEL",
    "spike_catalog_dir": "SPIKE_CATALOG_DIR",
    "spike_catalog_extensions": "SPIKE_CATALOG_EXTENSIONS",
    "spike_max_file_size": "SPIKE_MAX_FILE_SIZE",
    "spike_list_limit": "SPIKE_LIST_LIMIT",
    "spike_generated_limit": "SPIKE_GENERATED_LIMIT",
    "spike_auto_batch": "SPIKE_AUTO_BATCH",
    "spike_auto_top": "SPIKE_AUTO_TOP",
    "spike_auto_scan_limit": "SPIKE_AUTO_SCAN_LIMIT",
}


@mcp.tool(
    description=(
        "Server config. Actions: status|set. "
        "Use help tool with tool_name='config' for full docs."
    ),
    annotations=ToolAnnotations(
        title="Config",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def config(
    action: str,
    key: str | None = None,
    value: str | None = None,
) -> str:
    """Server configuration.

    Actions:
    - status: Show the settings the next operation will use
    - set: Update a runtime setting (key + value required)
    """
    match action:
        case "status":
            current = get_settings()
            status = {
                "catalog": {
                    "path": str(current.get_catalog_dir()),
                    "extensions": list(current.get_extensions()),
                    "max_file_size": current.spike_max_file_size,
                    "max_filename_length": current.spike_max_filename_length,
                    "encoding": current.spike_catalog_encoding,
                    "seed_on_start": current.spike_seed_catalog,
                },
                "limits": {
                    "list_limit": current.spike_list_limit,
                    "generated_limit": current.spike_generated_limit,
                    "auto_batch": current.spike_auto_batch,
                    "auto_top": current.spike_auto_top,
                    "auto_scan_limit": current.spike_auto_scan_limit,
                },
                "settings": {"log_level": current.log_level},
            }
            return json.dumps(status, indent=2, default=str)

        case "set":
            if not key or value is None:
                return json.dumps({"error": "key and value are required for set"})
            if key not in _SETTABLE_KEYS:
                return json.dumps(
                    {
                        "error": f"Invalid key: {key}",
                        "valid_keys": sorted(_SETTABLE_KEYS),
                    }
                )
            if key == "log_level":
                value = value.upper()
                logger.remove()
                logger.add(sys.stderr, level=value)
            # Every operation re-reads the environment, so this takes effect
            # on the next call
            os.environ[_SETTABLE_KEYS[key]] = value
            return json.dumps(
                {
                    "status": "updated",
                    "key": key,
                    "value": getattr(get_settings(), key),
                },
                default=str,
            )

        case _:
            return json.dumps(
                {
                    "error": f"Unknown action: {action}",
                    "valid_actions": ["status", "set"],
                }
            )


# ---------------------------------------------------------------------------
# Resources and prompts
# ---------------------------------------------------------------------------


@mcp.resource("spike://{spike_id}")
def spike_resource(spike_id: str) -> str:
    """Human-readable summary of a spike."""
    try:
        return handlers.explain(spike_id)["text"]
    except SpikeError as e:
        return f"Error: {e}"


@mcp.prompt()
def scaffold_task(task: str) -> str:
    """Generate a prompt to scaffold a task from the best matching spike."""
    return (
        f"Scaffold the following task: {task}\n\n"
        f"1. Use the spike tool with action='auto', task='{task}' to select a template.\n"
        "2. Use the spike tool with action='preview' on the selected id, passing any "
        "constraints as params.\n"
        "3. Review the rendered files and patches, then apply them to the project yourself."
    )


def main() -> None:
    """Entry point for the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
