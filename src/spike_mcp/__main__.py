"""Spike MCP Server entry point."""

import json
import sys


def _seed() -> None:
    """Copy the bundled spikes into the catalog directory.

    Existing entries are never overwritten:
        spike-mcp seed
    """
    from spike_mcp import handlers
    from spike_mcp.config import get_settings

    print(f"Seeding catalog at {get_settings().get_catalog_dir()}...")
    result = handlers.catalog_seed()
    if result["count"]:
        for name in result["seeded"]:
            print(f"  + {name}")
        print(f"Seeded {result['count']} spike(s).")
    else:
        print("Nothing to seed, catalog already up to date.")


def _stats() -> None:
    """Print catalog and generated-space counts as JSON."""
    from spike_mcp import handlers

    print(json.dumps(handlers.spike_stats(), ensure_ascii=False, indent=2))


def _cli() -> None:
    """CLI dispatcher: server (default), seed, or stats subcommand."""
    if len(sys.argv) >= 2 and sys.argv[1] == "seed":
        _seed()
    elif len(sys.argv) >= 2 and sys.argv[1] == "stats":
        _stats()
    else:
        from spike_mcp.server import main

        main()


if __name__ == "__main__":
    _cli()
