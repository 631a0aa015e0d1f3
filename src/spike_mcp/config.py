"""Configuration settings for the Spike MCP Server."""

from pathlib import Path

from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings

from spike_mcp.models import CatalogConfig


def _default_data_dir() -> Path:
    """Get default data directory (~/.spike-mcp/)."""
    return Path.home() / ".spike-mcp"


class Settings(BaseSettings):
    """Spike MCP Server configuration.

    Environment variables:
    - SPIKE_CATALOG_DIR: Catalog directory (default: ~/.spike-mcp/spikes)
    - SPIKE_CATALOG_EXTENSIONS: Ordered extensions tried on read
        (default: ".yaml,.yml,.json"; the first one is used for writes)
    - SPIKE_MAX_FILE_SIZE: Max catalog entry size in bytes (default: 1 MiB)
    - SPIKE_MAX_FILENAME_LENGTH: Max sanitized name length (default: 255)
    - SPIKE_CATALOG_ENCODING: Catalog file encoding (default: utf-8)
    - SPIKE_LIST_LIMIT: Cap on catalog listings (0 = no cap)
    - SPIKE_GENERATED_LIMIT: Cap on generated id enumeration (0 = no cap)
    - SPIKE_AUTO_BATCH: Candidates scored per batch in auto/discover
    - SPIKE_AUTO_TOP: Number of runner-up candidates reported by auto
    - SPIKE_AUTO_SCAN_LIMIT: Max generated candidates scored per call
    - SPIKE_SEED_CATALOG: Copy bundled spikes into the catalog on start
    - LOG_LEVEL: Log level (default: INFO)

    Integer tunables that do not parse fall back to their default.
    """

    # Catalog
    spike_catalog_dir: str = ""  # Default: ~/.spike-mcp/spikes
    spike_catalog_extensions: str = ".yaml,.yml,.json"
    spike_max_file_size: int = 1024 * 1024
    spike_max_filename_length: int = 255
    spike_catalog_encoding: str = "utf-8"
    spike_seed_catalog: bool = True

    # Enumeration limits
    spike_list_limit: int = 0
    spike_generated_limit: int = 0

    # Auto-select
    spike_auto_batch: int = 500
    spike_auto_top: int = 5
    spike_auto_scan_limit: int = 5000

    # Logging
    log_level: str = "INFO"

    model_config = {"env_prefix": "", "case_sensitive": False}

    @field_validator(
        "spike_max_file_size",
        "spike_max_filename_length",
        "spike_list_limit",
        "spike_generated_limit",
        "spike_auto_batch",
        "spike_auto_top",
        "spike_auto_scan_limit",
        mode="before",
    )
    @classmethod
    def _int_or_default(cls, value, info: ValidationInfo):
        default = cls.model_fields[info.field_name].default
        if value is None or (isinstance(value, str) and not value.strip()):
            return default
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            return default
        return parsed if parsed >= 0 else default

    # --- Path helpers ---

    def get_data_dir(self) -> Path:
        return _default_data_dir()

    def get_catalog_dir(self) -> Path:
        """Get resolved catalog directory."""
        if self.spike_catalog_dir:
            return Path(self.spike_catalog_dir).expanduser()
        return self.get_data_dir() / "spikes"

    def get_extensions(self) -> tuple[str, ...]:
        exts = []
        for ext in self.spike_catalog_extensions.split(","):
            ext = ext.strip().lower()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = f".{ext}"
            if ext not in exts:
                exts.append(ext)
        return tuple(exts) or (".yaml", ".yml", ".json")

    def get_catalog_config(self) -> CatalogConfig:
        """Build the immutable catalog config for one operation."""
        return CatalogConfig(
            base_dir=self.get_catalog_dir(),
            supported_extensions=self.get_extensions(),
            max_file_size=self.spike_max_file_size,
            max_filename_length=self.spike_max_filename_length,
            encoding=self.spike_catalog_encoding,
        )

    # --- Limit resolution (0 = uncapped) ---

    def list_cap(self) -> int | None:
        return self.spike_list_limit or None

    def generated_cap(self) -> int | None:
        return self.spike_generated_limit or None

    def auto_batch_size(self) -> int:
        return max(1, self.spike_auto_batch)

    def auto_top_n(self) -> int:
        return max(1, self.spike_auto_top)

    def auto_scan_cap(self) -> int:
        """Generated candidates scored per call. Always bounded."""
        return max(1, self.spike_auto_scan_limit)


def get_settings() -> Settings:
    """Read settings from the current process environment.

    Called at the start of every operation; tunables may change between
    calls, so the result is never memoized.
    """
    return Settings()


# Startup snapshot, used only for logger setup at import time.
settings = get_settings()
