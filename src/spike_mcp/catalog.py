"""Directory-backed catalog of hand-authored spikes.

Each entry is stored as ``<base_dir>/<sanitized-name><ext>``. Reads try every
supported extension in configured order; writes always use the primary
(first) extension. Path separators in names become ``__`` on disk and are
restored when listing.

Entries hold YAML or JSON text. ``load_spike`` parses them into
``SpikeSpec``; the raw CRUD functions never interpret content.
"""

import json
import re
from datetime import datetime
from importlib.resources import files
from pathlib import Path

import yaml
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from spike_mcp.errors import FileSystemError, NotFoundError, ValidationError
from spike_mcp.models import CatalogConfig, SpikeMetadata, SpikeSpec

_SEPARATOR_RE = re.compile(r"[/\\]+")
_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9._@-]")
_SEPARATOR_MARKER = "__"


def sanitize(name: str, config: CatalogConfig) -> str:
    """Turn a logical entry name into a safe file stem.

    Idempotent: sanitizing an already-sanitized name returns it unchanged.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("sanitize", str(name), "name must be a non-empty string")

    safe = _SEPARATOR_RE.sub(_SEPARATOR_MARKER, name.strip())
    safe = _UNSAFE_RE.sub("_", safe)

    if len(safe) > config.max_filename_length:
        raise ValidationError(
            "sanitize",
            name,
            f"name too long: {len(safe)} > {config.max_filename_length}",
        )
    return safe


def ensure_directory(config: CatalogConfig) -> Path:
    """Create the catalog directory (and parents) if it does not exist."""
    path = config.base_dir.expanduser().resolve()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileSystemError(
            "ensure_directory", str(path), "cannot create catalog directory", e
        ) from e
    return path


def _candidates(name: str, config: CatalogConfig) -> list[Path]:
    safe = sanitize(name, config)
    base = config.base_dir.expanduser().resolve()
    return [base / f"{safe}{ext}" for ext in config.supported_extensions]


def _check_size(path: Path, config: CatalogConfig) -> None:
    """Raise if the file at ``path`` is larger than allowed.

    A missing file propagates ``FileNotFoundError`` to the caller.
    """
    size = path.stat().st_size
    if size > config.max_file_size:
        raise ValidationError(
            "read",
            str(path),
            f"file too large: {size} bytes > {config.max_file_size} bytes",
        )


def read_entry(name: str, config: CatalogConfig) -> tuple[str, str]:
    """Return ``(extension, content)`` of the file that actually holds ``name``.

    Empty files are skipped in favor of the next extension.
    """
    for path, ext in zip(
        _candidates(name, config), config.supported_extensions, strict=True
    ):
        try:
            _check_size(path, config)
            content = path.read_text(encoding=config.encoding)
        except FileNotFoundError:
            continue
        except UnicodeDecodeError as e:
            raise FileSystemError(
                "read", name, f"cannot decode {path} as {config.encoding}", e
            ) from e
        except OSError as e:
            raise FileSystemError("read", name, f"cannot read {path}", e) from e

        if not content.strip():
            logger.debug(f"Catalog entry {path.name} is empty, trying next extension")
            continue
        return ext, content

    raise NotFoundError("read", name, "no catalog entry under any supported extension")


def read(name: str, config: CatalogConfig) -> str:
    """Read the raw text of a catalog entry."""
    return read_entry(name, config)[1]


def write(name: str, content: str, config: CatalogConfig) -> Path:
    """Persist ``content`` under the primary extension and return the path."""
    size = len(content.encode(config.encoding))
    if size > config.max_file_size:
        raise ValidationError(
            "write",
            name,
            f"content too large: {size} bytes > {config.max_file_size} bytes",
        )

    safe = sanitize(name, config)
    base = ensure_directory(config)
    path = base / f"{safe}{config.primary_extension}"
    try:
        path.write_text(content, encoding=config.encoding)
    except OSError as e:
        raise FileSystemError("write", name, f"cannot write {path}", e) from e

    logger.info(f"Catalog entry written: {path}")
    return path


def _entry_files(config: CatalogConfig) -> list[str]:
    base = ensure_directory(config)
    try:
        names = [p.name for p in base.iterdir() if p.is_file()]
    except OSError as e:
        raise FileSystemError("list", str(base), "cannot enumerate catalog", e) from e
    return [
        n for n in names if any(n.endswith(ext) for ext in config.supported_extensions)
    ]


def _strip_extension(filename: str, config: CatalogConfig) -> str:
    # Longest match first so ".yaml" never leaves a stray character behind
    for ext in sorted(config.supported_extensions, key=len, reverse=True):
        if filename.endswith(ext):
            return filename[: -len(ext)]
    return filename


def list_names(filter_regex: str | None, config: CatalogConfig) -> list[str]:
    """List logical entry names, sorted, optionally filtered (case-insensitive)."""
    names = sorted(
        {
            _strip_extension(f, config).replace(_SEPARATOR_MARKER, "/")
            for f in _entry_files(config)
        }
    )
    if not filter_regex:
        return names
    try:
        pattern = re.compile(filter_regex, re.IGNORECASE)
    except re.error as e:
        raise ValidationError("list", filter_regex, "invalid filter regex", e) from e
    return [n for n in names if pattern.search(n)]


def extension_of(name: str, config: CatalogConfig) -> str | None:
    """Return the first supported extension under which ``name`` exists."""
    for path, ext in zip(
        _candidates(name, config), config.supported_extensions, strict=True
    ):
        if path.is_file():
            return ext
    return None


def exists(name: str, config: CatalogConfig) -> bool:
    try:
        return extension_of(name, config) is not None
    except ValidationError:
        return False


def delete(name: str, config: CatalogConfig) -> bool:
    """Delete the first matching entry. Returns False if nothing matched."""
    for path in _candidates(name, config):
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            raise FileSystemError("delete", name, f"cannot delete {path}", e) from e
        logger.info(f"Catalog entry deleted: {path}")
        return True
    return False


def stats(config: CatalogConfig) -> dict:
    """Count entries per extension and report the directory mtime."""
    entry_files = _entry_files(config)
    base = config.base_dir.expanduser().resolve()

    by_extension = {ext: 0 for ext in config.supported_extensions}
    for f in entry_files:
        for ext in sorted(config.supported_extensions, key=len, reverse=True):
            if f.endswith(ext):
                by_extension[ext] += 1
                break

    last_updated: str | None = None
    try:
        last_updated = datetime.fromtimestamp(base.stat().st_mtime).isoformat()
    except OSError:
        pass

    return {
        "total": len(entry_files),
        "by_extension": by_extension,
        "catalog_path": str(base),
        "last_updated": last_updated,
    }


# ---------------------------------------------------------------------------
# Spike parsing
# ---------------------------------------------------------------------------


def parse_spike(name: str, content: str, ext: str | None) -> SpikeSpec:
    """Parse YAML/JSON catalog text into a ``SpikeSpec``."""
    try:
        if ext == ".json":
            data = json.loads(content)
        else:
            # YAML is a superset of JSON, so unknown extensions go through here
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValidationError("load_spike", name, "unparseable catalog entry", e) from e

    if not isinstance(data, dict):
        raise ValidationError("load_spike", name, "catalog entry must be a mapping")

    data.setdefault("id", name)
    data.setdefault("name", data["id"])
    try:
        return SpikeSpec.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("load_spike", name, "invalid spike schema", e) from e


def load_spike(name: str, config: CatalogConfig) -> SpikeSpec:
    ext, content = read_entry(name, config)
    return parse_spike(name, content, ext)


def load_spike_metadata(name: str, config: CatalogConfig) -> SpikeMetadata:
    return load_spike(name, config).metadata()


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------


def seed_catalog(config: CatalogConfig) -> list[str]:
    """Copy the bundled spikes into the catalog without overwriting entries.

    Bundled files keep their own extension, so a ``.json`` seed stays
    ``.json`` even when the primary extension is ``.yaml``.
    """
    base = ensure_directory(config)
    written: list[str] = []
    for resource in sorted(files("spike_mcp.spikes").iterdir(), key=lambda r: r.name):
        ext = next(
            (e for e in config.supported_extensions if resource.name.endswith(e)),
            None,
        )
        if ext is None:
            continue
        name = resource.name[: -len(ext)]
        if exists(name, config):
            continue
        target = base / f"{sanitize(name, config)}{ext}"
        try:
            target.write_text(resource.read_text(encoding="utf-8"), encoding=config.encoding)
        except OSError as e:
            raise FileSystemError("seed", name, f"cannot write {target}", e) from e
        written.append(name)

    if written:
        logger.info(f"Seeded {len(written)} bundled spike(s) into {base}")
    return written
