"""Tests for the directory-backed catalog store."""

import json

import pytest

from spike_mcp import catalog
from spike_mcp.errors import FileSystemError, NotFoundError, SpikeError, ValidationError
from spike_mcp.models import CatalogConfig


@pytest.fixture
def cfg(tmp_path):
    return CatalogConfig(base_dir=tmp_path / "spikes")


# ---------------------------------------------------------------------------
# sanitize
# ---------------------------------------------------------------------------


class TestSanitize:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("simple", "simple"),
            ("team/auth", "team__auth"),
            ("a//b\\c", "a__b__c"),
            ("with space!", "with_space_"),
            ("keep.dots_@-dash", "keep.dots_@-dash"),
            ("  padded  ", "padded"),
        ],
    )
    def test_mapping(self, cfg, name, expected):
        assert catalog.sanitize(name, cfg) == expected

    @pytest.mark.parametrize("name", ["team/auth", "a b/c", "ü/ñ", "x__y"])
    def test_idempotent(self, cfg, name):
        once = catalog.sanitize(name, cfg)
        assert catalog.sanitize(once, cfg) == once

    @pytest.mark.parametrize("name", ["", "   ", "\t\n"])
    def test_rejects_empty(self, cfg, name):
        with pytest.raises(ValidationError):
            catalog.sanitize(name, cfg)

    def test_rejects_too_long(self, tmp_path):
        cfg = CatalogConfig(base_dir=tmp_path, max_filename_length=8)
        assert catalog.sanitize("12345678", cfg) == "12345678"
        with pytest.raises(ValidationError, match="too long"):
            catalog.sanitize("123456789", cfg)


# ---------------------------------------------------------------------------
# read / write
# ---------------------------------------------------------------------------


class TestReadWrite:
    def test_round_trip(self, cfg):
        path = catalog.write("notes", "id: notes\n", cfg)
        assert path.name == "notes.yaml"
        assert catalog.read("notes", cfg) == "id: notes\n"

    def test_write_creates_directory(self, cfg):
        assert not cfg.base_dir.exists()
        catalog.write("x", "a: 1", cfg)
        assert cfg.base_dir.is_dir()

    def test_write_uses_primary_extension(self, tmp_path):
        cfg = CatalogConfig(base_dir=tmp_path, supported_extensions=(".json", ".yaml"))
        path = catalog.write("entry", "{}", cfg)
        assert path.suffix == ".json"

    def test_nested_name(self, cfg):
        catalog.write("team/auth", "a: 1", cfg)
        assert (cfg.base_dir.resolve() / "team__auth.yaml").is_file()
        assert catalog.read("team/auth", cfg) == "a: 1"

    def test_missing_raises_not_found(self, cfg):
        with pytest.raises(NotFoundError):
            catalog.read("missing", cfg)

    def test_empty_file_falls_through_to_next_extension(self, cfg):
        base = catalog.ensure_directory(cfg)
        (base / "entry.yaml").write_text("   \n", encoding="utf-8")
        (base / "entry.json").write_text('{"id": "entry"}', encoding="utf-8")
        assert catalog.read("entry", cfg) == '{"id": "entry"}'

    def test_only_empty_files_is_not_found(self, cfg):
        base = catalog.ensure_directory(cfg)
        (base / "entry.yaml").write_text("", encoding="utf-8")
        with pytest.raises(NotFoundError):
            catalog.read("entry", cfg)

    def test_write_rejects_oversized_content(self, tmp_path):
        cfg = CatalogConfig(base_dir=tmp_path, max_file_size=10)
        with pytest.raises(ValidationError, match="too large"):
            catalog.write("big", "x" * 11, cfg)
        assert not (tmp_path / "big.yaml").exists()

    def test_write_size_counts_encoded_bytes(self, tmp_path):
        cfg = CatalogConfig(base_dir=tmp_path, max_file_size=6)
        # 3 characters, 9 bytes in UTF-8
        with pytest.raises(ValidationError):
            catalog.write("jp", "日本語", cfg)

    def test_read_rejects_oversized_file(self, tmp_path):
        cfg = CatalogConfig(base_dir=tmp_path, max_file_size=10)
        (tmp_path / "big.yaml").write_text("x" * 50, encoding="utf-8")
        with pytest.raises(ValidationError, match="too large"):
            catalog.read("big", cfg)

    def test_undecodable_file_raises_filesystem_error(self, cfg):
        base = catalog.ensure_directory(cfg)
        (base / "broken.yaml").write_bytes(b"\xff\xfe")
        with pytest.raises(FileSystemError) as exc_info:
            catalog.read("broken", cfg)
        assert isinstance(exc_info.value, SpikeError)
        assert exc_info.value.operation == "read"

    def test_read_entry_reports_extension_actually_read(self, cfg):
        base = catalog.ensure_directory(cfg)
        (base / "mix.yaml").write_text("", encoding="utf-8")
        (base / "mix.json").write_text('{\n\t"id": "mix"}', encoding="utf-8")
        ext, content = catalog.read_entry("mix", cfg)
        assert ext == ".json"
        assert content.startswith("{")
        assert catalog.load_spike("mix", cfg).id == "mix"


# ---------------------------------------------------------------------------
# list / delete / exists / stats
# ---------------------------------------------------------------------------


class TestListing:
    def test_list_sorted_and_separator_restored(self, cfg):
        for name in ("zeta", "alpha", "team/auth"):
            catalog.write(name, "a: 1", cfg)
        assert catalog.list_names(None, cfg) == ["alpha", "team/auth", "zeta"]

    def test_list_ignores_unsupported_files(self, cfg):
        base = catalog.ensure_directory(cfg)
        (base / "notes.txt").write_text("hi", encoding="utf-8")
        (base / "keep.json").write_text("{}", encoding="utf-8")
        assert catalog.list_names(None, cfg) == ["keep"]

    def test_list_deduplicates_across_extensions(self, cfg):
        base = catalog.ensure_directory(cfg)
        (base / "dup.yaml").write_text("a: 1", encoding="utf-8")
        (base / "dup.json").write_text("{}", encoding="utf-8")
        assert catalog.list_names(None, cfg) == ["dup"]

    def test_filter_case_insensitive(self, cfg):
        for name in ("NextJS-Route", "express-app"):
            catalog.write(name, "a: 1", cfg)
        assert catalog.list_names("nextjs", cfg) == ["NextJS-Route"]

    def test_invalid_regex(self, cfg):
        with pytest.raises(ValidationError):
            catalog.list_names("[unclosed", cfg)

    def test_exists_and_extension_of(self, cfg):
        catalog.write("entry", "a: 1", cfg)
        assert catalog.exists("entry", cfg)
        assert catalog.extension_of("entry", cfg) == ".yaml"
        assert not catalog.exists("other", cfg)
        assert catalog.extension_of("other", cfg) is None
        assert not catalog.exists("   ", cfg)

    def test_delete(self, cfg):
        catalog.write("entry", "a: 1", cfg)
        assert catalog.delete("entry", cfg) is True
        assert catalog.delete("entry", cfg) is False
        assert catalog.list_names(None, cfg) == []

    def test_stats(self, cfg):
        base = catalog.ensure_directory(cfg)
        (base / "a.yaml").write_text("a: 1", encoding="utf-8")
        (base / "b.yml").write_text("a: 1", encoding="utf-8")
        (base / "c.json").write_text("{}", encoding="utf-8")
        (base / "d.json").write_text("{}", encoding="utf-8")

        stats = catalog.stats(cfg)
        assert stats["total"] == 4
        assert stats["by_extension"] == {".yaml": 1, ".yml": 1, ".json": 2}
        assert stats["catalog_path"] == str(base)
        assert stats["last_updated"] is not None


# ---------------------------------------------------------------------------
# Spike parsing and seeding
# ---------------------------------------------------------------------------


class TestLoadSpike:
    def test_yaml(self, cfg):
        catalog.write(
            "demo",
            "name: Demo\nstack: [express, ts]\nfiles:\n  - path: a.ts\n    template: x\n",
            cfg,
        )
        spec = catalog.load_spike("demo", cfg)
        assert spec.id == "demo"
        assert spec.name == "Demo"
        assert spec.stack == ["express", "ts"]
        assert spec.files[0].path == "a.ts"

    def test_json(self, tmp_path):
        cfg = CatalogConfig(base_dir=tmp_path, supported_extensions=(".json",))
        catalog.write("j", json.dumps({"id": "j", "name": "J", "tags": ["a", "a", "b"]}), cfg)
        spec = catalog.load_spike("j", cfg)
        assert spec.tags == ["a", "b"]

    def test_name_defaults_to_id(self):
        spec = catalog.parse_spike("bare", "description: hi", ".yaml")
        assert spec.id == "bare"
        assert spec.name == "bare"

    @pytest.mark.parametrize(
        ("content", "ext"),
        [
            ("{not json", ".json"),
            ("- just\n- a list\n", ".yaml"),
            ("files: 3", ".yaml"),
            ("key: [unclosed", ".yml"),
        ],
    )
    def test_invalid(self, content, ext):
        with pytest.raises(ValidationError):
            catalog.parse_spike("bad", content, ext)

    def test_numeric_yaml_scalars_become_strings(self, cfg):
        catalog.write(
            "numeric",
            "version: 1.0\nparams:\n  - name: port\n    default: 8080\n",
            cfg,
        )
        spec = catalog.load_spike("numeric", cfg)
        assert spec.version == "1.0"
        assert spec.params[0].default == "8080"

    def test_metadata(self, cfg):
        catalog.write("m", "files:\n  - path: a\n  - path: b\n", cfg)
        meta = catalog.load_spike_metadata("m", cfg)
        assert meta.file_count == 2
        assert meta.patch_count == 0


class TestSeed:
    def test_seed_writes_bundled_spikes(self, cfg):
        written = catalog.seed_catalog(cfg)
        assert "express-error-handler" in written
        assert "github-actions-node-ci" in written
        assert catalog.extension_of("github-actions-node-ci", cfg) == ".json"
        for name in written:
            catalog.load_spike(name, cfg)

    def test_seed_never_overwrites(self, cfg):
        catalog.write("express-error-handler", "name: mine\n", cfg)
        written = catalog.seed_catalog(cfg)
        assert "express-error-handler" not in written
        assert catalog.read("express-error-handler", cfg) == "name: mine\n"
        assert catalog.seed_catalog(cfg) == []

    def test_bundled_patch_hunk_header_matches_body(self, cfg):
        catalog.seed_catalog(cfg)
        diff = catalog.load_spike("express-error-handler", cfg).patches[0].diff
        lines = diff.splitlines()[3:]
        old = sum(1 for line in lines if line.startswith(" "))
        new = old + sum(1 for line in lines if line.startswith("+"))
        assert f"@@ -1,{old} +1,{new} @@" in diff
