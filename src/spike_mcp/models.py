"""Data model shared by the catalog, generator, matcher and handlers."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SpikeParam(BaseModel):
    """A template parameter declared by a spike."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str
    required: bool = False
    description: str | None = None
    default: str | None = None


class FileTemplate(BaseModel):
    """A file to create. ``template`` holds ``{{name}}`` placeholders.

    Catalog entries may give ``content`` instead; rendered files always carry
    ``content``.
    """

    path: str
    template: str | None = None
    content: str | None = None

    def source(self) -> str:
        if self.template is not None:
            return self.template
        return self.content or ""


class Patch(BaseModel):
    """A unified diff against an existing file. Applied by the client only."""

    path: str
    diff: str


class SpikeSpec(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    name: str
    version: str | None = None
    description: str | None = None
    stack: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    params: list[SpikeParam] = Field(default_factory=list)
    files: list[FileTemplate] = Field(default_factory=list)
    patches: list[Patch] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, tags: list[str]) -> list[str]:
        return list(dict.fromkeys(tags))

    def metadata(self) -> "SpikeMetadata":
        return SpikeMetadata(
            id=self.id,
            name=self.name,
            description=self.description,
            stack=list(self.stack),
            tags=list(self.tags),
            version=self.version,
            file_count=len(self.files),
            patch_count=len(self.patches),
        )


class SpikeMetadata(BaseModel):
    """Lightweight view of a spike used for scoring and listings."""

    id: str
    name: str
    description: str | None = None
    stack: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    version: str | None = None
    file_count: int = 0
    patch_count: int = 0


class CatalogConfig(BaseModel):
    """Resolved catalog settings. Immutable for the duration of a call."""

    model_config = ConfigDict(frozen=True)

    base_dir: Path
    supported_extensions: tuple[str, ...] = (".yaml", ".yml", ".json")
    max_file_size: int = 1024 * 1024
    max_filename_length: int = 255
    encoding: str = "utf-8"

    @property
    def primary_extension(self) -> str:
        return self.supported_extensions[0]


class GeneratedIdComponents(BaseModel):
    model_config = ConfigDict(frozen=True)

    prefix: str | None = None
    lib: str
    pattern: str
    style: str
    lang: str


class PackAxes(BaseModel):
    libs: list[str] | None = None
    patterns: list[str] | None = None
    styles: list[str] | None = None
    langs: list[str] | None = None


class PackDef(BaseModel):
    name: str
    description: str
    include: PackAxes = Field(default_factory=PackAxes)
    exclude: PackAxes = Field(default_factory=PackAxes)
    # Regex tested against the whole raw id before attribute filtering
    id_filter: str | None = None
