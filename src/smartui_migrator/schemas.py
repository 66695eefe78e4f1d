"""Pydantic schemas for manifests, target configuration and migration inputs."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class PackageManifest(BaseModel):
    """Subset of ``package.json`` consulted by detection and rewriting."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str | None = None
    dependencies: dict[str, Any] = Field(default_factory=dict)
    dev_dependencies: dict[str, Any] = Field(
        default_factory=dict, alias="devDependencies"
    )
    scripts: dict[str, Any] = Field(default_factory=dict)

    def dependency_names(self) -> frozenset[str]:
        """Return names declared as either runtime or development dependencies."""
        return frozenset(self.dependencies) | frozenset(self.dev_dependencies)


class _TargetModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class WebConfig(_TargetModel):
    """``web`` section of the SmartUI project configuration."""

    browsers: list[str] | None = None
    viewports: list[list[int]] = Field(default_factory=list)
    min_height: int | None = None
    allowed_hostnames: list[str] | None = None

    @field_validator("viewports")
    @classmethod
    def _validate_viewports(cls, value: list[list[int]]) -> list[list[int]]:
        for entry in value:
            if len(entry) not in (1, 2):
                raise ValueError("viewport entries must be [width] or [width, height].")
            if any(dim <= 0 for dim in entry):
                raise ValueError("viewport dimensions must be positive integers.")
        return value


class MobileConfig(_TargetModel):
    """``mobile`` section of the SmartUI project configuration."""

    devices: list[str] = Field(default_factory=list)
    orientation: Literal["portrait", "landscape"] = "portrait"


class SmartUIConfig(_TargetModel):
    """Canonical ``.smartui.json`` document."""

    version: str = "1.0"
    project_name: str = "migrated-project"
    web: WebConfig | None = None
    mobile: MobileConfig | None = None

    def to_json(self) -> str:
        """Serialize with camelCase keys, omitting unset optional fields."""
        return self.model_dump_json(indent=2, by_alias=True, exclude_none=True)


TARGET_KEYS = frozenset({"version", "projectName", "web", "mobile"})


class MigrationRequest(BaseModel):
    """Validated input for a project migration run."""

    model_config = ConfigDict(extra="forbid")

    project_root: Path
    config_filename: str = ".smartui.json"
    dry_run: bool = False

    @field_validator("project_root")
    @classmethod
    def _validate_project_root(cls, value: Path) -> Path:
        if not value.is_dir():
            raise ValueError(f"project root '{value}' is not a directory.")
        return value.resolve()

    @field_validator("config_filename")
    @classmethod
    def _validate_config_filename(cls, value: str) -> str:
        if not value or Path(value).name != value:
            raise ValueError("config_filename must be a bare file name.")
        if not value.endswith(".json"):
            raise ValueError("config_filename must end with '.json'.")
        return value
