"""Platform descriptors: the statically enumerated build matrix.

Each descriptor names one build target and how its artifact is renamed
before publication. ``published_asset_name`` doubles as the artifact store
key, so it must be unique across the set.
"""

from __future__ import annotations

import tomllib
from collections.abc import Iterable, Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from tagrelease.errors import DuplicateKeyError, PlatformConfigError


class PlatformDescriptor(BaseModel):
    """One build target and its naming convention."""

    model_config = ConfigDict(frozen=True)

    platform_id: str
    raw_artifact_name: str  # file the builder leaves behind
    published_asset_name: str  # artifact store key and release asset name
    target: str = ""  # toolchain target triple handed to the builder
    runner: str = ""  # host label, informational only

    @field_validator("platform_id", "raw_artifact_name", "published_asset_name")
    @classmethod
    def _plain_name(cls, value: str) -> str:
        if not value or value.startswith(".") or "/" in value or "\\" in value:
            raise ValueError(f"must be a plain file name, got {value!r}")
        return value


DEFAULT_PLATFORMS: list[PlatformDescriptor] = [
    PlatformDescriptor(
        platform_id="linux-amd64",
        raw_artifact_name="boot",
        published_asset_name="boot-linux-amd64",
        target="x86_64-unknown-linux-gnu",
        runner="ubuntu-latest",
    ),
    PlatformDescriptor(
        platform_id="windows-amd64",
        raw_artifact_name="boot.exe",
        published_asset_name="boot-windows-amd64.exe",
        target="x86_64-pc-windows-gnu",
        runner="windows-latest",
    ),
    PlatformDescriptor(
        platform_id="macos-amd64",
        raw_artifact_name="boot",
        published_asset_name="boot-macos-amd64",
        target="x86_64-apple-darwin",
        runner="macos-latest",
    ),
]


def validate_platforms(platforms: Sequence[PlatformDescriptor]) -> None:
    """Fail fast on an empty set or on colliding ids or asset names.

    Raises
    ------
    PlatformConfigError
        If the set is empty or two descriptors share a ``platform_id``.
    DuplicateKeyError
        If two descriptors share a ``published_asset_name``.
    """
    if not platforms:
        raise PlatformConfigError("No platforms configured.")

    seen_ids: set[str] = set()
    owners: dict[str, str] = {}
    for descriptor in platforms:
        if descriptor.platform_id in seen_ids:
            raise PlatformConfigError(
                f"Duplicate platform_id: {descriptor.platform_id}"
            )
        seen_ids.add(descriptor.platform_id)

        key = descriptor.published_asset_name
        if key in owners:
            raise DuplicateKeyError(
                key,
                f"published by both {owners[key]} and {descriptor.platform_id}",
            )
        owners[key] = descriptor.platform_id


def load_platforms(path: Path) -> list[PlatformDescriptor]:
    """Load and validate descriptors from a TOML file.

    Expected layout::

        [[platform]]
        platform_id = "linux-amd64"
        raw_artifact_name = "boot"
        published_asset_name = "boot-linux-amd64"
        target = "x86_64-unknown-linux-gnu"
    """
    try:
        with Path(path).open("rb") as fh:
            data = tomllib.load(fh)
    except OSError as exc:
        raise PlatformConfigError(f"Cannot read platform file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise PlatformConfigError(f"Invalid TOML in {path}: {exc}") from exc

    tables = data.get("platform", [])
    if not isinstance(tables, list):
        raise PlatformConfigError(f"{path}: 'platform' must be an array of tables")

    try:
        platforms = [PlatformDescriptor(**table) for table in tables]
    except (TypeError, ValidationError) as exc:
        raise PlatformConfigError(f"{path}: invalid platform entry: {exc}") from exc

    validate_platforms(platforms)
    return platforms


def asset_names(platforms: Iterable[PlatformDescriptor]) -> set[str]:
    """The set of keys a complete run publishes."""
    return {p.published_asset_name for p in platforms}
