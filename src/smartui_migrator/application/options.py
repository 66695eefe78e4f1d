"""Typed option objects shared across migration use-cases."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MigrationOptions:
    """Shared migration options passed through use-cases."""

    dry_run: bool = False
    config_filename: str = ".smartui.json"
    transform_sources: bool = True
    transform_manifests: bool = True
