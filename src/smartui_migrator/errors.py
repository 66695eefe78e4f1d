"""Typed errors surfaced by the migration core."""

from __future__ import annotations

from collections.abc import Sequence


class MigrationError(Exception):
    """Base class for errors raised by the migration tool."""

    exit_code: int = 1


class DetectionError(MigrationError):
    """Project could not be classified into exactly one platform."""


class PlatformNotDetectedError(DetectionError):
    """No supported visual testing platform was found in the project."""

    exit_code = 2

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or (
                "Could not detect a supported visual testing platform "
                "(Percy, Applitools, Sauce Labs Visual). Make sure the project "
                "declares the platform SDK in package.json, pom.xml or "
                "requirements.txt, or contains a platform configuration file."
            )
        )


class MultiplePlatformsDetectedError(DetectionError):
    """More than one platform/framework pair was found in the project."""

    exit_code = 3

    def __init__(self, candidates: Sequence[str], source: str | None = None) -> None:
        self.candidates = tuple(candidates)
        where = f" in {source}" if source else ""
        super().__init__(
            "Multiple visual testing platforms were detected"
            f"{where}: {', '.join(self.candidates)}. "
            "Migrate one platform at a time or remove the unused SDK."
        )


class TransformerError(MigrationError):
    """Code transformer registry was used incorrectly."""


class ConfigParseError(MigrationError):
    """Configuration document could not be parsed into a literal tree."""
