"""Manifest, config and directory-structure readers.

Readers do not decide anything. A missing, unreadable or malformed input is
reported as ``None`` so detection can treat it as absence of signal.
"""

from __future__ import annotations

import fnmatch
import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterable
from functools import cached_property
from pathlib import Path

from pydantic import ValidationError

from smartui_migrator.schemas import PackageManifest
from smartui_migrator.xml_utils import DEPENDENCY_OWNERS, child_text, iter_coordinates

logger = logging.getLogger(__name__)

IGNORED_DIRECTORIES = frozenset(
    {
        "node_modules",
        ".git",
        "dist",
        "build",
        ".next",
        "coverage",
        ".nyc_output",
        "target",
        "__pycache__",
        ".venv",
        "venv",
        ".tox",
    }
)
IGNORED_FILE_PATTERNS = ("*.log", ".DS_Store")

_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


def normalize_requirement_name(name: str) -> str:
    """Normalize a Python distribution name (PEP 503)."""
    return re.sub(r"[-_.]+", "-", name).lower()


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a project-relative glob into a full-match regular expression.

    ``**/`` matches zero or more directories, ``*`` and ``?`` never cross a
    path separator.
    """
    parts: list[str] = []
    index = 0
    while index < len(pattern):
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("**", index):
            parts.append(".*")
            index += 2
        elif pattern[index] == "*":
            parts.append("[^/]*")
            index += 1
        elif pattern[index] == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(pattern[index]))
            index += 1
    return re.compile("".join(parts))


def _read_text(path: Path) -> str | None:
    if not path.is_file():
        return None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Skipping unreadable file %s: %s", path, exc)
        return None


def _is_ignored_file(name: str) -> bool:
    return any(fnmatch.fnmatch(name, pattern) for pattern in IGNORED_FILE_PATTERNS)


class ProjectIndex:
    """Lazily walked view of a project tree that honours the ignore-list."""

    def __init__(self, root: Path) -> None:
        self.root = root

    @cached_property
    def files(self) -> tuple[str, ...]:
        """Sorted project-relative POSIX paths of all non-ignored files."""
        collected: list[str] = []

        def _on_error(exc: OSError) -> None:
            logger.warning("Skipping unreadable directory %s: %s", exc.filename, exc)

        for dirpath, dirnames, filenames in self.root.walk(on_error=_on_error):
            dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRECTORIES)
            for filename in filenames:
                if _is_ignored_file(filename):
                    continue
                collected.append((dirpath / filename).relative_to(self.root).as_posix())
        return tuple(sorted(collected))

    def match(self, patterns: Iterable[str]) -> tuple[str, ...]:
        """Return sorted, de-duplicated files matching any pattern."""
        compiled = [glob_to_regex(pattern) for pattern in patterns]
        return tuple(
            path
            for path in self.files
            if any(regex.fullmatch(path) for regex in compiled)
        )

    def any_match(self, patterns: Iterable[str]) -> bool:
        compiled = [glob_to_regex(pattern) for pattern in patterns]
        return any(regex.fullmatch(path) for path in self.files for regex in compiled)

    def has_file(self, relative: str) -> bool:
        return (self.root / relative).is_file()

    def has_directory(self, relative: str) -> bool:
        parts = Path(relative).parts
        if any(part in IGNORED_DIRECTORIES for part in parts):
            return False
        return (self.root / relative).is_dir()


def read_package_manifest(root: Path) -> PackageManifest | None:
    """Read and validate ``package.json``.

    Parameters
    ----------
    root : Path
        Project root directory.

    Returns
    -------
    PackageManifest | None
        Parsed manifest, or ``None`` when missing or malformed.
    """
    text = _read_text(root / "package.json")
    if text is None:
        return None
    try:
        return PackageManifest.model_validate_json(text)
    except ValidationError as exc:
        logger.debug("Ignoring malformed package.json: %s", exc.errors()[:1])
        return None


def read_pom_dependencies(root: Path) -> frozenset[str] | None:
    """Read ``groupId:artifactId`` coordinates declared in ``pom.xml``.

    Both ``<dependencies>`` and ``<dependencyManagement>`` are consulted.

    Parameters
    ----------
    root : Path
        Project root directory.

    Returns
    -------
    frozenset[str] | None
        Declared coordinates, or ``None`` when missing or unparsable.
    """
    text = _read_text(root / "pom.xml")
    if text is None:
        return None
    try:
        project = ET.fromstring(text)
    except ET.ParseError as exc:
        logger.debug("Ignoring malformed pom.xml: %s", exc)
        return None

    coordinates: set[str] = set()
    for dependency in iter_coordinates(
        project, "dependencies", "dependency", *DEPENDENCY_OWNERS
    ):
        group_id = child_text(dependency, "groupId")
        artifact_id = child_text(dependency, "artifactId")
        if group_id and artifact_id:
            coordinates.add(f"{group_id}:{artifact_id}")
    return frozenset(coordinates)


def read_requirements(root: Path) -> frozenset[str] | None:
    """Read normalized distribution names from ``requirements.txt``."""
    text = _read_text(root / "requirements.txt")
    if text is None:
        return None
    names: set[str] = set()
    for raw_line in text.splitlines():
        line = raw_line.split(" #", 1)[0].strip()
        if not line or line.startswith(("#", "-")):
            continue
        match = _REQUIREMENT_NAME.match(line)
        if match:
            names.add(normalize_requirement_name(match.group(1)))
    return frozenset(names)
