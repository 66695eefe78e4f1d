"""Maven ``pom.xml`` coordinate rewriting."""

from __future__ import annotations

import io
import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from smartui_migrator.models import PomChange, PomTransformationResult
from smartui_migrator.types import Platform, PomChangeType
from smartui_migrator.xml_utils import (
    DEPENDENCY_OWNERS,
    PLUGIN_OWNERS,
    child_text,
    iter_coordinates,
    local_find,
)

logger = logging.getLogger(__name__)

TARGET_VERSION = "1.0.0"
_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")
_XMLNS = re.compile(r"""\sxmlns(?::([\w.-]+))?=["']([^"']+)["']""")
_MARKUP = re.compile(r"<!--.*?-->|<[^>]*>", re.DOTALL)
_GENERATED_XMLNS = re.compile(r'\sxmlns:(ns\d+)="([^"]*)"')
_PREFIXED = re.compile(r'"[^"]*"|\bxmlns:(ns\d+)(?==)|(?<![\w.:-])(ns\d+):')


@dataclass(frozen=True)
class Coordinate:
    """Maven ``groupId:artifactId`` pair."""

    group_id: str
    artifact_id: str

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"


def _coordinates(table: dict[str, str]) -> Mapping[Coordinate, Coordinate]:
    return MappingProxyType(
        {
            Coordinate(*source.split(":")): Coordinate(*target.split(":"))
            for source, target in table.items()
        }
    )


DEPENDENCY_MAPPINGS: Mapping[Platform, Mapping[Coordinate, Coordinate]] = MappingProxyType(
    {
        Platform.PERCY: _coordinates(
            {
                "io.percy:percy-playwright-java": "com.lambdatest:smartui-playwright-java",
                "io.percy:percy-java-selenium": "com.lambdatest:smartui-selenium-java",
                "io.percy:percy-selenium-java": "com.lambdatest:smartui-selenium-java",
                "io.percy:percy-appium-app": "com.lambdatest:smartui-appium-java",
                "io.percy:percy-appium-java": "com.lambdatest:smartui-appium-java",
            }
        ),
        Platform.APPLITOOLS: _coordinates(
            {
                "com.applitools:eyes-selenium-java3": "com.lambdatest:smartui-selenium-java",
                "com.applitools:eyes-selenium-java4": "com.lambdatest:smartui-selenium-java",
                "com.applitools:eyes-selenium-java5": "com.lambdatest:smartui-selenium-java",
                "com.applitools:eyes-appium-java5": "com.lambdatest:smartui-appium-java",
                "com.applitools:eyes-playwright-java": "com.lambdatest:smartui-playwright-java",
            }
        ),
        Platform.SAUCE_LABS_VISUAL: _coordinates(
            {
                "com.saucelabs.visual:java-client": "com.lambdatest:smartui-selenium-java",
                "com.saucelabs:sauce-java": "com.lambdatest:smartui-selenium-java",
            }
        ),
    }
)

PLUGIN_MAPPINGS: Mapping[Platform, Mapping[Coordinate, Coordinate]] = MappingProxyType(
    {
        Platform.PERCY: _coordinates(
            {"io.percy:percy-maven-plugin": "com.lambdatest:smartui-maven-plugin"}
        ),
        Platform.APPLITOOLS: _coordinates(
            {"com.applitools:eyes-maven-plugin": "com.lambdatest:smartui-maven-plugin"}
        ),
        Platform.SAUCE_LABS_VISUAL: _coordinates(
            {"com.saucelabs:sauce-maven-plugin": "com.lambdatest:smartui-maven-plugin"}
        ),
    }
)


def _restore_prefixes(body: str, original: str) -> str:
    """Rename the ``nsN`` prefixes ElementTree generates to the document's own."""
    declared: dict[str, str] = {}
    for prefix, uri in _XMLNS.findall(original):
        declared.setdefault(uri, prefix)
    renames = {
        generated: declared[uri]
        for generated, uri in _GENERATED_XMLNS.findall(body)
        if uri in declared
    }
    if not renames:
        return body

    def rename_token(match: re.Match[str]) -> str:
        declaration, qualified = match.group(1), match.group(2)
        if declaration in renames:
            prefix = renames[declaration]
            return f"xmlns:{prefix}" if prefix else "xmlns"
        if qualified in renames:
            prefix = renames[qualified]
            return f"{prefix}:" if prefix else ""
        return match.group(0)

    def rename_markup(match: re.Match[str]) -> str:
        markup = match.group(0)
        if markup.startswith("<!--"):
            return markup
        return _PREFIXED.sub(rename_token, markup)

    return _MARKUP.sub(rename_markup, body)


def _set_child_text(element: ET.Element, name: str, value: str) -> None:
    child = local_find(element, name)
    if child is None:
        namespace = element.tag[1:].split("}", 1)[0] if element.tag.startswith("{") else None
        child = ET.SubElement(element, f"{{{namespace}}}{name}" if namespace else name)
    child.text = value


def _rewrite(
    items: list[ET.Element],
    mapping: Mapping[Coordinate, Coordinate],
    change_type: PomChangeType,
    label: str,
) -> list[PomChange]:
    changes: list[PomChange] = []
    for item in items:
        group_id = child_text(item, "groupId")
        artifact_id = child_text(item, "artifactId")
        if not group_id or not artifact_id:
            continue
        source = Coordinate(group_id, artifact_id)
        target = mapping.get(source)
        if target is None:
            continue
        old_version = child_text(item, "version")
        _set_child_text(item, "groupId", target.group_id)
        _set_child_text(item, "artifactId", target.artifact_id)
        _set_child_text(item, "version", TARGET_VERSION)
        changes.append(
            PomChange(
                type=change_type,
                group_id=target.group_id,
                artifact_id=target.artifact_id,
                old_version=old_version,
                new_version=TARGET_VERSION,
                description=f"Updated {label}{source} to {target}",
            )
        )
    return changes


def _serialize(root: ET.Element, original: str) -> str:
    buffer = io.StringIO()
    ET.ElementTree(root).write(buffer, encoding="unicode", xml_declaration=False)
    body = _restore_prefixes(buffer.getvalue(), original)
    declaration = _DECLARATION.match(original)
    if declaration is not None:
        body = f"{declaration.group(0).strip()}\n{body}"
    if original.endswith("\n") and not body.endswith("\n"):
        body += "\n"
    return body


def transform_pom_document(document_text: str, platform: Platform) -> PomTransformationResult:
    """Rewrite platform SDK coordinates inside a ``pom.xml`` document.

    Dependencies under ``<dependencies>`` and ``<dependencyManagement>`` and
    plugins under ``<build>`` and ``<pluginManagement>`` are matched against
    the coordinate tables; every substitution yields one :class:`PomChange`.

    Parameters
    ----------
    document_text : str
        Original ``pom.xml`` contents.
    platform : Platform
        Source platform whose coordinates are replaced.

    Returns
    -------
    PomTransformationResult
        Outcome with ``success=False`` and ``error`` set when parsing fails.
    """
    try:
        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
        root = ET.fromstring(document_text, parser=parser)
        dependencies = iter_coordinates(root, "dependencies", "dependency", *DEPENDENCY_OWNERS)
        plugins = iter_coordinates(root, "plugins", "plugin", *PLUGIN_OWNERS)
        changes = _rewrite(
            dependencies, DEPENDENCY_MAPPINGS[platform], PomChangeType.DEPENDENCY_UPDATE, ""
        ) + _rewrite(
            plugins, PLUGIN_MAPPINGS[platform], PomChangeType.PLUGIN_UPDATE, "plugin "
        )
        new_content = _serialize(root, document_text) if changes else document_text
    except Exception as exc:
        logger.debug("pom.xml rewrite failed: %s", exc)
        return PomTransformationResult(
            success=False,
            original_content=document_text,
            new_content=document_text,
            error=f"Failed to transform pom.xml: {exc}",
        )
    return PomTransformationResult(
        success=True,
        original_content=document_text,
        new_content=new_content,
        changes=tuple(changes),
    )


class PomTransformer:
    """Rewrite the ``pom.xml`` at the root of a project."""

    def __init__(self, project_root: Path | str) -> None:
        self.project_root = Path(project_root)

    @property
    def pom_path(self) -> Path:
        return self.project_root / "pom.xml"

    def transform_pom_xml(self, platform: Platform) -> PomTransformationResult:
        """Read and rewrite ``pom.xml`` for ``platform`` without writing it back."""
        try:
            document_text = self.pom_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return PomTransformationResult(
                success=False,
                original_content="",
                new_content="",
                error=f"Could not read {self.pom_path}: {exc}",
            )
        return transform_pom_document(document_text, platform)
