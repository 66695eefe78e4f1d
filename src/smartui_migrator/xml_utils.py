"""Namespace-agnostic ElementTree helpers shared by Maven readers and rewriters."""

from __future__ import annotations

import xml.etree.ElementTree as ET


def strip_namespace(tag: str) -> str:
    """Remove a ``{namespace}`` prefix from an element tag."""
    if isinstance(tag, str) and tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def local_find(element: ET.Element, name: str) -> ET.Element | None:
    """Return the first direct child whose local tag equals ``name``."""
    for child in element:
        if strip_namespace(child.tag) == name:
            return child
    return None


def local_findall(element: ET.Element, name: str) -> list[ET.Element]:
    """Return all direct children whose local tag equals ``name``."""
    return [child for child in element if strip_namespace(child.tag) == name]


def local_path(element: ET.Element, *names: str) -> ET.Element | None:
    """Follow a chain of local tag names from ``element``."""
    current: ET.Element | None = element
    for name in names:
        if current is None:
            return None
        current = local_find(current, name)
    return current


def child_text(element: ET.Element, name: str) -> str | None:
    """Return stripped text of a direct child, or ``None`` when absent."""
    child = local_find(element, name)
    if child is None or child.text is None:
        return None
    return child.text.strip()


def iter_coordinates(
    root: ET.Element, section: str, item: str, *parents: tuple[str, ...]
) -> list[ET.Element]:
    """Collect ``item`` elements under ``section`` for each parent path.

    A section holding one child and a section holding many both come back as a
    flat list, so callers never branch on cardinality.

    Parameters
    ----------
    root : xml.etree.ElementTree.Element
        ``<project>`` element.
    section : str
        Container tag, for example ``dependencies`` or ``plugins``.
    item : str
        Item tag inside the container, for example ``dependency``.
    *parents : tuple[str, ...]
        Paths from ``root`` to the element that owns ``section``. An empty
        tuple means ``root`` itself.

    Returns
    -------
    list[xml.etree.ElementTree.Element]
        Matching items in document order.
    """
    found: list[ET.Element] = []
    for parent_path in parents:
        owner = local_path(root, *parent_path) if parent_path else root
        if owner is None:
            continue
        container = local_find(owner, section)
        if container is None:
            continue
        found.extend(local_findall(container, item))
    return found


DEPENDENCY_OWNERS: tuple[tuple[str, ...], ...] = ((), ("dependencyManagement",))
PLUGIN_OWNERS: tuple[tuple[str, ...], ...] = (
    ("build",),
    ("build", "pluginManagement"),
)
