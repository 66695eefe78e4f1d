"""Code transformer registry and suffix-based resolution."""

from __future__ import annotations

import logging
from pathlib import PurePath

from smartui_migrator.errors import TransformerError
from smartui_migrator.models import CodeTransformationResult, TransformationWarning
from smartui_migrator.transformers.base import CodeTransformer
from smartui_migrator.transformers.java import JavaCodeTransformer
from smartui_migrator.transformers.javascript import JavaScriptCodeTransformer
from smartui_migrator.transformers.python import PythonCodeTransformer, RobotCodeTransformer
from smartui_migrator.types import Platform

logger = logging.getLogger(__name__)


class CodeTransformerRegistry:
    """Registry for code transformers."""

    def __init__(self) -> None:
        self._transformers: dict[str, CodeTransformer] = {}

    def register(self, transformer: CodeTransformer) -> None:
        """Register transformer instance by unique name.

        Parameters
        ----------
        transformer : CodeTransformer
            Transformer instance to register.

        Raises
        ------
        TransformerError
            If the transformer has no name or the name is already taken.
        """
        name = getattr(transformer, "name", "").strip()
        if not name:
            raise TransformerError("Code transformer must define a non-empty 'name'.")
        if name in self._transformers:
            raise TransformerError(f"Code transformer '{name}' is already registered.")
        self._transformers[name] = transformer

    def names(self) -> list[str]:
        """Return registered transformer names.

        Returns
        -------
        list[str]
            Sorted list of transformer names.
        """
        return sorted(self._transformers.keys())

    def get(self, name: str) -> CodeTransformer:
        """Get transformer by name.

        Raises
        ------
        TransformerError
            If the name is not registered.
        """
        try:
            return self._transformers[name]
        except KeyError as exc:
            raise TransformerError(
                f"Unknown code transformer '{name}'. "
                f"Available transformers: {', '.join(self.names())}"
            ) from exc

    def resolve(self, file_path: str | PurePath) -> CodeTransformer:
        """Resolve the single transformer whose ``can_handle`` accepts ``file_path``.

        Parameters
        ----------
        file_path : str | PurePath
            Source file path.

        Returns
        -------
        CodeTransformer
            Matching transformer.

        Raises
        ------
        TransformerError
            If no transformer (or more than one) handles the file.
        """
        matches = [
            transformer
            for transformer in self._transformers.values()
            if transformer.can_handle(file_path)
        ]
        if not matches:
            raise TransformerError(
                f"No code transformer can handle {PurePath(file_path).name}. "
                f"Available transformers: {', '.join(self.names())}"
            )
        if len(matches) > 1:
            names = ", ".join(transformer.name for transformer in matches)
            raise TransformerError(
                f"Multiple code transformers can handle {PurePath(file_path).name} ({names})."
            )
        return matches[0]


def create_default_registry() -> CodeTransformerRegistry:
    """Create a registry holding the JavaScript, Python, Robot and Java transformers."""
    registry = CodeTransformerRegistry()
    registry.register(JavaScriptCodeTransformer())
    registry.register(PythonCodeTransformer())
    registry.register(RobotCodeTransformer())
    registry.register(JavaCodeTransformer())
    return registry


def transform_code(
    source_text: str,
    file_path: str | PurePath,
    platform: Platform,
    registry: CodeTransformerRegistry | None = None,
) -> CodeTransformationResult:
    """Rewrite one source file with the transformer matching its suffix.

    Parameters
    ----------
    source_text : str
        Original file contents.
    file_path : str | PurePath
        Path of the source file.
    platform : Platform
        Source platform.
    registry : CodeTransformerRegistry | None, optional
        Registry to resolve from; the default registry when omitted.

    Returns
    -------
    CodeTransformationResult
        Transformer output, or the original text with an ``Unsupported file
        type`` warning when no transformer matches.
    """
    registry = registry or create_default_registry()
    try:
        transformer = registry.resolve(file_path)
    except TransformerError as exc:
        logger.debug("No transformer for %s: %s", file_path, exc)
        return CodeTransformationResult(
            source_text,
            (TransformationWarning(message="Unsupported file type", details=str(exc)),),
        )
    return transformer.transform(source_text, file_path, platform)
