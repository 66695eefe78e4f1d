"""Protocol for language-specific code transformers."""

from __future__ import annotations

from pathlib import PurePath
from typing import Protocol, runtime_checkable

from smartui_migrator.models import CodeTransformationResult
from smartui_migrator.types import Platform


@runtime_checkable
class CodeTransformer(Protocol):
    """Protocol implemented by code transformers."""

    name: str

    def can_handle(self, file_path: str | PurePath) -> bool:
        """Check whether the transformer understands the given file.

        Parameters
        ----------
        file_path : str | PurePath
            Path of the source file; only its suffix is inspected.

        Returns
        -------
        bool
            ``True`` if the transformer can rewrite this file.
        """

    def transform(
        self, source_text: str, file_path: str | PurePath, platform: Platform
    ) -> CodeTransformationResult:
        """Rewrite visual-testing SDK usage for SmartUI.

        Parameters
        ----------
        source_text : str
            Original file contents.
        file_path : str | PurePath
            Path of the source file.
        platform : Platform
            Platform whose SDK calls are replaced.

        Returns
        -------
        CodeTransformationResult
            Rewritten text, warnings and the migrated snapshot count. Must not
            raise for any text input.
        """
