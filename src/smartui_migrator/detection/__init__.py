"""Project detection engine."""

from .scanner import Scanner, scan_project

__all__ = ["Scanner", "scan_project"]
