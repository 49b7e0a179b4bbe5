"""Building blocks for project-level AI coding agent sandboxes run with sbx and docker."""

__version__ = "0.1.0"

__all__ = ["__version__"]