"""CLI command groups."""

from psimport.commands.data_imports import app as data_imports_app

__all__ = ["data_imports_app"]
