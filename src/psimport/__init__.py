"""
psimport - PlanetScale external database import CLI.

Prechecks an external MySQL-compatible database, starts the import and
walks it through its lifecycle up to promotion and detach.
"""

__version__ = "1.0.0"
