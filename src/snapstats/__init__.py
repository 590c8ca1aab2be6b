"""Snapshot and diff the diagnostic endpoints of a database cluster."""

__version__ = "0.1.0"
