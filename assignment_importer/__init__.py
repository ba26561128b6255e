"""Bulk CSV / Excel project-assignment importer for the project review platform."""

__version__ = "0.1.0"
