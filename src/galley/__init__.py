"""Galley - markdown article compiler and issue archive exporter."""

__version__ = "0.1.0"
