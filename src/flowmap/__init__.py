"""flowmap - dependency graph layout, physics and interaction engine."""

__version__ = "0.1.0"
