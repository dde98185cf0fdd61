"""Mythic analyzer - structural analysis and grouping of MythicMobs skill files."""

__version__ = "0.1.0"
