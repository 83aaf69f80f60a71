"""
Inventory provider - a content provider over a single SQLite products table.

Shared utilities (config, logging, paths) live at the top level; the provider
and its content-access primitives live in `data` and `content`.
"""

__all__ = [
    "config",
    "logging",
    "paths",
]
