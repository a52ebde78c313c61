"""Logging utilities and helpers.

This package provides logging infrastructure for y3-bridge:
- iso_formatter: ISO 8601 timestamp formatting for JSONL logs

Import directly from submodules to avoid circular imports:
    from y3_bridge.utils.logging.iso_formatter import ISO8601Formatter
"""

__all__: list[str] = []  # Direct submodule imports required (see docstring)
