"""CLI output styling utilities.

Provides consistent styling helpers for CLI output:
- Cyan bold for section headers and labels
- Green for success messages (with checkmark)
- Red for error messages (with cross)
- Dim for neutral/empty state messages
"""

from __future__ import annotations

__all__ = [
    "style_dim",
    "style_error",
    "style_header",
    "style_label",
]

import click


def style_header(title: str) -> str:
    """Style a section header with dashes.

    Example:
        >>> click.echo(style_header("Bridge"))
        --- Bridge ---
    """
    return click.style(f"--- {title} ---", fg="cyan", bold=True)


def style_label(label: str) -> str:
    """Style a label for list/summary headers.

    Example:
        >>> click.echo(style_label("Session logs") + f" {count}")
        Session logs: 3
    """
    return click.style(f"{label}:", fg="cyan", bold=True)


def style_error(message: str) -> str:
    """Style an error message with cross mark.

    Example:
        >>> click.echo(style_error("Cannot connect to bridge"), err=True)
        ✗ Cannot connect to bridge
    """
    return click.style(f"✗ {message}", fg="red")


def style_dim(message: str) -> str:
    """Style a neutral/empty state message as dim."""
    return click.style(message, dim=True)
