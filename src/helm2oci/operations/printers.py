"""
Human-readable output formatting.

All output goes to stderr; a conversion writes nothing to stdout. Status
lines use a right-aligned colored label followed by the message, e.g.

              Writing config blob
"""
from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from ..converter import ConversionResult

_console = Console(stderr=True, highlight=False, emoji=False)

LABEL_WIDTH = 20


def _status(label: str, message: str, style: str) -> None:
    _console.print(f"[{style}]{label:>{LABEL_WIDTH}}[/] {escape(message)}", soft_wrap=True)


def print_status(label: str, message: str) -> None:
    """
    Print a progress line.

    Args:
        label: Short verb shown in green (e.g. "Writing")
        message: What is being done
    """
    _status(label, message, "green")


def print_error(exc: BaseException) -> None:
    """
    Print a failure message.

    Args:
        exc: Exception whose message is shown
    """
    _status("Error", str(exc) or type(exc).__name__, "bold red")


def print_conversion_summary(result: ConversionResult, verbose: bool = False) -> None:
    """
    Print conversion summary.

    Args:
        result: Completed conversion
        verbose: Also show the manifest digest and size
    """
    _status(
        "Finished",
        f"{result.chart_name}:{result.tag} -> {result.layout_path}",
        "bold green",
    )
    if verbose:
        _status("Manifest", result.manifest.digest, "cyan")
        _status("Size", _format_bytes(result.manifest.size), "cyan")


def _format_bytes(size_bytes: int) -> str:
    """
    Format byte count as human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "42 KB")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"
