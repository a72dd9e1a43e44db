"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and a CLI command wrapper
to ensure consistent error handling across Typer commands.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

T = TypeVar('T')

EXIT_CODES = {
    "ChartNotFoundError": 1,
    "ChartError": 2,
    "ChartArchiveError": 2,
    "ChartMetadataError": 2,
    "ChartFieldError": 2,
    "ValueError": 2,
    "BlobWriteError": 3,
    "BlobSerializationError": 3,
    "LayoutError": 11,
    "LayoutNotEmptyError": 12,
    "LayoutCorruptError": 13,
}

def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Returns exit codes:
    - 0: Success
    - 1: Chart archive not found (ChartNotFoundError)
    - 2: Invalid chart archive or metadata, invalid settings
    - 3: I/O or serialization error, or unknown error
    - 11: Output path unusable as a layout (LayoutError)
    - 12: Output directory not empty (LayoutNotEmptyError)
    - 13: Existing index.json corrupt (LayoutCorruptError)

    Args:
        exc: Exception to map

    Returns:
        Exit code (1-13, with 3 as fallback for unknown exceptions)
    """
    return EXIT_CODES.get(type(exc).__name__, 3)

def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function; on failure prints a one-line error to
    stderr and exits with the mapped code via typer.Exit. Commands therefore
    need no try/except blocks of their own.

    Args:
        func: Function to execute

    Returns:
        Function result if successful

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except typer.Exit:
        raise
    except Exception as e:
        from .printers import print_error
        print_error(e)
        raise typer.Exit(code=exit_code_for(e)) from e
