"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

T = TypeVar('T')

EXIT_CODES = {
    "ConfigReadError": 2,
    "ValueError": 2,
    "StoreTransportError": 3,
    "StoreTimeout": 4,
    "TagApplicationError": 5,
    "ArchiveLoadError": 6,
    "ImageVanishedError": 7,
}

def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Returns:
    - 0: Success
    - 1: Unknown error (fallback)
    - 2: Desired-state input invalid (ConfigReadError, ValueError)
    - 3: Image store unreachable or misbehaving (StoreTransportError)
    - 4: Deadline exceeded (StoreTimeout)
    - 5: Tag could not be applied (TagApplicationError)
    - 6: Store reported a failed load (ArchiveLoadError)
    - 7: Image disappeared before tagging (ImageVanishedError)

    Args:
        exc: Exception to map

    Returns:
        Exit code (1-7, with 1 as fallback for unknown exceptions)
    """
    return EXIT_CODES.get(type(exc).__name__, 1)

def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exceptions to appropriate
    exit codes using typer.Exit, printing the error message to stderr.

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
        if type(e).__name__ == "TagApplicationError" and getattr(e, "partial_action", None) is not None:
            from .printers import print_partial_action
            print_partial_action(e.partial_action)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=exit_code_for(e)) from e
