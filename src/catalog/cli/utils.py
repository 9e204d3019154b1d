"""Shared utilities for CLI commands."""

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

from rich.console import Console

T = TypeVar("T")

# Initialize Rich console for colored output
console = Console()


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine from a synchronous typer command."""
    return asyncio.run(coro)
