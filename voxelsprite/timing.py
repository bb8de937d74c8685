"""Timing of named operations."""

from __future__ import annotations

import time
from typing import Callable


def timed(name: str, show_output: bool, operation: Callable[[], object]) -> int:
    """Run operation, optionally print how long it took, and return the milliseconds."""
    start = time.perf_counter()
    operation()
    ms = int((time.perf_counter() - start) * 1000)
    if show_output:
        print(f"{name}: {ms} ms")
    return ms