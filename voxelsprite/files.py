"""File name helpers and reading or writing objects through files."""

from __future__ import annotations

from typing import BinaryIO, Callable, TypeVar

T = TypeVar("T")


def base_filename(filename: str) -> str:
    """Strip the last extension, unless the last dot is inside a directory name."""
    last_extension = filename.rfind(".")
    last_slash = filename.rfind("/")
    if last_extension != -1 and last_extension > last_slash:
        return filename[:last_extension]
    return filename


def instantiate_from_file(filename: str, loader: Callable[[BinaryIO], T]) -> T:
    """Open a file for reading and build an object from it with loader."""
    with open(filename, "rb") as handle:
        return loader(handle)


def write_to_file(filename: str, writer: Callable[[BinaryIO], object]) -> None:
    """Create or truncate a file and let writer fill it."""
    with open(filename, "wb") as handle:
        writer(handle)