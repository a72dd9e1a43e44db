"""
OCI layout error classes.

Provides a clear taxonomy of errors that can occur while building an OCI
image layout on disk. None of these are retried: a conversion run is
single-shot and fails fast.
"""
from __future__ import annotations

from pathlib import Path


class OciLayoutError(Exception):
    """
    Base class for all OCI layout errors.
    """
    pass


class LayoutError(OciLayoutError):
    """
    Layout root cannot be used.

    Raised when:
    - The root path exists but is not a directory
    - The layout directories cannot be created
    - oci-layout is missing or declares an unsupported version
    """
    pass


class LayoutNotEmptyError(LayoutError):
    """
    Layout root already exists and is not empty.

    The initializer never guesses whether a foreign directory is safe to
    reuse, so a second conversion into the same directory fails here.
    """

    def __init__(self, path: Path | str):
        super().__init__(f"Directory `{path}` already exists and is not empty")
        self.path = Path(path)


class LayoutCorruptError(LayoutError):
    """
    Existing layout metadata cannot be read.

    Raised when:
    - index.json is missing or unreadable
    - index.json is not valid JSON or not a valid image index

    The layout is never silently reset.
    """
    pass


class BlobWriteError(OciLayoutError):
    """
    I/O failure while writing a blob or a layout file.

    Carries the path involved so the user-facing message names it.
    """

    def __init__(self, message: str, path: Path | str | None = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class BlobSerializationError(OciLayoutError):
    """
    A structured value could not be encoded as JSON.
    """
    pass


__all__ = [
    "OciLayoutError",
    "LayoutError",
    "LayoutNotEmptyError",
    "LayoutCorruptError",
    "BlobWriteError",
    "BlobSerializationError",
]
