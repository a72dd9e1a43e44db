"""
SHA-256 digesting writer.

Wraps a binary sink and hashes every byte the sink accepts while forwarding
the bytes unchanged. Used by the blob store to compute a blob's digest in the
same pass that writes it to disk.
"""
from __future__ import annotations

import hashlib
from typing import BinaryIO, Generic, Tuple, TypeVar

__all__ = ["Sha256Writer"]

W = TypeVar("W", bound=BinaryIO)


class Sha256Writer(Generic[W]):
    """
    Decorator over a writable binary sink that tracks a running SHA-256.

    Only bytes actually accepted by the sink are hashed, so a short write
    leaves the digest describing exactly what was forwarded. Errors raised by
    the sink propagate before the hash is touched.

    Example:
        >>> writer = Sha256Writer(io.BytesIO())
        >>> writer.write(b"hello")
        5
        >>> digest, sink = writer.finish()
    """

    def __init__(self, sink: W):
        self._sink = sink
        self._sha = hashlib.sha256()
        self._written = 0
        self._finished = False

    @property
    def bytes_written(self) -> int:
        """Number of bytes accepted by the sink so far."""
        return self._written

    def writable(self) -> bool:
        return not self._finished

    def write(self, data) -> int:
        """
        Forward data to the sink and hash the accepted prefix.

        Args:
            data: Bytes-like object

        Returns:
            Number of bytes the sink accepted

        Raises:
            ValueError: If called after finish()
            OSError: Propagated from the sink
        """
        self._check_open()
        view = memoryview(data).cast("B")
        accepted = self._sink.write(view)
        # Raw sinks in non-blocking mode return None when nothing was written
        if accepted is None:
            accepted = 0
        if accepted:
            self._sha.update(view[:accepted])
            self._written += accepted
        return accepted

    def flush(self) -> None:
        self._check_open()
        self._sink.flush()

    def finish(self) -> Tuple[str, W]:
        """
        Stop writing and return the digest with the underlying sink.

        Returns:
            (lowercase hex digest, sink) tuple
        """
        self._check_open()
        self._finished = True
        return self._sha.hexdigest(), self._sink

    def _check_open(self) -> None:
        if self._finished:
            raise ValueError("write to a finished Sha256Writer")
