"""
Content-addressable blob store for an OCI image layout.

Blobs live at ``<root>/blobs/sha256/<hex>`` and are named by the SHA-256 of
their own bytes. A blob is written to a private temp file while its digest is
computed, then promoted to its final name. The final name only ever appears
with complete content.
"""
from __future__ import annotations

import errno
import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, BinaryIO

from ..models import Descriptor, validate_digest
from .digest_writer import Sha256Writer
from .oci_errors import BlobSerializationError, BlobWriteError
from .oci_media_types import DIGEST_ALGORITHM, OCI_BLOBS_DIR

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "blobs_dir",
    "blob_path",
    "canonical_json",
    "read_blob",
    "write_blob",
]

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024

_TMP_PREFIX = ".tmp-blob-"
# mkstemp creates 0600 files
_BLOB_MODE = 0o644


def canonical_json(value: Any) -> bytes:
    """
    Serialize a value as canonical JSON bytes.

    Sorted keys, no insignificant whitespace, UTF-8. Pydantic models are
    dumped by alias first so OCI documents keep their wire field names.

    Raises:
        BlobSerializationError: If the value has no JSON representation
    """
    if hasattr(value, "to_json_dict"):
        value = value.to_json_dict()
    try:
        text = json.dumps(
            value,
            sort_keys=True,
            separators=(',', ':'),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise BlobSerializationError(f"Failed to encode value as JSON: {e}") from e
    return text.encode("utf-8")


def blobs_dir(layout_root: Path | str) -> Path:
    """Directory holding sha256 blobs of a layout."""
    return Path(layout_root) / OCI_BLOBS_DIR / DIGEST_ALGORITHM


def blob_path(layout_root: Path | str, digest: str) -> Path:
    """
    Path of the blob with the given digest.

    Raises:
        ValueError: If the digest is malformed
    """
    validate_digest(digest)
    return blobs_dir(layout_root) / digest.split(":", 1)[1]


def read_blob(layout_root: Path | str, digest: str) -> bytes:
    """
    Read a blob's bytes back from the layout.

    Raises:
        FileNotFoundError: If the blob does not exist
        ValueError: If the digest is malformed
    """
    return blob_path(layout_root, digest).read_bytes()


def write_blob(layout_root: Path | str, media_type: str, *,
               value: Any = None,
               path: Path | str | None = None,
               tmp_dir: Path | str | None = None,
               chunk_size: int = DEFAULT_CHUNK_SIZE) -> Descriptor:
    """
    Write a blob into the layout and return its descriptor.

    Exactly one payload must be given: ``value`` is serialized as canonical
    JSON, ``path`` is streamed verbatim. Digest and size always come from the
    bytes actually written, never from the payload.

    Steps:
    1. Open a private temp file (in the blob directory unless ``tmp_dir`` is set)
    2. Stream the payload through a Sha256Writer, flush and fsync
    3. Measure the size from the temp file itself
    4. Promote the temp file to ``blobs/sha256/<hex>``

    Writing identical bytes twice is a no-op the second time.

    Args:
        layout_root: Root of an initialized OCI layout
        media_type: Media type recorded in the descriptor
        value: Structured value to store as JSON
        path: File whose raw bytes are stored
        tmp_dir: Scratch directory for the temp file
        chunk_size: Bytes per read when streaming ``path``

    Returns:
        Descriptor with ``sha256:<hex>`` digest, media type and size

    Raises:
        ValueError: If neither or both of value/path are given
        BlobSerializationError: If value cannot be encoded as JSON
        BlobWriteError: On any I/O failure
    """
    if (value is None) == (path is None):
        raise ValueError("write_blob requires exactly one of value or path")
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    # Encode before touching storage so a bad value leaves nothing behind
    data = canonical_json(value) if value is not None else None

    dest_dir = blobs_dir(layout_root)
    scratch = Path(tmp_dir) if tmp_dir is not None else dest_dir

    try:
        temp_fd, temp_name = tempfile.mkstemp(prefix=_TMP_PREFIX, dir=scratch)
    except OSError as e:
        raise BlobWriteError(f"Failed to create temporary blob file in `{scratch}`: {e}", scratch) from e
    temp_path = Path(temp_name)

    try:
        with os.fdopen(temp_fd, "wb") as temp_file:
            os.fchmod(temp_file.fileno(), _BLOB_MODE)
            writer = Sha256Writer(temp_file)
            try:
                if data is not None:
                    _write_all(writer, data)
                else:
                    with open(path, "rb") as src:
                        _copy_stream(src, writer, chunk_size)
                writer.flush()
                os.fsync(temp_file.fileno())
            except OSError as e:
                raise BlobWriteError(f"Failed to write blob to temporary file `{temp_path}`: {e}", temp_path) from e

            hex_digest, backing = writer.finish()
            size = os.fstat(backing.fileno()).st_size

        dest = dest_dir / hex_digest
        _commit(temp_path, dest)
        temp_path = None
    finally:
        if temp_path is not None:
            _discard(temp_path)

    digest = f"{DIGEST_ALGORITHM}:{hex_digest}"
    logger.debug(f"Wrote blob {digest} ({size} bytes, {media_type})")
    return Descriptor(media_type=media_type, digest=digest, size=size)


def _write_all(writer: Sha256Writer, data) -> None:
    """Write every byte of ``data``, following short writes."""
    view = memoryview(data).cast("B")
    while view:
        n = writer.write(view)
        if not n:
            raise OSError(errno.EIO, "sink accepted no bytes")
        view = view[n:]


def _copy_stream(src: BinaryIO, writer: Sha256Writer, chunk_size: int) -> None:
    while True:
        chunk = src.read(chunk_size)
        if not chunk:
            break
        _write_all(writer, chunk)


def _commit(temp_path: Path, dest: Path) -> None:
    """
    Promote a finished temp file to its digest-named destination.

    Two steps: an atomic rename, then for cross-device temp files a copy into
    a sibling temp inside the blob directory followed by a rename. The source
    temp file is removed in every outcome.
    """
    if dest.exists():
        # Same name means same bytes
        logger.debug(f"Blob {dest.name} already present, discarding duplicate")
        _discard(temp_path)
        return

    try:
        os.replace(temp_path, dest)
        return
    except OSError as e:
        if e.errno != errno.EXDEV:
            _discard(temp_path)
            raise BlobWriteError(f"Failed to write blob `{dest}`: {e}", dest) from e

    logger.debug(f"Temp file {temp_path} is on another filesystem, copying into {dest.parent}")
    staged = None
    try:
        staged_fd, staged_name = tempfile.mkstemp(prefix=_TMP_PREFIX, dir=dest.parent)
        staged = Path(staged_name)
        with os.fdopen(staged_fd, "wb") as out, open(temp_path, "rb") as src:
            os.fchmod(out.fileno(), _BLOB_MODE)
            shutil.copyfileobj(src, out)
            out.flush()
            os.fsync(out.fileno())
        os.replace(staged, dest)
        staged = None
    except OSError as e:
        raise BlobWriteError(f"Failed to write blob `{dest}`: {e}", dest) from e
    finally:
        if staged is not None:
            _discard(staged)
        _discard(temp_path)


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Failed to remove temporary file {path}: {e}")
