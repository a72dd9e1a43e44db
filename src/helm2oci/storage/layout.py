"""
OCI image layout directory management.

Creates the layout skeleton and owns the two layout-level JSON files:
``oci-layout`` (version marker) and ``index.json`` (manifest catalog).
See https://github.com/opencontainers/image-spec/blob/main/image-layout.md
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from ..models import ImageIndex, OciLayoutFile
from .blob_store import blobs_dir, canonical_json
from .oci_errors import BlobWriteError, LayoutCorruptError, LayoutError, LayoutNotEmptyError
from .oci_media_types import OCI_INDEX_FILE, OCI_LAYOUT_FILE, OCI_LAYOUT_VERSION

__all__ = ["ensure_layout", "check_layout", "read_index", "write_index", "index_path"]

logger = logging.getLogger(__name__)


def index_path(layout_root: Path | str) -> Path:
    return Path(layout_root) / OCI_INDEX_FILE


def ensure_layout(layout_root: Path | str) -> Path:
    """
    Initialize an OCI image layout directory.

    - Missing root: created (with parents), then initialized
    - Existing empty directory: initialized
    - Existing non-empty directory: rejected, contents untouched

    Initialization creates ``blobs/sha256``, writes ``oci-layout`` and an
    ``index.json`` with an empty manifest list. Calling this twice on the same
    root fails the second time.

    Args:
        layout_root: Layout root directory

    Returns:
        The layout root as a Path

    Raises:
        LayoutNotEmptyError: If the directory exists and is not empty
        LayoutError: If the path exists but is not a directory
        BlobWriteError: If directories or files cannot be written
    """
    root = Path(layout_root)

    if root.exists():
        if not root.is_dir():
            raise LayoutError(f"`{root}` exists and is not a directory")
        try:
            with os.scandir(root) as entries:
                empty = next(entries, None) is None
        except OSError as e:
            raise LayoutError(f"Failed to read OCI layout directory `{root}`: {e}") from e
        if not empty:
            raise LayoutNotEmptyError(root)
    else:
        try:
            root.mkdir(parents=True)
        except OSError as e:
            raise BlobWriteError(f"Failed to create OCI layout directory `{root}`: {e}", root) from e

    _init_dir(root)
    logger.info(f"Initialized OCI layout at {root}")
    return root


def _init_dir(root: Path) -> None:
    """Create blobs/sha256, oci-layout and index.json in an empty directory."""
    blobs = blobs_dir(root)
    try:
        blobs.mkdir(parents=True)
    except OSError as e:
        raise BlobWriteError(f"Failed to create blobs directory `{blobs}`: {e}", blobs) from e

    _write_json_file(root / OCI_LAYOUT_FILE, OciLayoutFile())
    write_index(root, ImageIndex())


def check_layout(layout_root: Path | str) -> Path:
    """
    Verify that a directory is an initialized layout this tool can extend.

    Raises:
        LayoutError: If oci-layout or the blob directory is missing, or the
            layout version is unsupported
    """
    root = Path(layout_root)
    marker = root / OCI_LAYOUT_FILE
    try:
        layout = OciLayoutFile.model_validate_json(marker.read_bytes())
    except FileNotFoundError as e:
        raise LayoutError(f"`{root}` is not an OCI layout: missing {OCI_LAYOUT_FILE}") from e
    except (OSError, ValidationError) as e:
        raise LayoutError(f"Failed to read `{marker}`: {e}") from e

    if layout.image_layout_version != OCI_LAYOUT_VERSION:
        raise LayoutError(
            f"Unsupported imageLayoutVersion {layout.image_layout_version!r} in `{marker}`"
        )
    if not blobs_dir(root).is_dir():
        raise LayoutError(f"`{root}` is not an OCI layout: missing {blobs_dir(root)}")
    return root


def read_index(layout_root: Path | str) -> ImageIndex:
    """
    Load index.json from a layout.

    Raises:
        LayoutCorruptError: If the index is missing, unreadable or malformed
    """
    path = index_path(layout_root)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise LayoutCorruptError(f"Failed to read `{path}`: {e}") from e

    try:
        return ImageIndex.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as e:
        raise LayoutCorruptError(f"Malformed image index `{path}`: {e}") from e


def write_index(layout_root: Path | str, index: ImageIndex) -> Path:
    """
    Rewrite index.json in full.

    The new content is written to a temp file beside the index and renamed
    over it, so readers see either the old or the new index.

    Returns:
        Path of the index file
    """
    path = index_path(layout_root)
    _write_json_file(path, index)
    logger.debug(f"Wrote {path} with {len(index.manifests)} manifest(s)")
    return path


def _write_json_file(path: Path, document) -> None:
    data = canonical_json(document)
    temp_path = None
    try:
        temp_fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        temp_path = Path(temp_name)
        with os.fdopen(temp_fd, "wb") as f:
            os.fchmod(f.fileno(), 0o644)
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
        temp_path = None
    except OSError as e:
        raise BlobWriteError(f"Failed to write `{path}`: {e}", path) from e
    finally:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink()
