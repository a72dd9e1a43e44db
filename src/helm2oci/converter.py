"""
Helm chart to OCI layout conversion.

Main entry point for turning a packaged chart into an OCI image layout.
Orchestrates metadata extraction, layout initialization, blob writes, and the
final index update.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from .chart import ChartMetadata, load_chart_metadata
from .models import Descriptor, ImageManifest
from .settings import Settings
from .storage.blob_store import DEFAULT_CHUNK_SIZE, write_blob
from .storage.layout import check_layout, ensure_layout, read_index, write_index
from .storage.oci_media_types import (
    HELM_CONFIG_MEDIA_TYPE,
    HELM_CONTENT_MEDIA_TYPE,
    OCI_IMAGE_MANIFEST,
)

__all__ = ["ConversionResult", "ProgressCallback", "publish", "convert_chart"]

logger = logging.getLogger(__name__)

# Called with (label, message) before each step, e.g. ("Writing", "config blob")
ProgressCallback = Callable[[str, str], None]

# Leading part of a chart version in a `<name>-<version>.tgz` file name
_VERSION_START = re.compile(r"v?\d+\.")


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of a successful conversion."""
    chart_name: str
    chart_version: str
    tag: str
    layout_path: Path
    manifest: Descriptor


def _noop_progress(label: str, message: str) -> None:
    pass


def publish(layout_root: Path | str, config: Any, content_path: Path | str, reference_tag: str, *,
            policy: str = "append",
            tmp_dir: Path | str | None = None,
            chunk_size: int = DEFAULT_CHUNK_SIZE,
            progress: Optional[ProgressCallback] = None) -> Descriptor:
    """
    Publish a chart into an initialized OCI layout.

    Writes the config blob, the chart archive as the single layer, and the
    image manifest, then adds the manifest to index.json tagged with
    ``reference_tag``. The index is rewritten last, only once every blob it
    references exists on disk; any earlier failure leaves it untouched.

    Index policies:
    - append: entries already tagged ``reference_tag`` are dropped, the new
      manifest is appended after the remaining entries
    - replace: the new manifest becomes the only entry

    Args:
        layout_root: Root of an initialized OCI layout
        config: Structured chart metadata stored as the config blob
        content_path: Chart archive stored verbatim as the content layer
        reference_tag: Tag recorded as org.opencontainers.image.ref.name
        policy: Index policy ("append" or "replace")
        tmp_dir: Scratch directory for blob temp files
        chunk_size: Bytes per read when streaming the archive
        progress: Optional status callback

    Returns:
        Manifest descriptor as recorded in the index

    Raises:
        ValueError: If reference_tag is empty or policy is unknown
        LayoutError: If layout_root is not an OCI layout
        LayoutCorruptError: If index.json cannot be parsed
        BlobWriteError: On I/O failure
    """
    if not reference_tag:
        raise ValueError("reference_tag must not be empty")
    if policy not in ("append", "replace"):
        raise ValueError(f"Unknown index policy: {policy}. Use 'append' or 'replace'")
    progress = progress or _noop_progress

    root = check_layout(layout_root)
    # Read up front so a corrupt index fails before any blob is written
    index = read_index(root)

    progress("Writing", "config blob")
    config_descriptor = write_blob(
        root, HELM_CONFIG_MEDIA_TYPE, value=config, tmp_dir=tmp_dir, chunk_size=chunk_size
    )

    progress("Writing", "image layer blob")
    layer_descriptor = write_blob(
        root, HELM_CONTENT_MEDIA_TYPE, path=content_path, tmp_dir=tmp_dir, chunk_size=chunk_size
    )

    progress("Writing", "image manifest")
    manifest = ImageManifest(config=config_descriptor, layers=[layer_descriptor])
    manifest_descriptor = write_blob(
        root, OCI_IMAGE_MANIFEST, value=manifest, tmp_dir=tmp_dir, chunk_size=chunk_size
    ).with_ref_name(reference_tag)

    progress("Adding", "manifest to OCI image index")
    if policy == "replace":
        manifests = [manifest_descriptor]
    else:
        if index.find(reference_tag) is not None:
            logger.info(f"Replacing existing index entry for tag {reference_tag}")
        kept = [d for d in index.manifests if d.ref_name != reference_tag]
        manifests = kept + [manifest_descriptor]
    write_index(root, index.model_copy(update={"manifests": manifests}))

    logger.info(f"Published manifest {manifest_descriptor.digest} as {reference_tag} in {root}")
    return manifest_descriptor


def convert_chart(chart_path: Path | str, output_dir: Path | str | None = None, *,
                  tag: Optional[str] = None,
                  settings: Optional[Settings] = None,
                  progress: Optional[ProgressCallback] = None) -> ConversionResult:
    """
    Convert a packaged Helm chart into a new OCI image layout.

    Chart.yaml is read before anything is created, so an invalid archive
    leaves no output directory behind. The output directory must be missing
    or empty.

    Args:
        chart_path: Path to the chart .tgz
        output_dir: Layout directory (defaults to the chart name)
        tag: Reference tag (defaults to the chart version)
        settings: Settings (loaded from env if None)
        progress: Optional status callback

    Returns:
        ConversionResult describing the written layout

    Raises:
        ChartError: If the archive or its Chart.yaml is invalid
        ValueError: If the reference tag is empty
        LayoutNotEmptyError: If the output directory is not empty
        BlobWriteError: On I/O failure
    """
    if settings is None:
        from .settings import create_settings_from_env
        settings = create_settings_from_env()
    progress = progress or _noop_progress

    chart_path = Path(chart_path)
    metadata = load_chart_metadata(chart_path)
    _warn_on_filename_mismatch(chart_path, metadata)

    reference_tag = tag if tag is not None else metadata.version
    if not reference_tag:
        raise ValueError("reference_tag must not be empty")
    layout_path = Path(output_dir) if output_dir is not None else Path(metadata.name)

    progress("Creating", "oci layout directory")
    ensure_layout(layout_path)

    manifest_descriptor = publish(
        layout_path,
        metadata.raw,
        chart_path,
        reference_tag,
        policy=settings.index_policy,
        tmp_dir=settings.tmp_dir,
        chunk_size=settings.chunk_size,
        progress=progress,
    )

    return ConversionResult(
        chart_name=metadata.name,
        chart_version=metadata.version,
        tag=reference_tag,
        layout_path=layout_path,
        manifest=manifest_descriptor,
    )


def _warn_on_filename_mismatch(chart_path: Path, metadata: ChartMetadata) -> None:
    """
    Log a warning when a ``<name>-<version>.tgz`` filename disagrees with Chart.yaml.

    Chart.yaml is authoritative; the filename is only a hint.
    """
    prefix = f"{metadata.name}-"
    stem = chart_path.name
    if stem.endswith(".tgz"):
        stem = stem[:-4]
    elif stem.endswith(".tar.gz"):
        stem = stem[:-7]
    if not stem.startswith(prefix):
        return
    file_version = stem[len(prefix):]
    # demo-extra-1.0.0.tgz is another chart named demo-extra, not a version
    if not _VERSION_START.match(file_version):
        return
    if file_version != metadata.version:
        logger.warning(
            f"Archive name {chart_path.name} suggests version {file_version}, "
            f"but Chart.yaml declares {metadata.version}; using {metadata.version}"
        )
