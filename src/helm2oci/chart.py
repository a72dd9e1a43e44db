"""
Helm chart archive reading.

A packaged chart is a gzip-compressed tarball whose metadata lives at
``<chart name>/Chart.yaml``. The chart name is not known up front, so the
archive is scanned for the first two-component path ending in Chart.yaml.
"""
from __future__ import annotations

import json
import logging
import tarfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Any, Dict

import yaml
from pydantic import BaseModel, Field

from .storage.blob_store import canonical_json
from .storage.oci_errors import BlobSerializationError
from .storage.oci_media_types import HELM_CHART_YAML_FILE

__all__ = [
    "ChartError",
    "ChartNotFoundError",
    "ChartArchiveError",
    "ChartMetadataError",
    "ChartFieldError",
    "ChartMetadata",
    "load_chart_metadata",
    "is_chart_yaml_entry",
]

logger = logging.getLogger(__name__)


class ChartError(Exception):
    """Base class for problems with the input chart archive."""
    pass


class ChartNotFoundError(ChartError):
    """Chart archive path does not exist."""
    pass


class ChartArchiveError(ChartError):
    """Chart archive is not a readable gzip-compressed tarball."""
    pass


class ChartMetadataError(ChartError):
    """Chart.yaml is missing from the archive or cannot be parsed."""
    pass


class ChartFieldError(ChartError):
    """A required Chart.yaml field is missing or not a string."""

    def __init__(self, field: str, metadata: Any):
        super().__init__(
            f"{HELM_CHART_YAML_FILE} doesn't contain a {field} field. manifest: "
            f"{json.dumps(metadata, sort_keys=True, default=str)}"
        )
        self.field = field
        self.metadata = metadata


class ChartMetadata(BaseModel):
    """Fields of Chart.yaml consumed by the converter."""
    name: str = Field(..., description="Chart name")
    version: str = Field(..., description="Chart version (SemVer 2)")
    raw: Dict[str, Any] = Field(..., description="Full parsed Chart.yaml, stored as the config blob")

    @classmethod
    def from_mapping(cls, data: Any) -> ChartMetadata:
        """
        Build from a parsed Chart.yaml document.

        Raises:
            ChartMetadataError: If the document is not a mapping
            ChartFieldError: If name or version is missing or not a string
        """
        if not isinstance(data, dict):
            raise ChartMetadataError(
                f"{HELM_CHART_YAML_FILE} must be a mapping, got {type(data).__name__}"
            )
        for field in ("name", "version"):
            if not isinstance(data.get(field), str):
                raise ChartFieldError(field, data)
        return cls(name=data["name"], version=data["version"], raw=data)


def is_chart_yaml_entry(name: str) -> bool:
    """
    Check whether a tar member name is ``<chart>/Chart.yaml``.

    Leading ``./`` and trailing slashes are not counted as components.
    """
    parts = PurePosixPath(name).parts
    return len(parts) == 2 and parts[0] != "/" and parts[1] == HELM_CHART_YAML_FILE


def load_chart_metadata(chart_path: Path | str) -> ChartMetadata:
    """
    Read and parse Chart.yaml from a packaged chart.

    The archive is read as a stream; members are never extracted to disk.
    Entries outside the ``<chart>/Chart.yaml`` pattern are ignored.

    Args:
        chart_path: Path to the chart .tgz

    Returns:
        Parsed chart metadata

    Raises:
        ChartNotFoundError: If the archive does not exist
        ChartArchiveError: If the archive is not a valid gzip tarball
        ChartMetadataError: If Chart.yaml is absent or unparseable
        ChartFieldError: If name or version is missing
    """
    chart_path = Path(chart_path)
    if not chart_path.is_file():
        raise ChartNotFoundError(f"File not found: {chart_path}")

    content = _read_chart_yaml(chart_path)

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ChartMetadataError(f"Failed to parse {HELM_CHART_YAML_FILE} in {chart_path}: {e}") from e

    metadata = ChartMetadata.from_mapping(data)

    # Same encoding as the config blob; YAML timestamps and mixed-type keys have no JSON form
    try:
        canonical_json(metadata.raw)
    except BlobSerializationError as e:
        raise ChartMetadataError(
            f"{HELM_CHART_YAML_FILE} in {chart_path} cannot be represented as JSON: {e}"
        ) from e

    logger.debug(f"Loaded {HELM_CHART_YAML_FILE} for chart {metadata.name} {metadata.version}")
    return metadata


def _read_chart_yaml(chart_path: Path) -> bytes:
    try:
        with tarfile.open(chart_path, mode="r|gz") as tar:
            for member in tar:
                if not member.isfile() or not is_chart_yaml_entry(member.name):
                    continue
                logger.debug(f"Found {member.name} in {chart_path}")
                f = tar.extractfile(member)
                return f.read()
    except (tarfile.TarError, OSError, EOFError, zlib.error) as e:
        raise ChartArchiveError(f"Failed to read chart archive {chart_path}: {e}") from e

    raise ChartMetadataError(f"{HELM_CHART_YAML_FILE} not found in the helm chart {chart_path}")
