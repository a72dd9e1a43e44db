"""
OCI document models.

These Pydantic models mirror the JSON documents of an OCI image layout
(descriptors, image manifest, image index, oci-layout marker). Field names
use OCI's camelCase through aliases so that dumping by alias reproduces the
wire format exactly.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .storage.oci_media_types import (
    OCI_IMAGE_MANIFEST,
    OCI_LAYOUT_VERSION,
    OCI_REF_NAME_ANNOTATION,
    SCHEMA_VERSION,
)

__all__ = [
    "Descriptor",
    "ImageManifest",
    "ImageIndex",
    "OciLayoutFile",
    "validate_digest",
]

_HEX = set("0123456789abcdef")


def validate_digest(digest: str) -> str:
    """
    Validate a content digest of the form ``sha256:<64 lowercase hex>``.

    Args:
        digest: Digest string

    Returns:
        The digest, unchanged

    Raises:
        ValueError: If the digest is malformed
    """
    algorithm, sep, encoded = digest.partition(":")
    if not sep or algorithm != "sha256":
        raise ValueError(f"Unsupported digest algorithm: {digest}")
    if len(encoded) != 64 or not set(encoded) <= _HEX:
        raise ValueError(f"Invalid sha256 digest: {digest}")
    return digest


class _OciModel(BaseModel):
    """Base model: populate by field name or alias, dump by alias."""
    model_config = ConfigDict(populate_by_name=True)

    def to_json_dict(self) -> Dict[str, Any]:
        """Dump to the OCI JSON shape (aliases, no null fields)."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Descriptor(_OciModel):
    """
    Content descriptor identifying a blob by digest, size and media type.

    Unknown fields (``urls``, ``platform``, ``artifactType``...) written by
    other tools are kept so that rewriting an index does not drop them.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    media_type: str = Field(..., alias="mediaType", description="Media type of the referenced blob")
    digest: str = Field(..., description="Content digest (sha256:...)")
    size: int = Field(..., ge=0, description="Blob size in bytes")
    annotations: Optional[Dict[str, str]] = Field(default=None, description="Arbitrary metadata")

    @field_validator("digest")
    @classmethod
    def _check_digest(cls, v: str) -> str:
        return validate_digest(v)

    @property
    def hex(self) -> str:
        """Encoded part of the digest, used as the blob file name."""
        return self.digest.split(":", 1)[1]

    @property
    def ref_name(self) -> Optional[str]:
        """Human-readable reference tag, if annotated."""
        if not self.annotations:
            return None
        return self.annotations.get(OCI_REF_NAME_ANNOTATION)

    def with_annotations(self, **annotations: str) -> Descriptor:
        """Return a copy with annotations merged in."""
        merged = dict(self.annotations or {})
        merged.update(annotations)
        return self.model_copy(update={"annotations": merged})

    def with_ref_name(self, tag: str) -> Descriptor:
        return self.with_annotations(**{OCI_REF_NAME_ANNOTATION: tag})


class ImageManifest(_OciModel):
    """OCI image manifest tying one config blob to its layers."""
    schema_version: int = Field(default=SCHEMA_VERSION, alias="schemaVersion")
    media_type: str = Field(default=OCI_IMAGE_MANIFEST, alias="mediaType")
    config: Descriptor
    layers: List[Descriptor]
    annotations: Optional[Dict[str, str]] = None


class ImageIndex(_OciModel):
    """
    Top-level index of an image layout.

    Always rewritten in full; see ``storage.layout.write_index``.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    schema_version: int = Field(default=SCHEMA_VERSION, alias="schemaVersion")
    media_type: Optional[str] = Field(default=None, alias="mediaType")
    manifests: List[Descriptor] = Field(default_factory=list)
    annotations: Optional[Dict[str, str]] = None

    @field_validator("schema_version")
    @classmethod
    def _check_schema_version(cls, v: int) -> int:
        if v != SCHEMA_VERSION:
            raise ValueError(f"Unsupported index schemaVersion: {v}")
        return v

    def find(self, tag: str) -> Optional[Descriptor]:
        """Return the last manifest entry tagged with ``tag``."""
        for descriptor in reversed(self.manifests):
            if descriptor.ref_name == tag:
                return descriptor
        return None


class OciLayoutFile(_OciModel):
    """Contents of the ``oci-layout`` marker file."""
    image_layout_version: str = Field(default=OCI_LAYOUT_VERSION, alias="imageLayoutVersion")
