"""
OCI media types and layout constants.

Single source of truth for media types, annotation keys, and the fixed file
names of an OCI image layout directory.
"""
from __future__ import annotations

# OCI standard manifest type
OCI_IMAGE_MANIFEST = "application/vnd.oci.image.manifest.v1+json"

# Helm chart artifact types (must match what `helm pull` expects)
HELM_CONFIG_MEDIA_TYPE = "application/vnd.cncf.helm.config.v1+json"
HELM_CONTENT_MEDIA_TYPE = "application/vnd.cncf.helm.chart.content.v1.tar+gzip"

# Annotation carried by index entries, read by `oras copy --from-oci-layout dir:<tag>`
OCI_REF_NAME_ANNOTATION = "org.opencontainers.image.ref.name"

# Image layout: https://github.com/opencontainers/image-spec/blob/main/image-layout.md
# Fixed at 1.0.0 until the layout format itself changes.
OCI_LAYOUT_VERSION = "1.0.0"
OCI_LAYOUT_FILE = "oci-layout"
OCI_INDEX_FILE = "index.json"
OCI_BLOBS_DIR = "blobs"

DIGEST_ALGORITHM = "sha256"
SCHEMA_VERSION = 2

# Name of the metadata file inside a packaged chart: <chart>/Chart.yaml
HELM_CHART_YAML_FILE = "Chart.yaml"


__all__ = [
    "OCI_IMAGE_MANIFEST",
    "HELM_CONFIG_MEDIA_TYPE",
    "HELM_CONTENT_MEDIA_TYPE",
    "OCI_REF_NAME_ANNOTATION",
    "OCI_LAYOUT_VERSION",
    "OCI_LAYOUT_FILE",
    "OCI_INDEX_FILE",
    "OCI_BLOBS_DIR",
    "DIGEST_ALGORITHM",
    "SCHEMA_VERSION",
    "HELM_CHART_YAML_FILE",
]
