"""
Settings and configuration for helm2oci.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables when a conversion starts.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .storage.blob_store import DEFAULT_CHUNK_SIZE

__all__ = ["Settings", "create_settings_from_env", "INDEX_POLICIES"]

# append: drop entries with the same tag, then add the new manifest
# replace: the new manifest becomes the only entry
INDEX_POLICIES = ("append", "replace")


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for a conversion run.

    Blob Store Settings:
        tmp_dir: Scratch directory for blob temp files (default: the layout's
            blob directory, which keeps the final rename on one filesystem)
        chunk_size: Bytes read per step when streaming the chart archive

    Index Settings:
        index_policy: How a new manifest is added to index.json

    Output Settings:
        log_level: Logging level name for the CLI log handler
    """
    tmp_dir: Optional[str] = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    index_policy: str = "append"
    log_level: str = "WARNING"

    def __post_init__(self):
        """Validate settings on construction."""
        if self.tmp_dir is not None and not os.path.isdir(self.tmp_dir):
            raise ValueError(f"tmp_dir does not exist or is not a directory: {self.tmp_dir}")

        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")

        if self.index_policy not in INDEX_POLICIES:
            raise ValueError(
                f"Invalid index_policy '{self.index_policy}'. Use one of: {', '.join(INDEX_POLICIES)}"
            )

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Invalid log_level: {self.log_level}")


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - HELM2OCI_TMPDIR (optional)
        - HELM2OCI_CHUNK_SIZE (default: 1048576)
        - HELM2OCI_INDEX_POLICY (default: append)
        - HELM2OCI_LOG_LEVEL (default: WARNING)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        if not value:
            return default
        try:
            return int(value)
        except ValueError as e:
            raise ValueError(f"{key} must be an integer, got {value!r}") from e

    return Settings(
        tmp_dir=os.getenv("HELM2OCI_TMPDIR") or None,
        chunk_size=get_int("HELM2OCI_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
        index_policy=os.getenv("HELM2OCI_INDEX_POLICY", "append").lower(),
        log_level=os.getenv("HELM2OCI_LOG_LEVEL", "WARNING").upper(),
    )
