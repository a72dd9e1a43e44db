"""
Tests for OCI layout initialization and index handling.
"""
from __future__ import annotations

import json

import pytest

from helm2oci.models import Descriptor, ImageIndex
from helm2oci.storage.layout import (
    check_layout,
    ensure_layout,
    index_path,
    read_index,
    write_index,
)
from helm2oci.storage.oci_errors import (
    LayoutCorruptError,
    LayoutError,
    LayoutNotEmptyError,
)
from helm2oci.storage.oci_media_types import OCI_IMAGE_MANIFEST

DIGEST = "sha256:" + "ab" * 32


class TestEnsureLayout:
    """Test layout directory initialization."""

    def test_creates_missing_directory_with_parents(self, tmp_path):
        """Test that a nonexistent path gets the full layout skeleton."""
        root = tmp_path / "a" / "b" / "oci"

        result = ensure_layout(root)

        assert result == root
        assert sorted(p.name for p in root.iterdir()) == ["blobs", "index.json", "oci-layout"]
        assert (root / "oci-layout").read_bytes() == b'{"imageLayoutVersion":"1.0.0"}'
        assert json.loads((root / "index.json").read_text()) == {"schemaVersion": 2, "manifests": []}
        assert (root / "blobs" / "sha256").is_dir()
        assert list((root / "blobs" / "sha256").iterdir()) == []

    def test_initializes_existing_empty_directory(self, tmp_path):
        root = tmp_path / "empty"
        root.mkdir()

        ensure_layout(root)

        assert (root / "oci-layout").is_file()
        assert read_index(root).manifests == []

    def test_rejects_non_empty_directory_untouched(self, tmp_path):
        """Test that a foreign non-empty directory is refused and left as is."""
        root = tmp_path / "foreign"
        root.mkdir()
        (root / "notes.txt").write_text("keep me")

        with pytest.raises(LayoutNotEmptyError, match="not empty") as exc_info:
            ensure_layout(root)

        assert exc_info.value.path == root
        assert [p.name for p in root.iterdir()] == ["notes.txt"]
        assert (root / "notes.txt").read_text() == "keep me"

    def test_second_call_rejected(self, tmp_path):
        root = tmp_path / "oci"
        ensure_layout(root)
        before = {p.name: p.read_bytes() for p in root.iterdir() if p.is_file()}

        with pytest.raises(LayoutNotEmptyError):
            ensure_layout(root)

        after = {p.name: p.read_bytes() for p in root.iterdir() if p.is_file()}
        assert before == after

    def test_hidden_file_counts_as_content(self, tmp_path):
        root = tmp_path / "oci"
        root.mkdir()
        (root / ".keep").write_text("")
        with pytest.raises(LayoutNotEmptyError):
            ensure_layout(root)

    def test_rejects_regular_file(self, tmp_path):
        target = tmp_path / "file"
        target.write_text("x")
        with pytest.raises(LayoutError, match="not a directory"):
            ensure_layout(target)


class TestCheckLayout:
    """Test validation of existing layouts."""

    def test_initialized_layout_passes(self, layout):
        assert check_layout(layout) == layout

    def test_missing_marker(self, tmp_path):
        with pytest.raises(LayoutError, match="oci-layout"):
            check_layout(tmp_path)

    def test_unsupported_version(self, layout):
        (layout / "oci-layout").write_text('{"imageLayoutVersion":"9.9.9"}')
        with pytest.raises(LayoutError, match="9.9.9"):
            check_layout(layout)

    def test_missing_blob_directory(self, layout):
        (layout / "blobs" / "sha256").rmdir()
        with pytest.raises(LayoutError):
            check_layout(layout)


class TestIndex:
    """Test index.json read/write."""

    def test_round_trip(self, layout):
        """Test that a written index reads back equal."""
        entry = Descriptor(media_type=OCI_IMAGE_MANIFEST, digest=DIGEST, size=42).with_ref_name("1.0.0")
        write_index(layout, ImageIndex(manifests=[entry]))

        index = read_index(layout)

        assert index.manifests == [entry]
        assert index.find("1.0.0") == entry
        assert index.find("2.0.0") is None

    def test_written_shape(self, layout):
        entry = Descriptor(media_type=OCI_IMAGE_MANIFEST, digest=DIGEST, size=42).with_ref_name("1.0.0")
        write_index(layout, ImageIndex(manifests=[entry]))

        data = json.loads(index_path(layout).read_text())

        assert data == {
            "schemaVersion": 2,
            "manifests": [{
                "mediaType": OCI_IMAGE_MANIFEST,
                "digest": DIGEST,
                "size": 42,
                "annotations": {"org.opencontainers.image.ref.name": "1.0.0"},
            }],
        }

    def test_unknown_descriptor_fields_preserved(self, layout):
        """Test that fields written by other tools survive a rewrite."""
        index_path(layout).write_text(json.dumps({
            "schemaVersion": 2,
            "manifests": [{
                "mediaType": OCI_IMAGE_MANIFEST,
                "digest": DIGEST,
                "size": 7,
                "platform": {"architecture": "amd64", "os": "linux"},
            }],
        }))

        write_index(layout, read_index(layout))

        data = json.loads(index_path(layout).read_text())
        assert data["manifests"][0]["platform"] == {"architecture": "amd64", "os": "linux"}

    def test_no_temp_files_after_write(self, layout):
        write_index(layout, ImageIndex())
        assert sorted(p.name for p in layout.iterdir()) == ["blobs", "index.json", "oci-layout"]

    @pytest.mark.parametrize("content", [
        "{not json",
        "[]",
        '{"schemaVersion": 1, "manifests": []}',
        '{"schemaVersion": 2, "manifests": [{"digest": "sha256:nope", "size": 1, "mediaType": "x"}]}',
    ])
    def test_malformed_index_is_corrupt(self, layout, content):
        """Test that a malformed index is reported, never reset."""
        index_path(layout).write_text(content)

        with pytest.raises(LayoutCorruptError):
            read_index(layout)

        assert index_path(layout).read_text() == content

    def test_missing_index_is_corrupt(self, layout):
        index_path(layout).unlink()
        with pytest.raises(LayoutCorruptError):
            read_index(layout)
