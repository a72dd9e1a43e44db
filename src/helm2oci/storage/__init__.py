"""
Content-addressable storage for OCI image layouts.

Submodules:
- digest_writer: SHA-256 hashing while streaming to a sink
- blob_store: digest-named, write-once blob files
- layout: layout directory skeleton, oci-layout marker and index.json
"""
