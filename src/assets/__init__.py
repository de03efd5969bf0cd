"""Embedded image discovery, content addressing and deduplicated upload."""

from .extractor import AssetCollector, content_hash, derive_remote_name
from .models import AssetRecord, UploadSummary
from .uploader import AssetUploader

__all__ = [
    "AssetCollector",
    "AssetRecord",
    "AssetUploader",
    "UploadSummary",
    "content_hash",
    "derive_remote_name",
]
