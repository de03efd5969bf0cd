"""Data models for embedded assets."""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class AssetRecord:
    """An embedded image prepared for upload.

    Attributes:
        local_path: Vault-relative path of the image
        content_hash: xxh64 of the bytes as 16 hex characters
        derived_name: Content-addressed file name ``basename_hash.ext``
        upload_dir: Directory in the Foundry data folder
    """
    local_path: str
    content_hash: str
    derived_name: str
    upload_dir: str

    @property
    def upload_path(self) -> str:
        return f"{self.upload_dir}/{self.derived_name}"


@dataclass
class UploadSummary:
    """Outcome of draining the upload queue.

    Attributes:
        uploaded: Upload paths transferred in this drain
        skipped: Upload paths already present remotely
        failed: Upload paths whose transfer failed
    """
    uploaded: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
