"""Errors raised while exporting a single document."""

from src.relay_client.errors import SyncError


class UpsertError(SyncError):
    """Raised when one document cannot be placed in Foundry.

    Only the current document is aborted; entities already created for it
    stay in place and the batch continues with the next document.
    """

    def __init__(self, document_path: str, message: str):
        super().__init__(f"Could not export {document_path}: {message}")
        self.document_path = document_path
        self.message = message
