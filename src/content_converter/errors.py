"""Errors raised while rendering notes."""

from src.relay_client.errors import SyncError


class ConversionError(SyncError):
    """Raised when Markdown cannot be rendered to page markup."""

    def __init__(self, message: str, document_path: str = ""):
        self.message = message
        self.document_path = document_path
        prefix = f"{document_path}: " if document_path else ""
        super().__init__(f"{prefix}{message}")
