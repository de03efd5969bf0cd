"""Data models shared by the renderer, the sync engine and the link pass."""

from src.models.link_record import LinkRecord
from src.models.page_provenance import PageProvenance
from src.models.rendered_document import RenderedDocument

__all__ = ['LinkRecord', 'PageProvenance', 'RenderedDocument']
