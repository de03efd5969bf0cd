"""Export of rendered notes into Foundry pages and cross-page link resolution."""

from .errors import UpsertError
from .link_resolution import LinkResolutionPass, LinkResolver, install_link_macro, slugify
from .models import DocumentTarget, LinkPassSummary, UpsertOutcome, UpsertResult
from .session import SyncSession
from .upsert_orchestrator import UpsertOrchestrator

__all__ = [
    "DocumentTarget",
    "LinkPassSummary",
    "LinkResolutionPass",
    "LinkResolver",
    "SyncSession",
    "UpsertError",
    "UpsertOrchestrator",
    "UpsertOutcome",
    "UpsertResult",
    "install_link_macro",
    "slugify",
]
