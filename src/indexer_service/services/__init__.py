"""Service layer exports."""

from indexer_service.services.indexer import IndexBuilder, ProjectionCache
from indexer_service.services.ledger_client import ContractNames, LedgerClient
from indexer_service.services.projection import ContractStreams, ProjectionSnapshot, fold_events

__all__ = [
    "ContractNames",
    "ContractStreams",
    "IndexBuilder",
    "LedgerClient",
    "ProjectionCache",
    "ProjectionSnapshot",
    "fold_events",
]
