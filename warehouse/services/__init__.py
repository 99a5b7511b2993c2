"""
Domain services: the stock ledger and everything it writes or reads.
"""
from warehouse.services.alerts import AlertEvaluator, AlertOutcome, ReconcileResult, classify
from warehouse.services.ledger import LedgerEngine, MutationKind, MutationResult
from warehouse.services.notifier import ConnectionManager
from warehouse.services.queries import InventoryQueries, Page
from warehouse.services.recorder import TransactionRecorder, generate_transaction_id

__all__ = [
    "AlertEvaluator", "AlertOutcome", "ReconcileResult", "classify",
    "LedgerEngine", "MutationKind", "MutationResult",
    "ConnectionManager",
    "InventoryQueries", "Page",
    "TransactionRecorder", "generate_transaction_id",
]
