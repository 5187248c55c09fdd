from typing import List, Optional

from models import Transaction, ClientAccount, ProcessingStats
from state_manager import StateManager
from transaction_processor import TransactionProcessor


class LedgerEngine:
    """
    Owns all account and dispute-history state for one run.

    apply() never raises for an inapplicable transaction: insufficient funds,
    unknown ids and out-of-order dispute steps are absorbed as no-ops.
    Single-threaded; drive it from one consumer in arrival order.
    """

    def __init__(self, stats: Optional[ProcessingStats] = None):
        self._state = StateManager()
        self._processor = TransactionProcessor(self._state)
        self.stats = stats if stats is not None else ProcessingStats()

    def apply(self, transaction: Transaction) -> None:
        self.stats.record_result(self._processor.process_transaction(transaction))

    def export(self) -> List[ClientAccount]:
        """Return one account per known client, in first-seen order."""
        return self._state.get_all_accounts()
