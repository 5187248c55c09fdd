from decimal import Decimal
from typing import Dict, List, Optional

from models import ClientAccount, DisputeStatus, HistoryRecord


class StateManager:
    """
    Ledger state: client accounts and the history of disputable deposits.
    Not thread-safe. Exactly one consumer may drive it, in arrival order.
    """

    def __init__(self):
        # dicts keep insertion order, which gives first-seen order on export
        self._accounts: Dict[int, ClientAccount] = {}
        self._history: Dict[int, HistoryRecord] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def record_deposit(self, transaction_id: int, amount: Decimal) -> None:
        """Store (or overwrite) the history record for a deposit."""
        self._history[transaction_id] = HistoryRecord(amount=amount)

    def get_history_record(self, transaction_id: int) -> Optional[HistoryRecord]:
        return self._history.get(transaction_id)

    def mark_transaction_disputed(self, transaction_id: int) -> None:
        self._history[transaction_id].status = DisputeStatus.UNDER_DISPUTE

    def remove_history_record(self, transaction_id: int) -> None:
        """Drop a settled dispute. Later references to the id find nothing."""
        self._history.pop(transaction_id, None)

    def get_all_accounts(self) -> List[ClientAccount]:
        """Return all accounts in first-seen order (for final output)."""
        return list(self._accounts.values())

    def __len__(self) -> int:
        return len(self._accounts)
