import logging

from models import Transaction, TransactionType, ClientAccount, ProcessingResult
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to ledger state.
    Returns ProcessingResult so the caller can tell applied from ignored;
    an ignored transaction leaves every balance untouched.
    """

    def __init__(self, state: StateManager):
        self._state = state

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        The account is created on first reference, even when the transaction
        ends up ignored. Locked accounts keep accepting transactions.

        Returns:
            APPLIED: State was mutated
            IGNORED: Preconditions failed (insufficient funds, unknown tx, wrong dispute state)
        """
        account = self._state.get_or_create_account(transaction.client_id)

        if transaction.transaction_type.carries_amount and transaction.amount is None:
            logger.warning(f"{transaction.transaction_type.value.capitalize()} tx {transaction.transaction_id}: missing amount")
            return ProcessingResult.IGNORED

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        account.credit(transaction.amount)
        self._state.record_deposit(transaction.transaction_id, transaction.amount)
        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        if account.available < transaction.amount:
            logger.debug(f"Withdrawal tx {transaction.transaction_id}: insufficient funds ({account.available} < {transaction.amount})")
            return ProcessingResult.IGNORED

        account.debit(transaction.amount)
        return ProcessingResult.APPLIED

    # Withdrawals never enter the history, so only deposits can be disputed.
    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        record = self._state.get_history_record(transaction.transaction_id)

        if record is None:
            logger.debug(f"Dispute for tx {transaction.transaction_id}: no disputable deposit with this id")
            return ProcessingResult.IGNORED

        if record.is_disputed:
            logger.debug(f"Dispute for tx {transaction.transaction_id}: transaction already disputed")
            return ProcessingResult.IGNORED

        if account.available < record.amount:
            logger.debug(f"Dispute for tx {transaction.transaction_id}: insufficient available funds ({account.available} < {record.amount})")
            return ProcessingResult.IGNORED

        account.hold(record.amount)
        self._state.mark_transaction_disputed(transaction.transaction_id)
        return ProcessingResult.APPLIED

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        record = self._state.get_history_record(transaction.transaction_id)

        if record is None or not record.is_disputed:
            logger.debug(f"Resolve for tx {transaction.transaction_id}: transaction not under dispute")
            return ProcessingResult.IGNORED

        account.release_hold(record.amount)
        self._state.remove_history_record(transaction.transaction_id)
        return ProcessingResult.APPLIED

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        record = self._state.get_history_record(transaction.transaction_id)

        if record is None or not record.is_disputed:
            logger.debug(f"Chargeback for tx {transaction.transaction_id}: transaction not under dispute")
            return ProcessingResult.IGNORED

        account.remove_held(record.amount)
        account.lock()
        self._state.remove_history_record(transaction.transaction_id)
        return ProcessingResult.APPLIED
