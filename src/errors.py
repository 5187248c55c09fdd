class PaymentsError(Exception):
    """Base class for errors raised by the payments ledger."""


class TransactionParseError(PaymentsError):
    """A single input row could not be turned into a Transaction. The row is skipped."""


class TransactionSourceError(PaymentsError):
    """The input source cannot be opened or read at all. Aborts the run."""
