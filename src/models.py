import threading
from dataclasses import dataclass
from decimal import Context, Decimal, ROUND_HALF_EVEN
from enum import Enum
from typing import Optional

PRECISION = 4
_QUANTUM = Decimal(1).scaleb(-PRECISION)

ZERO = Decimal("0.0000")

# Largest amount a single transaction may carry (enforced at ingestion).
MAX_AMOUNT = Decimal("1000000000000000")

# Balance arithmetic runs under this context. 64 significant digits leave room
# for 10**40 maximum-size deposits before a balance could lose its 4 decimals.
LEDGER_CONTEXT = Context(prec=64, rounding=ROUND_HALF_EVEN)


def round_amount(value: Decimal) -> Decimal:
    """Round to exactly PRECISION fractional digits (banker's rounding)."""
    return value.quantize(_QUANTUM, rounding=ROUND_HALF_EVEN, context=LEDGER_CONTEXT)


def _plus(balance: Decimal, amount: Decimal) -> Decimal:
    return round_amount(LEDGER_CONTEXT.add(balance, amount))


def _minus(balance: Decimal, amount: Decimal) -> Decimal:
    return round_amount(LEDGER_CONTEXT.subtract(balance, amount))


def format_amount(value: Decimal) -> str:
    """
    Render a balance for output.
    Rounds to 4 places, strips trailing zeros but keeps at least one fractional digit:
    0 -> "0.0", 1.5000 -> "1.5", 0.123456789 -> "0.1235".
    """
    rounded = round_amount(value)
    if rounded.is_zero():
        return "0.0"
    text = f"{rounded:f}".rstrip("0")
    if text.endswith("."):
        text += "0"
    return text


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    APPLIED = "applied"
    IGNORED = "ignored"


class DisputeStatus(Enum):
    REGULAR = "regular"
    UNDER_DISPUTE = "under_dispute"


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class HistoryRecord:
    """Bookkeeping for a deposit that can still be disputed."""

    amount: Decimal
    status: DisputeStatus = DisputeStatus.REGULAR

    @property
    def is_disputed(self) -> bool:
        return self.status == DisputeStatus.UNDER_DISPUTE


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = ZERO
    held: Decimal = ZERO
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return LEDGER_CONTEXT.add(self.available, self.held)

    def credit(self, amount: Decimal) -> None:
        self.available = _plus(self.available, amount)

    def debit(self, amount: Decimal) -> None:
        self.available = _minus(self.available, amount)

    def hold(self, amount: Decimal) -> None:
        available, held = _minus(self.available, amount), _plus(self.held, amount)
        self.available, self.held = available, held

    def release_hold(self, amount: Decimal) -> None:
        available, held = _plus(self.available, amount), _minus(self.held, amount)
        self.available, self.held = available, held

    def remove_held(self, amount: Decimal) -> None:
        self.held = _minus(self.held, amount)

    def lock(self) -> None:
        self.locked = True


class ProcessingStats:
    """Thread-safe counters for tracking processing statistics."""

    def __init__(self):
        self._lock = threading.Lock()
        self.applied = 0
        self.ignored = 0
        self.skipped = 0
        self.dropped = 0

    def record_result(self, result: ProcessingResult):
        with self._lock:
            if result == ProcessingResult.APPLIED:
                self.applied += 1
            else:
                self.ignored += 1

    def record_skipped(self):
        with self._lock:
            self.skipped += 1

    def record_dropped(self):
        with self._lock:
            self.dropped += 1

    def __str__(self) -> str:
        return f"Applied: {self.applied}, Ignored: {self.ignored}, Skipped: {self.skipped}, Dropped: {self.dropped}"
