"""
CSV transaction source.

Expected header: ``type, client, tx, amount`` (any column order, whitespace
around names and values is trimmed). Rows that fail to parse are logged and
skipped; they never reach the ledger.
"""
import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterator, List, Optional

from errors import TransactionParseError, TransactionSourceError
from models import MAX_AMOUNT, Transaction, TransactionType, ProcessingStats, round_amount

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("type", "client", "tx", "amount")

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


def map_columns(header: List[str]) -> Dict[str, int]:
    """Map each required column name to its position in the header row."""
    positions = {name.strip(): index for index, name in enumerate(header)}
    missing = [name for name in REQUIRED_COLUMNS if name not in positions]
    if missing:
        raise TransactionSourceError(f"Input header {header} is missing columns: {', '.join(missing)}")
    return {name: positions[name] for name in REQUIRED_COLUMNS}


def _parse_id(value: str, field: str, maximum: int) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise TransactionParseError(f"{field} is not an integer: {value!r}") from None
    if not 0 <= parsed <= maximum:
        raise TransactionParseError(f"{field} out of range 0..{maximum}: {parsed}")
    return parsed


def _parse_amount(value: str) -> Decimal:
    if not value:
        raise TransactionParseError("amount is required")
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise TransactionParseError(f"amount is not a decimal number: {value!r}") from None
    if not amount.is_finite():
        raise TransactionParseError(f"amount is not a finite number: {value!r}")
    if amount < 0:
        raise TransactionParseError(f"amount is negative: {value!r}")
    if amount > MAX_AMOUNT:
        raise TransactionParseError(f"amount exceeds {MAX_AMOUNT}: {value!r}")
    return round_amount(amount)


def parse_csv_row(fields: List[str], columns: Dict[str, int], width: Optional[int] = None) -> Transaction:
    """
    Parse one CSV row into a Transaction.

    Raises TransactionParseError on a wrong column count, an unknown type,
    out-of-range ids, or a missing/invalid amount on a deposit or withdrawal.
    An amount given on a dispute, resolve or chargeback is ignored.
    """
    expected = width if width is not None else len(columns)
    if len(fields) != expected:
        raise TransactionParseError(f"expected {expected} columns, got {len(fields)}")

    values = {name: fields[index].strip() for name, index in columns.items()}

    try:
        transaction_type = TransactionType(values["type"])
    except ValueError:
        raise TransactionParseError(f"unknown transaction type: {values['type']!r}") from None

    client_id = _parse_id(values["client"], "client", MAX_CLIENT_ID)
    transaction_id = _parse_id(values["tx"], "tx", MAX_TRANSACTION_ID)

    amount = None
    if transaction_type.carries_amount:
        amount = _parse_amount(values["amount"])

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def read_transactions(filepath: str, stats: Optional[ProcessingStats] = None) -> Iterator[Transaction]:
    """
    Yield transactions from a CSV file in file order.

    Raises TransactionSourceError if the file cannot be opened or read, or
    if its header lacks a required column.
    """
    try:
        with open(filepath, "r", newline="", encoding="utf-8-sig") as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if header is None:
                logger.info(f"Input {filepath} is empty")
                return
            columns = map_columns(header)

            for fields in reader:
                if not fields:
                    continue
                try:
                    yield parse_csv_row(fields, columns, width=len(header))
                except TransactionParseError as e:
                    logger.warning(f"Skipping line {reader.line_num} {fields}: {e}")
                    if stats is not None:
                        stats.record_skipped()
    except (OSError, csv.Error, UnicodeDecodeError) as e:
        raise TransactionSourceError(f"Could not read {filepath}: {e}") from e
