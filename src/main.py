import logging
import os
import sys

from account_writer import write_accounts
from errors import PaymentsError
from message_queue import InMemoryQueue
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)


def log_level_from_env() -> int:
    level = logging.getLevelName(os.environ.get("LOG_LEVEL", "WARNING").upper())
    # getLevelName returns "Level X" for unknown names
    if not isinstance(level, int):
        return logging.WARNING
    return level


def configure_logging() -> None:
    logging.basicConfig(
        level=log_level_from_env(),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def queue_capacity_from_env() -> int:
    raw = os.environ.get("QUEUE_CAPACITY", "")
    if not raw:
        return InMemoryQueue.DEFAULT_CAPACITY
    try:
        capacity = int(raw)
    except ValueError:
        capacity = 0
    if capacity < 1:
        logger.warning(f"Ignoring invalid QUEUE_CAPACITY={raw!r}, using {InMemoryQueue.DEFAULT_CAPACITY}")
        return InMemoryQueue.DEFAULT_CAPACITY
    return capacity


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    configure_logging()

    if len(argv) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    filepath = argv[0]
    engine = PaymentsEngine(queue_capacity=queue_capacity_from_env())
    try:
        accounts = engine.process_file(filepath)
    except PaymentsError as e:
        logger.error(str(e))
        return 1

    write_accounts(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
