import logging
import threading
from typing import List, Optional

from ledger_engine import LedgerEngine
from message_queue import InMemoryQueue
from models import ClientAccount, ProcessingStats
from transaction_reader import read_transactions

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Orchestrates transaction processing with publisher-consumer pattern.
    One publisher thread reads the CSV into a bounded queue; one consumer
    thread applies transactions to the ledger strictly in file order.
    """

    def __init__(self, queue_capacity: int = InMemoryQueue.DEFAULT_CAPACITY):
        self._queue = InMemoryQueue(capacity=queue_capacity)
        self._stats = ProcessingStats()
        self._ledger = LedgerEngine(stats=self._stats)
        self._publisher_error: Optional[BaseException] = None
        self._consumer_error: Optional[BaseException] = None

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> List[ClientAccount]:
        """
        Process CSV file and return final account states in first-seen order.
        Re-raises TransactionSourceError if the input could not be read.
        """
        logger.info(f"Processing {filepath}")

        publisher_thread = threading.Thread(target=self._publish_transactions, args=(filepath,), name="publisher")
        consumer_thread = threading.Thread(target=self._consume_transactions, name="consumer")
        publisher_thread.start()
        consumer_thread.start()

        publisher_thread.join()
        consumer_thread.join()

        if self._publisher_error is not None:
            raise self._publisher_error
        if self._consumer_error is not None:
            raise self._consumer_error

        logger.info(f"Processing complete. {self._stats}")
        return self._ledger.export()

    def _publish_transactions(self, filepath: str) -> None:
        """Read CSV and publish transactions to queue."""
        try:
            for transaction in read_transactions(filepath, stats=self._stats):
                if not self._queue.publish_message(transaction):
                    logger.error(f"Failed to send {transaction} to ledger, dropping")
                    self._stats.record_dropped()
        except Exception as e:
            self._publisher_error = e
        finally:
            self._queue.shutdown()

    def _consume_transactions(self) -> None:
        """Consumer loop: pull from queue and apply until the publisher is done and the queue drained."""
        try:
            while True:
                transaction = self._queue.consume_message()
                if transaction is None:
                    if self._queue.is_shutdown() and self._queue.is_empty():
                        break
                    continue

                self._ledger.apply(transaction)
        except Exception as e:
            self._consumer_error = e
        finally:
            self._queue.close()
