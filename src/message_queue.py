import threading
from queue import Queue, Empty, Full
from typing import Optional

from models import Transaction


class InMemoryQueue:
    """
    Bounded FIFO between one publisher and one consumer.
    Publishing blocks while the queue is full, so a fast reader cannot run
    ahead of the engine. All synchronization is internal - callers never need to lock.
    """

    DEFAULT_TIMEOUT = 0.1
    DEFAULT_CAPACITY = 100

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"Queue capacity must be positive, got {capacity}")
        self._main_queue: Queue[Transaction] = Queue(maxsize=capacity)
        self._shutdown_event = threading.Event()
        self._closed_event = threading.Event()

    def publish_message(self, message: Transaction) -> bool:
        """
        Add message to main queue, waiting for room if it is full.
        Returns False if the consumer has closed the queue; the message is not delivered.
        Thread-safe.
        """
        while not self._closed_event.is_set():
            try:
                self._main_queue.put(message, timeout=self.DEFAULT_TIMEOUT)
                return True
            except Full:
                continue
        return False

    def consume_message(self) -> Optional[Transaction]:
        """
        Get next message from main queue.
        Returns None if queue is empty after timeout.
        Thread-safe.
        """
        try:
            return self._main_queue.get(timeout=self.DEFAULT_TIMEOUT)
        except Empty:
            return None

    def is_empty(self) -> bool:
        """Check if main queue is empty."""
        return self._main_queue.empty()

    def size(self) -> int:
        """Return approximate queue size."""
        return self._main_queue.qsize()

    def shutdown(self) -> None:
        """Signal no more messages will be published."""
        self._shutdown_event.set()

    def is_shutdown(self) -> bool:
        """Check if shutdown has been signaled."""
        return self._shutdown_event.is_set()

    def close(self) -> None:
        """Signal the consumer has stopped; pending and future publishes fail."""
        self._closed_event.set()

    def is_closed(self) -> bool:
        return self._closed_event.is_set()
