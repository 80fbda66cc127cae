"""
Closable FIFO used to connect the pipeline stages.

A ClosableQueue behaves like a channel: producers put() items, consumers
iterate over it, and close() tells every consumer that no more input is
coming. Iteration ends once the queue is closed and empty.
"""

import queue
import threading


class QueueClosed(RuntimeError):
    """put() or close() was called on a queue that is already closed."""


_CLOSED = object()


class ClosableQueue:
    """
    Thread-safe FIFO with an end-of-input signal.

    Usage:
        q = ClosableQueue(maxsize=100)
        # producer
        q.put(item)
        q.close()
        # consumers (any number)
        for item in q:
            handle(item)

    Args:
        maxsize: Capacity; 0 means unbounded. Producers block while full.
    """

    def __init__(self, maxsize=0):
        self._queue = queue.Queue(maxsize)
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self):
        return self._closed

    def put(self, item):
        """Enqueue an item, blocking while the queue is full."""
        if self._closed:
            raise QueueClosed("put() on a closed queue")
        self._queue.put(item)

    def close(self):
        """Signal end of input. Must be called exactly once, after the last put()."""
        with self._lock:
            if self._closed:
                raise QueueClosed("queue closed twice")
            self._closed = True
        self._queue.put(_CLOSED)

    def get(self):
        """
        Dequeue the next item, blocking while the queue is empty and open.

        Raises:
            QueueClosed once the queue is closed and drained.
        """
        item = self._queue.get()
        if item is _CLOSED:
            # Put the marker back so every other consumer sees it too
            self._queue.put(_CLOSED)
            raise QueueClosed("queue is closed and empty")
        return item

    def __iter__(self):
        while True:
            try:
                yield self.get()
            except QueueClosed:
                return

    def drain(self):
        """Consume and discard everything until the queue is closed; return the count."""
        count = 0
        for _ in self:
            count += 1
        return count

    def qsize(self):
        return self._queue.qsize()
