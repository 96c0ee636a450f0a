import logging
import queue
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class Subscription:
    """
    Runs `producer(quit)` in a background thread until it returns or `quit` is set.

    Whatever the producer returns (or raises) that is not None ends up in `err()`,
    unless the subscription was cancelled with `unsubscribe()` first.

    >>> sub = Subscription(lambda quit: ValueError('boom'))
    >>> sub.err().get(timeout=5)
    ValueError('boom')
    >>> sub.unsubscribe()
    >>> sub.active
    False
    """

    def __init__(self, producer: Callable[[threading.Event], Optional[Exception]], name: Optional[str] = None):
        self._quit = threading.Event()
        self._err = queue.Queue(maxsize=1)
        self._thread = threading.Thread(target=self._run, args=(producer,), name=name, daemon=True)
        self._thread.start()

    def _run(self, producer):
        try:
            error = producer(self._quit)
        except Exception as e:
            error = e
        if error is not None and not self._quit.is_set():
            logger.debug('subscription %s ended with %r', self._thread.name, error)
            self._err.put(error)

    def err(self) -> queue.Queue:
        return self._err

    def error(self) -> Optional[Exception]:
        """non-blocking peek at err(), None if nothing failed (yet)"""
        try:
            e = self._err.get_nowait()
        except queue.Empty:
            return None
        # put it back for anyone else waiting on err()
        self._err.put(e)
        return e

    @property
    def active(self) -> bool:
        return self._thread.is_alive()

    def unsubscribe(self, timeout: Optional[float] = None):
        self._quit.set()
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.unsubscribe()


def _put(sink: queue.Queue, item: Any, quit: threading.Event, upstream: Subscription, poll_interval: float):
    """block until `item` is in `sink`, returns (stop, error) if quit or upstream failed first"""
    while True:
        try:
            sink.put(item, timeout=poll_interval)
            return False, None
        except queue.Full:
            pass
        if quit.is_set():
            return True, None
        error = upstream.error()
        if error is not None:
            return True, error


def forward(
    upstream: Subscription,
    logs: queue.Queue,
    sink: queue.Queue,
    parse: Callable[[Any], Any],
    poll_interval: float = 0.5,
) -> Subscription:
    """
    Decode every raw log from `logs` with `parse` and hand it over to `sink`, in arrival order.

    The returned subscription ends with the upstream error, with a decode error or
    when unsubscribed. `upstream` is always unsubscribed when it ends.
    """

    def loop(quit: threading.Event):
        try:
            while not quit.is_set():
                error = upstream.error()
                if error is not None:
                    return error
                try:
                    log = logs.get(timeout=poll_interval)
                except queue.Empty:
                    continue
                # new log arrived, parse it and forward to the sink
                stop, error = _put(sink, parse(log), quit, upstream, poll_interval)
                if stop:
                    return error
        finally:
            upstream.unsubscribe()

    return Subscription(loop)
