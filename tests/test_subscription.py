import queue
import threading
from unittest import TestCase

from weth.subscription import Subscription, forward


class TestSubscription(TestCase):
    def test_unsubscribe(self):
        started = threading.Event()

        def producer(quit):
            started.set()
            quit.wait()

        sub = Subscription(producer)
        self.assertTrue(started.wait(5))
        self.assertTrue(sub.active)
        sub.unsubscribe()
        self.assertFalse(sub.active)
        self.assertIsNone(sub.error())

    def test_error_after_unsubscribe_dropped(self):
        def producer(quit):
            quit.wait()
            return ValueError('late')

        with Subscription(producer) as sub:
            pass
        self.assertTrue(sub.err().empty())

    def test_raised_error(self):
        def producer(quit):
            raise ConnectionError('gone')

        sub = Subscription(producer)
        e = sub.err().get(timeout=5)
        self.assertIsInstance(e, ConnectionError)
        sub.err().put(e)
        self.assertIs(sub.error(), e)
        # peeking leaves it there
        self.assertIs(sub.error(), e)

    def test_unsubscribe_from_producer(self):
        holder = []

        def producer(quit):
            while not holder:
                quit.wait(0.01)
            holder[0].unsubscribe()

        sub = Subscription(producer)
        holder.append(sub)
        sub._thread.join(5)
        self.assertFalse(sub.active)


class TestForward(TestCase):
    def _upstream(self, logs):
        def idle(quit):
            quit.wait()

        return Subscription(idle), logs

    def test_order(self):
        logs = queue.Queue()
        for i in range(5):
            logs.put(i)
        upstream, logs = self._upstream(logs)
        sink = queue.Queue()
        sub = forward(upstream, logs, sink, lambda x: x * 10, poll_interval=0.01)
        self.assertEqual([sink.get(timeout=5) for _ in range(5)], [0, 10, 20, 30, 40])
        sub.unsubscribe()
        self.assertFalse(sub.active)
        self.assertFalse(upstream.active)
        self.assertIsNone(sub.error())

    def test_full_sink(self):
        logs = queue.Queue()
        logs.put(1)
        logs.put(2)
        upstream, logs = self._upstream(logs)
        sink = queue.Queue(maxsize=1)
        sub = forward(upstream, logs, sink, str, poll_interval=0.01)
        self.assertEqual(sink.get(timeout=5), '1')
        self.assertEqual(sink.get(timeout=5), '2')
        # blocked on a full sink, still stops
        logs.put(3)
        logs.put(4)
        sub.unsubscribe(timeout=5)
        self.assertFalse(sub.active)
        self.assertFalse(upstream.active)

    def test_upstream_error(self):
        upstream = Subscription(lambda quit: OSError('connection reset'))
        sub = forward(upstream, queue.Queue(), queue.Queue(), str, poll_interval=0.01)
        e = sub.err().get(timeout=5)
        self.assertIsInstance(e, OSError)

    def test_parse_error(self):
        logs = queue.Queue()
        logs.put('x')
        upstream, logs = self._upstream(logs)
        sink = queue.Queue()
        sub = forward(upstream, logs, sink, int, poll_interval=0.01)
        self.assertIsInstance(sub.err().get(timeout=5), ValueError)
        self.assertTrue(sink.empty())
        upstream._thread.join(5)
        self.assertFalse(upstream.active)
