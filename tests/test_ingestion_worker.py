import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import queue
import threading
import time
import unittest

from data_layer.aggregator.aggregation_store import AggregationStore
from data_layer.aggregator.ingestion_worker import IngestionWorker


class ListSubscription:
    """Yields a fixed list of payloads, then ends like a closed channel"""

    def __init__(self, payloads):
        self.payloads = list(payloads)
        self.closed = False

    def messages(self):
        for payload in self.payloads:
            if self.closed:
                return
            yield payload

    def close(self):
        self.closed = True


class QueueSubscription:
    """Blocks between messages until closed, like a live channel"""

    def __init__(self):
        self.queue = queue.Queue()
        self._closed = threading.Event()

    def push(self, payload):
        self.queue.put(payload)

    def messages(self):
        while not self._closed.is_set():
            try:
                yield self.queue.get(timeout=0.05)
            except queue.Empty:
                continue

    def close(self):
        self._closed.set()


class BrokenSubscription:
    def messages(self):
        yield b'{"symbol": "AAPL", "price": 1.0, "timestamp": "2025-03-10T14:30:00"}'
        raise ConnectionError("connection lost")

    def close(self):
        pass


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class TestIngestionWorker(unittest.TestCase):
    def setUp(self):
        self.store = AggregationStore()

    def test_malformed_message_is_counted_and_skipped(self):
        subscription = ListSubscription([
            b"{not valid json",
            b'{"symbol": "MSFT", "price": 50.0, "timestamp": "2025-03-10T14:30:03Z"}',
        ])
        worker = IngestionWorker(subscription, self.store)

        self.assertTrue(worker.start())
        self.assertTrue(wait_for(lambda: not worker.is_alive()))

        self.assertEqual(list(self.store.get_all_stats()), ["MSFT"])
        self.assertEqual(self.store.get_stats("MSFT").latest, 50.0)
        status = worker.get_status()
        self.assertEqual(status["processed_count"], 1)
        self.assertEqual(status["decode_error_count"], 1)
        self.assertIsNotNone(status["last_decode_error"])
        self.assertEqual(status["status"], "stopped")

    def test_deeply_nested_message_is_a_decode_error(self):
        subscription = ListSubscription([
            b"[" * 200000,
            b'{"symbol": "MSFT", "price": 50.0, "timestamp": "2025-03-10T14:30:03Z"}',
        ])
        worker = IngestionWorker(subscription, self.store)

        worker.start()
        self.assertTrue(wait_for(lambda: not worker.is_alive()))

        self.assertEqual(self.store.get_stats("MSFT").latest, 50.0)
        status = worker.get_status()
        self.assertEqual(status["decode_error_count"], 1)
        self.assertEqual(status["processed_count"], 1)
        self.assertEqual(status["status"], "stopped")

    def test_status_transitions_are_read_under_the_lock(self):
        subscription = QueueSubscription()
        worker = IngestionWorker(subscription, self.store)
        self.assertEqual(worker.get_status()["status"], "idle")

        worker.start()
        try:
            self.assertTrue(wait_for(lambda: worker.get_status()["status"] == "waiting"))
            with worker._status_lock:
                subscription.push(b'{"symbol": "TSLA", "price": 5.0, "timestamp": "2025-03-10T14:30:00"}')
                # The worker cannot record progress while the status lock is held
                time.sleep(0.2)
                self.assertEqual(worker.worker_status, "waiting")
                self.assertEqual(worker.processed_count, 0)
            self.assertTrue(wait_for(lambda: worker.get_status()["processed_count"] == 1))
        finally:
            worker.stop()
        self.assertEqual(worker.get_status()["status"], "stopped")

    def test_process_message_applies_exactly_once(self):
        worker = IngestionWorker(ListSubscription([]), self.store)

        self.assertTrue(worker.process_message(b'{"symbol": "AAPL", "price": 100.0, "timestamp": "2025-03-10T14:30:01"}'))
        self.assertTrue(worker.process_message('{"symbol": "AAPL", "price": 200.0, "timestamp": "2025-03-10T14:30:02"}'))
        self.assertFalse(worker.process_message(b'{"symbol": "AAPL"}'))

        stats = self.store.get_stats("AAPL")
        self.assertEqual((stats.total, stats.count, stats.average, stats.latest), (300.0, 2, 150.0, 200.0))
        self.assertEqual(len(self.store.get_history("AAPL")), 2)

    def test_stop_ends_a_live_subscription(self):
        subscription = QueueSubscription()
        worker = IngestionWorker(subscription, self.store)
        worker.start()

        subscription.push(b'{"symbol": "GOOGL", "price": 10.0, "timestamp": "2025-03-10T14:30:00"}')
        self.assertTrue(wait_for(lambda: self.store.get_stats("GOOGL") is not None))

        worker.stop(timeout=5.0)

        self.assertFalse(worker.is_alive())
        self.assertFalse(worker.get_status()["running"])
        self.assertEqual(self.store.get_stats("GOOGL").count, 1)

    def test_start_twice_is_rejected(self):
        subscription = QueueSubscription()
        worker = IngestionWorker(subscription, self.store)
        try:
            self.assertTrue(worker.start())
            self.assertFalse(worker.start())
        finally:
            worker.stop()

    def test_transport_failure_marks_worker_failed(self):
        worker = IngestionWorker(BrokenSubscription(), self.store)
        worker.start()

        self.assertTrue(wait_for(lambda: not worker.is_alive()))
        self.assertEqual(worker.get_status()["status"], "failed")
        self.assertEqual(self.store.get_stats("AAPL").count, 1)


if __name__ == '__main__':
    unittest.main()
