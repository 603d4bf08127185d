"""
Unit tests for the bounded history buffer and its change notifications.
"""

import os
import sys
import unittest

_project_root = os.path.normpath(os.path.join(os.path.dirname(__file__), os.pardir))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from gaspulse.history import HistoryBuffer, ObservableHistory  # noqa: E402
from gaspulse.models import Reading  # noqa: E402


def _reading(i: int, gas: float = 1.0) -> Reading:
    return Reading(gas_price_gwei=gas, blob_base_fee_gwei=0.0, block_number=i, timestamp_ms=i * 1000)


class TestHistoryBuffer(unittest.TestCase):

    def test_append_returns_new_buffer(self):
        empty = HistoryBuffer()
        one = empty.append(_reading(1))
        self.assertEqual(len(empty), 0)
        self.assertEqual(len(one), 1)
        self.assertEqual(one.latest.block_number, 1)

    def test_250_appends_keep_last_200_in_order(self):
        buffer = HistoryBuffer(capacity=200)
        for i in range(250):
            buffer = buffer.append(_reading(i))
            self.assertLessEqual(len(buffer), 200)

        self.assertEqual(len(buffer), 200)
        self.assertEqual([r.block_number for r in buffer], list(range(50, 250)))

    def test_constructor_trims_to_capacity(self):
        buffer = HistoryBuffer([_reading(i) for i in range(10)], capacity=3)
        self.assertEqual([r.block_number for r in buffer], [7, 8, 9])

    def test_empty_latest_is_none(self):
        self.assertIsNone(HistoryBuffer().latest)
        self.assertFalse(HistoryBuffer())

    def test_invalid_capacity(self):
        with self.assertRaises(ValueError):
            HistoryBuffer(capacity=0)


class TestObservableHistory(unittest.TestCase):

    def test_append_notifies_subscribers_in_order(self):
        history = ObservableHistory(capacity=5)
        calls = []
        history.subscribe(lambda b: calls.append(("first", len(b))))
        history.subscribe(lambda b: calls.append(("second", len(b))))

        history.append(_reading(1))

        self.assertEqual(calls, [("first", 1), ("second", 1)])

    def test_subscriber_receives_new_buffer(self):
        history = ObservableHistory(capacity=5)
        seen = []
        history.subscribe(seen.append)

        buffer = history.append(_reading(1))

        self.assertIs(seen[0], buffer)
        self.assertIs(history.buffer, buffer)

    def test_replace_notifies_and_trims(self):
        history = ObservableHistory(capacity=2)
        seen = []
        history.subscribe(seen.append)

        history.replace([_reading(i) for i in range(4)])

        self.assertEqual([r.block_number for r in seen[0]], [2, 3])

    def test_unsubscribe(self):
        history = ObservableHistory()
        seen = []
        unsubscribe = history.subscribe(seen.append)
        unsubscribe()

        history.append(_reading(1))
        self.assertEqual(seen, [])

    def test_previous_buffer_untouched(self):
        history = ObservableHistory(capacity=2)
        first = history.append(_reading(1))
        history.append(_reading(2))
        history.append(_reading(3))
        self.assertEqual([r.block_number for r in first], [1])


if __name__ == "__main__":
    unittest.main()
