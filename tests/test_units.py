"""
Unit tests for wei -> gwei conversion and hex decoding.
"""

import os
import sys
import unittest

_project_root = os.path.normpath(os.path.join(os.path.dirname(__file__), os.pardir))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from gaspulse.errors import ProtocolFailure  # noqa: E402
from gaspulse.units import hex_to_int, to_gwei  # noqa: E402


class TestToGwei(unittest.TestCase):

    def test_one_gwei_hex(self):
        self.assertEqual(to_gwei("0x3B9ACA00"), 1.0)

    def test_truncates_never_rounds(self):
        """1.999999999 gwei -> 1.0, not 2.0."""
        self.assertEqual(to_gwei(1_999_999_999), 1.0)
        self.assertEqual(to_gwei(999_999_999), 0.0)

    def test_beyond_64_bits(self):
        """5e21 wei exceeds 2**64 and converts exactly."""
        self.assertGreater(5_000_000_000_000_000_000, 2 ** 64)
        self.assertEqual(to_gwei(5_000_000_000_000_000_000), 5_000_000_000.0)
        self.assertEqual(to_gwei(hex(5_000_000_000_000_000_000)), 5_000_000_000.0)

    def test_up_to_2_256(self):
        raw = 2 ** 256 - 1
        self.assertEqual(to_gwei(raw), float(raw // 10 ** 9))

    def test_returns_float(self):
        self.assertIsInstance(to_gwei("0x0"), float)

    def test_negative_rejected(self):
        with self.assertRaises(ProtocolFailure):
            to_gwei(-1)


class TestHexToInt(unittest.TestCase):

    def test_hex_string(self):
        self.assertEqual(hex_to_int("0x1a"), 26)

    def test_int_passthrough(self):
        self.assertEqual(hex_to_int(42), 42)

    def test_invalid_inputs(self):
        for bad in (None, True, "latest", "0xzz", 1.5, []):
            with self.subTest(value=bad):
                with self.assertRaises(ProtocolFailure):
                    hex_to_int(bad)


if __name__ == "__main__":
    unittest.main()
