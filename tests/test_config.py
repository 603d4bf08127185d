"""
Unit tests for GasPulseConfig validation and environment loading.
"""

import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

_project_root = os.path.normpath(os.path.join(os.path.dirname(__file__), os.pardir))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from gaspulse.config import DEFAULT_RPC_URL, DEFAULT_WINDOWS, GasPulseConfig  # noqa: E402

_ENV_KEYS = (
    "GASPULSE_RPC_URL",
    "GASPULSE_POLL_INTERVAL",
    "GASPULSE_HISTORY_CAPACITY",
    "GASPULSE_CACHE_PATH",
    "GASPULSE_CACHE_LAYOUT",
    "GASPULSE_REQUEST_TIMEOUT",
)


def _clean_env() -> dict:
    return {k: v for k, v in os.environ.items() if k not in _ENV_KEYS}


class TestDefaults(unittest.TestCase):

    def test_defaults(self):
        config = GasPulseConfig()
        self.assertEqual(config.rpc_url, DEFAULT_RPC_URL)
        self.assertEqual(config.poll_interval_sec, 12.0)
        self.assertEqual(config.tick_interval_sec, 1.0)
        self.assertEqual(config.history_capacity, 200)
        self.assertEqual(config.windows, {"h1": 3_600_000, "h6": 21_600_000, "h24": 86_400_000})
        self.assertEqual(config.cache_layout, "history")

    def test_windows_not_shared(self):
        config = GasPulseConfig()
        config.windows["m5"] = 300_000
        self.assertNotIn("m5", DEFAULT_WINDOWS)

    def test_invalid_values(self):
        bad = [
            {"rpc_url": ""},
            {"poll_interval_sec": 0},
            {"tick_interval_sec": -1},
            {"history_capacity": 0},
            {"cache_layout": "sqlite"},
            {"request_timeout_sec": 0},
            {"windows": {"h1": 0}},
        ]
        for kwargs in bad:
            with self.subTest(**{k: repr(v) for k, v in kwargs.items()}):
                with self.assertRaises(ValueError):
                    GasPulseConfig(**kwargs)


class TestFromEnv(unittest.TestCase):

    def test_reads_environment(self):
        env = _clean_env()
        env.update({
            "GASPULSE_RPC_URL": "https://rpc.example",
            "GASPULSE_POLL_INTERVAL": "6",
            "GASPULSE_HISTORY_CAPACITY": "50",
            "GASPULSE_CACHE_PATH": "/tmp/gaspulse-test.json",
            "GASPULSE_CACHE_LAYOUT": "latest",
            "GASPULSE_REQUEST_TIMEOUT": "2.5",
        })
        with patch.dict(os.environ, env, clear=True):
            config = GasPulseConfig.from_env(env_file="/nonexistent/.env")

        self.assertEqual(config.rpc_url, "https://rpc.example")
        self.assertEqual(config.poll_interval_sec, 6.0)
        self.assertEqual(config.history_capacity, 50)
        self.assertEqual(config.cache_path, Path("/tmp/gaspulse-test.json"))
        self.assertEqual(config.cache_layout, "latest")
        self.assertEqual(config.request_timeout_sec, 2.5)

    def test_reads_dotenv_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            env_file = Path(tmp) / ".env"
            env_file.write_text("GASPULSE_RPC_URL=https://from-dotenv.example\n", encoding="utf-8")
            with patch.dict(os.environ, _clean_env(), clear=True):
                config = GasPulseConfig.from_env(env_file=str(env_file))

        self.assertEqual(config.rpc_url, "https://from-dotenv.example")

    def test_unset_environment_gives_defaults(self):
        with patch.dict(os.environ, _clean_env(), clear=True):
            config = GasPulseConfig.from_env(env_file="/nonexistent/.env")
        self.assertEqual(config.rpc_url, DEFAULT_RPC_URL)


if __name__ == "__main__":
    unittest.main()
