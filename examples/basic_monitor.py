#!/usr/bin/env python3
"""
Basic GasPulse Example

Polls Base mainnet and prints gas price, blob fee, block and the 1h
window every second. Press Ctrl-C to stop.

Usage:
    python examples/basic_monitor.py
    GASPULSE_RPC_URL=https://... python examples/basic_monitor.py
"""

import logging
import sys
import time
from pathlib import Path

# Ensure repo root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gaspulse import GasPulse, GasPulseConfig

LEVEL_MARKERS = {"low": "▁", "medium": "▄", "high": "█"}


def main():
    logging.basicConfig(level=logging.WARNING)
    print("Starting GasPulse...")

    pulse = GasPulse(GasPulseConfig.from_env())
    pulse.start()

    if pulse.is_cached():
        print(f"Showing cached values from block {pulse.get_block_number()}")
    print()

    try:
        while True:
            state = pulse.get_state()

            if state.gas_price_gwei is not None:
                h1 = state.stats.h1
                marker = LEVEL_MARKERS.get(state.fee_level, " ")
                tag = " (cached)" if state.cached else ""
                print(
                    f"{marker} gas={state.gas_price_gwei:.8f} "
                    f"blob={state.blob_base_fee_gwei:.8f} "
                    f"block={state.block_number}{tag} | "
                    f"1h hi={h1.high:.8f} lo={h1.low:.8f} avg={h1.avg:.8f} | "
                    f"age={state.age_seconds}s"
                )
            else:
                print("Waiting for first reading...")

            time.sleep(1)

    except KeyboardInterrupt:
        print("\nStopping...")

    pulse.stop()
    print("Done.")


if __name__ == "__main__":
    main()
