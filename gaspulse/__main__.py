"""
Run GasPulse in the terminal.

Usage:
    python -m gaspulse               # poll until Ctrl-C
    python -m gaspulse 60            # poll for 60 seconds

Settings come from GASPULSE_* environment variables or a .env file.
"""

import logging
import sys
import time

from . import GasPulse
from .config import GasPulseConfig


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    duration = float(argv[0]) if argv else None

    logging.basicConfig(level=logging.INFO)

    pulse = GasPulse(GasPulseConfig.from_env())
    pulse.start()
    started = time.time()

    try:
        i = 0
        while duration is None or time.time() - started < duration:
            state = pulse.get_state()
            if state.gas_price_gwei is not None:
                tag = " (cached)" if state.cached else ""
                age = f"{state.age_seconds}s ago" if state.age_seconds is not None else ""
                print(
                    f"[{i:3d}] gas={state.gas_price_gwei:.8f} "
                    f"blob={state.blob_base_fee_gwei:.8f} "
                    f"block={state.block_number}{tag} {age}"
                )
            else:
                print(f"[{i:3d}] Waiting for first reading...")
            i += 1
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nStopping...")

    pulse.print_status()
    pulse.stop()


if __name__ == "__main__":
    main()
