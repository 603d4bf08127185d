#!/usr/bin/env python3
"""
Plot the cached gas price history.

Reads the GasPulse cache file and produces:
  - docs/figures/gas_history.png  (trend path with 1h/6h/24h bands)

The trend line is drawn from gaspulse.trend.render_path, so it matches
what the dashboard draws.

Usage:
  python scripts/plot_history.py [cache.json]
"""

import os
import sys
from pathlib import Path

import matplotlib.pyplot as plt
import matplotlib.patches as mpatches

# Ensure repo root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gaspulse.aggregator import compute_stats
from gaspulse.cache import JSONFileStore, ReadingCache
from gaspulse.config import GasPulseConfig
from gaspulse.models import now_ms
from gaspulse.trend import render_path

# ── Color palette ──────────────────────────────────────────────────────────
PRIMARY = "#2196F3"      # trend line
SECONDARY = "#4CAF50"    # 1h window
ACCENT = "#E91E63"       # 24h window
ORANGE = "#FF9800"       # 6h window
BG_COLOR = "#FAFAFA"
GRID_COLOR = "#E0E0E0"

WINDOW_COLORS = {"h1": SECONDARY, "h6": ORANGE, "h24": ACCENT}

OUTPUT_DIR = os.path.join(os.path.dirname(__file__), "..", "docs", "figures")
DPI = 150

# Chart surface in pixels, same units render_path works in
WIDTH, HEIGHT = 1200.0, 400.0


def _apply_style(ax):
    """Apply consistent styling to an axes object."""
    ax.set_facecolor(BG_COLOR)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.grid(axis="y", color=GRID_COLOR, linewidth=0.7, zorder=0)
    ax.set_axisbelow(True)


def figure_gas_history(cache_path):
    """Trend line of cached readings with window high/low bands."""
    config = GasPulseConfig(cache_path=cache_path)
    state = ReadingCache(JSONFileStore(config.cache_path), capacity=config.history_capacity).load()
    if state is None or len(state) < 2:
        print(f"  Not enough cached readings in {config.cache_path}")
        return

    readings = state.readings
    path = render_path(readings, WIDTH, HEIGHT)
    stats = compute_stats(readings, now_ms(), config.windows)

    values = [r.gas_price_gwei for r in readings]
    low, high = min(values), max(values)
    span = max(high - low, 1.0)

    def to_surface_y(gwei):
        return HEIGHT - ((gwei - low) / span) * HEIGHT

    fig, ax = plt.subplots(figsize=(12, 5))
    fig.patch.set_facecolor(BG_COLOR)
    _apply_style(ax)

    # Window bands (high/low) and averages
    for name, window in stats.windows.items():
        if window.high == 0 and window.low == 0:
            continue
        color = WINDOW_COLORS.get(name, GRID_COLOR)
        ax.axhspan(to_surface_y(window.high), to_surface_y(window.low),
                   color=color, alpha=0.08, zorder=1)
        ax.axhline(to_surface_y(window.avg), color=color, linewidth=1,
                   linestyle=":", alpha=0.8, zorder=2)
        ax.text(WIDTH + 10, to_surface_y(window.avg), f"{name} avg {window.avg:.8f}",
                fontsize=9, color=color, va="center")

    xs = [p[0] for p in path]
    ys = [p[1] for p in path]
    ax.plot(xs, ys, color=PRIMARY, linewidth=1.5, zorder=3)

    latest = readings[-1]
    ax.scatter(xs[-1], ys[-1], s=60, color=PRIMARY, edgecolors="white",
               linewidths=1.5, zorder=4)
    ax.annotate(f"block {latest.block_number}\n{latest.gas_price_gwei:.8f} gwei",
                xy=(xs[-1], ys[-1]), xytext=(xs[-1] - 150, ys[-1] - 40),
                fontsize=9, color=PRIMARY, fontweight="bold",
                arrowprops=dict(arrowstyle="->", color=PRIMARY, lw=1.0))

    # Surface coordinates: y grows downward
    ax.set_xlim(0, WIDTH)
    ax.set_ylim(HEIGHT + 10, -10)
    ax.set_xticks([])
    ax.set_yticks([to_surface_y(high), to_surface_y(low)])
    ax.set_yticklabels([f"{high:.8f}", f"{low:.8f}"])
    ax.set_ylabel("Legacy gas price (gwei)", fontsize=12)
    ax.set_title(f"Gas Price Trend ({len(readings)} readings)",
                 fontsize=15, fontweight="bold", pad=12)

    window_patches = [
        mpatches.Patch(color=color, alpha=0.3, label=f"{name} high/low")
        for name, color in WINDOW_COLORS.items()
    ]
    ax.legend(handles=window_patches, fontsize=9, loc="lower left", framealpha=0.9)

    fig.tight_layout()
    out = os.path.join(OUTPUT_DIR, "gas_history.png")
    fig.savefig(out, dpi=DPI, bbox_inches="tight", facecolor=BG_COLOR)
    plt.close(fig)
    print(f"  Saved {out}")


if __name__ == "__main__":
    os.makedirs(OUTPUT_DIR, exist_ok=True)
    cache_path = sys.argv[1] if len(sys.argv) > 1 else GasPulseConfig().cache_path
    print("Generating gaspulse figures...")
    figure_gas_history(cache_path)
    print("Done.")
