"""
Trend Renderer

Turns the history buffer into a polyline in surface coordinates
(origin top-left, y grows downward). The renderer redraws whenever the
history changes and on its own tick, since the surface may be resized.
"""

import logging
import threading
from typing import Callable, Iterable, List, Optional, Tuple

from .models import Reading

logger = logging.getLogger(__name__)

Point = Tuple[float, float]
SurfaceSize = Callable[[], Tuple[float, float]]


def render_path(readings: Iterable[Reading], width: float, height: float) -> List[Point]:
    """
    Build the gas price polyline for a width x height surface.

    Points are spaced evenly across len - 1 segments and scaled between
    the series min (bottom edge) and max (top edge). The vertical range
    is clamped to at least 1 gwei, so a constant series draws a flat line
    on the bottom edge and sub-gwei swings stay near it. Fewer than two
    readings draw nothing.
    """
    values = [r.gas_price_gwei for r in readings]
    if len(values) <= 1:
        return []

    low = min(values)
    span = max(max(values) - low, 1.0)

    step = width / (len(values) - 1)
    return [
        (i * step, height - ((v - low) / span) * height)
        for i, v in enumerate(values)
    ]


class TrendRenderer:
    """
    History subscriber producing the drawable trend path.

    Args:
        surface_size: Callable returning the current (width, height)
        on_draw: Optional callback receiving each freshly rendered path
    """

    def __init__(
        self,
        surface_size: SurfaceSize,
        on_draw: Optional[Callable[[List[Point]], None]] = None,
    ):
        self.surface_size = surface_size
        self.on_draw = on_draw
        self.path: List[Point] = []
        self.draw_count = 0
        self._readings: Tuple[Reading, ...] = ()
        self._lock = threading.Lock()

    def on_history_change(self, buffer: Iterable[Reading]):
        """Listener hook for ObservableHistory."""
        with self._lock:
            self._readings = tuple(buffer)
        self.redraw()

    def redraw(self) -> List[Point]:
        """Render the last received snapshot at the current surface size."""
        with self._lock:
            readings = self._readings
        width, height = self.surface_size()
        path = render_path(readings, width, height)
        self.path = path
        self.draw_count += 1

        if self.on_draw:
            self.on_draw(path)
        return path
