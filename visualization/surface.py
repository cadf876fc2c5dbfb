"""
Raster Surface

Fixed-size RGBA canvas backed by matplotlib's Agg renderer.

The axes span the whole figure with pixel coordinates: x grows to the
right from 0 to width, y grows downward from 0 to height. Strokes are
anti-aliased and alpha-blended in the order they are added; every stroke
alpha is multiplied by the surface's base alpha.
"""

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.collections import LineCollection
from matplotlib.figure import Figure

from windlines.constants import (
    CANVAS_WIDTH, CANVAS_HEIGHT, DPI, BACKGROUND_COLOR, BASE_ALPHA, LINE_WIDTH_PX
)


class RasterSurface:
    """
    Canvas that streamline segments are painted onto.

    Parameters
    ----------
    width, height : int
        Size in pixels
    background : str
        Fill color
    base_alpha : float
        Opacity multiplier applied to every stroke
    dpi : int
        Resolution used to convert pixel sizes to points
    """

    def __init__(self, width=CANVAS_WIDTH, height=CANVAS_HEIGHT,
                 background=BACKGROUND_COLOR, base_alpha=BASE_ALPHA, dpi=DPI):
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface size must be positive, got {width} x {height}")
        if not 0.0 <= base_alpha <= 1.0:
            raise ValueError(f"base_alpha must be in [0, 1], got {base_alpha}")

        self.width = int(width)
        self.height = int(height)
        self.dpi = dpi
        self.base_alpha = base_alpha

        self.figure = Figure(figsize=(self.width / dpi, self.height / dpi), dpi=dpi)
        self.canvas = FigureCanvasAgg(self.figure)

        self.axes = self.figure.add_axes((0.0, 0.0, 1.0, 1.0))
        self.axes.set_xlim(0, self.width)
        self.axes.set_ylim(self.height, 0)
        self.axes.set_axis_off()

        self.segment_count = 0
        self.finalized = False

        self.fill(background)

    def _check_open(self):
        if self.finalized:
            raise RuntimeError("Surface is finalized; no more drawing allowed")

    def px_to_points(self, size_px):
        return size_px * 72.0 / self.dpi

    def fill(self, color):
        """Clear the whole surface to an opaque color."""
        self._check_open()
        self.figure.patch.set_facecolor(color)
        self.figure.patch.set_alpha(1.0)

    def stroke_segments(self, segments, colors, line_width=LINE_WIDTH_PX):
        """
        Paint straight line segments.

        Parameters
        ----------
        segments : array_like
            Pixel-space endpoints, shape (n, 2, 2)
        colors : array_like
            Stroke RGBA in [0, 1], shape (n, 4); alpha is scaled by
            base_alpha before painting
        line_width : float
            Stroke width in pixels
        """
        self._check_open()

        segments = np.asarray(segments, dtype=np.float64).reshape(-1, 2, 2)
        if len(segments) == 0:
            return

        rgba = np.array(colors, dtype=np.float64).reshape(-1, 4)
        if len(rgba) != len(segments):
            raise ValueError(f"{len(segments)} segments but {len(rgba)} colors")
        rgba[:, 3] *= self.base_alpha

        collection = LineCollection(
            segments,
            colors=rgba,
            linewidths=self.px_to_points(line_width),
            antialiaseds=True,
            capstyle="butt",
        )
        collection.set_snap(False)
        self.axes.add_collection(collection, autolim=False)

        self.segment_count += len(segments)

    def fill_text(self, text, x, y, color, font_size_px):
        """Write text with its baseline starting at pixel (x, y)."""
        self._check_open()
        self.figure.text(
            x / self.width,
            1.0 - y / self.height,
            text,
            color=color,
            fontsize=self.px_to_points(font_size_px),
            ha="left",
            va="baseline",
        )

    def finalize(self):
        """Render everything added so far. Can only be done once."""
        self._check_open()
        self.canvas.draw()
        self.finalized = True

    def to_array(self):
        """
        Rendered pixels.

        Returns
        -------
        pixels : ndarray
            uint8 RGBA, shape (height, width, 4)
        """
        if not self.finalized:
            self.canvas.draw()
        return np.asarray(self.canvas.buffer_rgba()).copy()

    def save(self, path):
        """Encode the finalized surface as PNG."""
        if not self.finalized:
            raise RuntimeError("Surface must be finalized before saving")
        self.canvas.print_png(path)
