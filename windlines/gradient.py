"""
Color Gradient

Piecewise-linear mapping from a normalized scalar to an 8-bit RGB color.

A gradient is an ordered list of stops (position, r, g, b). For t between
two stops the channels are interpolated linearly:

    c = round(to.c * frac + from.c * (1 - frac))
    frac = (t - from.position) / (to.position - from.position)

Values at or below the first stop (above the last) clamp to its color.
"""

import math
from collections import namedtuple

import numpy as np

from .constants import GRADIENT_STOPS


GradientStop = namedtuple("GradientStop", ["position", "r", "g", "b"])


def round_half_up(value):
    """Round to the nearest integer, ties going up (127.5 -> 128)."""
    return int(math.floor(value + 0.5))


class Gradient:
    """
    Ordered color stops covering [0, 1].

    Parameters
    ----------
    stops : sequence
        GradientStop or (position, r, g, b) tuples. Positions must be
        non-decreasing, start at 0 and end at 1.

    Raises
    ------
    ValueError
        If the stops are empty, unordered, do not cover [0, 1], or a
        channel is outside 0..255.
    """

    def __init__(self, stops):
        self.stops = tuple(GradientStop(*stop) for stop in stops)

        if not self.stops:
            raise ValueError("Gradient needs at least one stop")

        positions = [stop.position for stop in self.stops]
        for prev, cur in zip(positions, positions[1:]):
            if cur < prev:
                raise ValueError(f"Gradient stops are not ordered: {prev} > {cur}")
        if positions[0] != 0.0 or positions[-1] != 1.0:
            raise ValueError(
                f"Gradient stops must cover [0, 1], got [{positions[0]}, {positions[-1]}]"
            )

        for stop in self.stops:
            for channel in (stop.r, stop.g, stop.b):
                if not 0 <= channel <= 255:
                    raise ValueError(f"Channel value {channel} outside 0..255 in {stop}")

        self._positions = np.array(positions, dtype=np.float64)
        self._colors = np.array(
            [(stop.r, stop.g, stop.b) for stop in self.stops], dtype=np.float64
        )

    def __len__(self):
        return len(self.stops)

    def color_at(self, t):
        """
        Color for a single scalar.

        Parameters
        ----------
        t : float
            Normalized value; anything outside the stop range is clamped.

        Returns
        -------
        color : tuple of int
            (r, g, b)
        """
        first = self.stops[0]
        last = self.stops[-1]
        if t <= first.position:
            return (first.r, first.g, first.b)
        if t >= last.position:
            return (last.r, last.g, last.b)

        # Stop lists are short, a linear scan is enough
        start = first
        for end in self.stops[1:]:
            if start.position <= t < end.position:
                frac = (t - start.position) / (end.position - start.position)
                return (
                    round_half_up(end.r * frac + start.r * (1.0 - frac)),
                    round_half_up(end.g * frac + start.g * (1.0 - frac)),
                    round_half_up(end.b * frac + start.b * (1.0 - frac)),
                )
            start = end

        raise RuntimeError(f"No gradient stops bracket t={t!r}")

    def colors_at(self, ts):
        """
        Vectorized color lookup.

        Gives the same result as color_at for every finite element.

        Parameters
        ----------
        ts : array_like
            Normalized values, shape (n,)

        Returns
        -------
        colors : ndarray
            uint8 colors, shape (n, 3)
        """
        ts = np.asarray(ts, dtype=np.float64).reshape(-1)
        positions = self._positions
        colors = self._colors

        # First stop strictly above t is the upper bracket
        upper = np.searchsorted(positions, ts, side="right")
        upper = np.clip(upper, 1, len(positions) - 1)
        lower = upper - 1

        span = positions[upper] - positions[lower]
        safe_span = np.where(span > 0, span, 1.0)
        frac = ((ts - positions[lower]) / safe_span)[:, None]

        out = np.floor(colors[upper] * frac + colors[lower] * (1.0 - frac) + 0.5)

        below = ts <= positions[0]
        above = ts >= positions[-1]
        out[below] = colors[0]
        out[above] = colors[-1]

        return out.astype(np.uint8)


def default_gradient():
    """Gradient built from constants.GRADIENT_STOPS."""
    return Gradient(GRADIENT_STOPS)
