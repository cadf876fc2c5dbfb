"""
Tests for the color gradient.

Validates clamping, stop tie-breaks, rounding and the vectorized lookup.
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from windlines.constants import GRADIENT_STOPS
from windlines.gradient import Gradient, GradientStop, default_gradient, round_half_up


BLACK_WHITE = [(0.0, 0, 0, 0), (1.0, 255, 255, 255)]


class TestColorAt:
    """Test single-value color lookup."""

    @pytest.fixture
    def gradient(self):
        return default_gradient()

    def test_clamps_below_first_stop(self, gradient):
        """Values at or below 0 return the first stop color exactly."""
        for t in (0.0, -0.1, -5.0, -1e9):
            assert gradient.color_at(t) == (0x28, 0x28, 0x28)

    def test_clamps_above_last_stop(self, gradient):
        """Values at or above 1 return the last stop color exactly."""
        for t in (1.0, 1.2, 42.0):
            assert gradient.color_at(t) == (0xE2, 0xE5, 0xAA)

    def test_interior_stop_exact(self, gradient):
        """A value equal to an interior stop returns that stop's color."""
        assert gradient.color_at(0.5) == (0x6A, 0xA8, 0xC6)

    def test_interior_stop_tie_break(self):
        """At a shared position the lower bracket starting there wins."""
        gradient = Gradient([(0.0, 0, 0, 0), (0.5, 255, 0, 0), (1.0, 255, 255, 255)])
        assert gradient.color_at(0.5) == (255, 0, 0)

    def test_black_white_midpoint(self):
        """Halfway between black and white is (128, 128, 128)."""
        gradient = Gradient(BLACK_WHITE)
        assert gradient.color_at(0.5) == (128, 128, 128)

    def test_linear_interpolation(self, gradient):
        """Channels interpolate linearly between neighbouring stops."""
        # Halfway between #282828 and #6aa8c6
        assert gradient.color_at(0.25) == (73, 104, 119)

    def test_nan_violates_contract(self, gradient):
        """No bracket exists for NaN."""
        with pytest.raises(RuntimeError):
            gradient.color_at(float("nan"))

    def test_accepts_stop_tuples_and_namedtuples(self):
        stops = [GradientStop(0.0, 10, 20, 30), (1.0, 40, 50, 60)]
        gradient = Gradient(stops)
        assert len(gradient) == 2
        assert gradient.stops[1] == GradientStop(1.0, 40, 50, 60)


class TestColorsAt:
    """Test the vectorized lookup."""

    def test_matches_color_at(self):
        """Vectorized colors equal scalar colors, stops included."""
        gradient = default_gradient()
        ts = np.concatenate([np.linspace(-0.5, 1.5, 401), [0.0, 0.5, 1.0]])

        colors = gradient.colors_at(ts)

        expected = np.array([gradient.color_at(t) for t in ts])
        np.testing.assert_array_equal(colors, expected)

    def test_output_shape_and_dtype(self):
        gradient = Gradient(BLACK_WHITE)
        colors = gradient.colors_at(np.zeros(7))
        assert colors.shape == (7, 3)
        assert colors.dtype == np.uint8

    def test_duplicate_positions(self):
        """Hard color steps behave like the scalar scan."""
        gradient = Gradient([
            (0.0, 0, 0, 0), (0.5, 10, 10, 10), (0.5, 200, 0, 0), (1.0, 255, 255, 255)
        ])
        ts = np.array([0.25, 0.4999, 0.5, 0.75])

        expected = np.array([gradient.color_at(t) for t in ts])
        np.testing.assert_array_equal(gradient.colors_at(ts), expected)


class TestGradientValidation:
    """Misconfigured stops fail at construction."""

    def test_empty(self):
        with pytest.raises(ValueError):
            Gradient([])

    def test_unordered(self):
        with pytest.raises(ValueError, match="ordered"):
            Gradient([(0.0, 0, 0, 0), (0.7, 1, 1, 1), (0.3, 2, 2, 2), (1.0, 3, 3, 3)])

    def test_not_covering_zero(self):
        with pytest.raises(ValueError, match="cover"):
            Gradient([(0.1, 0, 0, 0), (1.0, 255, 255, 255)])

    def test_not_covering_one(self):
        with pytest.raises(ValueError, match="cover"):
            Gradient([(0.0, 0, 0, 0), (0.9, 255, 255, 255)])

    def test_channel_out_of_range(self):
        with pytest.raises(ValueError, match="0..255"):
            Gradient([(0.0, 0, 0, 0), (1.0, 256, 0, 0)])

    def test_default_stops_are_valid(self):
        assert len(Gradient(GRADIENT_STOPS)) == len(GRADIENT_STOPS)


class TestRoundHalfUp:

    def test_ties_round_up(self):
        assert round_half_up(127.5) == 128
        assert round_half_up(126.5) == 127
        assert round_half_up(-0.5) == 0

    def test_regular_values(self):
        assert round_half_up(1.49) == 1
        assert round_half_up(1.51) == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
