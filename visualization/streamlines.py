"""
Streamline Segment Rasterizer

Paints traced streamlines onto a RasterSurface, one segment per pair of
consecutive points. Each segment is colored by the flow speed at its
midpoint:

    m = |v(midpoint)| / max_velocity          (clipped to [0, 1])
    color = gradient(m)
    alpha = 0.1 + 0.9 * m

so slow flow is faint and fast flow is opaque. A midpoint with no field
value gives a fully transparent black segment.
"""

import math

import numpy as np

from windlines.constants import MIN_STROKE_ALPHA
from windlines.transform import to_pixels


TRANSPARENT = (0, 0, 0, 0.0)


class SegmentRasterizer:
    """
    Turns field-space paths into colored strokes.

    Parameters
    ----------
    surface : RasterSurface
        Canvas to paint on
    field : VectorField
        Field used for segment speeds
    gradient : Gradient
        Speed to color mapping
    bounding_box : BoundingBox, optional
        Field-space region mapped onto the surface; defaults to the
        field's own box
    min_alpha : float
        Stroke alpha at zero speed
    """

    def __init__(self, surface, field, gradient, bounding_box=None,
                 min_alpha=MIN_STROKE_ALPHA):
        self.surface = surface
        self.field = field
        self.gradient = gradient
        self.bounding_box = bounding_box if bounding_box is not None else field.bounding_box
        self.min_alpha = min_alpha
        self.max_velocity = field.max_velocity
        self.path_count = 0

    def _normalize(self, speed):
        if self.max_velocity <= 0:
            return np.zeros_like(speed)
        return np.clip(speed / self.max_velocity, 0.0, 1.0)

    def segment_color(self, a, b):
        """
        Stroke color of one segment.

        Returns
        -------
        rgba : tuple
            (r, g, b) as 0..255 ints and alpha in [0, 1]
        """
        mid = ((a[0] + b[0]) * 0.5, (a[1] + b[1]) * 0.5)
        velocity = self.field.sample(mid)
        if velocity is None:
            return TRANSPARENT

        if self.max_velocity > 0:
            m = min(max(math.hypot(velocity.x, velocity.y) / self.max_velocity, 0.0), 1.0)
        else:
            m = 0.0
        r, g, b = self.gradient.color_at(m)
        return (r, g, b, self.min_alpha + (1.0 - self.min_alpha) * m)

    def stroke_colors(self, points):
        """
        Vectorized segment_color for a whole path.

        Parameters
        ----------
        points : ndarray
            Field-space path, shape (n, 2)

        Returns
        -------
        rgba : ndarray
            Stroke colors in [0, 1], shape (n - 1, 4)
        """
        mid = (points[:-1] + points[1:]) * 0.5
        velocities, valid = self.field.sample_many(mid[:, 0], mid[:, 1])

        m = self._normalize(np.hypot(velocities[:, 0], velocities[:, 1]))

        rgba = np.zeros((len(mid), 4), dtype=np.float64)
        rgba[:, :3] = self.gradient.colors_at(m) / 255.0
        rgba[:, 3] = self.min_alpha + (1.0 - self.min_alpha) * m
        rgba[~valid] = 0.0

        return rgba

    def on_path(self, points):
        """
        Paint one streamline.

        Parameters
        ----------
        points : sequence
            Field-space (x, y) points in tracing order

        Returns
        -------
        rgba : ndarray
            Stroke colors of the painted segments, shape (n - 1, 4)
        """
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if len(pts) < 2:
            return np.zeros((0, 4), dtype=np.float64)

        rgba = self.stroke_colors(pts)

        px, py = to_pixels(
            pts[:, 0], pts[:, 1], self.bounding_box,
            self.surface.width, self.surface.height
        )
        pixels = np.column_stack([px, py])
        segments = np.stack([pixels[:-1], pixels[1:]], axis=1)

        self.surface.stroke_segments(segments, rgba)
        self.path_count += 1

        return rgba
