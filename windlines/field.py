"""
Gridded Vector Field Sampling

Continuous sampling of a velocity field stored on a regular grid.

Each component is kept as a normalized grid in [0, 1] together with its
physical range, and is denormalized after interpolation:

    value = normalized * (maximum - minimum) + minimum

Sampling at a fractional point (x, y) reads the four enclosing grid corners
and mixes them with

    mix(a, b, r) = a * r + (1 - r) * b
    res = mix(mix(tl, tr, x - lx), mix(bl, br, x - lx), 1 - y + ly)

Rows grow downward while "north" is up, hence the (1 - y + ly) weight. The
x component is negated on output to match the orientation of the source
data. Both quirks are what the reference renderings were made with, so they
are kept as they are.

Near the edges the lower/upper corner indices are clamped onto each other,
which degenerates interpolation to one axis instead of extrapolating. A
point whose corners still fall outside the grid has no value (None); the
tracer uses this to stop a streamline.
"""

import math

import numpy as np
from numba import njit, prange

from .transform import BoundingBox, Point


class ScalarField:
    """
    One velocity component on a regular grid.

    Parameters
    ----------
    values : array_like
        Normalized samples in storage order, row-major, at least
        width * height of them
    width, height : int
        Grid size
    minimum, maximum : float
        Physical range used for denormalization
    """

    def __init__(self, values, width, height, minimum, maximum):
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid size must be positive, got {width} x {height}")
        if maximum < minimum:
            raise ValueError(f"maximum {maximum} is below minimum {minimum}")

        values = np.asarray(values, dtype=np.float64).reshape(-1)
        if values.size < width * height:
            raise ValueError(
                f"Expected {width * height} values for a {width} x {height} grid, "
                f"got {values.size}"
            )

        self.width = int(width)
        self.height = int(height)
        self.minimum = float(minimum)
        self.maximum = float(maximum)

        self.values = values[: width * height].reshape(height, width).copy()
        self.values.flags.writeable = False

    @property
    def span(self):
        return self.maximum - self.minimum

    @property
    def shape(self):
        return self.height, self.width

    def denormalize(self, value):
        """Normalized value -> physical units. Collapses to minimum if span is 0."""
        return value * self.span + self.minimum


@njit(cache=True)
def sample_point_numba(grid, u_min, u_span, v_min, v_span, x, y):
    """
    Numba-compiled sample of one point.

    Parameters
    ----------
    grid : ndarray
        Normalized components, shape (height, width, 2)
    u_min, u_span, v_min, v_span : float
        Physical ranges of both components
    x, y : float
        Field-space coordinates

    Returns
    -------
    ok : bool
        False when the point has no value
    vx, vy : float
        Denormalized velocity (x negated), zero when not ok
    """
    height = grid.shape[0]
    width = grid.shape[1]

    if not (np.isfinite(x) and np.isfinite(y)):
        return False, 0.0, 0.0

    lx = int(np.floor(x))
    ly = int(np.floor(y))
    ux = int(np.ceil(x))
    uy = int(np.ceil(y))

    if lx < 0:
        lx = ux
    if ux >= width:
        ux = lx
    if ly < 0:
        ly = uy
    if uy > height:
        uy = ly

    if ux < 0 or ux >= width or uy < 0 or uy >= height:
        return False, 0.0, 0.0
    # All four corners must exist
    if lx < 0 or ly < 0 or lx + 1 >= width or ly + 1 >= height:
        return False, 0.0, 0.0

    fx = x - lx
    wy = 1.0 - y + ly

    top_u = grid[ly, lx, 0] * fx + (1.0 - fx) * grid[ly, lx + 1, 0]
    top_v = grid[ly, lx, 1] * fx + (1.0 - fx) * grid[ly, lx + 1, 1]
    bot_u = grid[ly + 1, lx, 0] * fx + (1.0 - fx) * grid[ly + 1, lx + 1, 0]
    bot_v = grid[ly + 1, lx, 1] * fx + (1.0 - fx) * grid[ly + 1, lx + 1, 1]

    nu = top_u * wy + (1.0 - wy) * bot_u
    nv = top_v * wy + (1.0 - wy) * bot_v

    return True, -(nu * u_span + u_min), nv * v_span + v_min


@njit(parallel=True, cache=True)
def sample_many_numba(grid, u_min, u_span, v_min, v_span, xs, ys, out, valid):
    """
    Numba-accelerated sampling of many points.

    Parameters
    ----------
    grid : ndarray
        Normalized components, shape (height, width, 2)
    xs, ys : ndarray
        Field-space coordinates, shape (n,)
    out : ndarray
        Output velocities, shape (n, 2)
    valid : ndarray
        Output mask, shape (n,), False where the point has no value
    """
    n = xs.shape[0]

    for k in prange(n):
        ok, vx, vy = sample_point_numba(
            grid, u_min, u_span, v_min, v_span, xs[k], ys[k]
        )
        valid[k] = ok
        out[k, 0] = vx
        out[k, 1] = vy


class VectorField:
    """
    Velocity snapshot made of two ScalarFields (u, v) of equal shape.

    Read-only once built; one instance per dataset.
    """

    def __init__(self, u, v):
        if u.shape != v.shape:
            raise ValueError(f"u grid {u.shape} and v grid {v.shape} differ in shape")

        self.u = u
        self.v = v
        self.width = u.width
        self.height = u.height

        self.grid = np.ascontiguousarray(np.stack([u.values, v.values], axis=-1))
        self.grid.flags.writeable = False

        # Nested lists are faster than ndarray indexing for scalar lookups
        self._rows = self.grid.tolist()

        self.max_velocity = math.sqrt(u.maximum * u.maximum + v.maximum * v.maximum)

    @property
    def bounding_box(self):
        return BoundingBox(0, 0, self.width, self.height)

    def _corner(self, x, y):
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return None
        return self._rows[y][x]

    def sample(self, point):
        """
        Velocity at a fractional point.

        Parameters
        ----------
        point : tuple
            (x, y) in field units

        Returns
        -------
        velocity : Point or None
            Denormalized velocity with x negated, None outside the domain
        """
        x, y = point
        if not (math.isfinite(x) and math.isfinite(y)):
            return None

        lx = math.floor(x)
        ly = math.floor(y)
        ux = math.ceil(x)
        uy = math.ceil(y)

        if lx < 0:
            lx = ux
        if ux >= self.width:
            ux = lx
        if ly < 0:
            ly = uy
        if uy > self.height:
            uy = ly

        if self._corner(lx, ly) is None or self._corner(ux, uy) is None:
            return None

        tl = self._corner(lx, ly)
        tr = self._corner(lx + 1, ly)
        bl = self._corner(lx, ly + 1)
        br = self._corner(lx + 1, ly + 1)
        if tr is None or bl is None or br is None:
            return None

        fx = x - lx
        wy = 1.0 - y + ly

        top = _mix(tl, tr, fx)
        bottom = _mix(bl, br, fx)
        nu, nv = _mix(top, bottom, wy)

        return Point(-self.u.denormalize(nu), self.v.denormalize(nv))

    def sample_fast(self, point):
        """Same as sample, compiled with Numba."""
        x, y = point
        ok, vx, vy = sample_point_numba(
            self.grid, self.u.minimum, self.u.span, self.v.minimum, self.v.span,
            float(x), float(y)
        )
        if not ok:
            return None
        return Point(vx, vy)

    def sample_many(self, xs, ys):
        """
        Sample an array of points in one call.

        Parameters
        ----------
        xs, ys : array_like
            Field-space coordinates, shape (n,)

        Returns
        -------
        velocities : ndarray
            Shape (n, 2), zero where invalid
        valid : ndarray
            Boolean mask, shape (n,)
        """
        xs = np.ascontiguousarray(xs, dtype=np.float64).reshape(-1)
        ys = np.ascontiguousarray(ys, dtype=np.float64).reshape(-1)
        if xs.shape != ys.shape:
            raise ValueError(f"xs {xs.shape} and ys {ys.shape} differ in shape")

        out = np.zeros((xs.size, 2), dtype=np.float64)
        valid = np.zeros(xs.size, dtype=np.bool_)

        sample_many_numba(
            self.grid, self.u.minimum, self.u.span, self.v.minimum, self.v.span,
            xs, ys, out, valid
        )

        return out, valid


def _mix(a, b, ratio):
    return (
        a[0] * ratio + (1.0 - ratio) * b[0],
        a[1] * ratio + (1.0 - ratio) * b[1],
    )
