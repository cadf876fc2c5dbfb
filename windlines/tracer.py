"""
Evenly-Spaced Streamline Tracer

Covers a bounding box with streamlines roughly d_sep apart (Jobard & Lefer).

Starting from a seed, each line is integrated forward and backward through
the normalized vector field with fixed-step RK4:

    k1 = v(p)
    k2 = v(p + h/2 * k1)
    k3 = v(p + h/2 * k2)
    k4 = v(p + h * k3)
    p' = p + h/6 * (k1 + 2*k2 + 2*k3 + k4)

A line stops when the field is undefined or zero, when it leaves the box,
when it comes closer than d_test to an accepted line or to itself, or when
it runs out of steps or time. Every accepted line seeds new candidates at
distance d_sep on both sides of each of its points.

Tracing is deterministic: the same field and settings give the same lines
in the same order.
"""

import logging
import math
import time
from collections import deque

from .constants import (
    D_SEP, D_TEST, TIME_STEP, STEPS_PER_ITERATION, MAX_TIME_PER_ITERATION
)
from .transform import Point, contains


logger = logging.getLogger(__name__)

# Candidate seeds sit exactly d_sep from their parent line
_SEED_SLACK = 1e-6

# Own points this many steps back are not tested for loops
_OWN_NEIGHBOURS = 2


class SpatialHash:
    """
    Uniform grid of buckets for nearest-point distance checks.

    Parameters
    ----------
    cell_size : float
        Bucket edge length in field units
    """

    def __init__(self, cell_size):
        self.cell_size = cell_size
        self._cells = {}

    def __len__(self):
        return sum(len(bucket) for bucket in self._cells.values())

    def _key(self, x, y):
        return (int(math.floor(x / self.cell_size)), int(math.floor(y / self.cell_size)))

    def add(self, point, tag=0):
        x, y = point
        self._cells.setdefault(self._key(x, y), []).append((x, y, tag))

    def is_taken(self, point, distance, ignore=None):
        """
        True if a stored point lies strictly closer than distance.

        Parameters
        ----------
        point : tuple
            (x, y) to test
        distance : float
            Exclusion radius
        ignore : callable, optional
            Predicate on a stored tag; matching points are skipped
        """
        x, y = point
        cx, cy = self._key(x, y)
        reach = max(1, int(math.ceil(distance / self.cell_size)))
        limit = distance * distance

        for i in range(cx - reach, cx + reach + 1):
            for j in range(cy - reach, cy + reach + 1):
                for px, py, tag in self._cells.get((i, j), ()):
                    if ignore is not None and ignore(tag):
                        continue
                    dx = px - x
                    dy = py - y
                    if dx * dx + dy * dy < limit:
                        return True
        return False


class StreamlineTracer:
    """
    Traces evenly spaced streamlines through a vector field.

    Parameters
    ----------
    vector_field : callable
        Maps an (x, y) point to a velocity (vx, vy), or None outside the
        domain
    bounding_box : BoundingBox
        Region to cover, in field units
    seed : tuple, optional
        First seed point; defaults to the center of the box
    d_sep : float
        Target separation between lines
    d_test : float
        Distance at which a growing line stops near another one
        (0 < d_test <= d_sep)
    time_step : float
        RK4 step length in field units
    steps_per_iteration : int
        Maximum integration steps per line and direction
    max_time_per_iteration : float
        Wall-clock budget per line in milliseconds
    on_streamline_added : callable, optional
        Called with the list of points of every accepted line, in order
    """

    def __init__(self, vector_field, bounding_box, seed=None, d_sep=D_SEP,
                 d_test=D_TEST, time_step=TIME_STEP,
                 steps_per_iteration=STEPS_PER_ITERATION,
                 max_time_per_iteration=MAX_TIME_PER_ITERATION,
                 on_streamline_added=None):
        if bounding_box.width <= 0 or bounding_box.height <= 0:
            raise ValueError(f"Degenerate bounding box: {bounding_box}")
        if d_sep <= 0:
            raise ValueError(f"d_sep must be positive, got {d_sep}")
        if not 0 < d_test <= d_sep:
            raise ValueError(f"d_test must be in (0, d_sep], got {d_test}")
        if time_step <= 0:
            raise ValueError(f"time_step must be positive, got {time_step}")
        if steps_per_iteration < 1:
            raise ValueError(f"steps_per_iteration must be >= 1, got {steps_per_iteration}")
        if max_time_per_iteration <= 0:
            raise ValueError(
                f"max_time_per_iteration must be positive, got {max_time_per_iteration}"
            )

        self.vector_field = vector_field
        self.bounding_box = bounding_box
        if seed is None:
            seed = (
                bounding_box.left + bounding_box.width / 2.0,
                bounding_box.top + bounding_box.height / 2.0,
            )
        self.seed = Point(float(seed[0]), float(seed[1]))
        self.d_sep = d_sep
        self.d_test = d_test
        self.time_step = time_step
        self.steps_per_iteration = int(steps_per_iteration)
        self.max_time_per_iteration = max_time_per_iteration
        self.on_streamline_added = on_streamline_added

        self._grid = SpatialHash(d_sep)

    def _direction(self, x, y, sign):
        velocity = self.vector_field(Point(x, y))
        if velocity is None:
            return None
        vx, vy = velocity
        length = math.hypot(vx, vy)
        if not math.isfinite(length) or length == 0.0:
            return None
        return sign * vx / length, sign * vy / length

    def _rk4(self, x, y, sign):
        h = self.time_step

        k1 = self._direction(x, y, sign)
        if k1 is None:
            return None
        k2 = self._direction(x + 0.5 * h * k1[0], y + 0.5 * h * k1[1], sign)
        if k2 is None:
            return None
        k3 = self._direction(x + 0.5 * h * k2[0], y + 0.5 * h * k2[1], sign)
        if k3 is None:
            return None
        k4 = self._direction(x + h * k3[0], y + h * k3[1], sign)
        if k4 is None:
            return None

        dx = (h / 6.0) * (k1[0] + 2.0 * k2[0] + 2.0 * k3[0] + k4[0])
        dy = (h / 6.0) * (k1[1] + 2.0 * k2[1] + 2.0 * k3[1] + k4[1])
        return Point(x + dx, y + dy)

    def _grow(self, seed, sign, own, started):
        points = []
        x, y = seed

        for step in range(1, self.steps_per_iteration + 1):
            elapsed_ms = (time.perf_counter() - started) * 1000.0
            if elapsed_ms > self.max_time_per_iteration:
                logger.debug("Line from %s cut after %.0f ms", seed, elapsed_ms)
                break

            nxt = self._rk4(x, y, sign)
            if nxt is None or not contains(self.bounding_box, nxt):
                break
            if self._grid.is_taken(nxt, self.d_test):
                break

            tag = sign * step
            if own.is_taken(nxt, self.d_test,
                            ignore=lambda t: abs(t - tag) <= _OWN_NEIGHBOURS):
                break

            own.add(nxt, tag)
            points.append(nxt)
            x, y = nxt

        return points

    def _is_valid_seed(self, point, distance):
        if not contains(self.bounding_box, point):
            return False
        if self.vector_field(point) is None:
            return False
        return not self._grid.is_taken(point, distance)

    def trace(self, seed):
        """
        Trace a single line through seed against the lines accepted so far.

        Returns
        -------
        points : list of Point or None
            The line from its backward end to its forward end, None if it
            has fewer than two points. The line is not registered.
        """
        seed = Point(float(seed[0]), float(seed[1]))
        started = time.perf_counter()

        own = SpatialHash(self.d_sep)
        own.add(seed, 0)

        forward = self._grow(seed, 1, own, started)
        backward = self._grow(seed, -1, own, started)

        points = backward[::-1] + [seed] + forward
        if len(points) < 2:
            return None
        return points

    def _register(self, points):
        for point in points:
            self._grid.add(point)

    def _seed_candidates(self, points):
        last = len(points) - 1
        for i, (x, y) in enumerate(points):
            ax, ay = points[max(i - 1, 0)]
            bx, by = points[min(i + 1, last)]
            tx = bx - ax
            ty = by - ay
            length = math.hypot(tx, ty)
            if length == 0.0:
                continue
            nx = -ty / length * self.d_sep
            ny = tx / length * self.d_sep
            yield Point(x + nx, y + ny)
            yield Point(x - nx, y - ny)

    def iter_streamlines(self):
        """
        Lazily trace the whole box.

        Yields
        ------
        points : list of Point
            One accepted line at a time, in tracing order
        """
        if not self._is_valid_seed(self.seed, self.d_sep):
            logger.warning("Seed %s is outside the field; nothing to trace", tuple(self.seed))
            return

        first = self.trace(self.seed)
        if first is None:
            logger.warning("Seed %s produced no streamline", tuple(self.seed))
            return

        self._register(first)
        yield first

        queue = deque([first])
        min_distance = self.d_sep * (1.0 - _SEED_SLACK)

        while queue:
            source = queue.popleft()
            for candidate in self._seed_candidates(source):
                if not self._is_valid_seed(candidate, min_distance):
                    continue
                line = self.trace(candidate)
                if line is None:
                    continue
                self._register(line)
                queue.append(line)
                yield line

    def run(self):
        """
        Trace the box, passing each line to on_streamline_added.

        Returns
        -------
        count : int
            Number of accepted lines
        """
        started = time.perf_counter()
        count = 0

        for points in self.iter_streamlines():
            if self.on_streamline_added is not None:
                self.on_streamline_added(points)
            count += 1

        logger.info(
            "Traced %d streamlines in %.2fs", count, time.perf_counter() - started
        )
        return count
