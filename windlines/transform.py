"""
Coordinate Transform

Maps field-space points (continuous grid coordinates) to pixel-space points
of the output raster:

    px = round((x - box.left) / box.width * raster_width)
    py = round((y - box.top) / box.height * raster_height)

Points are assumed to lie inside the box; nothing is clamped.
"""

from collections import namedtuple

import numpy as np

from .gradient import round_half_up


Point = namedtuple("Point", ["x", "y"])

BoundingBox = namedtuple("BoundingBox", ["left", "top", "width", "height"])


def contains(box, point):
    """True if point lies inside box (edges included)."""
    x, y = point
    return (
        box.left <= x <= box.left + box.width
        and box.top <= y <= box.top + box.height
    )


def to_pixel(point, box, raster_width, raster_height):
    """
    Transform one field-space point to pixel space.

    Parameters
    ----------
    point : tuple
        (x, y) in field units
    box : BoundingBox
        Field-space region shown by the raster
    raster_width, raster_height : int
        Raster size in pixels

    Returns
    -------
    pixel : Point
        Integer pixel coordinates
    """
    x, y = point
    tx = (x - box.left) / box.width
    ty = (y - box.top) / box.height
    return Point(round_half_up(tx * raster_width), round_half_up(ty * raster_height))


def to_pixels(xs, ys, box, raster_width, raster_height):
    """
    Vectorized to_pixel.

    Parameters
    ----------
    xs, ys : array_like
        Field-space coordinates, shape (n,)

    Returns
    -------
    px, py : ndarray
        Pixel coordinates as float64 holding integral values, shape (n,)
    """
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)
    tx = (xs - box.left) / box.width
    ty = (ys - box.top) / box.height
    return np.floor(tx * raster_width + 0.5), np.floor(ty * raster_height + 0.5)
