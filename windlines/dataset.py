"""
Wind Dataset Loading

Reads a wind snapshot exported as JSON (grib2json style)::

    {
      "u": {"values": [...], "Ni": 360, "Nj": 181, "minimum": -20.1, "maximum": 25.3},
      "v": {"values": [...], "Ni": 360, "Nj": 181, "minimum": -18.7, "maximum": 19.9}
    }

Values are physical. On load each component is normalized to [0, 1] and
rotated by half the grid width, so column 0 of the stored grid is source
column width // 2:

    stored[y, x] = source[y * width + (x + width // 2) % width]

The stored grid has width = Ni and height = Nj - 1 rows.
"""

import json
import logging
import os
from collections import namedtuple

import numpy as np

from .field import ScalarField, VectorField


logger = logging.getLogger(__name__)

COMPONENT_KEYS = ("values", "Ni", "Nj", "minimum", "maximum")

Dataset = namedtuple("Dataset", ["dataset_id", "field"])


class DatasetError(ValueError):
    """Raised when a dataset record is missing data or inconsistent."""


def normalize_component(values, ni, nj, minimum, maximum):
    """
    Normalize and phase-shift one component.

    Parameters
    ----------
    values : array_like
        Physical samples, row-major, at least ni * (nj - 1) of them
    ni, nj : int
        Source grid size
    minimum, maximum : float
        Physical range of the samples

    Returns
    -------
    grid : ndarray
        Normalized grid, shape (nj - 1, ni)
    """
    width = ni
    height = nj - 1
    values = np.asarray(values, dtype=np.float64).reshape(-1)

    source = values[: width * height].reshape(height, width)
    shifted = np.roll(source, -(width // 2), axis=1)

    span = maximum - minimum
    if span == 0:
        return np.zeros((height, width), dtype=np.float64)
    return (shifted - minimum) / span


def _validate_component(name, record):
    if not isinstance(record, dict):
        raise DatasetError(f"Component '{name}' is missing or not an object")

    missing = [key for key in COMPONENT_KEYS if key not in record]
    if missing:
        raise DatasetError(f"Component '{name}' is missing keys: {', '.join(missing)}")

    ni = int(record["Ni"])
    nj = int(record["Nj"])
    if ni <= 0 or nj <= 1:
        raise DatasetError(f"Component '{name}' has degenerate grid {ni} x {nj}")

    values = record["values"]
    if values is None or len(values) == 0:
        raise DatasetError(f"Component '{name}' has no values")
    if len(values) < ni * (nj - 1):
        raise DatasetError(
            f"Component '{name}' has {len(values)} values, "
            f"needs at least {ni * (nj - 1)}"
        )

    minimum = float(record["minimum"])
    maximum = float(record["maximum"])
    if maximum < minimum:
        raise DatasetError(
            f"Component '{name}' has maximum {maximum} below minimum {minimum}"
        )
    if maximum == minimum:
        logger.warning(
            "Component '%s' has an empty range (%g); all samples collapse to it",
            name, minimum
        )

    return ni, nj, minimum, maximum


def build_scalar_field(name, record):
    """Validate one component record and build its ScalarField."""
    ni, nj, minimum, maximum = _validate_component(name, record)
    grid = normalize_component(record["values"], ni, nj, minimum, maximum)
    return ScalarField(grid, ni, nj - 1, minimum, maximum)


def build_vector_field(record):
    """
    Build a VectorField from a parsed dataset record.

    Parameters
    ----------
    record : dict
        Mapping with 'u' and 'v' component records

    Returns
    -------
    field : VectorField

    Raises
    ------
    DatasetError
        If either component is malformed or the two grids differ
    """
    if not isinstance(record, dict):
        raise DatasetError("Dataset record must be an object with 'u' and 'v'")

    u = build_scalar_field("u", record.get("u"))
    v = build_scalar_field("v", record.get("v"))

    if u.shape != v.shape:
        raise DatasetError(f"u grid {u.shape} and v grid {v.shape} differ in shape")

    return VectorField(u, v)


def load_dataset(path, dataset_id=None):
    """
    Load a dataset JSON file.

    Parameters
    ----------
    path : str
        Path to the JSON file
    dataset_id : str, optional
        Label for the dataset; defaults to the file's base name

    Returns
    -------
    dataset : Dataset

    Raises
    ------
    DatasetError
        If the file is not valid JSON or the record is malformed
    OSError
        If the file cannot be read
    """
    if dataset_id is None:
        dataset_id = os.path.basename(path)

    with open(path, "r", encoding="utf-8") as fh:
        try:
            record = json.load(fh)
        except json.JSONDecodeError as e:
            raise DatasetError(f"{path} is not valid JSON: {e}") from e

    field = build_vector_field(record)
    logger.debug(
        "Loaded %s: %d x %d grid, max velocity %.3f",
        dataset_id, field.width, field.height, field.max_velocity
    )
    return Dataset(dataset_id, field)
