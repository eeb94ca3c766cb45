"""Pixel sampling and small planar geometry helpers.

Images are two-dimensional grayscale arrays indexed as ``image[row, column]``.
Points are ``(x, y)`` pairs where ``x`` is the column and ``y`` the row.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

OUTSIDE_VALUE = 128
"""Value returned when a sample falls outside the image."""

Point = Sequence[float]


def _size(image: np.ndarray) -> tuple[int, int]:
    height, width = image.shape[:2]
    return width, height


def read_pixel_unsafe(image: np.ndarray, point: Point) -> int:
    """Return the pixel at an integer point without a bounds check."""
    x, y = point
    return int(image[int(y), int(x)])


def read_pixel_safe(image: np.ndarray, point: Point) -> int:
    """Return the pixel at an integer point, or 128 when it lies outside."""
    x, y = int(point[0]), int(point[1])
    width, height = _size(image)
    if 0 <= x < width and 0 <= y < height:
        return int(image[y, x])
    return OUTSIDE_VALUE


def read_pixel_safe_bilinear(image: np.ndarray, point: Point) -> int:
    """Sample a sub-pixel location from its four neighbours.

    Each neighbour is weighted by its distance to the point. Locations
    outside the image give 128.
    """
    px, py = float(point[0]), float(point[1])
    width, height = _size(image)
    if not (0 <= px <= width - 1 and 0 <= py <= height - 1):
        return OUTSIDE_VALUE

    x1, x2 = math.floor(px), math.ceil(px)
    y1, y2 = math.floor(py), math.ceil(py)

    neighbours = ((x1, y1), (x1, y2), (x2, y1), (x2, y2))
    weights = [math.hypot(nx - px, ny - py) for nx, ny in neighbours]
    total_weight = sum(weights)
    if total_weight == 0:
        # The point sits exactly on a pixel centre.
        return int(image[y1, x1])

    total = sum(
        int(image[ny, nx]) * weight
        for (nx, ny), weight in zip(neighbours, weights)
    )
    return int(total / total_weight)


def cross_product(p1: Point, p2: Point) -> float:
    """Return the z component of the cross product of two planar vectors."""
    return p1[0] * p2[1] - p1[1] * p2[0]


def squared_distance(p1: Point, p2: Point) -> float:
    """Return the squared Euclidean distance between two points."""
    dx = p1[0] - p2[0]
    dy = p1[1] - p2[1]
    return dx * dx + dy * dy