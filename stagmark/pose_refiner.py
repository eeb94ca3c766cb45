"""Refinement of a marker's homography from its circular border."""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np
from scipy.optimize import minimize

from .ellipse import Ellipse
from .geometry import cross_product, squared_distance
from .quad import Marker

CIRCLE_RADIUS = 0.4
CIRCLE_CENTER = 0.5

_MIN_SEGMENT_LENGTH = 20
_LOOP_THRESHOLD = 7.0
_PIXEL_ERROR_THRESHOLD = 0.1
_ACCUMULATED_ERROR_THRESHOLD = 36 * 0.05
_MAX_ITERATIONS = 5000
_FUNCTION_TOLERANCE = 1e-6

_SINES = [round(math.sin(math.radians(10 * i)), 6) for i in range(36)]
_SAMPLE_POINTS = np.array(
    [
        (
            CIRCLE_CENTER + CIRCLE_RADIUS * _SINES[(i + 9) % 36],
            CIRCLE_CENTER + CIRCLE_RADIUS * _SINES[i],
        )
        for i in range(36)
    ]
)

_UNIT_CORNERS = ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0))


def project_point(point: Sequence[float], homography: np.ndarray) -> tuple[float, float]:
    """Map a point through a homography."""
    projected = np.asarray(homography, dtype=float) @ np.array(
        [point[0], point[1], 1.0]
    )
    return float(projected[0] / projected[2]), float(projected[1] / projected[2])


def point_in_quad(corners: Sequence[Sequence[float]], point: Sequence[float]) -> bool:
    """Tell whether a point lies strictly inside a convex quadrilateral.

    The point must be inside the angle at the first corner and at the third.
    """
    c1, c2, c3, c4 = corners
    c1c2 = (c2[0] - c1[0], c2[1] - c1[1])
    c1c4 = (c4[0] - c1[0], c4[1] - c1[1])
    c3c2 = (c2[0] - c3[0], c2[1] - c3[1])
    c3c4 = (c4[0] - c3[0], c4[1] - c3[1])
    c1p = (point[0] - c1[0], point[1] - c1[1])
    c3p = (point[0] - c3[0], point[1] - c3[1])

    if cross_product(c1p, c1c2) * cross_product(c1p, c1c4) >= 0:
        return False
    if cross_product(c1c2, c1p) * cross_product(c1c2, c1c4) <= 0:
        return False
    if cross_product(c3p, c3c2) * cross_product(c3p, c3c4) >= 0:
        return False
    if cross_product(c3c2, c3p) * cross_product(c3c2, c3c4) <= 0:
        return False
    return True


def refinement_error(params: Sequence[float], conic: np.ndarray) -> float:
    """Score a homography against the detected border conic.

    ``params`` holds the nine homography entries column by column. The conic
    is mapped back onto the marker plane and compared with the expected
    circle of radius 0.4 centred at (0.5, 0.5).
    """
    h = np.asarray(params, dtype=float).reshape((3, 3), order="F")
    projected = h.T @ np.asarray(conic, dtype=float) @ h
    coefficients = (
        projected[0, 0],
        -projected[0, 1] * 2,
        projected[1, 1],
        projected[0, 2] * 2,
        -projected[1, 2] * 2,
        projected[2, 2],
    )
    ellipse = Ellipse.from_coefficients(coefficients)
    return (
        abs(ellipse.semi_major_axis - CIRCLE_RADIUS)
        + abs(ellipse.semi_minor_axis - CIRCLE_RADIUS)
        + abs(ellipse.center_x - CIRCLE_CENTER)
        + abs(ellipse.center_y - CIRCLE_CENTER)
    )


def _segment_error(
    marker: Marker, inverse: np.ndarray, segment: Sequence[Sequence[int]]
) -> Optional[float]:
    """Accumulated distance from the sample circle, or None if unsuitable."""
    if len(segment) < _MIN_SEGMENT_LENGTH:
        return None
    pixels = np.asarray(segment, dtype=float)
    if squared_distance(pixels[0], pixels[-1]) > _LOOP_THRESHOLD**2:
        return None
    if not all(point_in_quad(marker.corners, p) for p in pixels[::_MIN_SEGMENT_LENGTH]):
        return None

    homogeneous = np.column_stack([pixels, np.ones(len(pixels))]) @ inverse.T
    with np.errstate(all="ignore"):
        projected = homogeneous[:, :2] / homogeneous[:, 2:3]
        offsets = projected[:, None, :] - _SAMPLE_POINTS[None, :, :]
        distances = np.sqrt(np.sum(offsets * offsets, axis=2))
    distances = np.where(np.isnan(distances), np.inf, distances)

    if np.any(distances.min(axis=1) > _PIXEL_ERROR_THRESHOLD):
        return None
    return float(distances.min(axis=0).sum())


def refine_marker_pose(
    marker: Marker, edge_segments: Sequence[Sequence[Sequence[int]]]
) -> bool:
    """Refine a marker's homography using an edge loop on its circular border.

    ``edge_segments`` holds edge segments as sequences of ``(x, y)`` pixels.
    The segment closest to the expected circle is fitted with an ellipse and
    the homography is adjusted to map that ellipse onto the circle; the
    marker's centre and corners follow. Returns False, leaving the marker
    untouched, when no segment qualifies.
    """
    if marker.homography is None:
        raise ValueError("the marker has no homography")
    inverse = np.linalg.inv(marker.homography)

    chosen: Optional[Sequence[Sequence[int]]] = None
    best = math.inf
    for segment in edge_segments:
        error = _segment_error(marker, inverse, segment)
        if error is not None and error < best and error < _ACCUMULATED_ERROR_THRESHOLD:
            best = error
            chosen = segment
    if chosen is None:
        return False

    try:
        ellipse = Ellipse.fit_pixels((int(p[0]), int(p[1])) for p in chosen)
    except ValueError:
        return False

    a, b, c, d, e, f = ellipse.coefficients
    marker.conic = np.array(
        [[a, -b / 2, d / 2], [-b / 2, c, -e / 2], [d / 2, -e / 2, f]]
    )

    start = marker.homography.flatten(order="F")
    step = np.abs(0.001 * start)
    simplex = np.vstack([start, start + np.diag(step)])
    result = minimize(
        refinement_error,
        start,
        args=(marker.conic,),
        method="Nelder-Mead",
        options={
            "initial_simplex": simplex,
            "maxiter": _MAX_ITERATIONS,
            "fatol": _FUNCTION_TOLERANCE,
            "xatol": math.inf,
        },
    )

    marker.homography = np.asarray(result.x, dtype=float).reshape((3, 3), order="F")
    marker.center = project_point((0.5, 0.5), marker.homography)
    marker.corners = [project_point(p, marker.homography) for p in _UNIT_CORNERS]
    return True