"""Quadrilateral candidates, their homographies, and decoded markers."""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

from .geometry import cross_product

Point = tuple[float, float]


def line_at_infinity(corners: Sequence[Sequence[float]]) -> tuple[float, float, float]:
    """Return the normalised vanishing line of a quadrilateral.

    The line passes through the intersections of opposite edges. When both
    edge pairs are parallel it is ``(0, 0, 1)``.
    """
    c1, c2, c3, c4 = ((float(p[0]), float(p[1])) for p in corners)

    cross14 = cross_product(c1, c4)
    cross23 = cross_product(c2, c3)
    cross12 = cross_product(c1, c2)
    cross34 = cross_product(c3, c4)

    vec23 = (c2[0] - c3[0], c2[1] - c3[1])
    vec14 = (c1[0] - c4[0], c1[1] - c4[1])
    vec34 = (c3[0] - c4[0], c3[1] - c4[1])
    vec12 = (c1[0] - c2[0], c1[1] - c2[1])

    first_parallel = cross_product(vec14, vec23) == 0
    second_parallel = cross_product(vec12, vec34) == 0

    def meet(cross_a, vec_a, cross_b, vec_b):
        denominator = vec_a[0] * vec_b[1] - vec_a[1] * vec_b[0]
        return (
            (cross_a * vec_b[0] - vec_a[0] * cross_b) / denominator,
            (cross_a * vec_b[1] - vec_a[1] * cross_b) / denominator,
        )

    if first_parallel and second_parallel:
        return 0.0, 0.0, 1.0
    if first_parallel:
        inters2 = meet(cross12, vec12, cross34, vec34)
        inters1 = (inters2[0] + vec14[0], inters2[1] + vec14[1])
    elif second_parallel:
        inters1 = meet(cross14, vec14, cross23, vec23)
        inters2 = (inters1[0] + vec12[0], inters1[1] + vec12[1])
    else:
        inters1 = meet(cross14, vec14, cross23, vec23)
        inters2 = meet(cross12, vec12, cross34, vec34)

    l1 = inters1[1] - inters2[1]
    l2 = inters2[0] - inters1[0]
    l3 = inters1[0] * inters2[1] - inters2[0] * inters1[1]
    normalizer = math.sqrt(l1 * l1 + l2 * l2)
    return l1 / normalizer, l2 / normalizer, l3 / normalizer


def projective_distortion(
    corners: Sequence[Sequence[float]], line_inf: Sequence[float]
) -> float:
    """Ratio of the largest to the smallest corner distance to the vanishing line."""
    lx, ly, lz = line_inf
    distances = [abs(lx * p[0] + ly * p[1] + lz) for p in corners]
    smallest, largest = min(distances), max(distances)
    if smallest == 0:
        return math.inf
    return largest / smallest


class Quad:
    """Four corners of a candidate marker, in clockwise image order."""

    def __init__(self, corners: Sequence[Sequence[float]]) -> None:
        if len(corners) != 4:
            raise ValueError("a quad needs exactly four corners")
        self.corners: list[Point] = [(float(p[0]), float(p[1])) for p in corners]
        self.line_inf = line_at_infinity(self.corners)
        self.projective_distortion = projective_distortion(self.corners, self.line_inf)
        self.homography: Optional[np.ndarray] = None
        self.center: Optional[Point] = None

    def estimate_homography(self) -> np.ndarray:
        """Compute the homography from the unit square onto the corners.

        Also sets ``center`` to the image of the square's centre.
        """
        lx, ly, lz = self.line_inf
        affine = [
            (x / (lx * x + ly * y + lz), y / (lx * x + ly * y + lz))
            for x, y in self.corners
        ]

        rectify_inverse = np.eye(3)
        rectify_inverse[2] = (-lx / lz, -ly / lz, 1 / lz)

        (x0, y0), (x1, y1), _, (x3, y3) = affine
        square_to_affine = np.array(
            [[x1 - x0, x3 - x0, x0], [y1 - y0, y3 - y0, y0], [0.0, 0.0, 1.0]]
        )

        self.homography = rectify_inverse @ square_to_affine
        projected = self.homography @ np.array([0.5, 0.5, 1.0])
        self.center = (
            float(projected[0] / projected[2]),
            float(projected[1] / projected[2]),
        )
        return self.homography

    def __repr__(self) -> str:
        return f"{type(self).__name__}(corners={self.corners!r})"


class Marker(Quad):
    """A quad whose code has been decoded to a marker id."""

    def __init__(self, quad: Quad, marker_id: int) -> None:
        self.corners = list(quad.corners)
        self.line_inf = quad.line_inf
        self.projective_distortion = quad.projective_distortion
        self.homography = None if quad.homography is None else quad.homography.copy()
        self.center = quad.center
        self.marker_id = marker_id
        self.conic: Optional[np.ndarray] = None

    def shift_corners(self, shift: int) -> None:
        """Rotate the corner order by ``shift`` places (1 to 3).

        Other shifts leave the marker untouched. The homography is
        recomputed after a rotation.
        """
        if shift not in (1, 2, 3):
            return
        self.corners = self.corners[shift:] + self.corners[:shift]
        self.estimate_homography()

    def __repr__(self) -> str:
        return f"Marker(id={self.marker_id}, corners={self.corners!r})"