"""Ellipses fitted to edge points, with distance and sampling queries.

Image coordinates have ``y`` growing downwards. Internally the ellipse lives
in a frame with ``y`` pointing up, and the conic coefficients refer to that
frame; every method that takes or returns image points does the flip itself.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

import numpy as np

from .conic import fast_cos, fast_sin, fit_conic, invert

PI = 3.14159265
_QUARTER_TURN = 1.5707
_THREE_QUARTER_TURN = 4.7123


class Ellipse:
    """An ellipse given by the conic ``Ax²+Bxy+Cy²+Dx+Ey+F = 0``.

    The coefficients are kept normalised so that ``A == 1``. Degenerate or
    non-elliptic conics are accepted; their axes then come out as NaN.
    """

    def __init__(
        self,
        coefficients: Sequence[float],
        points: Iterable[Sequence[float]] = (),
        integer_points: bool = False,
    ) -> None:
        values = [np.float64(c) for c in coefficients]
        if len(values) != 6:
            raise ValueError("an ellipse needs six conic coefficients")

        with np.errstate(all="ignore"):
            lead = values[0]
            b1, c1, d1, e1, f1 = (value / lead for value in values[1:])
            a1 = lead / lead

            if b1 == 0:
                rotation = np.float64(0.0)
                a2, c2, d2, e2, f2 = a1, c1, d1, e1, f1
            else:
                rotation = np.arctan(b1 / (a1 - c1)) / 2
                cos2, sin2 = np.cos(2 * rotation), np.sin(2 * rotation)
                cos1, sin1 = np.cos(rotation), np.sin(rotation)
                a2 = 0.5 * (a1 * (1 + cos2 + b1 * sin2 + c1 * (1 - cos2)))
                c2 = 0.5 * (a1 * (1 - cos2 - b1 * sin2 + c1 * (1 + cos2)))
                d2 = d1 * cos1 + e1 * sin1
                e2 = -d1 * sin1 + e1 * cos1
                f2 = f1

            cx = -(d2 / a2) / 2
            cy = -(e2 / c2) / 2
            f3 = a2 * cx * cx + c2 * cy * cy - f2
            semi_a = np.sqrt(f3 / a2)
            semi_b = np.sqrt(f3 / c2)

            if rotation != 0:
                cos1, sin1 = np.cos(rotation), np.sin(rotation)
                cx, cy = cx * cos1 - cy * sin1, cx * sin1 + cy * cos1

            self._a2_b2 = semi_a * semi_a - semi_b * semi_b

        self.coefficients: tuple[float, ...] = tuple(
            float(c) for c in (a1, b1, c1, d1, e1, f1)
        )
        self.rotation = float(rotation)
        self.semi_major_axis = float(semi_a)
        self.semi_minor_axis = float(semi_b)
        self._rotation = np.float64(rotation)
        self._a = np.float64(semi_a)
        self._b = np.float64(semi_b)
        self._cx = np.float64(cx)
        self._cy = np.float64(cy)
        self._points = [(p[0], p[1]) for p in points]
        self._integer = integer_points

    # -- construction -----------------------------------------------------

    @classmethod
    def from_coefficients(cls, coefficients: Sequence[float]) -> "Ellipse":
        """Build an ellipse from conic coefficients in the y-up frame."""
        return cls(coefficients)

    @classmethod
    def fit(cls, xs: Sequence[float], ys: Sequence[float]) -> "Ellipse":
        """Fit an ellipse to at least six image points given as coordinates."""
        x = [float(v) for v in xs]
        y = [-float(v) for v in ys]
        coefficients = fit_conic(x, y)
        return cls(coefficients, zip(x, y), integer_points=False)

    @classmethod
    def fit_pixels(cls, pixels: Iterable[Sequence[int]]) -> "Ellipse":
        """Fit an ellipse to at least six integer pixel locations ``(x, y)``."""
        points = [(int(p[0]), -int(p[1])) for p in pixels]
        coefficients = fit_conic([p[0] for p in points], [p[1] for p in points])
        return cls(coefficients, points, integer_points=True)

    # -- basic properties -------------------------------------------------

    @property
    def center_x(self) -> float:
        """Centre column in image coordinates."""
        return float(self._cx)

    @property
    def center_y(self) -> float:
        """Centre row in image coordinates."""
        return float(-self._cy)

    @property
    def center(self) -> tuple[int, int]:
        """Centre truncated to integer image coordinates."""
        return int(self._cx), int(-self._cy)

    def perimeter(self) -> float:
        """Approximate perimeter (Ramanujan's second formula)."""
        a, b = self.semi_major_axis, self.semi_minor_axis
        h = (a - b) ** 2 / (a + b) ** 2
        return PI * (a + b) * (1 + 3 * h / (10 + math.sqrt(4 - 3 * h)))

    # -- drawing ----------------------------------------------------------

    def draw(self, resolution: int) -> list[tuple[int, int]]:
        """Return about ``resolution`` integer image points on the curve.

        An odd resolution is rounded down to even. The first half of the list
        walks one side of the curve, the second half the other. Directions
        that miss the curve give the point ``(-1, 1)``.
        """
        if resolution < 0:
            raise ValueError("resolution must not be negative")
        count = resolution // 2
        if count == 0:
            return []

        axx, axy, ayy, ax, ay, ao = self.coefficients
        quadratic = np.array([[axx, axy / 2], [axy / 2, ayy]])
        linear = np.array([ax, ay])
        inverse = invert(quadratic)

        r1 = float(linear @ (inverse @ linear)) - 4 * ao
        thetas = np.arange(count) * (PI / count)
        normals = np.vstack([np.cos(thetas), np.sin(thetas)])

        with np.errstate(all="ignore"):
            denominators = np.sum(normals * (inverse @ normals), axis=0)
            ratios = r1 / denominators
            valid = ratios >= 0.0
            lambdas = np.where(valid, np.sqrt(np.where(valid, ratios, 0.0)), -1.0)

        offset = linear[:, None]
        positive = inverse @ (0.5 * (lambdas * normals - offset))
        negative = inverse @ (0.5 * (-lambdas * normals - offset))

        def side(columns: np.ndarray) -> list[tuple[int, int]]:
            return [
                (int(px), -int(py)) if ok else (-1, 1)
                for px, py, ok in zip(columns[0], columns[1], valid)
            ]

        return side(positive) + side(negative)

    # -- distances --------------------------------------------------------

    def _refine_angle(self, theta, x, y):
        for _ in range(2):
            s, c = np.sin(theta), np.cos(theta)
            f = self._a2_b2 * c * s - x * self._a * s + y * self._b * c
            f_prime = (
                self._a2_b2 * (c * c - s * s) - x * self._a * c - y * self._b * s
            )
            theta = theta - np.float64(f) / f_prime
        return theta

    def _nearest(self, px: float, py: float, integer: bool) -> tuple[float, float]:
        """Return ``(squared distance, angle)`` for a point in the y-up frame."""
        with np.errstate(all="ignore"):
            tx = np.float64(px) - self._cx
            ty = np.float64(py) - self._cy
            if integer:
                tx, ty = np.trunc(tx), np.trunc(ty)
            x, y = tx, ty
            if self.rotation != 0:
                cos_r, sin_r = np.cos(-self._rotation), np.sin(-self._rotation)
                x = tx * cos_r - ty * sin_r
                y = tx * sin_r + ty * cos_r
                tx, ty = (np.trunc(x), np.trunc(y)) if integer else (x, y)

            first = np.arctan(self._a * y / self._b * x)
            best_sq: Optional[np.float64] = None
            best_theta = first
            for offset in (0.0, _QUARTER_TURN, PI, _THREE_QUARTER_TURN):
                theta = self._refine_angle(first + offset, x, y)
                cand_x = self._a * np.cos(theta)
                cand_y = self._b * np.sin(theta)
                if integer:
                    cand_x, cand_y = np.trunc(cand_x), np.trunc(cand_y)
                sq = (tx - cand_x) ** 2 + (ty - cand_y) ** 2
                if best_sq is None or sq < best_sq:
                    best_sq, best_theta = sq, theta
        return float(best_sq), float(best_theta)

    def distance(self, x: float, y: float) -> tuple[float, float]:
        """Return ``(distance, angle)`` from an image point to the curve.

        ``angle`` is the parameter of the closest point on the curve.
        """
        sq, theta = self._nearest(x, -y, False)
        return math.sqrt(sq), theta

    def squared_distance(self, x: float, y: float) -> tuple[float, float]:
        """Return ``(squared distance, angle)`` from an image point to the curve."""
        return self._nearest(x, -y, False)

    def _residuals(self) -> list[tuple[float, float]]:
        if not self._points:
            raise ValueError("the ellipse was not fitted to any points")
        return [self._nearest(px, py, self._integer) for px, py in self._points]

    def average_fitting_error(self) -> float:
        """Mean distance of the fitted points to the curve."""
        residuals = self._residuals()
        return sum(math.sqrt(sq) for sq, _ in residuals) / len(residuals)

    def rms_fitting_error(self) -> float:
        """Root mean square distance of the fitted points to the curve."""
        residuals = self._residuals()
        return math.sqrt(sum(sq for sq, _ in residuals) / len(residuals))

    def _surface_point(self, theta: float) -> tuple[int, int]:
        along = self.semi_major_axis * math.cos(theta)
        across = self.semi_minor_axis * math.sin(theta)
        sin_r, cos_r = math.sin(self.rotation), math.cos(self.rotation)
        px = int(along * cos_r - across * sin_r + float(self._cx))
        py = -int(along * sin_r + across * cos_r + float(self._cy))
        return px, py

    def closest_points(self) -> list[tuple[int, int]]:
        """Closest curve point, in integer image coordinates, for each fitted point."""
        return [self._surface_point(theta) for _, theta in self._residuals()]

    def closest_point_and_distance(
        self, x: float, y: float
    ) -> tuple[tuple[int, int], float]:
        """Return the closest curve point to an image point and its distance."""
        sq, theta = self._nearest(x, -y, False)
        return self._surface_point(theta), math.sqrt(sq)

    # -- sampling ---------------------------------------------------------

    def samples(self, count: int) -> tuple[list[float], list[float]]:
        """Sample ``count`` points at even angular steps, in image coordinates.

        The centre offset is applied together with the rotation, so an
        axis-aligned ellipse is sampled about the origin.
        """
        if count < 0:
            raise ValueError("count must not be negative")
        if count == 0:
            return [], []

        step = 360.0 / count
        sin_r, cos_r = math.sin(self.rotation), math.cos(self.rotation)
        cx, cy = float(self._cx), float(self._cy)
        xs: list[float] = []
        ys: list[float] = []
        angle = 0.0
        for _ in range(count):
            radians = angle * PI / 180
            px = self.semi_major_axis * fast_sin(radians)
            py = self.semi_minor_axis * fast_cos(radians)
            if self.rotation != 0:
                px, py = cx + px * cos_r - py * sin_r, cy + px * sin_r + py * cos_r
            xs.append(px)
            ys.append(-py)
            angle += step
        return xs, ys

    def __repr__(self) -> str:
        return (
            f"Ellipse(center=({self.center_x:.3f}, {self.center_y:.3f}), "
            f"axes=({self.semi_major_axis:.3f}, {self.semi_minor_axis:.3f}), "
            f"rotation={self.rotation:.4f})"
        )