"""Numerical routines behind direct least-squares conic and circle fitting."""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

_PIVOT_EPS = 10e-20
_ZERO_EIGENVALUE = 10e-20
_MAX_SWEEPS = 50
_CIRCLE_MAX_MSE = 0.0002


def _square(matrix) -> np.ndarray:
    a = np.array(matrix, dtype=float)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise ValueError("expected a square matrix")
    return a


def _rotate(a: np.ndarray, i: int, j: int, k: int, l: int, tau: float, s: float) -> None:
    g = a[i, j]
    h = a[k, l]
    a[i, j] = g - s * (h + g * tau)
    a[k, l] = h + s * (g - h * tau)


def jacobi(matrix) -> tuple[np.ndarray, np.ndarray]:
    """Eigen-decompose a symmetric matrix with cyclic Jacobi rotations.

    Returns ``(eigenvalues, eigenvectors)``; eigenvector ``k`` is column ``k``.
    Only the upper triangle of the input is read. At most 50 sweeps are made.
    """
    a = _square(matrix)
    n = a.shape[0]
    v = np.eye(n)
    d = a.diagonal().copy()
    b = d.copy()
    z = np.zeros(n)

    for sweep in range(1, _MAX_SWEEPS + 1):
        sm = sum(abs(a[p, q]) for p in range(n - 1) for q in range(p + 1, n))
        if sm == 0.0:
            break
        tresh = 0.2 * sm / (n * n) if sweep < 4 else 0.0
        for ip in range(n - 1):
            for iq in range(ip + 1, n):
                g = 100.0 * abs(a[ip, iq])
                if sweep > 4 and g == 0.0:
                    a[ip, iq] = 0.0
                elif abs(a[ip, iq]) > tresh:
                    h = d[iq] - d[ip]
                    if g == 0.0:
                        t = a[ip, iq] / h
                    else:
                        theta = 0.5 * h / a[ip, iq]
                        t = 1.0 / (abs(theta) + math.sqrt(1.0 + theta * theta))
                        if theta < 0.0:
                            t = -t
                    c = 1.0 / math.sqrt(1 + t * t)
                    s = t * c
                    tau = s / (1.0 + c)
                    h = t * a[ip, iq]
                    z[ip] -= h
                    z[iq] += h
                    d[ip] -= h
                    d[iq] += h
                    a[ip, iq] = 0.0
                    for j in range(ip):
                        _rotate(a, j, ip, j, iq, tau, s)
                    for j in range(ip + 1, iq):
                        _rotate(a, ip, j, j, iq, tau, s)
                    for j in range(iq + 1, n):
                        _rotate(a, ip, j, iq, j, tau, s)
                    for j in range(n):
                        _rotate(v, j, ip, j, iq, tau, s)
        b += z
        d = b.copy()
        z[:] = 0.0
    return d, v


def cholesky(matrix) -> np.ndarray:
    """Return the lower triangular ``L`` with ``L @ L.T == matrix``.

    A non-positive pivot leaves a zero on the diagonal, as the fit tolerates.
    """
    a = _square(matrix)
    n = a.shape[0]
    p = np.zeros(n)
    with np.errstate(divide="ignore", invalid="ignore"):
        for i in range(n):
            for j in range(i, n):
                total = a[i, j]
                for k in reversed(range(i)):
                    total -= a[i, k] * a[j, k]
                if i == j:
                    if total > 0.0:
                        p[i] = math.sqrt(total)
                else:
                    a[j, i] = total / p[i]
    return np.tril(a, -1) + np.diag(p)


def invert(matrix) -> np.ndarray:
    """Invert a matrix by Gauss-Jordan elimination with partial pivoting.

    Raises ValueError when the matrix is singular.
    """
    a = _square(matrix)
    n = a.shape[0]
    aug = np.hstack([a, np.eye(n)])
    for k in range(n):
        pivot_row = k + int(np.argmax(np.abs(aug[k:, k])))
        if abs(aug[pivot_row, k]) < _PIVOT_EPS:
            raise ValueError("matrix is singular")
        if pivot_row != k:
            aug[[k, pivot_row], k:] = aug[[pivot_row, k], k:]
        aug[k, k:] = aug[k, k:] / aug[k, k]
        for i in range(n):
            if i != k:
                aug[i, k:] -= aug[i, k] * aug[k, k:]
    return aug[:, n:]


def fit_conic(xs: Sequence[float], ys: Sequence[float]) -> tuple[float, ...]:
    """Fit an ellipse-specific conic ``Ax²+Bxy+Cy²+Dx+Ey+F = 0`` to points.

    Coordinates are used as given. Returns ``(A, B, C, D, E, F)`` normalised
    to unit length. Needs at least six points.
    """
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if x.shape != y.shape:
        raise ValueError("xs and ys must have the same length")
    if x.size < 6:
        raise ValueError("at least six points are needed to fit a conic")

    design = np.column_stack([x * x, x * y, y * y, x, y, np.ones_like(x)])
    scatter = design.T @ design
    inv_lower = invert(cholesky(scatter))

    constraint = np.zeros((6, 6))
    constraint[0, 2] = -2.0
    constraint[1, 1] = 1.0
    constraint[2, 0] = -2.0

    reduced = inv_lower @ (constraint @ inv_lower.T)
    eigenvalues, eigenvectors = jacobi(reduced)
    solutions = inv_lower.T @ eigenvectors
    solutions = solutions / np.sqrt(np.sum(solutions * solutions, axis=0))

    chosen = [
        i
        for i, value in enumerate(eigenvalues)
        if value < 0 and abs(value) > _ZERO_EIGENVALUE
    ]
    if not chosen:
        raise ValueError("no elliptical solution for these points")
    return tuple(float(c) for c in solutions[:, chosen[-1]])


def circle_fit(
    xs: Sequence[float], ys: Sequence[float]
) -> Optional[tuple[float, float, float]]:
    """Fit a circle to at least three points.

    Returns ``(center_x, center_y, radius)``, or None when there are too few
    points, the system is degenerate, or the points are not circle-shaped.
    """
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if x.shape != y.shape:
        raise ValueError("xs and ys must have the same length")
    n = x.size
    if n < 3:
        return None

    x_avg = x.sum() / n
    y_avg = y.sum() / n
    u = x - x_avg
    v = y - y_avg

    suu = float(np.sum(u * u))
    suv = float(np.sum(u * v))
    svv = float(np.sum(v * v))
    suuu = float(np.sum(u * u * u))
    suvv = float(np.sum(u * v * v))
    svvv = float(np.sum(v * v * v))
    svuu = float(np.sum(v * u * u))

    det = suu * svv - suv * suv
    if det == 0:
        return None

    b1 = 0.5 * (suuu + suvv)
    b2 = 0.5 * (svvv + svuu)
    uc = (svv * b1 - suv * b2) / det
    vc = (suu * b2 - suv * b1) / det

    radius = math.sqrt(uc * uc + vc * vc + (suu + svv) / n)
    center_x = uc + x_avg
    center_y = vc + y_avg

    deviations = np.hypot(x - center_x, y - center_y) - radius
    if float(np.mean(deviations * deviations)) > _CIRCLE_MAX_MSE:
        return None
    return float(center_x), float(center_y), float(radius)


def _fast_wave(x: float) -> float:
    if x < 0:
        res = 1.27323954 * x + 0.405284735 * x * x
    else:
        res = 1.27323954 * x - 0.405284735 * x * x
    if res < 0:
        return 0.225 * (res * -res - res) + res
    return 0.225 * (res * res - res) + res


def _wrap(x: float) -> float:
    if x < -3.14159265:
        return x + 6.28318531
    if x > 3.14159265:
        return x - 6.28318531
    return x


def fast_sin(x: float) -> float:
    """Polynomial sine approximation, wrapping once into -π..π."""
    return _fast_wave(_wrap(x))


def fast_cos(x: float) -> float:
    """Polynomial cosine approximation built on the sine approximation."""
    return _fast_wave(_wrap(x + 1.57079632))