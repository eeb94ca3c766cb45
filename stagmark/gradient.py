"""Prewitt gradient magnitudes and the statistics used to validate edges.

Validation follows the Helmholtz principle: a stretch of edge pixels is
meaningful when the number of false alarms it would give in noise is small.
"""

from __future__ import annotations

import numpy as np

MAX_GRAD_VALUE = 128 * 256
"""Length of the tail probability table; every gradient value is below it."""

EPSILON = 1.0
"""Number of false alarms at or below which a segment counts as meaningful."""


def prewitt_gradient(image: np.ndarray) -> np.ndarray:
    """Return the 3x3 Prewitt gradient magnitude ``|gx| + |gy|`` of an image.

    The one-pixel border is left at zero. Images smaller than 3x3 give an
    all-zero result.
    """
    src = np.asarray(image)
    if src.ndim != 2:
        raise ValueError("expected a two-dimensional grayscale image")
    height, width = src.shape
    gradient = np.zeros((height, width), dtype=np.int16)
    if height < 3 or width < 3:
        return gradient

    img = src.astype(np.int32)
    top_left = img[:-2, :-2]
    top = img[:-2, 1:-1]
    top_right = img[:-2, 2:]
    left = img[1:-1, :-2]
    right = img[1:-1, 2:]
    bottom_left = img[2:, :-2]
    bottom = img[2:, 1:-1]
    bottom_right = img[2:, 2:]

    com1 = bottom_right - top_left
    com2 = top_right - bottom_left
    gx = np.abs(com1 + com2 + (right - left))
    gy = np.abs(com1 - com2 + (bottom - top))

    gradient[1:-1, 1:-1] = (gx + gy).astype(np.int16)
    return gradient


def gradient_tail_probabilities(gradient: np.ndarray) -> np.ndarray:
    """Return ``H`` where ``H[g]`` is the share of interior pixels with gradient >= g.

    Only pixels off the one-pixel border are counted. The table has
    ``MAX_GRAD_VALUE`` entries.
    """
    grad = np.asarray(gradient)
    if grad.ndim != 2:
        raise ValueError("expected a two-dimensional gradient map")
    height, width = grad.shape
    size = (width - 2) * (height - 2)
    if height < 3 or width < 3:
        raise ValueError("the gradient map has no interior pixels")

    interior = grad[1:-1, 1:-1].astype(np.int64).ravel()
    if interior.size and (interior.min() < 0 or interior.max() >= MAX_GRAD_VALUE):
        raise ValueError("gradient values must lie in 0..MAX_GRAD_VALUE-1")

    counts = np.bincount(interior, minlength=MAX_GRAD_VALUE)
    tail = np.cumsum(counts[::-1])[::-1]
    return tail.astype(float) / float(size)


def nfa(np: int, prob: float, length: int) -> float:
    """Number of false alarms for ``length`` pixels each with probability ``prob``.

    Starts from ``np`` pieces and multiplies by ``prob`` once per pixel,
    stopping early once the value has dropped to ``EPSILON`` or below.
    """
    value = float(np)
    for _ in range(length):
        if value <= EPSILON:
            break
        value *= prob
    return value