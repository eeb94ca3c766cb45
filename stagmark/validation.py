"""Validation of edge segments by the Helmholtz principle.

Edge segments are sequences of ``(x, y)`` pixels. A stretch of a segment is
kept when the chance of seeing its weakest gradient that many times in a row
in noise is small enough. Stretches that fail are split at their weakest
pixels and tested again.
"""

from __future__ import annotations

from typing import Sequence

import numpy

from .gradient import EPSILON, gradient_tail_probabilities, nfa, prewitt_gradient

MIN_PATH_LEN = 10
"""Shortest stretch of pixels that is tested or kept."""

EDGE_VALUE = 255
"""Value written into the edge image for validated pixels."""

Pixel = Sequence[int]


def count_segment_pieces(segments: Sequence[Sequence[Pixel]]) -> int:
    """Return the number of sub-stretches over all segments, ``n(n-1)/2`` each."""
    return sum(len(segment) * (len(segment) - 1) // 2 for segment in segments)


def test_segment(
    edge_image: numpy.ndarray,
    gradient: numpy.ndarray,
    probabilities: numpy.ndarray,
    segment: Sequence[Pixel],
    start: int,
    end: int,
    np: int,
    div: float,
) -> None:
    """Mark the meaningful stretches of ``segment[start..end]`` in ``edge_image``.

    ``end`` is inclusive. A stretch whose weakest gradient gives a number of
    false alarms at or below ``EPSILON`` is written with 255; any other is
    split around its weakest pixels and both halves are tested in turn.
    """
    pending = [(start, end)]
    while pending:
        first, last = pending.pop()
        chain_len = last - first + 1
        if chain_len < MIN_PATH_LEN:
            continue

        grads = [int(gradient[segment[k][1], segment[k][0]]) for k in range(first, last + 1)]
        min_grad = min(grads)
        min_index = first + grads.index(min_grad)

        if nfa(np, float(probabilities[min_grad]), int(chain_len / div)) <= EPSILON:
            for x, y in segment[first : last + 1]:
                edge_image[y, x] = EDGE_VALUE
            continue

        left_end = min_index - 1
        while left_end > first and grads[left_end - first] <= min_grad:
            left_end -= 1

        right_start = min_index + 1
        while right_start < last and grads[right_start - first] <= min_grad:
            right_start += 1

        pending.append((right_start, last))
        pending.append((first, left_end))


def extract_new_segments(
    edge_image: numpy.ndarray, segments: Sequence[Sequence[Pixel]]
) -> list[list[tuple[int, int]]]:
    """Return the runs of marked pixels, at least ten long, of every segment."""
    result: list[list[tuple[int, int]]] = []
    for segment in segments:
        pixels = [(int(p[0]), int(p[1])) for p in segment]
        count = len(pixels)
        start = 0
        while start < count:
            while start < count and not edge_image[pixels[start][1], pixels[start][0]]:
                start += 1
            end = start + 1
            while end < count and edge_image[pixels[end][1], pixels[end][0]]:
                end += 1
            if end - start >= MIN_PATH_LEN:
                result.append(pixels[start:end])
            start = end + 1
    return result


def validate_edge_segments(
    image: numpy.ndarray, segments: Sequence[Sequence[Pixel]], div: float
) -> tuple[list[list[tuple[int, int]]], numpy.ndarray]:
    """Validate edge segments against the gradient of a grayscale image.

    Returns the validated segments and the edge image in which their pixels
    are set to 255.
    """
    src = numpy.asarray(image)
    if src.ndim != 2:
        raise ValueError("expected a two-dimensional grayscale image")
    if div <= 0:
        raise ValueError("div must be positive")

    edge_image = numpy.zeros(src.shape, dtype=numpy.uint8)
    gradient = prewitt_gradient(src)
    probabilities = gradient_tail_probabilities(gradient)
    pieces = count_segment_pieces(segments)

    for segment in segments:
        test_segment(
            edge_image, gradient, probabilities, segment, 0, len(segment) - 1, pieces, div
        )
    return extract_new_segments(edge_image, segments), edge_image