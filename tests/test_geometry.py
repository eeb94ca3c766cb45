import numpy as np
import pytest

from stagmark.geometry import (
    OUTSIDE_VALUE,
    cross_product,
    read_pixel_safe,
    read_pixel_safe_bilinear,
    read_pixel_unsafe,
    squared_distance,
)


@pytest.fixture
def image():
    return np.arange(20, dtype=np.uint8).reshape(4, 5) * 10


def test_unsafe_read_uses_column_then_row(image):
    assert read_pixel_unsafe(image, (3, 2)) == int(image[2, 3])


def test_safe_read_inside(image):
    assert read_pixel_safe(image, (4, 3)) == int(image[3, 4])


@pytest.mark.parametrize("point", [(-1, 0), (0, -1), (5, 0), (0, 4), (10, 10)])
def test_safe_read_outside_returns_128(image, point):
    assert read_pixel_safe(image, point) == 128
    assert OUTSIDE_VALUE == 128


@pytest.mark.parametrize("point", [(-0.1, 1.0), (4.01, 1.0), (1.0, 3.5)])
def test_bilinear_outside_returns_128(image, point):
    assert read_pixel_safe_bilinear(image, point) == 128


def test_bilinear_on_pixel_centre(image):
    assert read_pixel_safe_bilinear(image, (2.0, 1.0)) == int(image[1, 2])


def test_bilinear_last_pixel_is_inside(image):
    assert read_pixel_safe_bilinear(image, (4.0, 3.0)) == int(image[3, 4])


def test_bilinear_uniform_image():
    flat = np.full((6, 6), 77, dtype=np.uint8)
    assert read_pixel_safe_bilinear(flat, (2.3, 3.7)) == 77


def test_bilinear_between_neighbours(image):
    value = read_pixel_safe_bilinear(image, (1.4, 2.6))
    corners = [image[2, 1], image[2, 2], image[3, 1], image[3, 2]]
    assert min(corners) <= value <= max(corners)


def test_bilinear_midpoint_of_two_pixels():
    row = np.array([[100, 200]], dtype=np.uint8)
    assert read_pixel_safe_bilinear(row, (0.5, 0.0)) == 150


def test_cross_product_antisymmetric():
    a, b = (1.5, -2.0), (3.0, 0.25)
    assert cross_product(a, b) == pytest.approx(-cross_product(b, a))


def test_cross_product_of_parallel_vectors_is_zero():
    assert cross_product((2.0, 3.0), (4.0, 6.0)) == 0


def test_squared_distance_values():
    assert squared_distance((0, 0), (3, 4)) == 25
    assert squared_distance((1.5, -2.0), (1.5, -2.0)) == 0


def test_squared_distance_symmetric():
    a, b = (0.3, 7.1), (-2.2, 1.0)
    assert squared_distance(a, b) == pytest.approx(squared_distance(b, a))