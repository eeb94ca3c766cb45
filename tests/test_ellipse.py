import math

import pytest

from stagmark.ellipse import PI, Ellipse

CIRCLE = (1.0, 0.0, 1.0, 0.0, 0.0, -100.0)


def _ellipse_points(cx, cy, ra, rb, tilt_deg, count, offset_deg=5.0, wobble=0.002):
    tilt = math.radians(tilt_deg)
    xs, ys = [], []
    for k in range(count):
        t = math.radians(offset_deg + k * 360.0 / count)
        scale = 1.0 + wobble * math.sin(7 * t)
        ex, ey = ra * scale * math.cos(t), rb * scale * math.sin(t)
        xs.append(cx + ex * math.cos(tilt) - ey * math.sin(tilt))
        ys.append(cy + ex * math.sin(tilt) + ey * math.cos(tilt))
    return xs, ys


def test_from_coefficients_circle():
    e = Ellipse.from_coefficients(CIRCLE)
    assert e.semi_major_axis == pytest.approx(10.0)
    assert e.semi_minor_axis == pytest.approx(10.0)
    assert e.rotation == 0.0
    assert e.center_x == pytest.approx(0.0)
    assert e.center_y == pytest.approx(0.0)


def test_from_coefficients_center_is_flipped_to_image_frame():
    # (x - 5)^2 + (y - 3)^2 = 4 in the y-up frame
    e = Ellipse.from_coefficients((1, 0, 1, -10, -6, 30))
    assert e.center_x == pytest.approx(5.0)
    assert e.center_y == pytest.approx(-3.0)
    assert e.semi_major_axis == pytest.approx(2.0)
    assert e.center == (int(e.center_x), int(e.center_y))


def test_coefficients_are_normalised_by_leading_term():
    base = Ellipse.from_coefficients((1, 0, 1, -10, -6, 30))
    scaled = Ellipse.from_coefficients((3, 0, 3, -30, -18, 90))
    assert scaled.coefficients[0] == 1.0
    assert scaled.coefficients == pytest.approx(base.coefficients)


def test_wrong_number_of_coefficients():
    with pytest.raises(ValueError):
        Ellipse.from_coefficients((1, 0, 1))


def test_non_elliptic_conic_gives_nan_axis():
    e = Ellipse.from_coefficients((1, 0, -1, 0, 0, -1))
    assert e.semi_major_axis == pytest.approx(1.0)
    assert math.isnan(e.semi_minor_axis)


def test_perimeter_of_circle():
    e = Ellipse.from_coefficients(CIRCLE)
    assert e.perimeter() == pytest.approx(2 * PI * 10.0)


def test_perimeter_bounded_by_axes():
    xs, ys = _ellipse_points(40, 30, 12, 6, 30, 36)
    e = Ellipse.fit(xs, ys)
    low, high = sorted((e.semi_major_axis, e.semi_minor_axis))
    assert 2 * math.pi * low < e.perimeter() < 2 * math.pi * high


def test_distance_and_closest_point_on_circle():
    e = Ellipse.from_coefficients(CIRCLE)
    distance, angle = e.distance(13.0, 0.0)
    assert distance == pytest.approx(3.0)
    assert math.cos(angle) == pytest.approx(1.0)
    sq, _ = e.squared_distance(13.0, 0.0)
    assert sq == pytest.approx(9.0)
    closest, dist = e.closest_point_and_distance(13.0, 0.0)
    assert closest == (10, 0)
    assert dist == pytest.approx(3.0)


def test_fit_circle():
    xs, ys = _ellipse_points(40, 30, 10, 10, 0, 36)
    e = Ellipse.fit(xs, ys)
    assert e.center_x == pytest.approx(40.0, abs=0.05)
    assert e.center_y == pytest.approx(30.0, abs=0.05)
    assert e.semi_major_axis == pytest.approx(10.0, abs=0.1)
    assert e.semi_minor_axis == pytest.approx(10.0, abs=0.1)


def test_fit_tilted_ellipse():
    xs, ys = _ellipse_points(40, 30, 12, 6, 30, 36)
    e = Ellipse.fit(xs, ys)
    assert e.center_x == pytest.approx(40.0, abs=0.05)
    assert e.center_y == pytest.approx(30.0, abs=0.05)
    axes = sorted((e.semi_major_axis, e.semi_minor_axis))
    assert axes == pytest.approx([6.0, 12.0], abs=0.1)
    assert e.rotation != 0.0


def test_fit_needs_six_points():
    with pytest.raises(ValueError):
        Ellipse.fit([0, 1, 2, 3, 4], [4, 3, 1, 0, 2])


def test_fit_needs_matching_lengths():
    with pytest.raises(ValueError):
        Ellipse.fit([0, 1, 2, 3, 4, 5, 6], [4, 3, 1, 0, 2, 1])


def test_fitting_errors_are_small_and_ordered():
    xs, ys = _ellipse_points(40, 30, 10, 10, 0, 36)
    e = Ellipse.fit(xs, ys)
    average = e.average_fitting_error()
    rms = e.rms_fitting_error()
    assert 0.0 <= average < 0.1
    assert rms >= average - 1e-12


def test_fitting_errors_need_points():
    e = Ellipse.from_coefficients(CIRCLE)
    with pytest.raises(ValueError):
        e.average_fitting_error()
    with pytest.raises(ValueError):
        e.rms_fitting_error()
    with pytest.raises(ValueError):
        e.closest_points()


def test_fit_pixels():
    pixels = [
        (
            round(50 + 20 * math.cos(math.radians(7 + 15 * k))),
            round(50 + 20 * math.sin(math.radians(7 + 15 * k))),
        )
        for k in range(24)
    ]
    e = Ellipse.fit_pixels(pixels)
    assert e.center_x == pytest.approx(50.0, abs=0.5)
    assert e.center_y == pytest.approx(50.0, abs=0.5)
    assert e.semi_major_axis == pytest.approx(20.0, abs=0.5)
    assert 0.0 <= e.average_fitting_error() < 2.0


def test_closest_points_lie_near_fitted_points():
    xs, ys = _ellipse_points(40, 30, 10, 10, 0, 36)
    e = Ellipse.fit(xs, ys)
    closest = e.closest_points()
    assert len(closest) == len(xs)
    for (cx, cy), x, y in zip(closest, xs, ys):
        assert math.hypot(cx - x, cy - y) < 2.0


def test_draw_circle():
    e = Ellipse.from_coefficients(CIRCLE)
    points = e.draw(8)
    assert len(points) == 8
    assert points[0] == (10, 0)
    assert points[4] == (-10, 0)
    for x, y in points:
        assert 8.5 <= math.hypot(x, y) <= 10.0


def test_draw_odd_resolution_rounds_down():
    e = Ellipse.from_coefficients(CIRCLE)
    assert len(e.draw(9)) == 8
    assert e.draw(0) == []


def test_draw_marks_missing_directions():
    e = Ellipse.from_coefficients((1, 0, -1, 0, 0, -1))
    points = e.draw(8)
    assert points[0] == (1, 0)
    assert points[2] == (-1, 1)
    assert points[6] == (-1, 1)


def test_samples_of_axis_aligned_circle():
    e = Ellipse.from_coefficients(CIRCLE)
    xs, ys = e.samples(12)
    assert len(xs) == len(ys) == 12
    for x, y in zip(xs, ys):
        assert math.hypot(x, y) == pytest.approx(10.0, abs=0.05)


def test_samples_of_rotated_ellipse_are_centred():
    xs, ys = _ellipse_points(40, 30, 12, 6, 30, 36)
    e = Ellipse.fit(xs, ys)
    assert e.rotation != 0.0
    sx, sy = e.samples(36)
    assert sum(sx) / len(sx) == pytest.approx(e.center_x, abs=0.1)
    assert sum(sy) / len(sy) == pytest.approx(e.center_y, abs=0.1)


def test_samples_count_limits():
    e = Ellipse.from_coefficients(CIRCLE)
    assert e.samples(0) == ([], [])
    with pytest.raises(ValueError):
        e.samples(-1)