# stagmark

Building blocks for square fiducial markers whose code area sits inside a
circular border. Images are 8-bit grayscale NumPy arrays indexed as
`image[row, column]`; points are `(x, y)` pairs with `x` the column and `y`
the row.

## Modules

- `stagmark.geometry` – `read_pixel_unsafe`, `read_pixel_safe` (returns 128
  outside the image), `read_pixel_safe_bilinear` (distance-weighted read of the
  four neighbouring pixels, 128 outside), `cross_product` and
  `squared_distance`.
- `stagmark.conic` – `jacobi` (eigen-decomposition of a symmetric matrix),
  `cholesky`, `invert` (Gauss–Jordan; raises `ValueError` when singular),
  `fit_conic` (ellipse-specific conic fit to at least six points),
  `circle_fit` (returns `(center_x, center_y, radius)` or `None` when the
  points are too few, degenerate or not circle-shaped), and the polynomial
  approximations `fast_sin` and `fast_cos`.
- `stagmark.ellipse` – the `Ellipse` class. Build it with
  `Ellipse.from_coefficients`, `Ellipse.fit(xs, ys)` or
  `Ellipse.fit_pixels(pixels)`. It exposes `coefficients`, `rotation`,
  `semi_major_axis`, `semi_minor_axis`, `center_x`, `center_y`, `center`, and
  the methods `perimeter`, `draw`, `distance`, `squared_distance`,
  `average_fitting_error`, `rms_fitting_error`, `closest_points`,
  `closest_point_and_distance` and `samples`.
- `stagmark.quad` – `line_at_infinity`, `projective_distortion`, the `Quad`
  class (`corners`, `line_inf`, `projective_distortion`, and
  `estimate_homography()`, which sets `homography` and `center`) and the
  `Marker` class, a quad with a `marker_id` whose corner order can be rotated
  with `shift_corners(shift)`.
- `stagmark.pose_refiner` – `project_point`, `point_in_quad`,
  `refinement_error` and `refine_marker_pose(marker, edge_segments)`, which
  picks the edge loop that best matches the marker's circular border, fits an
  ellipse to it, adjusts the homography with a Nelder–Mead search and updates
  the marker's centre and corners. It returns `False` and leaves the marker
  alone when no segment qualifies.
- `stagmark.gradient` – `prewitt_gradient`, `gradient_tail_probabilities`
  and `nfa` (number of false alarms).
- `stagmark.validation` – `count_segment_pieces`, `test_segment`,
  `extract_new_segments` and `validate_edge_segments(image, segments, div)`,
  which keeps the stretches of each edge segment that pass the
  Helmholtz-principle test and returns them with the edge image.

## Installation

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## Example

```python
import numpy as np

from stagmark.ellipse import Ellipse
from stagmark.quad import Marker, Quad
from stagmark.pose_refiner import project_point
from stagmark.validation import validate_edge_segments

# Fit an ellipse to points on a circle of radius 10 around (50, 40).
angles = np.linspace(0, 2 * np.pi, 40, endpoint=False)
ellipse = Ellipse.fit(50 + 10 * np.cos(angles), 40 + 10 * np.sin(angles))
print(ellipse.center_x, ellipse.center_y, ellipse.semi_major_axis)
print(ellipse.perimeter())

# Homography from the unit square onto four clockwise image corners.
quad = Quad([(10.0, 10.0), (90.0, 10.0), (90.0, 90.0), (10.0, 90.0)])
quad.estimate_homography()
print(quad.center, project_point((1.0, 1.0), quad.homography))

# A decoded quad becomes a marker; its corners can be rotated into place.
marker = Marker(quad, marker_id=3)
marker.shift_corners(1)

# Keep only the meaningful parts of some edge segments.
image = np.zeros((40, 40), dtype=np.uint8)
image[:, 20:] = 255
segments = [[(20, y) for y in range(2, 38)]]
kept, edge_image = validate_edge_segments(image, segments, div=2.0)
```

## What the package does not do

It does not find edges, edge segments or line segments in an image, does not
group lines into corners and quadrilateral candidates, and does not sample or
decode a marker's code to get its id. Edge segments (sequences of `(x, y)`
pixels), quad corners and marker ids are inputs you supply. There is no
command-line program.