"""Pixel geometry, conic and ellipse fitting, quad homographies, marker pose refinement and edge segment validation."""

__version__ = "0.1.0"