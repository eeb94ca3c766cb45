[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "stagmark"
version = "0.1.0"
description = "Geometry, ellipse fitting, homographies, pose refinement and edge validation for square fiducial markers with a circular border"
requires-python = ">=3.10"
keywords = [
    "fiducial",
    "marker",
    "computer-vision",
    "homography",
    "ellipse",
    "edge-segments",
    "helmholtz-principle",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Image Recognition",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["stagmark"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
