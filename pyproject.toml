[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "picamio"
version = "0.1.0"
description = "Still-image writers and video stream outputs for camera frames"
requires-python = ">=3.10"
keywords = ["camera", "dng", "bmp", "png", "yuv", "raw", "bayer", "video", "output"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Capture :: Digital Camera",
    "Topic :: Multimedia :: Video",
]
dependencies = [
    "pillow",
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["picamio"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
