"""Still-image writers (BMP, PNG, raw YUV/RGB, DNG) and video stream outputs for camera frames."""

__version__ = "0.1.0"