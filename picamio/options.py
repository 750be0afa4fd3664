"""Option and stream description types shared by outputs, encoders and image writers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

DEFAULT_FRAMERATE = 30.0


class PixelFormat(enum.Enum):
    """Pixel formats that buffers handed to the package may be in."""

    YUV420 = "YUV420"
    YUYV = "YUYV"
    RGB888 = "RGB888"
    BGR888 = "BGR888"
    RGB161616 = "RGB161616"
    BGR161616 = "BGR161616"

    SRGGB10_CSI2P = "SRGGB10_CSI2P"
    SGRBG10_CSI2P = "SGRBG10_CSI2P"
    SBGGR10_CSI2P = "SBGGR10_CSI2P"
    SGBRG10_CSI2P = "SGBRG10_CSI2P"
    SRGGB10 = "SRGGB10"
    SGRBG10 = "SGRBG10"
    SBGGR10 = "SBGGR10"
    SGBRG10 = "SGBRG10"
    SRGGB12_CSI2P = "SRGGB12_CSI2P"
    SGRBG12_CSI2P = "SGRBG12_CSI2P"
    SBGGR12_CSI2P = "SBGGR12_CSI2P"
    SGBRG12_CSI2P = "SGBRG12_CSI2P"
    SRGGB12 = "SRGGB12"
    SGRBG12 = "SGRBG12"
    SBGGR12 = "SBGGR12"
    SGBRG12 = "SGBRG12"
    SRGGB16 = "SRGGB16"
    SGRBG16 = "SGRBG16"
    SBGGR16 = "SBGGR16"
    SGBRG16 = "SGBRG16"
    R10_CSI2P = "R10_CSI2P"
    R10 = "R10"
    R12 = "R12"
    RGGB_PISP_COMP1 = "RGGB_PISP_COMP1"
    GRBG_PISP_COMP1 = "GRBG_PISP_COMP1"
    GBRG_PISP_COMP1 = "GBRG_PISP_COMP1"
    BGGR_PISP_COMP1 = "BGGR_PISP_COMP1"


class Platform(enum.Enum):
    """The camera platform the program runs on."""

    MISSING = "missing"
    UNSUPPORTED = "unsupported"
    LEGACY = "legacy"
    VC4 = "vc4"
    PISP = "pisp"


def _require_non_negative(owner: object, *names: str) -> None:
    for name in names:
        if getattr(owner, name) < 0:
            raise ValueError(f"{name} must not be negative")


@dataclass(frozen=True)
class StreamInfo:
    """Geometry and format of an image buffer."""

    width: int = 0
    height: int = 0
    stride: int = 0
    pixel_format: PixelFormat = PixelFormat.YUV420
    colour_space: str | None = None

    def __post_init__(self) -> None:
        _require_non_negative(self, "width", "height", "stride")


@dataclass
class VideoOptions:
    """Settings for video encoding and output."""

    output: str = ""
    codec: str = "h264"
    platform: Platform = Platform.VC4
    width: int = 0
    height: int = 0
    framerate: float | None = None
    bitrate: int = 0
    profile: str = ""
    level: str = ""
    intra: int = 0
    inline_headers: bool = False
    quality: int = 50
    libav_video_codec: str = "h264_v4l2m2m"
    libav_format: str = ""
    circular: int = 0
    segment: int = 0
    split: bool = False
    wrap: int = 0
    flush: bool = False
    listen: bool = False
    pause: bool = False
    save_pts: str = ""
    metadata: str = ""
    metadata_format: str = "json"
    verbose: int = 1

    def __post_init__(self) -> None:
        _require_non_negative(self, "circular", "segment", "wrap", "bitrate", "intra")
        if not 0 <= self.quality <= 100:
            raise ValueError("quality must be between 0 and 100")


@dataclass
class StillOptions:
    """Settings for still image capture and saving."""

    output: str = ""
    encoding: str = "jpg"
    quality: int = 93
    restart: int = 0
    thumb_width: int = 320
    thumb_height: int = 240
    thumb_quality: int = 70
    exif: list[str] = field(default_factory=list)
    verbose: int = 1

    def __post_init__(self) -> None:
        _require_non_negative(self, "restart", "thumb_width", "thumb_height", "thumb_quality")
        if not 0 <= self.quality <= 100:
            raise ValueError("quality must be between 0 and 100")