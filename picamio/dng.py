"""Save raw Bayer images as DNG files."""

from __future__ import annotations

import logging
import math
import struct
import time
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Mapping

import numpy as np

from .dng_unpack import uncompress, unpack_10bit, unpack_12bit, unpack_16bit
from .options import PixelFormat, StillOptions, StreamInfo

logger = logging.getLogger(__name__)

MAKE_STRING = "Raspberry Pi"

TIFF_RGGB = (0, 1, 1, 2)
TIFF_GRBG = (1, 0, 2, 1)
TIFF_BGGR = (2, 1, 1, 0)
TIFF_GBRG = (1, 2, 0, 1)


@dataclass(frozen=True)
class BayerFormat:
    """Description of a raw Bayer pixel format."""

    name: str
    bits: int
    order: tuple[int, int, int, int]
    packed: bool
    compressed: bool


_P = PixelFormat
_BAYER_FORMATS: dict[PixelFormat, BayerFormat] = {
    _P.SRGGB10_CSI2P: BayerFormat("RGGB-10", 10, TIFF_RGGB, True, False),
    _P.SGRBG10_CSI2P: BayerFormat("GRBG-10", 10, TIFF_GRBG, True, False),
    _P.SBGGR10_CSI2P: BayerFormat("BGGR-10", 10, TIFF_BGGR, True, False),
    _P.SGBRG10_CSI2P: BayerFormat("GBRG-10", 10, TIFF_GBRG, True, False),
    _P.SRGGB10: BayerFormat("RGGB-10", 10, TIFF_RGGB, False, False),
    _P.SGRBG10: BayerFormat("GRBG-10", 10, TIFF_GRBG, False, False),
    _P.SBGGR10: BayerFormat("BGGR-10", 10, TIFF_BGGR, False, False),
    _P.SGBRG10: BayerFormat("GBRG-10", 10, TIFF_GBRG, False, False),
    _P.SRGGB12_CSI2P: BayerFormat("RGGB-12", 12, TIFF_RGGB, True, False),
    _P.SGRBG12_CSI2P: BayerFormat("GRBG-12", 12, TIFF_GRBG, True, False),
    _P.SBGGR12_CSI2P: BayerFormat("BGGR-12", 12, TIFF_BGGR, True, False),
    _P.SGBRG12_CSI2P: BayerFormat("GBRG-12", 12, TIFF_GBRG, True, False),
    _P.SRGGB12: BayerFormat("RGGB-12", 12, TIFF_RGGB, False, False),
    _P.SGRBG12: BayerFormat("GRBG-12", 12, TIFF_GRBG, False, False),
    _P.SBGGR12: BayerFormat("BGGR-12", 12, TIFF_BGGR, False, False),
    _P.SGBRG12: BayerFormat("GBRG-12", 12, TIFF_GBRG, False, False),
    _P.SRGGB16: BayerFormat("RGGB-16", 16, TIFF_RGGB, False, False),
    _P.SGRBG16: BayerFormat("GRBG-16", 16, TIFF_GRBG, False, False),
    _P.SBGGR16: BayerFormat("BGGR-16", 16, TIFF_BGGR, False, False),
    _P.SGBRG16: BayerFormat("GBRG-16", 16, TIFF_GBRG, False, False),
    _P.R10_CSI2P: BayerFormat("BGGR-10", 10, TIFF_BGGR, True, False),
    _P.R10: BayerFormat("BGGR-10", 10, TIFF_BGGR, False, False),
    _P.R12: BayerFormat("BGGR-12", 12, TIFF_BGGR, False, False),
    _P.RGGB_PISP_COMP1: BayerFormat("RGGB-16-PISP", 16, TIFF_RGGB, False, True),
    _P.GRBG_PISP_COMP1: BayerFormat("GRBG-16-PISP", 16, TIFF_GRBG, False, True),
    _P.GBRG_PISP_COMP1: BayerFormat("GBRG-16-PISP", 16, TIFF_GBRG, False, True),
    _P.BGGR_PISP_COMP1: BayerFormat("BGGR-16-PISP", 16, TIFF_BGGR, False, True),
}


def bayer_format_for(pixel_format: PixelFormat) -> BayerFormat:
    """Return the Bayer description of a pixel format, or raise ValueError."""
    try:
        return _BAYER_FORMATS[pixel_format]
    except KeyError:
        raise ValueError("unsupported Bayer format") from None


class Matrix:
    """A row-major 3x3 matrix."""

    def __init__(self, *args: float) -> None:
        if not args:
            args = (0.0,) * 9
        if len(args) != 9:
            raise ValueError("a matrix needs 9 values")
        self.m = tuple(float(a) for a in args)

    @classmethod
    def diagonal(cls, d0: float, d1: float, d2: float) -> "Matrix":
        return cls(d0, 0, 0, 0, d1, 0, 0, 0, d2)

    def transpose(self) -> "Matrix":
        m = self.m
        return Matrix(m[0], m[3], m[6], m[1], m[4], m[7], m[2], m[5], m[8])

    def cofactor(self) -> "Matrix":
        m = self.m
        return Matrix(
            m[4] * m[8] - m[5] * m[7], -(m[3] * m[8] - m[5] * m[6]), m[3] * m[7] - m[4] * m[6],
            -(m[1] * m[8] - m[2] * m[7]), m[0] * m[8] - m[2] * m[6], -(m[0] * m[7] - m[1] * m[6]),
            m[1] * m[5] - m[2] * m[4], -(m[0] * m[5] - m[2] * m[3]), m[0] * m[4] - m[1] * m[3],
        )

    def adjugate(self) -> "Matrix":
        return self.cofactor().transpose()

    def determinant(self) -> float:
        m = self.m
        return (
            m[0] * (m[4] * m[8] - m[5] * m[7])
            - m[1] * (m[3] * m[8] - m[5] * m[6])
            + m[2] * (m[3] * m[7] - m[4] * m[6])
        )

    def inverse(self) -> "Matrix":
        det = self.determinant()
        if det == 0:
            raise ZeroDivisionError("matrix is singular")
        return self.adjugate() * (1.0 / det)

    def __mul__(self, other: "Matrix | float") -> "Matrix":
        if isinstance(other, Matrix):
            a, b = self.m, other.m
            return Matrix(
                *(
                    a[i * 3] * b[j] + a[i * 3 + 1] * b[3 + j] + a[i * 3 + 2] * b[6 + j]
                    for i in range(3)
                    for j in range(3)
                )
            )
        if isinstance(other, (int, float)):
            return Matrix(*(v * other for v in self.m))
        return NotImplemented

    def __repr__(self) -> str:
        return f"Matrix{self.m}"


# TIFF field types
_BYTE, _ASCII, _SHORT, _LONG, _RATIONAL, _SRATIONAL = 1, 2, 3, 4, 5, 10
_TYPE_SIZE = {_BYTE: 1, _ASCII: 1, _SHORT: 2, _LONG: 4, _RATIONAL: 8, _SRATIONAL: 8}


def _rational(value: float, signed: bool = False) -> tuple[int, int]:
    if math.isinf(value):
        return (0xFFFFFFFF, 1) if not signed else (0x7FFFFFFF, 1)
    frac = Fraction(value).limit_denominator(1_000_000)
    num, den = frac.numerator, frac.denominator
    limit = 0x7FFFFFFF if signed else 0xFFFFFFFF
    while abs(num) > limit or den > limit:
        num //= 2
        den = max(1, den // 2)
    return num, den


def _entry(tag: int, ftype: int, values: Any) -> tuple[int, int, int, bytes]:
    if ftype == _ASCII:
        raw = values.encode("ascii") + b"\0"
        return tag, ftype, len(raw), raw
    if isinstance(values, (int, float)):
        values = [values]
    values = list(values)
    if ftype == _BYTE:
        raw = bytes(values)
    elif ftype == _SHORT:
        raw = struct.pack(f"<{len(values)}H", *values)
    elif ftype == _LONG:
        raw = struct.pack(f"<{len(values)}I", *values)
    elif ftype == _RATIONAL:
        raw = b"".join(struct.pack("<II", *_rational(v)) for v in values)
    else:
        raw = b"".join(struct.pack("<ii", *_rational(v, True)) for v in values)
    return tag, ftype, len(values), raw


def _ifd(entries: list[tuple[int, int, int, bytes]], start: int) -> bytes:
    entries = sorted(entries)
    data_start = start + 2 + 12 * len(entries) + 4
    table = bytearray(struct.pack("<H", len(entries)))
    data = bytearray()
    for tag, ftype, count, raw in entries:
        if len(raw) <= 4:
            field = raw.ljust(4, b"\0")
        else:
            field = struct.pack("<I", data_start + len(data))
            data += raw
            if len(data) % 2:
                data.append(0)
        table += struct.pack("<HHI", tag, ftype, count) + field
    table += struct.pack("<I", 0)
    return bytes(table + data)


def _unpack(data: bytes, info: StreamInfo, fmt: BayerFormat) -> tuple[np.ndarray, int]:
    if fmt.compressed:
        image = uncompress(data, info)
        return image.ravel(), image.shape[1]
    if fmt.packed:
        image = unpack_10bit(data, info) if fmt.bits == 10 else unpack_12bit(data, info)
    else:
        image = unpack_16bit(data, info)
    padded = (info.width + 7) & ~7
    flat = np.zeros(padded * info.height, dtype=np.uint16)
    flat[: info.width * info.height] = image.ravel()
    return flat, info.width


def _thumbnail(buf: np.ndarray, stride: int, info: StreamInfo, bits: int) -> bytes:
    tw, th = info.width >> 4, info.height >> 4
    if not tw or not th:
        return b""
    ys, xs = np.meshgrid(np.arange(th), np.arange(tw), indexing="ij")
    off = ((ys * stride + xs) << 4).astype(np.int64)
    b = buf.astype(np.uint64)
    grey = b[off] + b[off + 1] + b[off + stride] + b[off + stride + 1]
    grey = (grey << 14) >> bits
    grey = np.sqrt(grey.astype(np.float64)).astype(np.uint32) & 0xFF
    return np.repeat(grey.astype(np.uint8)[:, :, None], 3, axis=2).tobytes()


def dng_save(
    data: bytes,
    info: StreamInfo,
    metadata: Mapping[str, Any],
    filename: str,
    cam_model: str,
    options: StillOptions,
) -> None:
    """Write a raw Bayer buffer as a DNG file with a small greyscale thumbnail."""
    fmt = bayer_format_for(info.pixel_format)
    logger.info("Bayer format is %s", fmt.name)
    buf, stride = _unpack(data, info, fmt)

    scale = (1 << fmt.bits) / 65536.0
    black_levels = [4096 * scale] * 4
    levels = metadata.get("SensorBlackLevels")
    if levels is not None:
        # levels are R, Gr, Gb, B; reorder for the actual Bayer order
        for i in range(4):
            j = fmt.order[i]
            j = 0 if j == 0 else (3 if j == 2 else 1 + bool(fmt.order[i ^ 1]))
            black_levels[j] = levels[i] * scale
    else:
        logger.warning("no black level found, using default")

    exp_time = metadata.get("ExposureTime")
    if exp_time is None:
        exp_time = 10000
        logger.warning("default to exposure time of %dus", exp_time)
    exp_time = exp_time / 1e6

    gain = metadata.get("AnalogueGain")
    if gain is not None:
        iso = int(gain * 100.0) & 0xFFFF
    else:
        iso = 100
        logger.warning("default to ISO value of %d", iso)

    neutral = [1.0, 1.0, 1.0]
    wb_gains = Matrix.diagonal(1, 1, 1)
    gains = metadata.get("ColourGains")
    if gains is not None:
        neutral[0] = 1.0 / gains[0]
        neutral[2] = 1.0 / gains[1]
        wb_gains = Matrix.diagonal(gains[0], 1, gains[1])

    ccm = Matrix(1.90255, -0.77478, -0.12777, -0.31338, 1.88197, -0.56858, -0.06001, -0.61785, 1.67786)
    ccm_values = metadata.get("ColourCorrectionMatrix")
    if ccm_values is not None:
        ccm = Matrix(*ccm_values)
    else:
        logger.warning("no CCM metadata found")

    rgb2xyz = Matrix(0.4124564, 0.3575761, 0.1804375, 0.2126729, 0.7151522, 0.0721750,
                     0.0193339, 0.1191920, 0.9503041)
    cam_xyz = (rgb2xyz * ccm * wb_gains).inverse()

    thumb = _thumbnail(buf, stride, info, fmt.bits)
    raw = b"".join(
        buf[stride * y : stride * y + info.width].astype("<u2").tobytes() for y in range(info.height)
    )

    thumb_off = 8
    raw_off = thumb_off + len(thumb) + (len(thumb) % 2)
    exif_off = raw_off + len(raw)

    exif_entries = [
        _entry(33434, _RATIONAL, exp_time),
        _entry(34855, _SHORT, iso),
        _entry(36867, _ASCII, time.strftime("%Y:%m:%d %H:%M:%S", time.localtime())),
    ]
    lens = metadata.get("LensPosition")
    if lens is not None:
        _entry_dist = 1.0 / lens if lens > 0.0 else math.inf
        exif_entries.append(_entry(37382, _RATIONAL, _entry_dist))
    exif_ifd = _ifd(exif_entries, exif_off)

    raw_ifd_off = exif_off + len(exif_ifd)
    raw_ifd = _ifd(
        [
            _entry(254, _LONG, 0),
            _entry(256, _LONG, info.width),
            _entry(257, _LONG, info.height),
            _entry(258, _SHORT, 16),
            _entry(259, _SHORT, 1),
            _entry(262, _SHORT, 32803),
            _entry(273, _LONG, raw_off),
            _entry(277, _SHORT, 1),
            _entry(278, _LONG, max(info.height, 1)),
            _entry(279, _LONG, len(raw)),
            _entry(284, _SHORT, 1),
            _entry(33421, _SHORT, [2, 2]),
            _entry(33422, _BYTE, fmt.order),
            _entry(50713, _SHORT, [2, 2]),
            _entry(50714, _RATIONAL, black_levels),
            _entry(50717, _LONG, (1 << fmt.bits) - 1),
        ],
        raw_ifd_off,
    )

    ifd0_off = raw_ifd_off + len(raw_ifd)
    ifd0 = _ifd(
        [
            _entry(254, _LONG, 1),
            _entry(256, _LONG, info.width >> 4),
            _entry(257, _LONG, info.height >> 4),
            _entry(258, _SHORT, [8, 8, 8]),
            _entry(259, _SHORT, 1),
            _entry(262, _SHORT, 2),
            _entry(271, _ASCII, MAKE_STRING),
            _entry(272, _ASCII, cam_model),
            _entry(273, _LONG, thumb_off),
            _entry(274, _SHORT, 1),
            _entry(277, _SHORT, 3),
            _entry(278, _LONG, max(info.height >> 4, 1)),
            _entry(279, _LONG, len(thumb)),
            _entry(284, _SHORT, 1),
            _entry(305, _ASCII, "rpicam-still"),
            _entry(330, _LONG, raw_ifd_off),
            _entry(34665, _LONG, exif_off),
            _entry(50706, _BYTE, [1, 1, 0, 0]),
            _entry(50707, _BYTE, [1, 0, 0, 0]),
            _entry(50708, _ASCII, f"{MAKE_STRING} {cam_model}"),
            _entry(50721, _SRATIONAL, cam_xyz.m),
            _entry(50728, _RATIONAL, neutral),
            _entry(50778, _SHORT, 21),
        ],
        ifd0_off,
    )

    header = b"II" + struct.pack("<HI", 42, ifd0_off)
    pad = b"\0" * (len(thumb) % 2)
    try:
        with open(filename, "wb") as fp:
            fp.write(header + thumb + pad + raw + exif_ifd + raw_ifd + ifd0)
    except OSError as exc:
        raise OSError(f"could not open file {filename}") from exc
    logger.debug("Black levels %s, exposure time %sus, ISO %d", black_levels, exp_time * 1e6, iso)