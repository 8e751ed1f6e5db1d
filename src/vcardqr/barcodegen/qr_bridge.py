"""
RU: Мост к кодировщику QR: векторный SVG и растровое изображение из одного и того же текста и одних и тех же опций
EN: QR encoding bridge: SVG markup and a Pillow raster from the same text and the same options

Provides:
- EncodeOptions: error-correction tier, quiet zone, target size, foreground colour
- make_matrix: module matrix (quiet zone included) from the qrcode encoder
- encode_vector: resolution-independent SVG markup (qrcode SvgPathImage)
- encode_raster: two-colour RGB image of exactly size x size pixels
- raster_to_png / vector_to_bytes: export payloads
- async wrappers running the encoder in the default executor

Both encoders go through the same QRCode instance setup, so for identical
inputs they carry the identical module pattern. Capacity limits are the
encoder's: its rejection is re-raised as EncodingFailure. A target size
below one pixel per module is rejected the same way, so a text either
encodes to both forms or to neither.

Requirements: qrcode, Pillow
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Dict, Final, List, Optional, Union

import qrcode
import qrcode.image.pil
import qrcode.image.svg
from PIL import Image, ImageColor
from qrcode.exceptions import DataOverflowError

from vcardqr.model.enums import DEFAULT_ERROR_CORRECTION, ErrorCorrectionLevel

logger = logging.getLogger(__name__)

__all__ = [
    "BACKGROUND",
    "DEFAULT_FOREGROUND",
    "DEFAULT_MARGIN",
    "PREVIEW_SIZE",
    "DOWNLOAD_SIZE",
    "MAX_IMAGE_SIZE",
    "EncodeOptions",
    "EncodingFailure",
    "VCardSvgImage",
    "make_matrix",
    "encode_vector",
    "encode_raster",
    "raster_to_png",
    "vector_to_bytes",
    "encode_vector_async",
    "encode_raster_async",
    "coerce_options",
]

# Светлый фон фиксирован: сканеры полагаются на контраст
BACKGROUND: Final[str] = "#ffffff"
DEFAULT_FOREGROUND: Final[str] = "#000000"
DEFAULT_MARGIN: Final[int] = 2
PREVIEW_SIZE: Final[int] = 320
DOWNLOAD_SIZE: Final[int] = 1024
MAX_IMAGE_SIZE: Final[int] = 10000

# 10 px на модуль: в единицах SvgImage (box_size 10 = 1 мм) это ровно
# одна единица viewBox на модуль
_BOX_SIZE: Final[int] = 10


class EncodingFailure(Exception):
    """Payload rejected by the QR encoder (too large for the tier, or empty),
    or a target size too small to give every module a pixel.

    Recoverable: retry with a lower error-correction tier, a shorter text or a
    larger size.
    """

    def __init__(
        self,
        message: str,
        level: Optional[ErrorCorrectionLevel] = None,
        payload_length: int = 0,
    ) -> None:
        super().__init__(message)
        self.level = level
        self.payload_length = payload_length


def _hex_color(value: str) -> str:
    rgb = ImageColor.getrgb(value)
    return "#{:02x}{:02x}{:02x}".format(*rgb[:3])


@dataclass(frozen=True)
class EncodeOptions:
    """Options shared by encode_vector and encode_raster.

    Args:
        error_correction: L/M/Q/H tier (member or string).
        margin: Quiet zone width in modules.
        size: Edge of the square raster in pixels; also the SVG width/height.
        foreground: Module colour, any Pillow colour string; normalised to #rrggbb.

    Raises:
        ValueError: On an unknown tier, negative margin, size out of range,
            or an unparseable colour.
    """

    error_correction: ErrorCorrectionLevel = DEFAULT_ERROR_CORRECTION
    margin: int = DEFAULT_MARGIN
    size: int = PREVIEW_SIZE
    foreground: str = DEFAULT_FOREGROUND

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "error_correction", ErrorCorrectionLevel.parse(self.error_correction)
        )
        if not isinstance(self.margin, int) or isinstance(self.margin, bool) or self.margin < 0:
            raise ValueError(f"Margin must be a non-negative integer, got {self.margin!r}")
        if not isinstance(self.size, int) or isinstance(self.size, bool) or self.size <= 0:
            raise ValueError(f"Size must be positive, got {self.size!r}")
        if self.size > MAX_IMAGE_SIZE:
            raise ValueError(f"Size {self.size} exceeds maximum {MAX_IMAGE_SIZE}px")
        try:
            color = _hex_color(self.foreground)
        except (ValueError, TypeError, AttributeError) as e:
            logger.error("Invalid foreground color: %r", self.foreground)
            raise ValueError(f"Invalid foreground color: {self.foreground!r}") from e
        object.__setattr__(self, "foreground", color)

    @property
    def background(self) -> str:
        return BACKGROUND

    @classmethod
    def from_config(
        cls, config: Dict[str, Any], size_key: str = "preview_size"
    ) -> "EncodeOptions":
        """Build options from a load_config() dict; size comes from ``size_key``."""
        return cls(
            error_correction=config.get("error_correction", DEFAULT_ERROR_CORRECTION),
            margin=int(config.get("margin", DEFAULT_MARGIN)),
            size=int(config.get(size_key, PREVIEW_SIZE)),
            foreground=config.get("foreground", DEFAULT_FOREGROUND),
        )


def _make_qr(text: str, options: EncodeOptions) -> qrcode.QRCode:
    if not isinstance(text, str):
        raise TypeError(f"text must be str, got {type(text)!r}")
    level = options.error_correction
    payload_length = len(text.encode("utf-8"))
    if not text:
        logger.error("Refusing to encode empty payload")
        raise EncodingFailure("Payload must be a non-empty string", level, 0)

    qr = qrcode.QRCode(
        version=None,
        error_correction=level.qrcode_constant,
        box_size=_BOX_SIZE,
        border=options.margin,
    )
    try:
        qr.add_data(text)
        qr.make(fit=True)
    except DataOverflowError as e:
        logger.warning(
            "Payload of %d bytes exceeds QR capacity at level %s",
            payload_length,
            level.value,
        )
        raise EncodingFailure(
            f"Payload of {payload_length} bytes exceeds QR capacity "
            f"at error correction level {level.value}",
            level,
            payload_length,
        ) from e
    except ValueError as e:
        # qrcode сообщает о недопустимой версии через ValueError
        logger.warning("QR encoder rejected payload: %s", e)
        raise EncodingFailure(
            f"QR encoder rejected payload: {e}", level, payload_length
        ) from e
    logger.debug(
        "QR symbol version %s for %d bytes at level %s",
        qr.version,
        payload_length,
        level.value,
    )
    return qr


def make_matrix(text: str, options: EncodeOptions) -> List[List[bool]]:
    """Module matrix (True = dark), quiet zone of ``options.margin`` included.

    Raises:
        EncodingFailure: Empty text or text over capacity for the tier.
    """
    qr = _make_qr(text, options)
    return [list(row) for row in qr.get_matrix()]


def _symbol_width(qr: qrcode.QRCode, text: str, options: EncodeOptions) -> int:
    """Symbol edge in modules, quiet zone included; rejects a smaller target size."""
    n = qr.modules_count + 2 * options.margin
    if options.size < n:
        logger.warning(
            "Target size %dpx is smaller than the symbol (%d modules)",
            options.size,
            n,
        )
        raise EncodingFailure(
            f"Target size {options.size}px is smaller than the symbol ({n} modules); "
            f"use a size of at least {n}px",
            options.error_correction,
            len(text.encode("utf-8")),
        )
    return n


class VCardSvgImage(qrcode.image.svg.SvgPathImage):
    """Single-path SVG with the fixed light background rectangle."""

    background = BACKGROUND


def encode_vector(text: str, options: EncodeOptions) -> str:
    """Encode text as SVG markup.

    Rendered by qrcode's path image factory: the viewBox is in module units,
    width and height are ``options.size``, dark modules are one ``<path>``
    filled with ``options.foreground``.

    Raises:
        EncodingFailure: Empty text, text over capacity for the tier, or a
            size below one pixel per module.

    Example:
        >>> svg = encode_vector("BEGIN:VCARD\\r\\nVERSION:3.0\\r\\nEND:VCARD", EncodeOptions())
        >>> svg.startswith("<svg")
        True
    """
    qr = _make_qr(text, options)
    n = _symbol_width(qr, text, options)
    qr_svg: Any = qr.make_image(image_factory=VCardSvgImage)
    root = qr_svg.get_image()
    root.set("width", str(options.size))
    root.set("height", str(options.size))
    root.set("shape-rendering", "crispEdges")
    if qr_svg.path is not None:
        qr_svg.path.set("fill", options.foreground)
    svg: str = qr_svg.to_string(encoding="unicode") + "\n"
    logger.info(
        "QR SVG generated: %d modules, level %s, %d chars payload",
        n,
        options.error_correction.value,
        len(text),
    )
    return svg


def encode_raster(text: str, options: EncodeOptions) -> Image.Image:
    """Encode text as an RGB image of exactly ``options.size`` square pixels.

    The symbol is drawn by qrcode's Pillow factory and scaled with
    nearest-neighbour resampling, so every pixel is either the foreground
    colour or BACKGROUND and every module keeps at least one pixel.

    Raises:
        EncodingFailure: Empty text, text over capacity for the tier, or a
            size below one pixel per module.
    """
    qr = _make_qr(text, options)
    _symbol_width(qr, text, options)
    qr_img: Any = qr.make_image(
        fill_color=options.foreground,
        back_color=BACKGROUND,
        image_factory=qrcode.image.pil.PilImage,
    )
    if hasattr(qr_img, "get_image"):
        qr_img = qr_img.get_image()
    if not isinstance(qr_img, Image.Image):
        logger.error("QR code did not produce a PIL.Image")
        raise EncodingFailure(
            "QR code rendering did not produce a valid image",
            options.error_correction,
            len(text.encode("utf-8")),
        )
    img = qr_img.convert("RGB")
    img = img.resize((options.size, options.size), resample=Image.Resampling.NEAREST)
    logger.info(
        "QR raster generated: %dx%d px, level %s, %d chars payload",
        img.width,
        img.height,
        options.error_correction.value,
        len(text),
    )
    return img


def raster_to_png(image: Image.Image) -> bytes:
    """PNG bytes of a raster produced by encode_raster."""
    buf = BytesIO()
    image.save(buf, format="PNG")
    logger.debug("PNG rendered (%d bytes)", buf.getbuffer().nbytes)
    return buf.getvalue()


def vector_to_bytes(svg: str) -> bytes:
    return svg.encode("utf-8")


async def encode_vector_async(text: str, options: EncodeOptions) -> str:
    """encode_vector in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: encode_vector(text, options))


async def encode_raster_async(text: str, options: EncodeOptions) -> Image.Image:
    """encode_raster in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: encode_raster(text, options))


def coerce_options(options: Union[EncodeOptions, Dict[str, Any], None]) -> EncodeOptions:
    """Accept EncodeOptions, a keyword dict, or None (defaults)."""
    if options is None:
        return EncodeOptions()
    if isinstance(options, EncodeOptions):
        return options
    return EncodeOptions(**options)
