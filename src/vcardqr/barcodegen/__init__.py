"""
barcodegen

Мост между текстом vCard и кодировщиком QR (qrcode + Pillow).

Public API:
    - EncodeOptions: уровень коррекции, тихая зона, размер, цвет (frozen dataclass)
    - EncodingFailure: превышение ёмкости символа или размер меньше символа
    - encode_vector: SVG-разметка (qrcode SvgPathImage)
    - encode_raster: RGB-изображение PIL фиксированного размера
    - raster_to_png: PNG-байты

Примеры:
    >>> from vcardqr.barcodegen import EncodeOptions, encode_raster
    >>> img = encode_raster("BEGIN:VCARD\\r\\nVERSION:3.0\\r\\nEND:VCARD", EncodeOptions(size=256))
    >>> img.size
    (256, 256)

Зависимости:
    Pillow, qrcode
"""

from vcardqr.barcodegen.qr_bridge import (
    BACKGROUND,
    DOWNLOAD_SIZE,
    PREVIEW_SIZE,
    EncodeOptions,
    EncodingFailure,
    encode_raster,
    encode_raster_async,
    encode_vector,
    encode_vector_async,
    make_matrix,
    raster_to_png,
    vector_to_bytes,
)

__all__ = [
    "BACKGROUND",
    "DOWNLOAD_SIZE",
    "PREVIEW_SIZE",
    "EncodeOptions",
    "EncodingFailure",
    "encode_raster",
    "encode_raster_async",
    "encode_vector",
    "encode_vector_async",
    "make_matrix",
    "raster_to_png",
    "vector_to_bytes",
]
