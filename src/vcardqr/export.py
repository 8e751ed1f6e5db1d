# RU: Экспорт артефактов: безопасные имена файлов, MIME-типы, PNG/SVG/VCF-байты, запись на диск.
# EN: Artifact export: filesystem-safe names, MIME types, PNG/SVG/VCF payloads, writing to disk.

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from PIL import Image

from vcardqr.barcodegen.qr_bridge import raster_to_png, vector_to_bytes
from vcardqr.model.enums import ExportFormat

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_BASENAME",
    "ExportError",
    "ExportFile",
    "safe_filename",
    "artifact_filename",
    "export_png",
    "export_svg",
    "export_vcf",
]

DEFAULT_BASENAME: str = "vcard"
_WHITESPACE_RE = re.compile(r"\s+")


class ExportError(Exception):
    """Ошибка записи экспортируемого файла."""


def safe_filename(name: str, fallback: str = DEFAULT_BASENAME) -> str:
    """Trim, collapse whitespace runs to '-', lowercase; ``fallback`` when nothing is left.

    Example:
        >>> safe_filename("  Jane   Van Doe ")
        'jane-van-doe'
    """
    safe = _WHITESPACE_RE.sub("-", (name or "").strip()).lower()
    return safe or fallback


def artifact_filename(display_name: str, fmt: Union[ExportFormat, str]) -> str:
    """File name for an exported artifact: '<name>-qr.png', '<name>-qr.svg' or '<name>.vcf'."""
    fmt = ExportFormat.parse(fmt)
    base = safe_filename(display_name)
    if fmt is ExportFormat.VCF:
        return f"{base}{fmt.extension}"
    return f"{base}-qr{fmt.extension}"


@dataclass(frozen=True)
class ExportFile:
    filename: str
    mime_type: str
    content: bytes

    def save(self, directory: Union[str, Path]) -> Path:
        """Write the content under ``directory`` (created if missing).

        Raises:
            ExportError: On any filesystem error.
        """
        target_dir = Path(directory)
        path = target_dir / self.filename
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(self.content)
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)
            raise ExportError(f"Failed to write {path}: {e}") from e
        logger.info("Exported %s (%s, %d bytes)", path, self.mime_type, len(self.content))
        return path


def export_png(display_name: str, image: Image.Image) -> ExportFile:
    return ExportFile(
        artifact_filename(display_name, ExportFormat.PNG),
        ExportFormat.PNG.mime_type,
        raster_to_png(image),
    )


def export_svg(display_name: str, svg: str) -> ExportFile:
    return ExportFile(
        artifact_filename(display_name, ExportFormat.SVG),
        ExportFormat.SVG.mime_type,
        vector_to_bytes(svg),
    )


def export_vcf(display_name: str, text: str) -> ExportFile:
    """The vCard text itself, CRLF line endings kept, with the trailing CRLF .vcf files end with."""
    payload = text if text.endswith("\r\n") else text + "\r\n"
    return ExportFile(
        artifact_filename(display_name, ExportFormat.VCF),
        ExportFormat.VCF.mime_type,
        payload.encode("utf-8"),
    )
