# RU: Конвейер пересчёта build -> encode: счётчик поколений отбрасывает устаревшие результаты, ошибки возвращаются типизированным результатом.
# EN: Build -> encode recomputation cycle. A generation counter discards stale results; failures come back as typed results.

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from PIL import Image

from vcardqr.barcodegen.qr_bridge import (
    EncodeOptions,
    EncodingFailure,
    encode_raster,
    encode_raster_async,
    encode_vector,
    encode_vector_async,
    raster_to_png,
    vector_to_bytes,
)
from vcardqr.model.contact import ContactRecord
from vcardqr.model.enums import ExportFormat
from vcardqr.vcard.builder import build_vcard

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_WARN_THRESHOLD",
    "RenderToken",
    "EncodedArtifact",
    "RenderResult",
    "RenderPipeline",
    "render_latest",
]

DEFAULT_WARN_THRESHOLD: int = 900
_DEFAULT_FORMATS: Tuple[ExportFormat, ...] = (ExportFormat.SVG, ExportFormat.PNG)


@dataclass(frozen=True)
class RenderToken:
    generation: int


@dataclass
class EncodedArtifact:
    """Vector and/or raster encodings of one vCard text under one set of options."""

    text: str
    options: EncodeOptions
    generation: int
    svg: Optional[str] = None
    image: Optional[Image.Image] = None

    def svg_bytes(self) -> bytes:
        if self.svg is None:
            raise ValueError("Artifact has no vector encoding")
        return vector_to_bytes(self.svg)

    def png_bytes(self) -> bytes:
        if self.image is None:
            raise ValueError("Artifact has no raster encoding")
        return raster_to_png(self.image)


@dataclass
class RenderResult:
    generation: int
    text: str
    artifact: Optional[EncodedArtifact] = None
    error: Optional[EncodingFailure] = None
    stale: bool = False
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None and not self.stale

    @property
    def empty(self) -> bool:
        """True for an empty contact: nothing was encoded and nothing failed."""
        return self.ok and self.artifact is None


class RenderPipeline:
    """
    Owns the latest-issued generation and the currently published artifact.

    Every render call takes a new token. When its encode completes, the result
    is published only if no newer token has been issued since; otherwise it is
    discarded and returned with ``stale=True``. A failed encode of the latest
    token clears the published artifact, so an older image never stays visible
    next to a newer failure.

    Single event loop, no locks: the counter and the published artifact are
    only touched from the loop thread; the executor threads only run the pure
    encoders.

    Examples:
        pipeline = RenderPipeline()
        result = asyncio.run(pipeline.render(record, EncodeOptions(size=512)))
        if result.ok and result.artifact:
            png = result.artifact.png_bytes()
    """

    def __init__(
        self,
        warn_threshold: int = DEFAULT_WARN_THRESHOLD,
        formats: Iterable[ExportFormat] = _DEFAULT_FORMATS,
    ) -> None:
        self.warn_threshold = warn_threshold
        self.formats = self._check_formats(formats)
        self._generation = 0
        self._current: Optional[EncodedArtifact] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "RenderPipeline":
        return cls(warn_threshold=int(config.get("warn_threshold", DEFAULT_WARN_THRESHOLD)))

    @staticmethod
    def _check_formats(formats: Iterable[Any]) -> Tuple[ExportFormat, ...]:
        result = tuple(ExportFormat.parse(f) for f in formats)
        for fmt in result:
            if fmt not in _DEFAULT_FORMATS:
                raise ValueError(f"Format {fmt.value!r} is not an image encoding")
        return result

    @property
    def latest_generation(self) -> int:
        return self._generation

    @property
    def current(self) -> Optional[EncodedArtifact]:
        return self._current

    def clear(self) -> None:
        self._current = None

    def next_token(self) -> RenderToken:
        self._generation += 1
        return RenderToken(self._generation)

    def is_current(self, token: RenderToken) -> bool:
        return token.generation == self._generation

    def capacity_warnings(self, text: str) -> List[str]:
        """Soft guidance only: long payloads give dense, harder-to-scan symbols."""
        if len(text) > self.warn_threshold:
            msg = (
                f"vCard is {len(text)} characters (over {self.warn_threshold}); "
                f"the QR code will be dense and may be hard to scan"
            )
            logger.warning(msg)
            return [msg]
        return []

    def _begin(self, record: ContactRecord) -> Tuple[RenderToken, str, List[str]]:
        token = self.next_token()
        text = build_vcard(record)
        return token, text, self.capacity_warnings(text)

    def _finish(
        self,
        token: RenderToken,
        text: str,
        warnings: List[str],
        artifact: Optional[EncodedArtifact] = None,
        error: Optional[EncodingFailure] = None,
    ) -> RenderResult:
        if not self.is_current(token):
            logger.debug(
                "Discarding stale render: generation %d, latest %d",
                token.generation,
                self._generation,
            )
            return RenderResult(token.generation, text, stale=True, warnings=warnings)
        if error is not None:
            self._current = None
            return RenderResult(token.generation, text, error=error, warnings=warnings)
        self._current = artifact
        return RenderResult(token.generation, text, artifact=artifact, warnings=warnings)

    async def render(
        self,
        record: ContactRecord,
        options: EncodeOptions,
        formats: Optional[Iterable[ExportFormat]] = None,
    ) -> RenderResult:
        """Build the vCard and encode it without blocking the event loop.

        Returns:
            RenderResult; ``stale`` when a newer render was requested while this
            one was encoding, ``error`` when the encoder rejected the payload.
        """
        wanted = self._check_formats(formats) if formats is not None else self.formats
        token, text, warnings = self._begin(record)
        if record.is_empty():
            return self._finish(token, text, warnings)

        try:
            svg: Optional[str] = None
            image: Optional[Image.Image] = None
            if ExportFormat.SVG in wanted:
                svg = await encode_vector_async(text, options)
            if ExportFormat.PNG in wanted:
                image = await encode_raster_async(text, options)
        except EncodingFailure as e:
            return self._finish(token, text, warnings, error=e)

        artifact = EncodedArtifact(text, options, token.generation, svg=svg, image=image)
        return self._finish(token, text, warnings, artifact=artifact)

    def render_sync(
        self,
        record: ContactRecord,
        options: EncodeOptions,
        formats: Optional[Iterable[ExportFormat]] = None,
    ) -> RenderResult:
        """Same cycle as render(), encoding in the calling thread."""
        wanted = self._check_formats(formats) if formats is not None else self.formats
        token, text, warnings = self._begin(record)
        if record.is_empty():
            return self._finish(token, text, warnings)

        try:
            svg = encode_vector(text, options) if ExportFormat.SVG in wanted else None
            image = encode_raster(text, options) if ExportFormat.PNG in wanted else None
        except EncodingFailure as e:
            return self._finish(token, text, warnings, error=e)

        artifact = EncodedArtifact(text, options, token.generation, svg=svg, image=image)
        return self._finish(token, text, warnings, artifact=artifact)


async def render_latest(
    pipeline: RenderPipeline,
    records: Iterable[ContactRecord],
    options: EncodeOptions,
) -> List[RenderResult]:
    """Start one render per record concurrently, as rapid edits would; only the last may publish."""
    tasks = [asyncio.ensure_future(pipeline.render(r, options)) for r in records]
    return list(await asyncio.gather(*tasks))
