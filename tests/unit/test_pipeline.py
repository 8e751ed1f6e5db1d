"""
Тесты конвейера build -> encode: публикация, устаревшие результаты, ошибки ёмкости.
"""

import asyncio

import pytest

from vcardqr import pipeline as pipeline_module
from vcardqr.barcodegen.qr_bridge import EncodeOptions, EncodingFailure
from vcardqr.model.contact import ContactRecord, PersonalInfo, PhoneEntry
from vcardqr.model.enums import ExportFormat
from vcardqr.pipeline import EncodedArtifact, RenderPipeline, RenderResult, render_latest
from vcardqr.vcard.builder import MINIMAL_VCARD, build_vcard


def _record(given: str = "Jane") -> ContactRecord:
    return ContactRecord(
        personal=PersonalInfo(given_name=given, family_name="Doe"),
        phones=[PhoneEntry("+41791234567")],
        email="jane@acme.com",
    )


def _oversized() -> ContactRecord:
    return ContactRecord(address="a" * 2000)


@pytest.fixture
def options() -> EncodeOptions:
    return EncodeOptions(size=128)


@pytest.fixture
def strict() -> EncodeOptions:
    return EncodeOptions(error_correction="H", size=128)  # type: ignore[arg-type]


class TestRenderSync:
    def test_success_publishes_artifact(self, options: EncodeOptions) -> None:
        pipeline = RenderPipeline()
        result = pipeline.render_sync(_record(), options)

        assert result.ok and not result.empty
        assert result.text == build_vcard(_record())
        assert result.artifact is pipeline.current
        assert result.artifact is not None
        assert result.artifact.svg is not None and result.artifact.svg.startswith("<svg")
        assert result.artifact.image is not None and result.artifact.image.size == (128, 128)
        assert result.artifact.png_bytes().startswith(b"\x89PNG")
        assert result.artifact.svg_bytes().startswith(b"<svg")

    def test_generations_increase(self, options: EncodeOptions) -> None:
        pipeline = RenderPipeline()
        first = pipeline.render_sync(_record(), options)
        second = pipeline.render_sync(_record("Joan"), options)
        assert (first.generation, second.generation) == (1, 2)
        assert pipeline.latest_generation == 2
        assert pipeline.current is second.artifact

    def test_clear(self, options: EncodeOptions) -> None:
        pipeline = RenderPipeline()
        pipeline.render_sync(_record(), options)
        pipeline.clear()
        assert pipeline.current is None
        assert pipeline.latest_generation == 1

    def test_empty_record_clears_current(self, options: EncodeOptions) -> None:
        pipeline = RenderPipeline()
        pipeline.render_sync(_record(), options)

        result = pipeline.render_sync(ContactRecord(), options)

        assert result.empty
        assert result.text == MINIMAL_VCARD
        assert pipeline.current is None

    def test_failure_clears_current(self, options: EncodeOptions, strict: EncodeOptions) -> None:
        pipeline = RenderPipeline()
        pipeline.render_sync(_record(), options)
        assert pipeline.current is not None

        result = pipeline.render_sync(_oversized(), strict)

        assert not result.ok
        assert isinstance(result.error, EncodingFailure)
        assert result.artifact is None
        assert pipeline.current is None

    def test_size_below_symbol_is_a_failure(self, options: EncodeOptions) -> None:
        pipeline = RenderPipeline()
        pipeline.render_sync(_record(), options)

        result = pipeline.render_sync(_record(), EncodeOptions(size=10))

        assert isinstance(result.error, EncodingFailure)
        assert "smaller than the symbol" in str(result.error)
        assert pipeline.current is None

    def test_single_format(self, options: EncodeOptions) -> None:
        result = RenderPipeline().render_sync(_record(), options, formats=[ExportFormat.PNG])
        assert result.artifact is not None
        assert result.artifact.svg is None
        assert result.artifact.image is not None
        with pytest.raises(ValueError):
            result.artifact.svg_bytes()

    def test_vcf_is_not_an_image_format(self) -> None:
        with pytest.raises(ValueError):
            RenderPipeline(formats=[ExportFormat.VCF])
        with pytest.raises(ValueError):
            RenderPipeline().render_sync(_record(), EncodeOptions(), formats=["vcf"])  # type: ignore[list-item]


class TestWarnings:
    def test_long_payload_warns(self, options: EncodeOptions) -> None:
        pipeline = RenderPipeline(warn_threshold=20)
        result = pipeline.render_sync(_record(), options)
        assert result.ok
        assert len(result.warnings) == 1
        assert "hard to scan" in result.warnings[0]

    def test_short_payload_does_not_warn(self, options: EncodeOptions) -> None:
        assert RenderPipeline().render_sync(_record(), options).warnings == []

    def test_from_config(self) -> None:
        assert RenderPipeline.from_config({"warn_threshold": 42}).warn_threshold == 42
        assert RenderPipeline.from_config({}).warn_threshold == pipeline_module.DEFAULT_WARN_THRESHOLD


class TestAsyncRender:
    def test_render_publishes(self, options: EncodeOptions) -> None:
        pipeline = RenderPipeline()
        result = asyncio.run(pipeline.render(_record(), options))
        assert result.ok
        assert pipeline.current is result.artifact

    def test_render_failure_is_a_result(self, strict: EncodeOptions) -> None:
        pipeline = RenderPipeline()
        result = asyncio.run(pipeline.render(_oversized(), strict))
        assert isinstance(result.error, EncodingFailure)
        assert pipeline.current is None

    def test_only_latest_of_rapid_edits_publishes(self, options: EncodeOptions) -> None:
        pipeline = RenderPipeline()
        records = [_record("Ja"), _record("Jan"), _record("Jane")]

        results = asyncio.run(render_latest(pipeline, records, options))

        assert [r.stale for r in results] == [True, True, False]
        assert all(r.artifact is None for r in results[:2])
        assert pipeline.current is results[-1].artifact
        assert pipeline.current is not None
        assert pipeline.current.generation == 3
        assert pipeline.current.text == build_vcard(records[-1])

    def test_result_superseded_during_encode_is_discarded(
        self, options: EncodeOptions, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        pipeline = RenderPipeline(formats=[ExportFormat.SVG])

        async def superseded(text: str, opts: EncodeOptions) -> str:
            # пока кодировщик работает, поступил новый ввод
            pipeline.next_token()
            return "<svg/>"

        monkeypatch.setattr(pipeline_module, "encode_vector_async", superseded)

        result = asyncio.run(pipeline.render(_record(), options))

        assert result.stale
        assert not result.ok
        assert pipeline.current is None

    def test_stale_failure_keeps_published_artifact(
        self, options: EncodeOptions, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        pipeline = RenderPipeline(formats=[ExportFormat.SVG])
        published = pipeline.render_sync(_record(), options).artifact

        async def superseded_failure(text: str, opts: EncodeOptions) -> str:
            pipeline.next_token()
            raise EncodingFailure("too large")

        monkeypatch.setattr(pipeline_module, "encode_vector_async", superseded_failure)

        result = asyncio.run(pipeline.render(_record("Joan"), options))

        assert result.stale
        assert result.error is None
        assert pipeline.current is published


def test_result_flags() -> None:
    assert RenderResult(1, MINIMAL_VCARD).empty
    assert not RenderResult(1, "x", stale=True).ok
    artifact = EncodedArtifact("x", EncodeOptions(), 1)
    with pytest.raises(ValueError):
        artifact.png_bytes()
