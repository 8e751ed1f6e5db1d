"""
cli.py

Command-line front end: build a vCard from flags and write the QR code as
SVG and/or PNG (optionally the .vcf too). Everything runs offline.

Usage examples:
  vcardqr --given Jane --family Doe --phone CELL:+41791234567 --email jane@acme.com
  vcardqr --given Jane --social github:github.com/jane --level Q --size 1024 --formats png,svg,vcf
  vcardqr --given Jane --print   # vCard text to stdout only

Exit codes: 0 ok, 2 bad arguments, 3 payload too large for the chosen level,
4 file write failure.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from vcardqr import get_logger, load_config
from vcardqr.barcodegen.qr_bridge import EncodeOptions
from vcardqr.export import ExportError, ExportFile, export_png, export_svg, export_vcf
from vcardqr.model.contact import ContactRecord, PersonalInfo, PhoneEntry, SocialEntry
from vcardqr.model.enums import ErrorCorrectionLevel, ExportFormat, PhoneKind, SocialKind
from vcardqr.pipeline import RenderPipeline
from vcardqr.vcard.builder import build_vcard

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_ENCODING = 3
EXIT_EXPORT = 4


def _split_tagged(value: str, default_kind: Optional[str] = None) -> Tuple[str, str]:
    kind, sep, rest = value.partition(":")
    if not sep:
        if default_kind is None:
            raise argparse.ArgumentTypeError(f"expected KIND:VALUE, got {value!r}")
        return default_kind, value
    return kind, rest


def phone_arg(value: str) -> PhoneEntry:
    kind, number = _split_tagged(value, default_kind=PhoneKind.CELL.value)
    try:
        return PhoneEntry(number=number, kind=kind)  # type: ignore[arg-type]
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def social_arg(value: str) -> SocialEntry:
    kind, url = _split_tagged(value)
    try:
        return SocialEntry(kind=kind, url=url)  # type: ignore[arg-type]
    except ValueError as e:
        choices = ", ".join(k.value for k in SocialKind)
        raise argparse.ArgumentTypeError(f"{e} (choose from: {choices})") from e


def formats_arg(value: str) -> List[ExportFormat]:
    try:
        return [ExportFormat.parse(v) for v in value.split(",") if v.strip()]
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="vcardqr",
        description="Build a vCard 3.0 contact and save it as a QR code (offline).",
    )
    g = p.add_argument_group("contact")
    g.add_argument("--given", default="", help="Given name")
    g.add_argument("--family", default="", help="Family name")
    g.add_argument("--title", default="", help="Job title")
    g.add_argument("--org", default="", help="Organization")
    g.add_argument("--address", default="", help="Address (single free-text line)")
    g.add_argument(
        "--phone",
        action="append",
        type=phone_arg,
        default=[],
        metavar="KIND:NUMBER",
        help="Phone number, KIND is WORK or CELL (default CELL); repeatable",
    )
    g.add_argument("--email", default="", help="Email address")
    g.add_argument("--website", default="", help="Website; https:// is added when missing")
    g.add_argument(
        "--social",
        action="append",
        type=social_arg,
        default=[],
        metavar="KIND:URL",
        help="Social profile, e.g. linkedin:linkedin.com/in/jane; repeatable",
    )

    q = p.add_argument_group("qr code")
    q.add_argument(
        "--level",
        choices=[lvl.value for lvl in ErrorCorrectionLevel],
        default=None,
        help="Error correction level (default from config: M)",
    )
    q.add_argument("--margin", type=int, default=None, help="Quiet zone in modules")
    q.add_argument("--size", type=int, default=None, help="PNG/SVG edge in pixels")
    q.add_argument("--color", default=None, help="Foreground color, e.g. '#1a1a80'")

    o = p.add_argument_group("output")
    o.add_argument("--out-dir", default=".", help="Output directory")
    o.add_argument(
        "--formats",
        type=formats_arg,
        default=[ExportFormat.PNG, ExportFormat.SVG],
        help="Comma-separated subset of png,svg,vcf (default png,svg)",
    )
    o.add_argument("--print", dest="print_text", action="store_true", help="Print the vCard text and exit")
    o.add_argument("--config", type=Path, default=None, help="JSON config file")
    return p


def record_from_args(args: argparse.Namespace) -> ContactRecord:
    return ContactRecord(
        personal=PersonalInfo(
            given_name=args.given,
            family_name=args.family,
            job_title=args.title,
            organization=args.org,
        ),
        address=args.address,
        phones=args.phone,
        email=args.email,
        website=args.website,
        socials=args.social,
    )


def options_from_args(args: argparse.Namespace, config: dict) -> EncodeOptions:
    merged = dict(config)
    if args.level is not None:
        merged["error_correction"] = args.level
    if args.margin is not None:
        merged["margin"] = args.margin
    if args.size is not None:
        merged["download_size"] = args.size
    if args.color is not None:
        merged["foreground"] = args.color
    return EncodeOptions.from_config(merged, size_key="download_size")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    record = record_from_args(args)
    logger.debug("CLI contact: %s", record)

    if args.print_text:
        sys.stdout.write(build_vcard(record) + "\r\n")
        return EXIT_OK

    if record.is_empty():
        print("Error: nothing to encode, give at least one contact field.", file=sys.stderr)
        return EXIT_USAGE

    try:
        options = options_from_args(args, config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    image_formats = [f for f in args.formats if f is not ExportFormat.VCF]
    pipeline = RenderPipeline.from_config(config)
    result = pipeline.render_sync(record, options, formats=image_formats)
    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    if result.error is not None:
        print(f"Error: {result.error}", file=sys.stderr)
        print(
            "Suggested fixes: lower the error correction level, shorten fields or raise --size.",
            file=sys.stderr,
        )
        return EXIT_ENCODING

    files: List[ExportFile] = []
    artifact = result.artifact
    name = record.display_name
    if artifact is not None and artifact.image is not None:
        files.append(export_png(name, artifact.image))
    if artifact is not None and artifact.svg is not None:
        files.append(export_svg(name, artifact.svg))
    if ExportFormat.VCF in args.formats:
        files.append(export_vcf(name, result.text))

    try:
        for f in files:
            path = f.save(args.out_dir)
            print(f"Saved {path}")
    except ExportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_EXPORT
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
