"""
RU: Построение записи vCard 3.0 из ContactRecord: экранирование, нормализация URL, декларативная таблица полей
EN: vCard 3.0 record builder: value escaping, URL normalisation, declarative ordered field table

Provides:
- escape_value / unescape_value: RFC 2426 text escaping and its inverse
- ensure_url: https:// prefix for bare host names
- FIELD_TABLE: ordered (extract, format, predicate) rows, one per vCard property
- build_vcard: CRLF-joined record text; pure and deterministic
- parse_vcard_lines / split_components: consumer-side helpers for reading the text back
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Final, Iterable, List, Sequence, Tuple

from vcardqr.model.contact import ContactRecord

logger = logging.getLogger(__name__)

__all__ = [
    "CRLF",
    "HEADER",
    "FOOTER",
    "MINIMAL_VCARD",
    "VCardField",
    "FIELD_TABLE",
    "escape_value",
    "unescape_value",
    "ensure_url",
    "vcard_lines",
    "build_vcard",
    "parse_vcard_lines",
    "split_components",
]

# Сканеры QR ожидают CRLF; голый LF принимают не все
CRLF: Final[str] = "\r\n"
HEADER: Final[Tuple[str, str]] = ("BEGIN:VCARD", "VERSION:3.0")
FOOTER: Final[str] = "END:VCARD"
MINIMAL_VCARD: Final[str] = CRLF.join((*HEADER, FOOTER))

_URL_SCHEME_RE: Final[re.Pattern[str]] = re.compile(r"^https?://", re.IGNORECASE)
_UNESCAPE_MAP: Final[dict[str, str]] = {"\\": "\\", "n": "\n", ";": ";", ",": ","}


def escape_value(value: Any) -> str:
    """Escape a property value per vCard text rules, then trim it.

    Order is fixed: backslash first, so the escapes added for newline,
    semicolon and comma are not escaped again.

    Args:
        value: Raw field text; None is treated as empty.

    Returns:
        Escaped, trimmed text.

    Example:
        >>> escape_value("Doe, Jane; Ltd")
        'Doe\\\\, Jane\\\\; Ltd'
    """
    if not value:
        return ""
    return (
        str(value)
        .replace("\\", "\\\\")
        .replace("\n", "\\n")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .strip()
    )


def unescape_value(value: str) -> str:
    """Inverse of escape_value for escaped text (single left-to-right scan).

    Unknown escape sequences are kept verbatim.
    """
    out: List[str] = []
    i = 0
    n = len(value)
    while i < n:
        ch = value[i]
        if ch == "\\" and i + 1 < n and value[i + 1] in _UNESCAPE_MAP:
            out.append(_UNESCAPE_MAP[value[i + 1]])
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def ensure_url(value: Any) -> str:
    """Return the trimmed URL with an https:// prefix unless it already has http(s)://."""
    s = (str(value) if value else "").strip()
    if not s:
        return ""
    if _URL_SCHEME_RE.match(s):
        return s
    return f"https://{s}"


def _non_empty(value: Any) -> bool:
    return bool(value)


@dataclass(frozen=True)
class VCardField:
    """One row of the emission table.

    ``extract`` yields zero or more escaped values from the record (repeating
    properties such as TEL yield one value per entry); ``format`` renders a
    value into a content line; a line is emitted only where ``predicate``
    holds for the value.
    """

    name: str
    extract: Callable[[ContactRecord], Iterable[Any]]
    format: Callable[[Any], str]
    predicate: Callable[[Any], bool] = _non_empty

    def lines(self, record: ContactRecord) -> List[str]:
        result: List[str] = []
        for value in self.extract(record):
            if self.predicate(value):
                result.append(self.format(value))
            else:
                logger.debug("vCard field %s skipped: empty value", self.name)
        return result


def _names(record: ContactRecord) -> List[Tuple[str, str]]:
    return [
        (
            escape_value(record.personal.given_name),
            escape_value(record.personal.family_name),
        )
    ]


def _full_name(names: Tuple[str, str]) -> str:
    return " ".join(part for part in names if part)


def _single(getter: Callable[[ContactRecord], Any]) -> Callable[[ContactRecord], List[str]]:
    return lambda record: [escape_value(getter(record))]


FIELD_TABLE: Final[Tuple[VCardField, ...]] = (
    VCardField(
        "FN",
        _names,
        lambda names: f"FN:{_full_name(names)}",
        lambda names: bool(_full_name(names)),
    ),
    VCardField(
        "N",
        _names,
        lambda names: f"N:{names[1]};{names[0]};;;",
        lambda names: bool(_full_name(names)),
    ),
    VCardField("TITLE", _single(lambda r: r.personal.job_title), lambda v: f"TITLE:{v}"),
    VCardField("ORG", _single(lambda r: r.personal.organization), lambda v: f"ORG:{v}"),
    VCardField(
        "TEL",
        lambda r: [(p.kind.value, escape_value(p.number)) for p in r.phones],
        lambda entry: f"TEL;TYPE={entry[0]}:{entry[1]}",
        lambda entry: bool(entry[1]),
    ),
    VCardField(
        "EMAIL", _single(lambda r: r.email), lambda v: f"EMAIL;TYPE=INTERNET:{v}"
    ),
    # Весь адрес в поле street, остальные компоненты пустые
    VCardField("ADR", _single(lambda r: r.address), lambda v: f"ADR;TYPE=WORK:;;{v};;;;"),
    VCardField("URL", _single(lambda r: ensure_url(r.website)), lambda v: f"URL:{v}"),
    VCardField(
        "X-SOCIALPROFILE",
        lambda r: [(s.kind.value, escape_value(ensure_url(s.url))) for s in r.socials],
        lambda entry: f"X-SOCIALPROFILE;type={entry[0]}:{entry[1]}",
        lambda entry: bool(entry[1]),
    ),
)


def vcard_lines(
    record: ContactRecord, table: Sequence[VCardField] = FIELD_TABLE
) -> List[str]:
    """Content lines of the record, header and footer included, in table order."""
    lines: List[str] = list(HEADER)
    for row in table:
        lines.extend(row.lines(record))
    lines.append(FOOTER)
    return lines


def build_vcard(record: ContactRecord) -> str:
    """Serialize a contact as vCard 3.0 text joined with CRLF.

    Never raises for a well-formed ContactRecord: empty fields only shorten
    the record, down to MINIMAL_VCARD.

    Example:
        >>> build_vcard(ContactRecord(email="jane@acme.com")).split("\\r\\n")
        ['BEGIN:VCARD', 'VERSION:3.0', 'EMAIL;TYPE=INTERNET:jane@acme.com', 'END:VCARD']
    """
    text = CRLF.join(vcard_lines(record))
    logger.debug("vCard built: %d chars", len(text))
    return text


def parse_vcard_lines(text: str) -> List[Tuple[str, str]]:
    """Split CRLF vCard text into (name-with-params, raw value) pairs.

    Values are returned still escaped, since structured properties (N, ADR)
    must be split with split_components before unescaping.
    """
    result: List[Tuple[str, str]] = []
    for line in text.split(CRLF):
        if not line:
            continue
        key, sep, value = line.partition(":")
        if not sep:
            logger.warning("Malformed vCard line without ':': %r", line)
            continue
        result.append((key, value))
    return result


def split_components(value: str) -> List[str]:
    """Split a structured value on unescaped ';' and unescape each component."""
    parts: List[str] = []
    current: List[str] = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "\\" and i + 1 < len(value):
            current.append(value[i : i + 2])
            i += 2
            continue
        if ch == ";":
            parts.append(unescape_value("".join(current)))
            current = []
        else:
            current.append(ch)
        i += 1
    parts.append(unescape_value("".join(current)))
    return parts
