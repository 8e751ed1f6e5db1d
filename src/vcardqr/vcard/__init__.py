"""
vcard

vCard 3.0 serialization of ContactRecord.

Public API:
    - build_vcard: CRLF-joined vCard 3.0 text for a contact
    - escape_value / unescape_value: property value escaping and its inverse
    - ensure_url: https:// prefix for bare URLs
    - FIELD_TABLE / VCardField: ordered emission table
"""

from vcardqr.vcard.builder import (
    CRLF,
    FIELD_TABLE,
    MINIMAL_VCARD,
    VCardField,
    build_vcard,
    ensure_url,
    escape_value,
    parse_vcard_lines,
    split_components,
    unescape_value,
    vcard_lines,
)

__all__ = [
    "CRLF",
    "FIELD_TABLE",
    "MINIMAL_VCARD",
    "VCardField",
    "build_vcard",
    "ensure_url",
    "escape_value",
    "parse_vcard_lines",
    "split_components",
    "unescape_value",
    "vcard_lines",
]
