import pytest

from vcardqr.model.contact import ContactRecord, PersonalInfo, PhoneEntry, SocialEntry
from vcardqr.model.enums import PhoneKind
from vcardqr.vcard.builder import (
    CRLF,
    FIELD_TABLE,
    MINIMAL_VCARD,
    build_vcard,
    ensure_url,
    escape_value,
    parse_vcard_lines,
    split_components,
    unescape_value,
    vcard_lines,
)


def _full_record() -> ContactRecord:
    return ContactRecord(
        personal=PersonalInfo(
            given_name="Jane",
            family_name="Doe",
            job_title="CTO",
            organization="Acme, Inc.",
        ),
        address="Bahnhofstrasse 1; 8001 Zürich",
        phones=[
            PhoneEntry("+41 44 000 00 00", PhoneKind.WORK),
            PhoneEntry("", PhoneKind.CELL),
            PhoneEntry("+41791234567", PhoneKind.CELL),
        ],
        email="jane@acme.com",
        website="acme.com",
        socials=[
            SocialEntry("linkedin", "linkedin.com/in/jane"),
            SocialEntry("github", "   "),
            SocialEntry("twitter", "HTTPS://x.com/jane"),
        ],
    )


class TestEscapeValue:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("plain", "plain"),
            ("a\\b", "a\\\\b"),
            ("x;y,z", "x\\;y\\,z"),
            ("line1\nline2", "line1\\nline2"),
            # обратная косая экранируется первой
            ("\\n", "\\\\n"),
            ("\\;", "\\\\\\;"),
            ("  Jane  ", "Jane"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_escape(self, raw: object, expected: str) -> None:
        assert escape_value(raw) == expected

    def test_trailing_newline_is_escaped_not_trimmed(self) -> None:
        assert escape_value("Jane\n") == "Jane\\n"

    @pytest.mark.parametrize(
        "raw",
        ["a\\b", "x;y,z", "line1\nline2", "\\n literal", "C:\\path\\;weird,\\,", "ends with\\"],
    )
    def test_unescape_inverts_escape(self, raw: str) -> None:
        assert unescape_value(escape_value(raw)) == raw

    def test_unescape_keeps_unknown_sequences(self) -> None:
        assert unescape_value("a\\tb\\") == "a\\tb\\"


class TestEnsureUrl:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("acme.com", "https://acme.com"),
            ("  acme.com  ", "https://acme.com"),
            ("http://acme.com", "http://acme.com"),
            ("https://acme.com/x", "https://acme.com/x"),
            ("HTTP://ACME.COM", "HTTP://ACME.COM"),
            ("ftp://acme.com", "https://ftp://acme.com"),
            ("", ""),
            ("   ", ""),
            (None, ""),
        ],
    )
    def test_ensure_url(self, raw: object, expected: str) -> None:
        assert ensure_url(raw) == expected


class TestBuildVcard:
    def test_jane_doe_example(self) -> None:
        record = ContactRecord(
            personal=PersonalInfo(given_name="Jane", family_name="Doe"),
            phones=[PhoneEntry("+41791234567", PhoneKind.CELL)],
            email="jane@acme.com",
        )
        assert build_vcard(record) == (
            "BEGIN:VCARD\r\n"
            "VERSION:3.0\r\n"
            "FN:Jane Doe\r\n"
            "N:Doe;Jane;;;\r\n"
            "TEL;TYPE=CELL:+41791234567\r\n"
            "EMAIL;TYPE=INTERNET:jane@acme.com\r\n"
            "END:VCARD"
        )

    def test_website_is_normalized(self) -> None:
        text = build_vcard(ContactRecord(website="acme.com"))
        assert "URL:https://acme.com" in text.split(CRLF)

    def test_newline_only_address_is_still_emitted(self) -> None:
        record = ContactRecord(address="\n")
        assert record.is_empty()
        assert "ADR;TYPE=WORK:;;\\n;;;;" in build_vcard(record).split(CRLF)

    def test_full_record_order_and_elision(self) -> None:
        assert build_vcard(_full_record()).split(CRLF) == [
            "BEGIN:VCARD",
            "VERSION:3.0",
            "FN:Jane Doe",
            "N:Doe;Jane;;;",
            "TITLE:CTO",
            "ORG:Acme\\, Inc.",
            "TEL;TYPE=WORK:+41 44 000 00 00",
            "TEL;TYPE=CELL:+41791234567",
            "EMAIL;TYPE=INTERNET:jane@acme.com",
            "ADR;TYPE=WORK:;;Bahnhofstrasse 1\\; 8001 Zürich;;;;",
            "URL:https://acme.com",
            "X-SOCIALPROFILE;type=linkedin:https://linkedin.com/in/jane",
            "X-SOCIALPROFILE;type=twitter:HTTPS://x.com/jane",
            "END:VCARD",
        ]

    def test_empty_record_gives_minimal_card(self) -> None:
        assert build_vcard(ContactRecord()) == MINIMAL_VCARD
        assert MINIMAL_VCARD == "BEGIN:VCARD\r\nVERSION:3.0\r\nEND:VCARD"

    def test_whitespace_only_fields_are_elided(self) -> None:
        record = ContactRecord(
            personal=PersonalInfo(given_name="   ", family_name=" ", job_title="  "),
            website="   ",
            phones=[PhoneEntry("  ")],
        )
        assert build_vcard(record) == MINIMAL_VCARD

    def test_given_name_only(self) -> None:
        lines = build_vcard(ContactRecord(personal=PersonalInfo(given_name="Jane"))).split(CRLF)
        assert lines[2:4] == ["FN:Jane", "N:;Jane;;;"]

    def test_family_name_only(self) -> None:
        lines = build_vcard(ContactRecord(personal=PersonalInfo(family_name="Doe"))).split(CRLF)
        assert lines[2:4] == ["FN:Doe", "N:Doe;;;;"]

    def test_names_omitted_without_given_and_family(self) -> None:
        text = build_vcard(ContactRecord(personal=PersonalInfo(organization="Acme")))
        assert not any(line.startswith(("FN:", "N:")) for line in text.split(CRLF))

    def test_names_are_escaped(self) -> None:
        record = ContactRecord(personal=PersonalInfo(given_name="Jean;Luc", family_name="O,Neil"))
        lines = build_vcard(record).split(CRLF)
        assert "FN:Jean\\;Luc O\\,Neil" in lines
        assert "N:O\\,Neil;Jean\\;Luc;;;" in lines

    def test_multiline_address_stays_one_line(self) -> None:
        text = build_vcard(ContactRecord(address="Main St 1\n8001 Zürich"))
        assert "ADR;TYPE=WORK:;;Main St 1\\n8001 Zürich;;;;" in text.split(CRLF)
        assert "\n" not in text.replace(CRLF, "")

    def test_phone_order_preserved(self) -> None:
        phones = [PhoneEntry(f"+4179000000{i}", PhoneKind.CELL) for i in range(5)]
        lines = [
            line for line in build_vcard(ContactRecord(phones=phones)).split(CRLF)
            if line.startswith("TEL")
        ]
        assert lines == [f"TEL;TYPE=CELL:+4179000000{i}" for i in range(5)]

    def test_deterministic(self) -> None:
        record = _full_record()
        assert build_vcard(record) == build_vcard(record)
        assert build_vcard(record) == build_vcard(ContactRecord.from_dict(record.to_dict()))

    def test_always_framed(self) -> None:
        for record in (ContactRecord(), _full_record()):
            lines = build_vcard(record).split(CRLF)
            assert lines[:2] == ["BEGIN:VCARD", "VERSION:3.0"]
            assert lines[-1] == "END:VCARD"
            assert all(lines)

    def test_custom_table(self) -> None:
        assert vcard_lines(_full_record(), table=FIELD_TABLE[:2]) == [
            "BEGIN:VCARD",
            "VERSION:3.0",
            "FN:Jane Doe",
            "N:Doe;Jane;;;",
            "END:VCARD",
        ]


class TestReadBack:
    def test_parse_lines_and_components(self) -> None:
        pairs = dict(parse_vcard_lines(build_vcard(_full_record())))
        assert pairs["ORG"] == "Acme\\, Inc."
        assert unescape_value(pairs["ORG"]) == "Acme, Inc."
        assert split_components(pairs["ADR;TYPE=WORK"]) == [
            "",
            "",
            "Bahnhofstrasse 1; 8001 Zürich",
            "",
            "",
            "",
            "",
        ]
        assert split_components(pairs["N"]) == ["Doe", "Jane", "", "", ""]

    def test_parse_skips_malformed_lines(self) -> None:
        assert parse_vcard_lines("BEGIN:VCARD\r\ngarbage\r\nEND:VCARD") == [
            ("BEGIN", "VCARD"),
            ("END", "VCARD"),
        ]
