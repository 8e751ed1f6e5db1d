# RU: Доменная модель контакта: личные данные, адрес, телефоны, email, сайт, соцсети; неизменяемые значения для передачи по значению.
# EN: Contact domain model. Frozen dataclasses, closed enums for phone/social tags, dict round-trip with schema version.

import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterable, List, Tuple, Union

from .enums import DEFAULT_PHONE_KIND, PhoneKind, SocialKind

logger = logging.getLogger(__name__)

__all__ = [
    "PersonalInfo",
    "PhoneEntry",
    "SocialEntry",
    "ContactRecord",
]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class PersonalInfo:
    given_name: str = ""
    family_name: str = ""
    job_title: str = ""
    organization: str = ""

    def __post_init__(self) -> None:
        for name in ("given_name", "family_name", "job_title", "organization"):
            object.__setattr__(self, name, _text(getattr(self, name)))


@dataclass(frozen=True)
class PhoneEntry:
    """One phone number tagged WORK or CELL. Empty numbers are kept here and dropped by the builder."""

    number: str = ""
    kind: PhoneKind = DEFAULT_PHONE_KIND

    def __post_init__(self) -> None:
        object.__setattr__(self, "number", _text(self.number))
        object.__setattr__(self, "kind", PhoneKind.parse(self.kind))


@dataclass(frozen=True)
class SocialEntry:
    kind: SocialKind
    url: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", SocialKind.parse(self.kind))
        object.__setattr__(self, "url", _text(self.url))


@dataclass(frozen=True)
class ContactRecord:
    """
    Input aggregate for the vCard builder.

    Sequences are frozen to tuples, so two records built from equal field
    values compare equal and hash equal; the builder output depends on
    nothing else.

    Examples:
        record = ContactRecord(
            personal=PersonalInfo(given_name="Jane", family_name="Doe"),
            phones=[PhoneEntry("+41791234567", PhoneKind.CELL)],
            socials=[SocialEntry("github", "github.com/jane")],
        )
        record.display_name  # "Jane Doe"
    """

    schema_version: ClassVar[str] = "1.0"

    personal: PersonalInfo = field(default_factory=PersonalInfo)
    address: str = ""
    phones: Tuple[PhoneEntry, ...] = ()
    email: str = ""
    website: str = ""
    socials: Tuple[SocialEntry, ...] = ()

    _TEXT_KEYS: ClassVar[Tuple[str, ...]] = (
        "given_name",
        "family_name",
        "job_title",
        "organization",
        "address",
        "email",
        "website",
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", _text(self.address))
        object.__setattr__(self, "email", _text(self.email))
        object.__setattr__(self, "website", _text(self.website))
        object.__setattr__(self, "phones", tuple(self.phones))
        object.__setattr__(self, "socials", tuple(self.socials))
        for phone in self.phones:
            if not isinstance(phone, PhoneEntry):
                raise TypeError(f"phones must contain PhoneEntry, got {type(phone)!r}")
        for social in self.socials:
            if not isinstance(social, SocialEntry):
                raise TypeError(
                    f"socials must contain SocialEntry, got {type(social)!r}"
                )

    @property
    def display_name(self) -> str:
        """Given and family name joined by a space, blank parts skipped."""
        parts = (self.personal.given_name.strip(), self.personal.family_name.strip())
        return " ".join(p for p in parts if p)

    def is_empty(self) -> bool:
        """True when no field holds visible text.

        Checks the raw text with surrounding whitespace trimmed. The builder
        escapes before it trims, so a field holding only a newline counts as
        empty here while build_vcard would still emit its escaped ``\\n``.
        """
        texts: List[str] = [
            self.personal.given_name,
            self.personal.family_name,
            self.personal.job_title,
            self.personal.organization,
            self.address,
            self.email,
            self.website,
        ]
        texts.extend(p.number for p in self.phones)
        texts.extend(s.url for s in self.socials)
        return not any(t.strip() for t in texts)

    def with_changes(self, **changes: Any) -> "ContactRecord":
        """Return a copy with flat field names replaced (form-layer convenience)."""
        d = self.to_dict()
        d.update(changes)
        return ContactRecord.from_dict(d)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "given_name": self.personal.given_name,
            "family_name": self.personal.family_name,
            "job_title": self.personal.job_title,
            "organization": self.personal.organization,
            "address": self.address,
            "email": self.email,
            "website": self.website,
            "phones": [{"number": p.number, "kind": p.kind.value} for p in self.phones],
            "socials": [{"kind": s.kind.value, "url": s.url} for s in self.socials],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ContactRecord":
        d = dict(d)
        version = d.pop("schema_version", None)
        if version is not None and version != cls.schema_version:
            logger.warning(
                "Schema version mismatch (expected %s, got %s)",
                cls.schema_version,
                version,
            )
        unknown = set(d) - set(cls._TEXT_KEYS) - {"phones", "socials"}
        if unknown:
            raise ValueError(f"Unknown contact fields: {sorted(unknown)}")

        return cls(
            personal=PersonalInfo(
                given_name=_text(d.get("given_name")),
                family_name=_text(d.get("family_name")),
                job_title=_text(d.get("job_title")),
                organization=_text(d.get("organization")),
            ),
            address=_text(d.get("address")),
            email=_text(d.get("email")),
            website=_text(d.get("website")),
            phones=tuple(_phone(p) for p in d.get("phones") or ()),
            socials=tuple(_social(s) for s in d.get("socials") or ()),
        )

    def __str__(self) -> str:
        return (
            f"ContactRecord({self.display_name or '<unnamed>'}, "
            f"phones={len(self.phones)}, socials={len(self.socials)})"
        )


def _phone(item: Union[PhoneEntry, Dict[str, Any], Iterable[Any]]) -> PhoneEntry:
    if isinstance(item, PhoneEntry):
        return item
    if isinstance(item, dict):
        return PhoneEntry(
            number=_text(item.get("number")),
            kind=item.get("kind", DEFAULT_PHONE_KIND),
        )
    number, kind = item
    return PhoneEntry(number=_text(number), kind=kind)


def _social(item: Union[SocialEntry, Dict[str, Any], Iterable[Any]]) -> SocialEntry:
    if isinstance(item, SocialEntry):
        return item
    if isinstance(item, dict):
        if "kind" not in item:
            raise ValueError("Social profile entry requires a 'kind'")
        return SocialEntry(kind=item["kind"], url=_text(item.get("url")))
    kind, url = item
    return SocialEntry(kind=kind, url=_text(url))
