"""
model/enums.py

(Краткое RU: Перечисления предметной области: типы телефонов, соцсетей, уровни коррекции ошибок QR, форматы экспорта.)

EN: Closed domain enums for the contact model and the QR bridge.
Every tag that reaches the vCard text comes from one of these enums; unknown
tags are rejected at the boundary by ``parse`` instead of being emitted.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Final, Literal, Union

import qrcode.constants

_logger: Final[logging.Logger] = logging.getLogger(__name__)


def _parse_member(enum_cls: type, value: Union[str, Enum], what: str) -> Enum:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip()
        for member in enum_cls:  # type: ignore[attr-defined]
            if key.lower() in (member.value.lower(), member.name.lower()):
                return member  # type: ignore[no-any-return]
    _logger.error("Unknown %s tag: %r", what, value)
    raise ValueError(f"Unknown {what}: {value!r}")


class PhoneKind(str, Enum):
    WORK = "WORK"
    CELL = "CELL"

    @classmethod
    def parse(cls, value: Union[str, "PhoneKind"]) -> "PhoneKind":
        """Coerce a member or case-insensitive tag; raise ValueError otherwise."""
        return _parse_member(cls, value, "phone kind")  # type: ignore[return-value]

    def localized_name(self, lang: Literal["ru", "en"] = "ru") -> str:
        names_ru = {
            PhoneKind.WORK: "Рабочий",
            PhoneKind.CELL: "Мобильный",
        }
        names_en = {
            PhoneKind.WORK: "Work",
            PhoneKind.CELL: "Mobile",
        }
        return names_ru[self] if lang == "ru" else names_en[self]


class SocialKind(str, Enum):
    LINKEDIN = "linkedin"
    TWITTER = "twitter"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    GITHUB = "github"
    YOUTUBE = "youtube"
    TIKTOK = "tiktok"
    MASTODON = "mastodon"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Union[str, "SocialKind"]) -> "SocialKind":
        """Coerce a member or case-insensitive tag; raise ValueError otherwise."""
        return _parse_member(cls, value, "social profile kind")  # type: ignore[return-value]

    def localized_name(self, lang: Literal["ru", "en"] = "ru") -> str:
        names_en = {
            SocialKind.LINKEDIN: "LinkedIn",
            SocialKind.TWITTER: "X (Twitter)",
            SocialKind.FACEBOOK: "Facebook",
            SocialKind.INSTAGRAM: "Instagram",
            SocialKind.GITHUB: "GitHub",
            SocialKind.YOUTUBE: "YouTube",
            SocialKind.TIKTOK: "TikTok",
            SocialKind.MASTODON: "Mastodon",
            SocialKind.OTHER: "Other",
        }
        if lang == "ru" and self is SocialKind.OTHER:
            return "Другое"
        return names_en[self]


class ErrorCorrectionLevel(str, Enum):
    """QR error-correction tiers, from least (L) to most (H) redundancy."""

    L = "L"
    M = "M"
    Q = "Q"
    H = "H"

    @classmethod
    def parse(
        cls, value: Union[str, "ErrorCorrectionLevel"]
    ) -> "ErrorCorrectionLevel":
        return _parse_member(cls, value, "error correction level")  # type: ignore[return-value]

    @property
    def qrcode_constant(self) -> int:
        mapping = {
            ErrorCorrectionLevel.L: qrcode.constants.ERROR_CORRECT_L,
            ErrorCorrectionLevel.M: qrcode.constants.ERROR_CORRECT_M,
            ErrorCorrectionLevel.Q: qrcode.constants.ERROR_CORRECT_Q,
            ErrorCorrectionLevel.H: qrcode.constants.ERROR_CORRECT_H,
        }
        return mapping[self]

    @property
    def ordinal(self) -> int:
        return ("L", "M", "Q", "H").index(self.value)

    @property
    def recovery_percent(self) -> int:
        # Доля восстанавливаемых кодовых слов по ISO/IEC 18004
        return {"L": 7, "M": 15, "Q": 25, "H": 30}[self.value]

    def localized_name(self, lang: Literal["ru", "en"] = "ru") -> str:
        if lang == "ru":
            return f"{self.value} (~{self.recovery_percent}% восстановления)"
        return f"{self.value} (~{self.recovery_percent}% recovery)"


class ExportFormat(str, Enum):
    PNG = "png"
    SVG = "svg"
    VCF = "vcf"

    @classmethod
    def parse(cls, value: Union[str, "ExportFormat"]) -> "ExportFormat":
        return _parse_member(cls, value, "export format")  # type: ignore[return-value]

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @property
    def mime_type(self) -> str:
        return EXPORT_MIME_TYPES[self]


# MIME types for exported artifacts
EXPORT_MIME_TYPES = {
    ExportFormat.PNG: "image/png",
    ExportFormat.SVG: "image/svg+xml",
    ExportFormat.VCF: "text/vcard",
}


# === DEFAULTS ===
DEFAULT_PHONE_KIND: Final[PhoneKind] = PhoneKind.CELL
DEFAULT_ERROR_CORRECTION: Final[ErrorCorrectionLevel] = ErrorCorrectionLevel.M


__all__ = [
    "PhoneKind",
    "SocialKind",
    "ErrorCorrectionLevel",
    "ExportFormat",
    "EXPORT_MIME_TYPES",
    "DEFAULT_PHONE_KIND",
    "DEFAULT_ERROR_CORRECTION",
]
