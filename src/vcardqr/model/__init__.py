"""Contact domain model and closed enums."""

from .contact import ContactRecord, PersonalInfo, PhoneEntry, SocialEntry
from .enums import (
    EXPORT_MIME_TYPES,
    ErrorCorrectionLevel,
    ExportFormat,
    PhoneKind,
    SocialKind,
)

__all__ = [
    "ContactRecord",
    "PersonalInfo",
    "PhoneEntry",
    "SocialEntry",
    "ErrorCorrectionLevel",
    "ExportFormat",
    "PhoneKind",
    "SocialKind",
    "EXPORT_MIME_TYPES",
]
