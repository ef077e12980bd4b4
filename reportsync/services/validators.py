from __future__ import annotations

import logging
import math
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional

from reportsync.core.enums import DiagnosticKind, ReportPriority, Severity
from reportsync.schemas.validation import Diagnostic, ReportDraft

logger = logging.getLogger(__name__)

_SEVERITY = {
    DiagnosticKind.error: Severity.blocking,
    DiagnosticKind.warning: Severity.notice,
    DiagnosticKind.suggestion: Severity.hint,
}

DISRESPECTFUL_TERMS = [
    "idiota", "estupido", "imbecil", "maldito",
    "idiot", "stupid", "imbecile", "moron",
]

VAGUE_PATTERNS = [
    re.compile(r"problema.*general", re.IGNORECASE),
    re.compile(r"mal.*todo", re.IGNORECASE),
    re.compile(r"no.*funciona.*nada", re.IGNORECASE),
    re.compile(r"terrible.*servicio", re.IGNORECASE),
    re.compile(r"nothing.*works", re.IGNORECASE),
    re.compile(r"terrible.*service", re.IGNORECASE),
]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class ValidationLimits:
    min_title: int = 10
    max_title: int = 100
    min_description: int = 20
    max_description: int = 1000
    max_photos: int = 5
    min_phone_digits: int = 7
    max_phone_digits: int = 15
    # a word (longer than 3 chars) seen more than this many times is repetitive
    repeat_threshold: int = 3
    # more than this many repetitive words triggers the warning
    repeat_word_limit: int = 2


@dataclass
class CheckResult:
    diagnostics: List[Diagnostic] = field(default_factory=list)
    penalty: int = 0

    def _add(self, kind: DiagnosticKind, code: str, message: str, penalty: int) -> None:
        self.diagnostics.append(
            Diagnostic(kind=kind, code=code, message=message, severity=_SEVERITY[kind])
        )
        self.penalty += penalty

    def error(self, code: str, message: str, penalty: int = 0) -> None:
        self._add(DiagnosticKind.error, code, message, penalty)

    def warning(self, code: str, message: str, penalty: int = 0) -> None:
        self._add(DiagnosticKind.warning, code, message, penalty)

    def suggestion(self, code: str, message: str, penalty: int = 0) -> None:
        self._add(DiagnosticKind.suggestion, code, message, penalty)


def _is_shouting(text: str) -> bool:
    return text.upper() == text


# -------------------------
# 1. Basic fields
# -------------------------
def check_basic_fields(draft: ReportDraft, limits: ValidationLimits) -> CheckResult:
    result = CheckResult()

    title = (draft.title or "").strip()
    if not title:
        result.error("title_required", "The title is required", 20)
    else:
        if len(title) < limits.min_title:
            result.error(
                "title_too_short",
                f"The title must be at least {limits.min_title} characters long",
                15,
            )
        elif len(title) > limits.max_title:
            result.error(
                "title_too_long",
                f"The title cannot exceed {limits.max_title} characters",
                10,
            )

        if len(title) < 20:
            result.suggestion(
                "title_not_descriptive",
                "A more descriptive title will help process your report faster",
                5,
            )

        if _is_shouting(title):
            result.warning("title_uppercase", "Avoid writing the title in capital letters", 3)

        if not any(ch.isalpha() for ch in title):
            result.error("title_without_letters", "The title must contain at least one letter", 10)

    description = (draft.description or "").strip()
    if not description:
        result.error("description_required", "The description is required", 20)
    else:
        if len(description) < limits.min_description:
            result.error(
                "description_too_short",
                f"The description must be at least {limits.min_description} characters long",
                15,
            )
        elif len(description) > limits.max_description:
            result.error(
                "description_too_long",
                f"The description cannot exceed {limits.max_description} characters",
                10,
            )

        if len(description.split(" ")) < 10:
            result.suggestion(
                "description_not_detailed",
                "A more detailed description will help solve the problem more efficiently",
                5,
            )

        if _is_shouting(description):
            result.warning(
                "description_uppercase",
                "Avoid writing the whole description in capital letters",
                3,
            )

    if not draft.category_id:
        result.error("category_required", "You must select a category", 20)

    return result


# -------------------------
# 2. Category
# -------------------------
async def check_category(draft: ReportDraft, directory) -> CheckResult:
    result = CheckResult()
    if not draft.category_id:
        # already reported by the basic check
        return result

    try:
        category = await directory.get(draft.category_id)
    except Exception:
        logger.exception("Category lookup failed for %s", draft.category_id)
        result.error("category_lookup_failed", "Could not verify the category", 10)
        return result

    if category is None:
        result.error("category_not_found", "The selected category does not exist", 20)
        return result

    if not category.active:
        result.error("category_inactive", "The selected category is not available", 20)
        return result

    for custom in category.custom_fields:
        value = draft.custom_fields.get(custom.id)
        if custom.required and (value is None or value == ""):
            result.error(
                f"custom_field_required:{custom.id}",
                f'The field "{custom.name}" is required for this category',
                10,
            )

    if category.requires_location and draft.location is None:
        result.error("location_required", "This category requires a location", 15)

    if category.requires_photo and not draft.photos:
        result.error("photo_required", "This category requires at least one photo", 15)

    if category.priority == ReportPriority.critical:
        result.warning(
            "priority_critical",
            "This is a critical priority report. It will be handled immediately.",
        )
    elif category.priority == ReportPriority.high:
        result.warning("priority_high", "This report will be processed with high priority.")
    elif category.priority == ReportPriority.medium and category.expected_response_hours:
        result.warning(
            "expected_response_time",
            f"Estimated response time: {category.expected_response_hours} hours.",
        )

    return result


# -------------------------
# 3. Content heuristics
# -------------------------
def check_content(draft: ReportDraft, limits: ValidationLimits) -> CheckResult:
    result = CheckResult()
    content = f"{draft.title or ''} {draft.description or ''}".lower()

    if any(term in content for term in DISRESPECTFUL_TERMS):
        result.warning(
            "disrespectful_language",
            "Your report contains language that could be considered inappropriate",
            10,
        )
        result.suggestion(
            "use_respectful_language",
            "Respectful language helps your report be taken more seriously",
        )

    frequency = Counter(word for word in content.split() if len(word) > 3)
    repeated = [word for word, count in frequency.items() if count > limits.repeat_threshold]
    if len(repeated) > limits.repeat_word_limit:
        result.warning("repetitive_text", "Your report contains a lot of repetitive text", 5)
        result.suggestion("be_concise", "Try to be more concise and varied in your description")

    if any(pattern.search(content) for pattern in VAGUE_PATTERNS):
        result.suggestion(
            "vague_report",
            "Try to be more specific about the problem you are reporting",
            8,
        )

    return result


# -------------------------
# 4. Location
# -------------------------
def _is_number(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def check_location(draft: ReportDraft, limits: ValidationLimits) -> CheckResult:
    result = CheckResult()

    if draft.location is None:
        result.suggestion(
            "location_missing",
            "Adding the location helps process the report more efficiently",
            3,
        )
        return result

    latitude, longitude = draft.location.latitude, draft.location.longitude
    if not _is_number(latitude) or not _is_number(longitude):
        result.error("coordinates_invalid", "The location coordinates are not valid", 15)
        return result

    if latitude < -90 or latitude > 90:
        result.error("latitude_out_of_range", "Latitude must be between -90 and 90 degrees", 15)

    if longitude < -180 or longitude > 180:
        result.error(
            "longitude_out_of_range", "Longitude must be between -180 and 180 degrees", 15
        )

    if latitude == 0 and longitude == 0:
        result.warning(
            "coordinates_zero",
            "Coordinates appear to be 0,0. Check that the location is correct.",
            5,
        )

    return result


# -------------------------
# 5. Photos
# -------------------------
def check_photos(draft: ReportDraft, limits: ValidationLimits) -> CheckResult:
    result = CheckResult()
    photos = draft.photos or []

    if not photos:
        result.suggestion(
            "photos_missing",
            "Photos help significantly to understand and solve the problem faster",
            5,
        )
        return result

    if len(photos) > limits.max_photos:
        result.error("too_many_photos", f"You cannot add more than {limits.max_photos} photos", 10)

    if any(not isinstance(p, str) or not p.strip() for p in photos):
        result.error("invalid_photos", "Some photos are not valid", 8)

    if len(photos) == 1:
        result.suggestion(
            "more_photos",
            "Adding photos from different angles can help understand the problem better",
        )

    return result


# -------------------------
# 6. Contact
# -------------------------
def check_contact(draft: ReportDraft, limits: ValidationLimits) -> CheckResult:
    result = CheckResult()

    if draft.anonymous:
        result.warning(
            "anonymous_report", "Anonymous reports may take longer to be processed", 3
        )
        result.suggestion(
            "add_contact_method",
            "Consider providing at least one contact method for follow-up",
        )
        return result

    phone: Optional[str] = draft.contact.phone if draft.contact else None
    email: Optional[str] = draft.contact.email if draft.contact else None

    if phone:
        digits = re.sub(r"\D", "", phone)
        if len(digits) < limits.min_phone_digits:
            result.error(
                "phone_too_short",
                f"The phone number must have at least {limits.min_phone_digits} digits",
                5,
            )
        elif len(digits) > limits.max_phone_digits:
            result.error(
                "phone_too_long",
                f"The phone number cannot have more than {limits.max_phone_digits} digits",
                5,
            )

    if email and not EMAIL_PATTERN.match(email):
        result.error("email_invalid", "The email format is not valid", 5)

    if not phone and not email:
        result.suggestion(
            "contact_missing",
            "Providing a contact method helps you get updates on your report",
            2,
        )

    return result
