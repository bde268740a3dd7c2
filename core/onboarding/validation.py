"""
Section Validation - Field Checks Shared by Both Property Flows

Validators are pure: they read a section's data and return field-level
errors. They never raise for bad input and never perform I/O. The only
clock dependency (year built) takes the current year as a parameter.

Two tiers:
- Field errors are shown per input and cleared as soon as that input changes
  (FieldErrorState.on_change).
- Proceed/submit gates always re-run validation on the live data; shown
  errors are never consulted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Final, Iterable, Optional


# =============================================================================
# Error Types
# =============================================================================


class ErrorKind(Enum):
    """Category of a field validation failure."""

    REQUIRED = "required"
    INVALID = "invalid"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    OUT_OF_RANGE = "out_of_range"
    FORMAT = "format"
    FILE_TOO_LARGE = "file_too_large"
    FILE_TYPE = "file_type"


@dataclass(frozen=True)
class FieldError:
    """A single field's validation failure."""

    kind: ErrorKind
    message: str

    def to_dict(self) -> dict:
        """Convert to dictionary for serialisation."""
        return {"kind": self.kind.value, "message": self.message}


@dataclass(frozen=True)
class SectionValidationResult:
    """Result of validating one section: per-field errors and completeness."""

    section: str
    errors: dict[str, FieldError] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        """True iff every mandatory field currently passes."""
        return not self.errors

    def to_dict(self) -> dict:
        """Convert to dictionary for serialisation."""
        return {
            "section": self.section,
            "complete": self.complete,
            "errors": {name: err.to_dict() for name, err in self.errors.items()},
        }


# A section validator maps the section's data (and the current year) to errors.
SectionValidator = Callable[[dict[str, Any], int], dict[str, FieldError]]


def run_section_validator(
    section: str,
    validator: SectionValidator,
    data: dict[str, Any],
    current_year: Optional[int] = None,
) -> SectionValidationResult:
    """Run a section validator and wrap its errors in a result."""
    year = current_year if current_year is not None else datetime.now().year
    return SectionValidationResult(section=section, errors=validator(data, year))


def collect(**checks: Optional[FieldError]) -> dict[str, FieldError]:
    """Drop passing checks from a field -> error mapping."""
    return {name: err for name, err in checks.items() if err is not None}


# =============================================================================
# Field Error State
# =============================================================================


class FieldErrorState:
    """
    Errors currently shown against individual inputs of one section.

    Display only. can_proceed never reads from here.
    """

    def __init__(self) -> None:
        self._errors: dict[str, FieldError] = {}

    @property
    def errors(self) -> dict[str, FieldError]:
        return dict(self._errors)

    def show(self, result: SectionValidationResult) -> None:
        """Replace the shown errors with a fresh validation result."""
        self._errors = dict(result.errors)

    def on_change(self, field_names: Iterable[str]) -> None:
        """Clear errors for inputs whose value just changed."""
        for name in field_names:
            self._errors.pop(name, None)

    def clear(self) -> None:
        self._errors.clear()


# =============================================================================
# Constants
# =============================================================================

TITLE_REGEX: Final = re.compile(r"^[a-zA-Z0-9\s\-/]+$")
YOUTUBE_REGEX: Final = re.compile(r"^(https?://)?(www\.)?(youtube\.com|youtu\.be)/.+", re.IGNORECASE)
VIMEO_REGEX: Final = re.compile(r"^(https?://)?(www\.)?vimeo\.com/.+", re.IGNORECASE)

TITLE_MIN_LENGTH: Final[int] = 2
TITLE_MAX_LENGTH: Final[int] = 100
ADDRESS_MIN_LENGTH: Final[int] = 10
HIGHLIGHTS_MIN_LENGTH: Final[int] = 10
HIGHLIGHTS_MAX_LENGTH: Final[int] = 200
EARLIEST_YEAR_BUILT: Final[int] = 1900

MAX_PHOTO_SIZE_MB: Final[int] = 25
MAX_VIDEO_SIZE_MB: Final[int] = 100
MIN_PHOTO_WIDTH: Final[int] = 800
MIN_PHOTO_HEIGHT: Final[int] = 600
MAX_PHOTOS: Final[int] = 20

OTHER_MARKET: Final[str] = "Other"

_MB: Final[int] = 1024 * 1024


# =============================================================================
# Value Helpers
# =============================================================================


def is_blank(value: Any) -> bool:
    """True for None, empty/whitespace strings and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a numeric input as typed by the user.

    Currency symbols, thousands separators and whitespace are ignored.
    Returns None if the value is not a number.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None
    cleaned = value.replace("$", "").replace(",", "").strip()
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_int(value: Any) -> Optional[int]:
    """Parse a whole-number input. Returns None for blanks and fractions."""
    number = parse_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return f"{int(amount):,}"
    return f"{amount:,.2f}"


# =============================================================================
# Text Checks
# =============================================================================


def check_title(value: Any, label: str = "Property title") -> Optional[FieldError]:
    """Title: 2-100 chars of letters, digits, spaces, hyphens and slashes."""
    if is_blank(value):
        return FieldError(ErrorKind.REQUIRED, f"{label} is required")
    text = str(value).strip()
    if len(text) < TITLE_MIN_LENGTH:
        return FieldError(
            ErrorKind.TOO_SHORT, f"{label} must be at least {TITLE_MIN_LENGTH} characters long"
        )
    if len(text) > TITLE_MAX_LENGTH:
        return FieldError(
            ErrorKind.TOO_LONG, f"{label} cannot exceed {TITLE_MAX_LENGTH} characters"
        )
    if not TITLE_REGEX.match(text):
        return FieldError(
            ErrorKind.FORMAT,
            f"{label} can only contain letters, numbers, spaces, hyphens, and slashes",
        )
    return None


def check_market(value: Any, approved: Iterable[str]) -> Optional[FieldError]:
    """Market must be one of the approved locations (or Other)."""
    if is_blank(value):
        return FieldError(ErrorKind.REQUIRED, "Market is required")
    if str(value) not in set(approved):
        return FieldError(ErrorKind.INVALID, "Please select a market from the list")
    return None


def check_other_market(market: Any, other_market: Any) -> Optional[FieldError]:
    """When market is Other, the free-text location is required and title-shaped."""
    if market != OTHER_MARKET:
        return None
    if is_blank(other_market):
        return FieldError(ErrorKind.REQUIRED, "Please specify the market location")
    return check_title(other_market, label="Market location")


def check_pincode(value: Any) -> Optional[FieldError]:
    """Pincode: 5-6 digits."""
    if is_blank(value):
        return FieldError(ErrorKind.REQUIRED, "Pincode is required")
    text = str(value).strip()
    if not text.isdigit():
        return FieldError(ErrorKind.FORMAT, "Pincode must contain only digits")
    if not 5 <= len(text) <= 6:
        return FieldError(ErrorKind.FORMAT, "Pincode must be 5-6 digits")
    return None


def check_address(value: Any) -> Optional[FieldError]:
    if is_blank(value):
        return FieldError(ErrorKind.REQUIRED, "Full address is required")
    if len(str(value).strip()) < ADDRESS_MIN_LENGTH:
        return FieldError(
            ErrorKind.TOO_SHORT,
            f"Address must be at least {ADDRESS_MIN_LENGTH} characters long",
        )
    return None


def check_choice(value: Any, choices: Iterable[str], required_message: str) -> Optional[FieldError]:
    """Value must be one of a fixed set of options."""
    if is_blank(value):
        return FieldError(ErrorKind.REQUIRED, required_message)
    if str(value) not in set(choices):
        return FieldError(ErrorKind.INVALID, f"'{value}' is not a valid option")
    return None


def check_required_text(value: Any, required_message: str) -> Optional[FieldError]:
    if is_blank(value):
        return FieldError(ErrorKind.REQUIRED, required_message)
    return None


def check_text_length(
    value: Any,
    label: str,
    min_length: int = HIGHLIGHTS_MIN_LENGTH,
    max_length: int = HIGHLIGHTS_MAX_LENGTH,
) -> Optional[FieldError]:
    """Free text bounded in length, e.g. local highlights."""
    if is_blank(value):
        return FieldError(ErrorKind.REQUIRED, f"{label} are required")
    text = str(value).strip()
    if len(text) < min_length:
        return FieldError(
            ErrorKind.TOO_SHORT, f"{label} must be at least {min_length} characters long"
        )
    if len(text) > max_length:
        return FieldError(ErrorKind.TOO_LONG, f"{label} cannot exceed {max_length} characters")
    return None


def check_selection(values: Any, message: str) -> Optional[FieldError]:
    """A multi-select list must contain at least one item."""
    if not isinstance(values, list) or not values:
        return FieldError(ErrorKind.REQUIRED, message)
    return None


# =============================================================================
# Numeric Checks
# =============================================================================


def check_year_built(value: Any, current_year: int) -> Optional[FieldError]:
    if is_blank(value):
        return FieldError(ErrorKind.REQUIRED, "Year built is required")
    year = parse_int(value)
    if year is None or not EARLIEST_YEAR_BUILT <= year <= current_year:
        return FieldError(
            ErrorKind.OUT_OF_RANGE,
            f"Year must be between {EARLIEST_YEAR_BUILT} and {current_year}",
        )
    return None


def check_range(
    value: Any,
    minimum: float,
    maximum: float,
    required_message: str,
    range_message: str,
    whole: bool = True,
) -> Optional[FieldError]:
    """Inclusive numeric range check. whole=True rejects fractional input."""
    if is_blank(value):
        return FieldError(ErrorKind.REQUIRED, required_message)
    number = parse_int(value) if whole else parse_number(value)
    if number is None:
        if parse_number(value) is None:
            return FieldError(ErrorKind.INVALID, "Please enter a valid number")
        return FieldError(ErrorKind.INVALID, "Please enter a whole number")
    if not minimum <= number <= maximum:
        return FieldError(ErrorKind.OUT_OF_RANGE, range_message)
    return None


def check_minimum(
    value: Any,
    minimum: float,
    required_message: Optional[str],
    minimum_message: str,
    strict: bool = False,
) -> Optional[FieldError]:
    """
    Lower-bound check for amounts.

    Args:
        value: Raw input
        minimum: Lower bound
        required_message: Message when blank; None makes the field optional
        minimum_message: Message when below the bound
        strict: If True the value must be strictly greater than minimum
    """
    if is_blank(value):
        if required_message is None:
            return None
        return FieldError(ErrorKind.REQUIRED, required_message)
    number = parse_number(value)
    if number is None:
        return FieldError(ErrorKind.INVALID, "Please enter a valid number")
    too_low = number <= minimum if strict else number < minimum
    if too_low:
        return FieldError(ErrorKind.OUT_OF_RANGE, minimum_message)
    return None


def check_square_footage_per_bedroom(
    square_footage: Any,
    bedrooms: Any,
    sqft_per_bedroom: int,
) -> Optional[FieldError]:
    """
    Cross-field rule: square footage must be at least sqft_per_bedroom x bedrooms.

    Only applies once both inputs parse; their own checks report blanks.
    """
    sqft = parse_number(square_footage)
    beds = parse_int(bedrooms)
    if sqft is None or beds is None or beds <= 0:
        return None
    minimum = sqft_per_bedroom * beds
    if sqft < minimum:
        return FieldError(
            ErrorKind.OUT_OF_RANGE,
            f"Square footage must be at least {_format_amount(minimum)} sqft for "
            f"{beds} bedrooms ({sqft_per_bedroom} sqft per bedroom)",
        )
    return None


# =============================================================================
# File Checks
# =============================================================================


def check_photos(
    photos: Any,
    minimum: int,
    maximum: int = MAX_PHOTOS,
) -> Optional[FieldError]:
    """Photo list: count bounds, per-photo size and minimum dimensions."""
    photos = photos if isinstance(photos, list) else []
    if len(photos) < minimum:
        return FieldError(
            ErrorKind.REQUIRED,
            f"At least {minimum} photos are required. You have {len(photos)} photos.",
        )
    if len(photos) > maximum:
        return FieldError(ErrorKind.OUT_OF_RANGE, f"You can upload at most {maximum} photos.")
    for photo in photos:
        if not isinstance(photo, dict):
            return FieldError(ErrorKind.INVALID, "Each photo must be a picked image file.")
        name = photo.get("name", "photo")
        if (parse_number(photo.get("size")) or 0) > MAX_PHOTO_SIZE_MB * _MB:
            return FieldError(
                ErrorKind.FILE_TOO_LARGE, f'Photo "{name}" exceeds {MAX_PHOTO_SIZE_MB}MB limit.'
            )
        width = parse_number(photo.get("width"))
        height = parse_number(photo.get("height"))
        if width and height and (width < MIN_PHOTO_WIDTH or height < MIN_PHOTO_HEIGHT):
            return FieldError(
                ErrorKind.INVALID,
                f'Photo "{name}" dimensions ({width:g}x{height:g}) are below minimum '
                f"requirement ({MIN_PHOTO_WIDTH}x{MIN_PHOTO_HEIGHT}).",
            )
    return None


def check_video(value: Any, required: bool, label: str = "Virtual tour") -> Optional[FieldError]:
    """
    A video is either a YouTube/Vimeo link or a picked MP4 file up to 100MB.
    """
    if is_blank(value):
        if required:
            return FieldError(ErrorKind.REQUIRED, f"{label} is required")
        return None
    if isinstance(value, str):
        link = value.strip()
        if not (YOUTUBE_REGEX.match(link) or VIMEO_REGEX.match(link)):
            return FieldError(ErrorKind.FORMAT, "Please enter a valid YouTube or Vimeo URL")
        return None
    if isinstance(value, dict):
        if (parse_number(value.get("size")) or 0) > MAX_VIDEO_SIZE_MB * _MB:
            return FieldError(
                ErrorKind.FILE_TOO_LARGE, f"Video file must be less than {MAX_VIDEO_SIZE_MB}MB"
            )
        if not str(value.get("name", "")).lower().endswith(".mp4"):
            return FieldError(ErrorKind.FILE_TYPE, "Only MP4 files are allowed")
        return None
    return FieldError(ErrorKind.INVALID, f"{label} must be a link or an MP4 file")


def check_document(
    record: Any,
    label: str,
    max_size_mb: int,
    allowed_types: Iterable[str],
    type_message: str,
    required: bool = True,
) -> Optional[FieldError]:
    """A picked document: present (if required), under the size cap, allowed MIME type."""
    if not isinstance(record, dict) or not record.get("uri"):
        if required:
            return FieldError(ErrorKind.REQUIRED, f"{label} is required")
        return None
    if (parse_number(record.get("size")) or 0) > max_size_mb * _MB:
        return FieldError(ErrorKind.FILE_TOO_LARGE, f"{label} must be less than {max_size_mb}MB")
    if str(record.get("type", "")).lower() not in set(allowed_types):
        return FieldError(ErrorKind.FILE_TYPE, type_message.format(label=label))
    return None


def check_consents(data: dict[str, Any], keys: Iterable[str]) -> dict[str, FieldError]:
    """Every consent flag must be explicitly accepted."""
    errors = {}
    for key in keys:
        if data.get(key) is not True:
            errors[key] = FieldError(ErrorKind.REQUIRED, "This consent is required")
    return errors


def document_label(field_name: str) -> str:
    """Human-readable document name, e.g. property_deed -> Property Deed."""
    return field_name.replace("_", " ").title()
